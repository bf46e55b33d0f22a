"""
Dependency injection for API endpoints.
"""
import logging
from functools import lru_cache
from typing import Generator, Optional

from fastapi import Depends, Request, Response

from app.core.config import settings
from app.core.database import SessionLocal
from app.core.exceptions import AuthenticationFailed, RateLimitExceeded
from app.services.admin_auth import AdminAuthService, AdminSession
from app.services.fpl_client import FplClient
from app.services.rate_limiter import EndpointRateLimiter
from app.services.scoring import ScoringService

logger = logging.getLogger(__name__)

ADMIN_TOKEN_COOKIE = "admin-token"


def get_db() -> Generator:
    """
    Database dependency that ensures proper session cleanup.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@lru_cache()
def get_fpl_client() -> FplClient:
    return FplClient()


def get_scoring_service(client: FplClient = Depends(get_fpl_client)) -> ScoringService:
    return ScoringService(client)


@lru_cache()
def get_admin_auth() -> AdminAuthService:
    return AdminAuthService()


@lru_cache()
def get_endpoint_rate_limiter() -> EndpointRateLimiter:
    return EndpointRateLimiter()


def client_ip(request: Request) -> str:
    """
    Address of the caller. Forwarding headers are client-controlled, so they
    are only read when TRUST_PROXY_HEADERS says a proxy in front sets them.
    """
    if settings.TRUST_PROXY_HEADERS:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def client_identifier(request: Request) -> str:
    """IP plus a truncated user agent, so one NAT address is not a single bucket."""
    user_agent = request.headers.get("user-agent") or "unknown"
    return f"{client_ip(request)}:{user_agent[:50]}"


def rate_limited(endpoint: str):
    """Dependency factory enforcing one of the named endpoint limits."""

    def dependency(
            request: Request,
            response: Response,
            limiter: EndpointRateLimiter = Depends(get_endpoint_rate_limiter)
    ) -> None:
        result = limiter.check(endpoint, client_identifier(request))
        if not result.success:
            raise RateLimitExceeded(
                "Rate limit exceeded. Please try again later.",
                retry_after=result.retry_after(limiter.clock()),
                headers=result.headers()
            )
        response.headers.update(result.headers())

    return dependency


def bearer_token(request: Request) -> Optional[str]:
    token = request.cookies.get(ADMIN_TOKEN_COOKIE)
    if token:
        return token
    auth_header = request.headers.get("authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[len("Bearer "):]
    return None


def require_admin(
        request: Request,
        auth: AdminAuthService = Depends(get_admin_auth)
) -> AdminSession:
    """Single verification path for admin routes: a signed session token."""
    token = bearer_token(request)
    if not token:
        raise AuthenticationFailed("No authentication token provided")

    session = auth.verify_token(token, client_ip(request))
    if session is None:
        raise AuthenticationFailed("Invalid or expired authentication token")
    return session
