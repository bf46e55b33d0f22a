"""
Admin login and logout.
"""
from fastapi import APIRouter, Depends, Request, Response

from app.api.deps import (
    ADMIN_TOKEN_COOKIE, client_ip, get_admin_auth, rate_limited
)
from app.core.config import settings
from app.schemas import auth as auth_schemas
from app.services.admin_auth import AdminAuthService

# Deprecated boolean cookie still read by old admin pages; never trusted here.
LEGACY_ADMIN_COOKIE = "admin"

router = APIRouter(
    prefix="/admin",
    tags=["admin"]
)


@router.post("/login", response_model=auth_schemas.AdminLoginResponse,
             dependencies=[Depends(rate_limited("admin"))],
             responses={401: {"description": "Invalid password"},
                        429: {"description": "Too many failed attempts"}})
def login(
        payload: auth_schemas.AdminLoginRequest,
        request: Request,
        response: Response,
        auth: AdminAuthService = Depends(get_admin_auth)
):
    """
    Exchange the admin password for a signed session token.

    The token is returned in the body and set as an HttpOnly cookie.
    Five failed attempts within 15 minutes lock the client address out,
    whatever user agent it sends.
    """
    ip_address = client_ip(request)
    token = auth.login(payload.password, ip_address, ip_address)

    cookie_options = dict(
        httponly=True,
        secure=not settings.DEBUG,
        samesite="lax",
        path="/",
        max_age=auth.session_seconds,
    )
    response.set_cookie(ADMIN_TOKEN_COOKIE, token, **cookie_options)
    response.set_cookie(LEGACY_ADMIN_COOKIE, "1", **cookie_options)

    return {"ok": True, "token": token, "expires_in": auth.session_seconds}


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(ADMIN_TOKEN_COOKIE, path="/")
    response.delete_cookie(LEGACY_ADMIN_COOKIE, path="/")
    return {"ok": True}
