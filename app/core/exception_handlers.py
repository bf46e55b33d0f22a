"""
Exception handlers for the FPL Company Challenge API.
"""
import logging
from fastapi import Request, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.exceptions import (
    ChallengeException, UpstreamError, EntryNotFound, InvalidEntryId,
    RateLimitExceeded, UserNotFound, AuthenticationFailed, TooManyLoginAttempts
)

logger = logging.getLogger(__name__)


def create_error_response(status_code: int, detail: str, error_code: str, request: Request,
                          headers: dict = None, **extra) -> JSONResponse:
    """Create a standardized error response."""
    content = {
        "detail": detail,
        "error_code": error_code,
        "request_id": getattr(request.state, 'request_id', None)
    }
    content.update(extra)
    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
    """Handle FPL API failures."""
    logger.warning(f"Upstream failure on {request.url.path}: {exc}")
    return create_error_response(502, str(exc), "UPSTREAM_ERROR", request)


async def entry_not_found_handler(request: Request, exc: EntryNotFound) -> JSONResponse:
    """Handle unknown FPL entries."""
    return create_error_response(404, str(exc), "ENTRY_NOT_FOUND", request)


async def invalid_entry_id_handler(request: Request, exc: InvalidEntryId) -> JSONResponse:
    """Handle out-of-range entry ids."""
    return create_error_response(400, str(exc), "INVALID_ENTRY_ID", request)


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Handle local rate limit denials."""
    headers = dict(exc.headers)
    if exc.retry_after:
        headers["Retry-After"] = str(exc.retry_after)
    return create_error_response(
        429, str(exc), "RATE_LIMITED", request,
        headers=headers or None, retry_after=exc.retry_after
    )


async def user_not_found_handler(request: Request, exc: UserNotFound) -> JSONResponse:
    """Handle user not found exceptions."""
    return create_error_response(404, str(exc), "USER_NOT_FOUND", request)


async def authentication_failed_handler(request: Request, exc: AuthenticationFailed) -> JSONResponse:
    """Handle missing or invalid admin credentials."""
    return create_error_response(401, str(exc), "UNAUTHORIZED", request)


async def too_many_attempts_handler(request: Request, exc: TooManyLoginAttempts) -> JSONResponse:
    """Handle admin login lockouts."""
    return create_error_response(
        429, str(exc), "TOO_MANY_ATTEMPTS", request,
        headers={"Retry-After": str(exc.retry_after)},
        retry_after=exc.retry_after
    )


async def challenge_exception_handler(request: Request, exc: ChallengeException) -> JSONResponse:
    """Handle generic competition exceptions."""
    return create_error_response(400, str(exc), "CHALLENGE_ERROR", request)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle validation errors with better formatting."""
    errors = []
    for error in exc.errors():
        errors.append({
            "field": ".".join(str(x) for x in error["loc"][1:]),
            "message": error["msg"],
            "type": error["type"]
        })

    return JSONResponse(
        status_code=422,
        content={
            "detail": "Validation error",
            "errors": errors,
            "error_code": "VALIDATION_ERROR",
            "request_id": getattr(request.state, 'request_id', None)
        }
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle generic HTTP exceptions."""
    return create_error_response(
        exc.status_code, exc.detail, f"HTTP_{exc.status_code}", request,
        headers=getattr(exc, "headers", None)
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(f"Unexpected error: {exc}", exc_info=True)

    # Don't expose internal errors in production
    if settings.DEBUG:
        detail = str(exc)
    else:
        detail = "An unexpected error occurred"

    return create_error_response(500, detail, "INTERNAL_ERROR", request)


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(UpstreamError, upstream_error_handler)
    app.add_exception_handler(EntryNotFound, entry_not_found_handler)
    app.add_exception_handler(InvalidEntryId, invalid_entry_id_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(UserNotFound, user_not_found_handler)
    app.add_exception_handler(AuthenticationFailed, authentication_failed_handler)
    app.add_exception_handler(TooManyLoginAttempts, too_many_attempts_handler)
    app.add_exception_handler(ChallengeException, challenge_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
