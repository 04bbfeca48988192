"""
Global error handling middleware.

WHAT: Translate exceptions to appropriate HTTP responses
WHY: Consistent error responses with proper status codes
HOW: FastAPI exception handlers for business and calendar exceptions
"""

from datetime import datetime

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..calendar_api.types import CalendarAuthRequiredError, CalendarProviderError
from ..utils.exceptions import (
    AppointmentNotFoundException,
    BusinessException,
    InvalidAppointmentTransitionException,
    InviteNotFoundException,
    ListingNotFoundException,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)


def _error_body(code: str, message: str, details=None) -> dict:
    return {
        "error": code,
        "message": message,
        "details": details,
        "timestamp": datetime.now().isoformat()
    }


async def calendar_auth_required_handler(request: Request, exc: CalendarAuthRequiredError):
    """
    Handle CalendarAuthRequiredError.

    WHAT: Calendar has no usable access token
    WHY: Seller must visit the consent screen first
    HOW: Return 401 with needsAuth and the auth URL
    """
    logger.info(f"Calendar authorization required for {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"needsAuth": True, "authUrl": exc.auth_url}
    )


async def calendar_provider_error_handler(request: Request, exc: CalendarProviderError):
    """
    Handle CalendarProviderError.

    WHAT: Calendar backend failed or timed out
    WHY: Upstream problem, not a client error
    HOW: Return 502 bad gateway
    """
    logger.error(f"Calendar provider error: {exc}")
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content=_error_body("CALENDAR_ERROR", str(exc))
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """
    Handle FastAPI RequestValidationError.

    WHAT: Request validation failed
    WHY: Invalid request payload
    HOW: Return 400 with field errors
    """
    logger.warning(f"Validation error: {exc.errors()}")

    # Clean up error details to be JSON serializable
    cleaned_errors = []
    for error in exc.errors():
        cleaned_error = {
            "type": error.get("type"),
            "loc": error.get("loc"),
            "msg": error.get("msg"),
        }
        if "ctx" in error:
            cleaned_error["ctx"] = {
                k: str(v) if isinstance(v, Exception) else v
                for k, v in error["ctx"].items()
            }
        cleaned_errors.append(cleaned_error)

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("VALIDATION_ERROR", "Request validation failed", cleaned_errors)
    )


async def business_exception_handler(request: Request, exc: BusinessException):
    """
    Handle BusinessException subclasses.

    WHAT: Domain error raised by a service
    WHY: Each error code maps to one HTTP status
    HOW: 404 for unknown ids, 409 for invalid transitions, 400 otherwise
    """
    status_code = status.HTTP_400_BAD_REQUEST

    if isinstance(exc, (ListingNotFoundException, AppointmentNotFoundException, InviteNotFoundException)):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, InvalidAppointmentTransitionException):
        status_code = status.HTTP_409_CONFLICT

    logger.warning(f"Business exception: {exc.code} - {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content=_error_body(exc.code, exc.message, exc.details)
    )


def register_exception_handlers(app):
    """
    Register all exception handlers with FastAPI app.

    Args:
        app: FastAPI application instance
    """
    # Calendar exceptions (auth first: it subclasses CalendarProviderError)
    app.add_exception_handler(CalendarAuthRequiredError, calendar_auth_required_handler)
    app.add_exception_handler(CalendarProviderError, calendar_provider_error_handler)

    # API exceptions
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(BusinessException, business_exception_handler)

    logger.info("Exception handlers registered")
