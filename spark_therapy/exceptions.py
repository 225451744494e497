"""
Global exception handlers and custom exception classes.

Every domain error is rendered as ``{"success": false, "message", "code"}``
with an explicit status code.
"""
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

# Set up logging
logger = logging.getLogger(__name__)


class ErrorCode:
    """Stable machine-readable error codes returned to clients."""
    AUTH_NO_TOKEN = "AUTH_NO_TOKEN"
    AUTH_INVALID_CREDENTIALS = "AUTH_INVALID_CREDENTIALS"
    AUTH_TOKEN_EXPIRED = "AUTH_TOKEN_EXPIRED"
    AUTH_TOKEN_INVALID = "AUTH_TOKEN_INVALID"
    AUTH_TOKEN_MALFORMED = "AUTH_TOKEN_MALFORMED"
    AUTH_UNAUTHORIZED = "AUTH_UNAUTHORIZED"
    AUTH_ACCOUNT_DEACTIVATED = "AUTH_ACCOUNT_DEACTIVATED"
    AUTH_ACCOUNT_LOCKED = "AUTH_ACCOUNT_LOCKED"
    AUTH_FORBIDDEN = "AUTH_FORBIDDEN"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RESOURCE_CONFLICT = "RESOURCE_CONFLICT"
    LOGIN_RATE_LIMIT_EXCEEDED = "LOGIN_RATE_LIMIT_EXCEEDED"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


class AppException(Exception):
    """
    Base exception class for application-specific exceptions.
    """
    def __init__(self, status_code: int, message: str, code: str = ErrorCode.INTERNAL_SERVER_ERROR):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.code = code


class ValidationException(AppException):
    """Malformed input that passed schema validation but is still unusable."""
    def __init__(self, message: str = "Invalid request"):
        super().__init__(status.HTTP_400_BAD_REQUEST, message, ErrorCode.VALIDATION_ERROR)


class NotFoundException(AppException):
    def __init__(self, resource: str = "Resource"):
        super().__init__(status.HTTP_404_NOT_FOUND, f"{resource} not found", ErrorCode.RESOURCE_NOT_FOUND)


class ConflictException(AppException):
    def __init__(self, message: str = "Resource conflict"):
        super().__init__(status.HTTP_409_CONFLICT, message, ErrorCode.RESOURCE_CONFLICT)


class InternalServerException(AppException):
    def __init__(self, message: str = "Internal server error"):
        super().__init__(status.HTTP_500_INTERNAL_SERVER_ERROR, message, ErrorCode.INTERNAL_SERVER_ERROR)


def error_body(message: str, code: str, **extra) -> dict:
    body = {"success": False, "message": message, "code": code}
    body.update(extra)
    return body


async def app_exception_handler(request: Request, exc: AppException):
    """
    Handler for application-specific exceptions.

    Args:
        request: The request that caused the exception
        exc: The exception instance

    Returns:
        JSONResponse: Standardized error response
    """
    if exc.status_code >= 500:
        logger.error(f"Application error on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"Request rejected on {request.method} {request.url.path}: {exc.code} ({exc.status_code})")
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message, exc.code),
        headers=headers
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handler for request validation exceptions.

    Args:
        request: The request that caused the exception
        exc: The validation exception instance

    Returns:
        JSONResponse: Standardized error response with validation details
    """
    logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_body(
            "Validation error",
            ErrorCode.VALIDATION_ERROR,
            errors=jsonable_encoder(exc.errors())
        )
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render framework-level HTTP errors (unknown route, wrong method) in the same shape."""
    codes = {
        status.HTTP_401_UNAUTHORIZED: ErrorCode.AUTH_UNAUTHORIZED,
        status.HTTP_403_FORBIDDEN: ErrorCode.AUTH_FORBIDDEN,
        status.HTTP_404_NOT_FOUND: ErrorCode.RESOURCE_NOT_FOUND,
    }
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail), codes.get(exc.status_code, "HTTP_ERROR")),
        headers=getattr(exc, "headers", None)
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    """Last resort: never leak internals to the client."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error", ErrorCode.INTERNAL_SERVER_ERROR)
    )


# Register exception handlers with FastAPI app
def register_exception_handlers(app):
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
