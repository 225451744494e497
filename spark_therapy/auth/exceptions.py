"""
Authentication-specific exceptions.

Messages stay generic: a client can tell bad credentials, a lockout, an
expired/invalid/malformed token and a deactivated account apart, nothing more.
"""
from fastapi import status

from ..exceptions import AppException, ErrorCode


class AuthException(AppException):
    """Base class for authentication exceptions."""
    def __init__(self, message: str, code: str = ErrorCode.AUTH_UNAUTHORIZED,
                 status_code: int = status.HTTP_401_UNAUTHORIZED):
        super().__init__(status_code=status_code, message=message, code=code)


class NotAuthenticatedException(AuthException):
    """Exception raised when no token accompanies a protected request."""
    def __init__(self, message: str = "Not authorized, no token provided"):
        super().__init__(message, ErrorCode.AUTH_NO_TOKEN)


class InvalidCredentialsException(AuthException):
    """Exception raised when credentials are invalid."""
    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message, ErrorCode.AUTH_INVALID_CREDENTIALS)


class TokenExpiredException(AuthException):
    """Exception raised when token has expired."""
    def __init__(self, message: str = "Token has expired. Please log in again."):
        super().__init__(message, ErrorCode.AUTH_TOKEN_EXPIRED)


class InvalidTokenException(AuthException):
    """Exception raised when token signature, issuer or audience do not check out."""
    def __init__(self, message: str = "Invalid token"):
        super().__init__(message, ErrorCode.AUTH_TOKEN_INVALID)


class MalformedTokenException(AuthException):
    """Exception raised when a correctly signed token lacks the user id claim."""
    def __init__(self, message: str = "Invalid token payload"):
        super().__init__(message, ErrorCode.AUTH_TOKEN_MALFORMED)


class AccountDeactivatedException(AuthException):
    """Exception raised when a deactivated account tries to authenticate."""
    def __init__(self, message: str = "User account is deactivated"):
        super().__init__(message, ErrorCode.AUTH_ACCOUNT_DEACTIVATED)


class AccountLockedException(AuthException):
    """Exception raised when account is locked."""
    def __init__(self, message: str = ("Account is temporarily locked due to multiple failed "
                                       "login attempts. Please try again later.")):
        super().__init__(message, ErrorCode.AUTH_ACCOUNT_LOCKED, status.HTTP_423_LOCKED)


class PermissionDeniedException(AuthException):
    """Exception raised when user doesn't have required permissions."""
    def __init__(self, message: str = "Permission denied"):
        super().__init__(message, ErrorCode.AUTH_FORBIDDEN, status.HTTP_403_FORBIDDEN)


class RoleDeniedException(AuthException):
    """Exception raised when user doesn't have required role."""
    def __init__(self, user_role: str):
        message = f"User role '{user_role}' is not authorized to access this resource"
        super().__init__(message, ErrorCode.INSUFFICIENT_PERMISSIONS, status.HTTP_403_FORBIDDEN)


class RateLimitExceededException(AuthException):
    """Exception raised when an IP exceeds the login attempt window."""
    def __init__(self, message: str = "Too many login attempts, please try again later."):
        super().__init__(message, ErrorCode.LOGIN_RATE_LIMIT_EXCEEDED, status.HTTP_429_TOO_MANY_REQUESTS)
