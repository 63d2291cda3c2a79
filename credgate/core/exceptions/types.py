from fastapi import status

from credgate.core.enums import AuthError


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict | None = None,
    ):
        self.message = message
        self.status_code = status_code or status.HTTP_500_INTERNAL_SERVER_ERROR
        self.details = details
        super().__init__(message)


class DatabaseException(AppException):
    """Exception raised for database-related errors."""

    def __init__(self, message: str = "A database error occurred."):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)


class UpstreamException(AppException):
    """Exception raised when a store or the mailer fails."""

    def __init__(
        self, message: str = "An upstream service failed. Please try again later."
    ):
        super().__init__(message, status.HTTP_502_BAD_GATEWAY)


class AuthenticationException(AppException):
    """Exception raised for authentication-related errors."""

    def __init__(self, message: str = "Authentication failed."):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED)


class InvalidCredentialsException(AuthenticationException):
    """Exception raised when provided credentials are invalid."""

    def __init__(self, message: str = "Invalid email or password."):
        super().__init__(message)


class InvalidTokenException(AuthenticationException):
    """Exception raised when a bearer token is tampered, expired or misused."""

    def __init__(self, message: str = "Invalid or expired access token."):
        super().__init__(message)


class BadRequestException(AppException):
    """Exception raised for bad request errors."""

    def __init__(self, message: str = "Bad request."):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class OTPExpiredException(BadRequestException):
    """Exception raised when OTP has expired."""

    def __init__(self, message: str = "OTP has expired. Please request a new one."):
        super().__init__(message)


class OTPInvalidException(BadRequestException):
    """Exception raised when OTP is invalid."""

    def __init__(self, message: str = "Invalid OTP code."):
        super().__init__(message)


class InvalidProofException(BadRequestException):
    """Exception raised when an OTP proof token cannot be used for registration."""

    def __init__(self, message: str = "Invalid or expired OTP token."):
        super().__init__(message)


class InvalidResetTokenException(BadRequestException):
    """Exception raised when a password reset token cannot be used."""

    def __init__(self, message: str = "Invalid or expired token."):
        super().__init__(message)


class NotFoundException(AppException):
    """Exception raised when a resource is not found."""

    def __init__(self, message: str = "Resource not found."):
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class UserNotFoundException(NotFoundException):
    """Exception raised when a user is not found."""

    def __init__(self, message: str = "User not found."):
        super().__init__(message)


class ConflictException(AppException):
    """Exception raised when there's a conflict with existing resources."""

    def __init__(self, message: str = "Resource conflict."):
        super().__init__(message, status.HTTP_409_CONFLICT)


class UserAlreadyExistsException(ConflictException):
    """Exception raised when a user already exists."""

    def __init__(self, message: str = "User with this email already exists."):
        super().__init__(message)


_ERROR_EXCEPTIONS: dict[AuthError, type[AppException]] = {
    AuthError.NOT_FOUND: NotFoundException,
    AuthError.CONFLICT: UserAlreadyExistsException,
    AuthError.INVALID_CREDENTIALS: InvalidCredentialsException,
    AuthError.INVALID_CODE: OTPInvalidException,
    AuthError.EXPIRED: OTPExpiredException,
    AuthError.INVALID_SIGNATURE: InvalidTokenException,
    AuthError.WRONG_PURPOSE: InvalidTokenException,
    AuthError.INVALID_OR_EXPIRED_PROOF: InvalidProofException,
    AuthError.INVALID_OR_EXPIRED_TOKEN: InvalidResetTokenException,
    AuthError.UPSTREAM_FAILURE: UpstreamException,
}


def exception_for(error: AuthError, message: str | None = None) -> AppException:
    """
    Build the transport-level exception for an error kind.

    Args:
        error: The error kind returned by a core operation.
        message: Optional message overriding the exception's default.

    Returns:
        AppException: An exception instance carrying the matching HTTP status.
    """
    exc_class = _ERROR_EXCEPTIONS[error]
    if message is None:
        return exc_class()  # type: ignore[call-arg]
    return exc_class(message)  # type: ignore[call-arg]


__all__ = [
    "AppException",
    "DatabaseException",
    "UpstreamException",
    "AuthenticationException",
    "InvalidCredentialsException",
    "InvalidTokenException",
    "BadRequestException",
    "OTPExpiredException",
    "OTPInvalidException",
    "InvalidProofException",
    "InvalidResetTokenException",
    "NotFoundException",
    "UserNotFoundException",
    "ConflictException",
    "UserAlreadyExistsException",
    "exception_for",
]
