from credgate.core.exceptions.types import (
    AppException,
    AuthenticationException,
    BadRequestException,
    ConflictException,
    DatabaseException,
    InvalidCredentialsException,
    InvalidProofException,
    InvalidResetTokenException,
    InvalidTokenException,
    NotFoundException,
    OTPExpiredException,
    OTPInvalidException,
    UpstreamException,
    UserAlreadyExistsException,
    UserNotFoundException,
    exception_for,
)

__all__ = [
    "AppException",
    "AuthenticationException",
    "BadRequestException",
    "ConflictException",
    "DatabaseException",
    "InvalidCredentialsException",
    "InvalidProofException",
    "InvalidResetTokenException",
    "InvalidTokenException",
    "NotFoundException",
    "OTPExpiredException",
    "OTPInvalidException",
    "UpstreamException",
    "UserAlreadyExistsException",
    "UserNotFoundException",
    "exception_for",
]
