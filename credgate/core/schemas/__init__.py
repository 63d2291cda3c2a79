"""
Request validation and response serialization schemas.
"""

from credgate.core.schemas.auth import (
    AuthResponse,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    MessageResponse,
    OTPRequest,
    OTPVerifyRequest,
    OTPVerifyResponse,
    RegisterRequest,
    ResetPasswordRequest,
    UserResponse,
)

__all__ = [
    "AuthResponse",
    "ChangePasswordRequest",
    "ForgotPasswordRequest",
    "ForgotPasswordResponse",
    "LoginRequest",
    "MessageResponse",
    "OTPRequest",
    "OTPVerifyRequest",
    "OTPVerifyResponse",
    "RegisterRequest",
    "ResetPasswordRequest",
    "UserResponse",
]
