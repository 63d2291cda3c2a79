"""
Authentication schemas for request validation and response serialization.

Covers every endpoint under ``/auth``:
- OTP request and verification
- Registration with an OTP proof token
- Email/password login
- Forgot/reset password
- Password change and current-user lookup
"""

from datetime import datetime
from typing import Annotated, Literal
from uuid import UUID

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    StringConstraints,
)


def validate_password_complexity(v: str) -> str:
    """Require at least one uppercase letter, one lowercase letter and one digit."""
    if not any(c.isupper() for c in v):
        raise ValueError("Password must contain at least one uppercase letter")
    if not any(c.islower() for c in v):
        raise ValueError("Password must contain at least one lowercase letter")
    if not any(c.isdigit() for c in v):
        raise ValueError("Password must contain at least one digit")
    return v


# =============================================================================
# Type Aliases for Reusable Annotated Types
# =============================================================================

# New passwords: length bounds plus complexity
PasswordStr = Annotated[
    str,
    StringConstraints(min_length=8, max_length=128),
    AfterValidator(validate_password_complexity),
    Field(description="Password (8-128 characters, upper, lower and digit)"),
]

OTPCodeStr = Annotated[
    str,
    StringConstraints(min_length=6, max_length=6, pattern=r"^\d{6}$"),
    Field(description="6-digit verification code"),
]

TokenStr = Annotated[
    str,
    StringConstraints(min_length=1, max_length=4096),
]


# =============================================================================
# Base Schemas
# =============================================================================


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str
    success: bool = True


class UserResponse(BaseModel):
    """Public view of an identity."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: EmailStr
    is_verified: bool
    created_at: datetime | None = None


# =============================================================================
# OTP Schemas
# =============================================================================


class OTPRequest(BaseModel):
    """Request schema for sending a registration code."""

    email: Annotated[EmailStr, Field(description="Email to send the code to")]

    model_config = ConfigDict(
        json_schema_extra={"example": {"email": "user@example.com"}}
    )


class OTPVerifyRequest(BaseModel):
    """Request schema for OTP verification."""

    email: Annotated[EmailStr, Field(description="Email the OTP was sent to")]
    otp_code: OTPCodeStr

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"email": "user@example.com", "otp_code": "123456"}
        }
    )


class OTPVerifyResponse(BaseModel):
    """Response schema carrying the registration proof token."""

    otp_token: Annotated[
        str, Field(description="Short-lived proof token to pass to /auth/register")
    ]


# =============================================================================
# Registration & Login Schemas
# =============================================================================


class RegisterRequest(BaseModel):
    """Request schema for registration."""

    email: Annotated[EmailStr, Field(description="Email that passed the OTP check")]
    password: PasswordStr
    otp_token: Annotated[TokenStr, Field(description="Token from /auth/otp/verify")]

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "user@example.com",
                "password": "SecurePass123",
                "otp_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
            }
        }
    )


class LoginRequest(BaseModel):
    """Request schema for email/password login."""

    email: Annotated[EmailStr, Field(description="User's email address")]
    password: Annotated[
        str,
        StringConstraints(min_length=1, max_length=128),
        Field(description="User's password"),
    ]

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"email": "user@example.com", "password": "SecurePass123"}
        }
    )


class AuthResponse(BaseModel):
    """Response schema for successful registration or login."""

    message: str
    user: UserResponse
    access_token: Annotated[str, Field(description="Bearer session token")]
    token_type: Literal["bearer"] = "bearer"
    expires_in: Annotated[int, Field(description="Token lifetime in seconds")]


# =============================================================================
# Password Schemas
# =============================================================================


class ForgotPasswordRequest(BaseModel):
    """Request schema for initiating password reset."""

    email: Annotated[EmailStr, Field(description="Email address for password reset")]


class ForgotPasswordResponse(BaseModel):
    """Response schema for forgot-password; identical for known and unknown emails."""

    message: str
    reset_token: Annotated[
        str | None,
        Field(description="Reset token, only returned when enabled in configuration"),
    ] = None


class ResetPasswordRequest(BaseModel):
    """Request schema for setting a new password with a reset token."""

    token: Annotated[TokenStr, Field(description="Reset token")]
    new_password: PasswordStr


class ChangePasswordRequest(BaseModel):
    """Request schema for changing password (authenticated user)."""

    current_password: Annotated[
        str,
        StringConstraints(min_length=1, max_length=128),
        Field(description="Current password"),
    ]
    new_password: PasswordStr


__all__ = [
    "validate_password_complexity",
    "PasswordStr",
    "OTPCodeStr",
    "MessageResponse",
    "UserResponse",
    "OTPRequest",
    "OTPVerifyRequest",
    "OTPVerifyResponse",
    "RegisterRequest",
    "LoginRequest",
    "AuthResponse",
    "ForgotPasswordRequest",
    "ForgotPasswordResponse",
    "ResetPasswordRequest",
    "ChangePasswordRequest",
]
