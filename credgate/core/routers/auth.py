"""
Authentication router for handling all auth-related endpoints.

This module provides endpoints for:
- Requesting and verifying a registration OTP
- Registration with the OTP proof token
- Email/password login
- Forgot/reset password
- Password change and current-user lookup

All endpoints are prefixed with /auth when mounted in the main app.
"""

from fastapi import APIRouter, status

from credgate.core.config import settings
from credgate.core.dependencies.auth import CurrentIdentity, SessionToken
from credgate.core.dependencies.services import AuthServiceDep
from credgate.core.domain import AuthSession
from credgate.core.enums import AuthError
from credgate.core.exceptions.types import InvalidTokenException
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

router = APIRouter()

# Session token problems all answer 401
SESSION_ERRORS = (
    AuthError.INVALID_SIGNATURE,
    AuthError.EXPIRED,
    AuthError.WRONG_PURPOSE,
    AuthError.NOT_FOUND,
)

FORGOT_PASSWORD_MESSAGE = "If the email exists, a reset token has been sent."


def _detail_example(detail: str) -> dict:
    return {"application/json": {"example": {"detail": detail}}}


def _auth_response(message: str, session: AuthSession) -> AuthResponse:
    return AuthResponse(
        message=message,
        user=UserResponse.model_validate(session.identity),
        access_token=session.access_token,
        token_type="bearer",
        expires_in=session.expires_in,
    )


# =============================================================================
# Registration with OTP
# =============================================================================


@router.post(
    "/otp/request",
    response_model=MessageResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Request a registration code",
    description="""
## Send a Verification Code

Sends a **6-digit one-time code** to the given email. The code is the first
step of registration.

### Flow

1. `POST /auth/otp/request` with the email
2. `POST /auth/otp/verify` with the emailed code to obtain an `otp_token`
3. `POST /auth/register` with the `otp_token`, email and password

### Notes

- Requesting a new code **replaces** any earlier code for the same email
- The code expires after the configured OTP lifetime (60 minutes by default)
""",
    responses={
        502: {
            "description": "Email could not be delivered",
            "content": _detail_example(
                "An upstream service failed. Please try again later."
            ),
        },
    },
)
async def request_otp(
    request_data: OTPRequest, auth_service: AuthServiceDep
) -> MessageResponse:
    """
    Issue an OTP challenge for the email and mail the code.

    Raises:
        UpstreamException: If the store or the mailer failed.
    """
    result = await auth_service.request_otp(request_data.email)
    result.unwrap(
        {AuthError.UPSTREAM_FAILURE: "Failed to send verification code. Please try again."}
    )
    return MessageResponse(message="Verification code sent to your email")


@router.post(
    "/otp/verify",
    response_model=OTPVerifyResponse,
    summary="Verify a registration code",
    description="""
## Exchange a Code for a Proof Token

Checks the emailed code. On success the code is consumed and a short-lived
`otp_token` is returned; pass it to `POST /auth/register`.

### Error Responses

| Status | Reason |
|--------|--------|
| `400 Bad Request` | Code is wrong or the challenge expired |
| `404 Not Found` | No code was requested for this email |
""",
    responses={
        400: {"description": "Invalid or expired code", "content": _detail_example("Invalid OTP code.")},
        404: {
            "description": "No code requested",
            "content": _detail_example("No verification code was requested for this email."),
        },
    },
)
async def verify_otp(
    request_data: OTPVerifyRequest, auth_service: AuthServiceDep
) -> OTPVerifyResponse:
    """
    Verify the OTP and return the registration proof token.

    Raises:
        NotFoundException: No live challenge for the email.
        OTPExpiredException: The challenge expired.
        OTPInvalidException: The code is wrong.
    """
    result = await auth_service.verify_otp(request_data.email, request_data.otp_code)
    otp_token = result.unwrap(
        {AuthError.NOT_FOUND: "No verification code was requested for this email."}
    )
    return OTPVerifyResponse(otp_token=otp_token)


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register with a verified email",
    description="""
## Create an Account

Creates the account for an email that passed `POST /auth/otp/verify` and
returns a bearer session token.

### Password Requirements

- **8 to 128 characters**
- At least **one uppercase letter**, **one lowercase letter** and **one digit**

### Error Responses

| Status | Reason |
|--------|--------|
| `400 Bad Request` | `otp_token` invalid, expired, or issued for another email |
| `409 Conflict` | Email already registered |
| `422 Unprocessable Entity` | Invalid email or password requirements not met |
""",
    responses={
        400: {"description": "Invalid proof", "content": _detail_example("Invalid or expired OTP token.")},
        409: {
            "description": "Email already registered",
            "content": _detail_example("User with this email already exists."),
        },
    },
)
async def register(
    request_data: RegisterRequest, auth_service: AuthServiceDep
) -> AuthResponse:
    """
    Register a new identity and open a session.

    Raises:
        InvalidProofException: The OTP proof token cannot be used.
        UserAlreadyExistsException: The email is already registered.
    """
    result = await auth_service.register(
        request_data.email, request_data.password, request_data.otp_token
    )
    return _auth_response("Registration successful", result.unwrap())


# =============================================================================
# Login
# =============================================================================


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Log in with email and password",
    description="""
## Log In

Returns a bearer session token for valid credentials. Send it as
`Authorization: Bearer <access_token>` to protected endpoints.

### Error Responses

| Status | Reason |
|--------|--------|
| `401 Unauthorized` | Wrong password |
| `404 Not Found` | No account for this email |
""",
    responses={
        401: {"description": "Wrong password", "content": _detail_example("Invalid email or password.")},
        404: {"description": "Unknown email", "content": _detail_example("User not found.")},
    },
)
async def login(request_data: LoginRequest, auth_service: AuthServiceDep) -> AuthResponse:
    """
    Authenticate with email and password.

    Raises:
        NotFoundException: Unknown email.
        InvalidCredentialsException: Wrong password.
    """
    result = await auth_service.login(request_data.email, request_data.password)
    session = result.unwrap({AuthError.NOT_FOUND: "User not found."})
    return _auth_response("Login successful", session)


# =============================================================================
# Password Reset
# =============================================================================


@router.post(
    "/forgot-password",
    response_model=ForgotPasswordResponse,
    response_model_exclude_none=True,
    summary="Request a password reset token",
    description="""
## Start a Password Reset

Emails a single-use reset token when an account exists for the email. The
response is **identical** whether or not the account exists.

When `RETURN_RESET_TOKEN` is enabled (development only) the token is also
returned in the response body.
""",
)
async def forgot_password(
    request_data: ForgotPasswordRequest, auth_service: AuthServiceDep
) -> ForgotPasswordResponse:
    """
    Open a reset window for the email, if it is registered.

    Raises:
        UpstreamException: If the store failed.
    """
    result = await auth_service.request_password_reset(request_data.email)
    reset_token = result.unwrap()
    return ForgotPasswordResponse(
        message=FORGOT_PASSWORD_MESSAGE,
        reset_token=reset_token if settings.RETURN_RESET_TOKEN else None,
    )


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    summary="Reset password with a token",
    description="""
## Complete a Password Reset

Sets a new password using the token from `POST /auth/forgot-password`. A
token works **once**; requesting a new token invalidates the previous one.

### Error Responses

| Status | Reason |
|--------|--------|
| `400 Bad Request` | Token invalid, expired, already used or superseded |
| `404 Not Found` | The account no longer exists |
""",
    responses={
        400: {"description": "Invalid token", "content": _detail_example("Invalid or expired token.")},
    },
)
async def reset_password(
    request_data: ResetPasswordRequest, auth_service: AuthServiceDep
) -> MessageResponse:
    """
    Reset the password of the identity named by the token.

    Raises:
        InvalidResetTokenException: The token cannot be used.
        NotFoundException: The identity no longer exists.
    """
    result = await auth_service.reset_password(
        request_data.token, request_data.new_password
    )
    result.unwrap({AuthError.NOT_FOUND: "User not found."})
    return MessageResponse(message="Password successfully reset")


# =============================================================================
# Authenticated Endpoints
# =============================================================================


@router.post(
    "/change-password",
    response_model=MessageResponse,
    summary="Change password",
    description="""
## Change Password

Requires `Authorization: Bearer <access_token>`. Verifies the current
password before setting the new one. Any pending reset token is cancelled.
""",
    responses={
        401: {
            "description": "Not authenticated or wrong current password",
            "content": _detail_example("Current password is incorrect."),
        },
    },
)
async def change_password(
    request_data: ChangePasswordRequest,
    token: SessionToken,
    auth_service: AuthServiceDep,
) -> MessageResponse:
    """
    Change the password of the authenticated identity.

    Raises:
        InvalidTokenException: Missing, invalid or expired session token.
        InvalidCredentialsException: Wrong current password.
    """
    result = await auth_service.change_password(
        token, request_data.current_password, request_data.new_password
    )
    if result.error in SESSION_ERRORS:
        raise InvalidTokenException()
    result.unwrap({AuthError.INVALID_CREDENTIALS: "Current password is incorrect."})
    return MessageResponse(message="Password changed successfully")


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Current user",
    description="Returns the identity named by the bearer session token.",
)
async def me(identity: CurrentIdentity) -> UserResponse:
    return UserResponse.model_validate(identity)


__all__ = ["router"]
