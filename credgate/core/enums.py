from enum import Enum


class TokenPurpose(str, Enum):
    """Purpose claim carried by every signed token."""

    SESSION = "session"
    OTP_PROOF = "otp-proof"
    RESET_PROOF = "reset-proof"


class AuthError(str, Enum):
    """Error kinds returned by the credential core."""

    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID_CREDENTIALS = "invalid_credentials"
    INVALID_CODE = "invalid_code"
    EXPIRED = "expired"
    INVALID_SIGNATURE = "invalid_signature"
    WRONG_PURPOSE = "wrong_purpose"
    INVALID_OR_EXPIRED_PROOF = "invalid_or_expired_proof"
    INVALID_OR_EXPIRED_TOKEN = "invalid_or_expired_token"
    UPSTREAM_FAILURE = "upstream_failure"


class MailTemplate(str, Enum):
    """Templates the mailer knows how to render."""

    OTP = "otp"
    PASSWORD_RESET = "password_reset"
