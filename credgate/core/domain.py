"""
Value types owned by the credential core.

Stores hand these out as immutable snapshots; changing a record means
building a new snapshot with ``dataclasses.replace`` and saving it.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any
import uuid


@dataclass(frozen=True)
class PublicIdentity:
    """Identity fields that may leave the service."""

    id: uuid.UUID
    email: str
    is_verified: bool
    created_at: datetime | None = None


@dataclass(frozen=True)
class Identity:
    """
    A registered account.

    Attributes:
        id: Immutable identifier assigned at creation.
        email: Normalised (lowercase) unique email.
        password_hash: bcrypt digest of the password.
        is_verified: True once OTP-gated registration completed.
        reset_token: Pending reset-proof token, if a reset window is open.
        reset_token_expiry: Expiry of ``reset_token``.
        created_at: Creation timestamp maintained by the store.
        updated_at: Last update timestamp maintained by the store.

    Raises:
        ValueError: If only one of ``reset_token``/``reset_token_expiry`` is set.
    """

    email: str
    password_hash: str
    is_verified: bool = False
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    reset_token: str | None = None
    reset_token_expiry: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self):
        if (self.reset_token is None) != (self.reset_token_expiry is None):
            raise ValueError(
                "reset_token and reset_token_expiry must be set or cleared together"
            )

    @property
    def has_reset_window(self) -> bool:
        return self.reset_token is not None

    def with_reset(self, token: str, expiry: datetime) -> "Identity":
        return replace(self, reset_token=token, reset_token_expiry=expiry)

    def without_reset(self) -> "Identity":
        return replace(self, reset_token=None, reset_token_expiry=None)

    def with_password(self, password_hash: str) -> "Identity":
        """Return a copy with a new password hash and any reset window closed."""
        return replace(
            self,
            password_hash=password_hash,
            reset_token=None,
            reset_token_expiry=None,
        )

    def to_public(self) -> PublicIdentity:
        return PublicIdentity(
            id=self.id,
            email=self.email,
            is_verified=self.is_verified,
            created_at=self.created_at,
        )


@dataclass(frozen=True)
class OtpChallenge:
    """
    The single live OTP challenge for an email.

    Attributes:
        email: Normalised email the challenge was issued to.
        secret: Base32 TOTP secret.
        issued_token: Code computed at issuance, kept for reference only.
        expires_at: Absolute UTC deadline for verification.
    """

    email: str
    secret: str
    issued_token: str
    expires_at: datetime


@dataclass(frozen=True)
class VerifiedToken:
    """Claims of a token whose signature, expiry and purpose were checked."""

    claims: dict[str, Any]
    issued_at: datetime
    expires_at: datetime

    @property
    def purpose(self) -> str | None:
        return self.claims.get("purpose")

    @property
    def subject(self) -> str | None:
        return self.claims.get("sub")

    @property
    def email(self) -> str | None:
        return self.claims.get("email")


@dataclass(frozen=True)
class AuthSession:
    """Result of a successful registration or login."""

    identity: PublicIdentity
    access_token: str
    expires_in: int
    token_type: str = "bearer"


__all__ = [
    "PublicIdentity",
    "Identity",
    "OtpChallenge",
    "VerifiedToken",
    "AuthSession",
]
