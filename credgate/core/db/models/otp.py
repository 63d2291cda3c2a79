"""
OTP challenge model.

One row per email; issuing a new challenge overwrites the previous row.
"""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from credgate.core.db.models.base import BaseModel


class OTPChallenge(BaseModel):
    """
    Live one-time-password challenge for an email.

    Attributes:
        email: Email the code was sent to (unique, normalised).
        secret: Base32 TOTP secret the code is derived from.
        issued_token: Code computed at issuance, kept for reference.
        expires_at: When the challenge stops being accepted.
    """

    __tablename__ = "otp_challenges"

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )

    secret: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
    )

    issued_token: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
    )

    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )


__all__ = ["OTPChallenge"]
