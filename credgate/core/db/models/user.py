from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from credgate.core.db.models.base import BaseModel


class User(BaseModel):
    """
    Registered account.

    Attributes:
        email: Normalised (lowercase) email, unique.
        password_hash: bcrypt digest.
        is_verified: True once OTP-gated registration completed.
        reset_token: Pending reset-proof token, set only while a reset window is open.
        reset_token_expiry: Expiry of ``reset_token``.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    is_verified: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    reset_token: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    reset_token_expiry: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )


__all__ = ["User"]
