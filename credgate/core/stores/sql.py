"""
SQLAlchemy-backed stores.

Each store wraps the request's ``AsyncSession`` and commits per write.
Rows are converted to immutable domain snapshots on the way out; SQLite
drops tzinfo, so timestamps are re-attached to UTC.
"""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from credgate.core.clock import ensure_utc
from credgate.core.config import database_logger
from credgate.core.db.crud import otp_challenge_db, user_db
from credgate.core.db.models import OTPChallenge, User
from credgate.core.domain import Identity, OtpChallenge
from credgate.core.exceptions.types import (
    DatabaseException,
    UserAlreadyExistsException,
    UserNotFoundException,
)
from credgate.core.utils import mask_email


def _to_identity(user: User) -> Identity:
    return Identity(
        id=user.id,
        email=user.email,
        password_hash=user.password_hash,
        is_verified=user.is_verified,
        reset_token=user.reset_token,
        reset_token_expiry=(
            ensure_utc(user.reset_token_expiry) if user.reset_token_expiry else None
        ),
        created_at=ensure_utc(user.created_at) if user.created_at else None,
        updated_at=ensure_utc(user.updated_at) if user.updated_at else None,
    )


def _to_challenge(row: OTPChallenge) -> OtpChallenge:
    return OtpChallenge(
        email=row.email,
        secret=row.secret,
        issued_token=row.issued_token,
        expires_at=ensure_utc(row.expires_at),
    )


class SQLIdentityStore:
    """Identity store over the ``users`` table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_email(self, email: str) -> Identity | None:
        user = await user_db.get_by_email(self.session, email)
        return _to_identity(user) if user else None

    async def create(self, identity: Identity) -> Identity:
        """
        Insert a new user row.

        Raises:
            UserAlreadyExistsException: If the unique email constraint fails.
            DatabaseException: For any other database error.
        """
        try:
            user = await user_db.create(
                self.session,
                {
                    "id": identity.id,
                    "email": identity.email,
                    "password_hash": identity.password_hash,
                    "is_verified": identity.is_verified,
                    "reset_token": identity.reset_token,
                    "reset_token_expiry": identity.reset_token_expiry,
                },
            )
        except DatabaseException as e:
            if isinstance(e.__cause__, IntegrityError):
                database_logger.warning(
                    f"Duplicate registration rejected by database: {mask_email(identity.email)}"
                )
                raise UserAlreadyExistsException() from e
            raise
        return _to_identity(user)

    async def save(self, identity: Identity) -> Identity:
        """
        Write the mutable fields of ``identity``.

        Raises:
            UserNotFoundException: If no row has ``identity.id``.
        """
        user = await user_db.update(
            self.session,
            identity.id,
            {
                "password_hash": identity.password_hash,
                "is_verified": identity.is_verified,
                "reset_token": identity.reset_token,
                "reset_token_expiry": identity.reset_token_expiry,
            },
        )
        if user is None:
            raise UserNotFoundException()
        return _to_identity(user)


class SQLOtpChallengeStore:
    """OTP challenge store over the ``otp_challenges`` table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_email(self, email: str) -> OtpChallenge | None:
        row = await otp_challenge_db.get_by_email(self.session, email)
        return _to_challenge(row) if row else None

    async def upsert(self, challenge: OtpChallenge) -> OtpChallenge:
        row = await otp_challenge_db.upsert_for_email(
            self.session,
            {
                "email": challenge.email,
                "secret": challenge.secret,
                "issued_token": challenge.issued_token,
                "expires_at": challenge.expires_at,
            },
        )
        return _to_challenge(row)

    async def delete(self, email: str) -> bool:
        return await otp_challenge_db.delete_by_email(self.session, email)


__all__ = ["SQLIdentityStore", "SQLOtpChallengeStore"]
