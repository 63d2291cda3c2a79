"""
CRUD operations for the OTPChallenge model.

At most one challenge exists per email: issuing upserts on the email key and
successful verification deletes the row.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from credgate.core.db.crud.base import BaseDB
from credgate.core.db.models import OTPChallenge


class OTPChallengeDB(BaseDB[OTPChallenge]):
    def __init__(self):
        super().__init__(model=OTPChallenge)

    async def get_by_email(
        self, session: AsyncSession, email: str
    ) -> OTPChallenge | None:
        """Return the live challenge for ``email``, if any."""
        return await self.get_one_by_filters(session, {"email": email})

    async def upsert_for_email(
        self, session: AsyncSession, data: dict, commit_self: bool = True
    ) -> OTPChallenge:
        """
        Store a challenge, replacing any previous one for the same email.

        Args:
            session: The async database session.
            data: Column values; must include ``email``.
            commit_self: Whether to commit after the operation.

        Returns:
            The stored challenge.

        Raises:
            DatabaseException: If a database error occurs.
        """
        return await self.upsert(
            session, data, unique_fields=["email"], commit_self=commit_self
        )

    async def delete_by_email(
        self, session: AsyncSession, email: str, commit_self: bool = True
    ) -> bool:
        """Delete the challenge for ``email``. Returns True if a row was removed."""
        deleted = await self.delete_by_filters(
            session, {"email": email}, commit_self=commit_self
        )
        return deleted > 0
