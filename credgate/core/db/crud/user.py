from sqlalchemy.ext.asyncio import AsyncSession

from credgate.core.db.crud.base import BaseDB
from credgate.core.db.models import User


class UserDB(BaseDB[User]):
    def __init__(self):
        super().__init__(model=User)

    async def get_by_email(self, session: AsyncSession, email: str) -> User | None:
        """Look up a user by normalised email."""
        return await self.get_one_by_filters(session, {"email": email})
