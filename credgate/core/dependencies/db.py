from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from credgate.core.db import AsyncSessionLocal


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a fresh async session per request and close it afterwards.

    Yields:
        AsyncSession: The request's database session.
    """
    async with AsyncSessionLocal() as async_session:
        yield async_session
