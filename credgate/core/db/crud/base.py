from datetime import datetime, timezone
from typing import Any, Generic, Type, TypeVar
from uuid import UUID

from sqlalchemy import (
    and_,
    delete as sa_delete,
    select,
    update as sa_update,
)
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Delete, Update

from credgate.core.exceptions.types import DatabaseException

T = TypeVar("T")


class BaseDB(Generic[T]):
    def __init__(self, model: Type[T]):
        self.model = model

    async def get_one_by_filters(self, session: AsyncSession, filters: dict) -> T | None:
        """
        Retrieve the first record matching keyword equality filters.

        Raises:
            DatabaseException: If the query fails or a filter names an unknown column.
        """
        try:
            stmt = select(self.model).filter_by(**filters)
            result = await session.execute(stmt)
            return result.scalars().first()
        except (SQLAlchemyError, ValueError) as e:
            raise DatabaseException(
                f"Error retrieving one {self.model.__name__} with filters {filters}: {str(e)}"
            ) from e

    async def create(
        self, session: AsyncSession, data: dict, commit_self: bool = True
    ) -> T:
        """
        Create and persist a new instance.

        On failure the session is rolled back so it stays usable.

        Args:
            session (AsyncSession): The asynchronous database session.
            data (dict): Column values for the new instance.
            commit_self (bool, optional): Commit when True, flush otherwise.
                Defaults to True.

        Returns:
            T: The persisted instance, refreshed from the database.

        Raises:
            DatabaseException: If the insert or commit fails. Integrity
                violations are kept as ``__cause__``.
        """
        try:
            obj = self.model(**data)
            session.add(obj)

            if commit_self:
                await session.commit()
            else:
                await session.flush()

            await session.refresh(obj)
            return obj
        except SQLAlchemyError as e:
            await session.rollback()
            raise DatabaseException(
                f"Error creating {self.model.__name__}: {str(e)}"
            ) from e

    async def update(
        self, session: AsyncSession, id: UUID, updates: dict, commit_self: bool = True
    ) -> T | None:
        """
        Update the record with ``id`` and return the new row.

        Args:
            session (AsyncSession): The asynchronous database session.
            id (UUID): Primary key of the record.
            updates (dict): Column values to set.
            commit_self (bool, optional): Commit when True, flush otherwise.
                Defaults to True.

        Returns:
            T | None: The updated instance, or None if no record has ``id``.

        Raises:
            DatabaseException: If the update or commit fails.
        """
        try:
            if hasattr(self.model, "updated_at") and "updated_at" not in updates:
                updates = {**updates, "updated_at": datetime.now(timezone.utc)}
            stmt: Update = (
                sa_update(self.model)
                .where(getattr(self.model, "id") == id)
                .values(**updates)
                .returning(self.model)
            )
            result = await session.execute(stmt)
            instance = result.scalar_one_or_none()

            if commit_self:
                await session.commit()
            else:
                await session.flush()

            return instance
        except SQLAlchemyError as e:
            await session.rollback()
            raise DatabaseException(
                f"Error updating {self.model.__name__} with ID {id}: {str(e)}"
            ) from e

    async def delete_by_filters(
        self, session: AsyncSession, filters: dict, commit_self: bool = True
    ) -> int:
        """
        Delete every record matching ``filters``.

        Returns:
            int: The number of deleted records.

        Raises:
            DatabaseException: If the delete or commit fails.
        """
        try:
            stmt: Delete = sa_delete(self.model).where(
                and_(*[getattr(self.model, k) == v for k, v in filters.items()])
            )
            result = await session.execute(stmt)

            if commit_self:
                await session.commit()
            else:
                await session.flush()

            return result.rowcount  # type: ignore[attr-defined]
        except SQLAlchemyError as e:
            await session.rollback()
            raise DatabaseException(
                f"Error deleting {self.model.__name__} with filters {filters}: {str(e)}"
            ) from e

    async def upsert(
        self,
        session: AsyncSession,
        data: dict[str, Any],
        unique_fields: list[str],
        commit_self: bool = True,
    ) -> T:
        """
        Insert a record, or update the existing one on a unique-key conflict.

        Uses ``INSERT ... ON CONFLICT ... DO UPDATE`` on PostgreSQL and SQLite.

        Args:
            session: Database session.
            data: Column values of the record.
            unique_fields: Columns of the unique constraint used for conflict
                detection.
            commit_self: Whether to commit after the operation.

        Returns:
            T: The inserted or updated instance.

        Raises:
            ValueError: If a unique field is missing from ``data``.
            DatabaseException: If the statement or commit fails.
        """
        for field in unique_fields:
            if field not in data:
                raise ValueError(
                    f"Unique field '{field}' must be present in data for upsert"
                )

        dialect = session.get_bind().dialect.name
        insert = sqlite_insert if dialect == "sqlite" else pg_insert

        try:
            now = datetime.now(timezone.utc)
            insert_data = {k: v for k, v in data.items() if k != "id"}
            if hasattr(self.model, "created_at"):
                insert_data.setdefault("created_at", now)
            if hasattr(self.model, "updated_at"):
                insert_data.setdefault("updated_at", now)

            excluded = {"id", "created_at", *unique_fields}
            update_set = {k: v for k, v in insert_data.items() if k not in excluded}
            if hasattr(self.model, "updated_at"):
                update_set["updated_at"] = now

            stmt = (
                insert(self.model)
                .values(**insert_data)
                .on_conflict_do_update(index_elements=unique_fields, set_=update_set)
                .returning(self.model)
                .execution_options(populate_existing=True)
            )
            result = await session.execute(stmt)
            instance = result.scalar_one()

            if commit_self:
                await session.commit()
            else:
                await session.flush()

            return instance
        except SQLAlchemyError as e:
            await session.rollback()
            raise DatabaseException(
                f"Error upserting {self.model.__name__}: {str(e)}"
            ) from e
