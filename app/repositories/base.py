"""
Base repository.

Generic operations shared by all repositories.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import inspect, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import Base

# Generic type for model
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with generic operations.

    Provides async database operations for any SQLAlchemy model.

    Type Parameters:
        ModelType: SQLAlchemy model class

    Example:
        class WalletScanStateRepository(BaseRepository[WalletScanState]):
            def __init__(self, session: AsyncSession):
                super().__init__(WalletScanState, session)
    """

    def __init__(
        self, model: type[ModelType], session: AsyncSession
    ) -> None:
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    async def get_by_id(self, id: Any) -> ModelType | None:
        """
        Get entity by primary key.

        Args:
            id: Primary key value

        Returns:
            Entity or None if not found
        """
        return await self.session.get(self.model, id)

    async def upsert(self, **data: Any) -> None:
        """
        Insert or fully replace the row identified by its primary key.

        Runs as one statement on SQLite and PostgreSQL so concurrent
        writers of the same key resolve last-write-wins instead of
        failing on a duplicate insert.

        Args:
            **data: Column values, primary key included
        """
        pk_columns = [column.name for column in inspect(self.model).primary_key]
        dialect = self.session.bind.dialect.name

        if dialect in ("sqlite", "postgresql"):
            insert = sqlite.insert if dialect == "sqlite" else postgresql.insert
            stmt = insert(self.model).values(**data)
            stmt = stmt.on_conflict_do_update(
                index_elements=pk_columns,
                set_={
                    key: value
                    for key, value in data.items()
                    if key not in pk_columns
                },
            )
            await self.session.execute(stmt)
        else:
            await self.session.merge(self.model(**data))

        await self.session.flush()

    async def upsert_where(self, condition: Any, **data: Any) -> bool:
        """
        Insert the row, or replace it only while condition holds.

        The condition is evaluated against the stored row inside the
        write statement, so it doubles as a compare-and-swap guard
        against concurrent writers of the same key.

        Args:
            condition: SQL expression over the model's columns
            **data: Column values, primary key included

        Returns:
            True if the row was written, False if the stored row
            failed the condition
        """
        pk_columns = [column.name for column in inspect(self.model).primary_key]
        values = {key: value for key, value in data.items() if key not in pk_columns}
        dialect = self.session.bind.dialect.name

        if dialect in ("sqlite", "postgresql"):
            insert = sqlite.insert if dialect == "sqlite" else postgresql.insert
            stmt = (
                insert(self.model)
                .values(**data)
                .on_conflict_do_update(
                    index_elements=pk_columns, set_=values, where=condition
                )
                .returning(*(getattr(self.model, name) for name in pk_columns))
            )
            result = await self.session.execute(stmt)
            written = result.first() is not None
        else:
            pk_filter = [getattr(self.model, name) == data[name] for name in pk_columns]
            result = await self.session.execute(
                update(self.model).where(*pk_filter, condition).values(**values)
            )
            written = result.rowcount > 0
            if not written:
                pk = tuple(data[name] for name in pk_columns)
                if await self.session.get(self.model, pk) is None:
                    self.session.add(self.model(**data))
                    written = True

        await self.session.flush()
        return written
