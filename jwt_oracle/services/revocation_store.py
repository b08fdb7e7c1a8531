"""Revocation store - persistence of live token identifiers."""

from typing import Any, Protocol

from sqlalchemy import CursorResult, Table, delete, insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from jwt_oracle.errors import DuplicateKeyError, StoreError
from jwt_oracle.models.revocation_record import RevocationRecord, revocation_table


class RevocationStore(Protocol):
    """What the token manager needs from persistence.

    Every call is its own atomic unit; nothing spans two calls.
    """

    async def insert(self, key: str, expired_at: int | None = None) -> None:
        """Insert a record. Raises DuplicateKeyError if the key exists."""
        ...

    async def find_live(self, key: str, now: int) -> RevocationRecord | None:
        """Return the record if expired_at >= now."""
        ...

    async def delete_by_key(self, key: str) -> int:
        ...

    async def delete_expired(self, now: int) -> int:
        """Delete records with expired_at < now."""
        ...


class SQLAlchemyRevocationStore:
    """Revocation store backed by a relational table.

    Each operation opens its own session and commits (or rolls back) before
    returning.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        table_name: str,
        table: Table | None = None,
    ):
        self.session_maker = session_maker
        self.table = table if table is not None else revocation_table(table_name)

    @property
    def table_name(self) -> str:
        return self.table.name

    async def insert(self, key: str, expired_at: int | None = None) -> None:
        values: dict[str, Any] = {"key": key}
        if expired_at is not None:
            values["expired_at"] = expired_at

        try:
            async with self.session_maker() as session, session.begin():
                await session.execute(insert(self.table).values(**values))
        except IntegrityError as e:
            raise DuplicateKeyError(key) from e
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to insert revocation record: {e}") from e

    async def find_live(self, key: str, now: int) -> RevocationRecord | None:
        stmt = (
            select(self.table.c["key"], self.table.c["expired_at"])
            .where(self.table.c["key"] == key)
            .where(self.table.c["expired_at"] >= now)
            .limit(1)
        )
        try:
            async with self.session_maker() as session:
                result = await session.execute(stmt)
                row = result.first()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to look up revocation record: {e}") from e

        if row is None:
            return None
        return RevocationRecord(key=row[0], expired_at=row[1])

    async def delete_by_key(self, key: str) -> int:
        stmt = delete(self.table).where(self.table.c["key"] == key)
        return await self._delete(stmt)

    async def delete_expired(self, now: int) -> int:
        stmt = delete(self.table).where(self.table.c["expired_at"] < now)
        return await self._delete(stmt)

    async def _delete(self, stmt) -> int:
        try:
            async with self.session_maker() as session, session.begin():
                result: CursorResult[Any] = await session.execute(stmt)  # type: ignore[assignment]
                return result.rowcount
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to delete revocation records: {e}") from e
