"""
Site Content API — Table Gateway
=================================

What:  The relational capability the dispatcher consumes: insert, select all,
       select by id, update, delete by id, delete all, replace all.
Why:   The dispatcher works on "a table" rather than on eight ORM classes,
       so the gateway speaks SQLAlchemy Core against `Table` objects and
       returns plain dicts.
How:   Every write uses RETURNING, so the caller gets back exactly the rows
       the database stored (server defaults included) without a re-select.
       Writes commit on success and roll back on failure.

Error translation:
    IntegrityError, DataError, ProgrammingError, and statement-level bind
    failures → RecordRejectedError (400, the database's message is kept).
    Everything else (connection lost, pool timeout) → DatabaseError (500).

Replace-all:
    Delete-all and insert run in a single transaction, so readers never see
    the table empty and a crash between the two steps rolls back both.
    Concurrent replace-alls on one table are serialized by a per-table
    asyncio.Lock inside the process and, on PostgreSQL, by a transaction-level
    advisory lock across processes — otherwise two interleaved requests could
    leave zero or two rows behind.
"""

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional
from weakref import WeakKeyDictionary

from sqlalchemy import Table, delete, insert, select, text, update
from sqlalchemy.exc import (
    DataError,
    DBAPIError,
    IntegrityError,
    ProgrammingError,
    SQLAlchemyError,
    StatementError,
)
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError, RecordRejectedError, SiteContentError

logger = logging.getLogger(__name__)

Record = Dict[str, Any]

# Locks are bound to the loop that first waits on them; keep one set per loop
_replace_locks: "WeakKeyDictionary[asyncio.AbstractEventLoop, Dict[str, asyncio.Lock]]" = (
    WeakKeyDictionary()
)


def _replace_lock(table_name: str) -> asyncio.Lock:
    locks = _replace_locks.setdefault(asyncio.get_running_loop(), {})
    if table_name not in locks:
        locks[table_name] = asyncio.Lock()
    return locks[table_name]


def translate_error(exc: SQLAlchemyError, table: Table, operation: str) -> SiteContentError:
    """Map a SQLAlchemy failure onto the API's error taxonomy."""
    context = {"table": table.name, "operation": operation, "error_type": type(exc).__name__}

    if isinstance(exc, (IntegrityError, DataError, ProgrammingError)):
        detail = str(exc.orig) if exc.orig is not None else str(exc)
        return RecordRejectedError(message=detail.strip(), context=context)
    if isinstance(exc, DBAPIError):
        return DatabaseError(context=context)
    if isinstance(exc, StatementError):
        # Raised before the driver is involved, e.g. a value the column type
        # cannot bind
        detail = str(exc.orig) if exc.orig is not None else str(exc)
        return RecordRejectedError(message=detail.strip(), context=context)
    return DatabaseError(context=context)


class TableGateway:
    """
    Table access bound to one request's session.

    All methods take the SQLAlchemy `Table` to operate on; records are
    column-name → value mappings.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    @property
    def dialect_name(self) -> str:
        return self.session.get_bind().dialect.name

    # ── Reads ─────────────────────────────────────────────────────────────

    async def select_all(self, table: Table) -> List[Record]:
        """All rows in storage order (no ORDER BY)."""
        try:
            result = await self.session.execute(select(table))
            return [dict(row) for row in result.mappings().all()]
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("select_all on %s failed: %s", table.name, str(e))
            raise translate_error(e, table, "select_all") from e

    async def select_by_id(self, table: Table, record_id: int) -> Optional[Record]:
        """The row with `id == record_id`, or None."""
        try:
            result = await self.session.execute(select(table).where(table.c.id == record_id))
            row = result.mappings().first()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("select_by_id on %s failed: %s", table.name, str(e))
            raise translate_error(e, table, "select_by_id") from e
        return dict(row) if row is not None else None

    # ── Writes ────────────────────────────────────────────────────────────

    async def _write(self, statement, table: Table, operation: str) -> List[Record]:
        try:
            result = await self.session.execute(statement)
            rows = [dict(row) for row in result.mappings().all()]
            await self.session.commit()
            return rows
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("%s on %s failed: %s", operation, table.name, str(e))
            raise translate_error(e, table, operation) from e

    async def insert(self, table: Table, record: Mapping[str, Any]) -> List[Record]:
        """Insert one row; returns the stored row(s)."""
        statement = insert(table).values(**record).returning(*table.columns)
        return await self._write(statement, table, "insert")

    async def update(
        self, table: Table, record_id: int, values: Mapping[str, Any]
    ) -> List[Record]:
        """Overwrite the given columns of one row; returns the updated rows (empty if none matched)."""
        statement = (
            update(table)
            .where(table.c.id == record_id)
            .values(**values)
            .returning(*table.columns)
        )
        return await self._write(statement, table, "update")

    async def delete_by_id(self, table: Table, record_id: int) -> List[Record]:
        """Delete one row; returns the removed rows (empty if none matched)."""
        statement = delete(table).where(table.c.id == record_id).returning(*table.columns)
        return await self._write(statement, table, "delete_by_id")

    async def delete_all(self, table: Table) -> int:
        """Delete every row; returns how many were removed."""
        statement = delete(table).returning(table.c.id)
        return len(await self._write(statement, table, "delete_all"))

    async def replace_all(self, table: Table, record: Mapping[str, Any]) -> List[Record]:
        """
        Atomically replace the table's contents with a single row.

        Returns:
            The inserted row(s).
        """
        async with _replace_lock(table.name):
            try:
                if self.dialect_name == "postgresql":
                    await self.session.execute(
                        text("SELECT pg_advisory_xact_lock(hashtext(:name))"),
                        {"name": table.name},
                    )
                removed = await self.session.execute(delete(table).returning(table.c.id))
                removed_count = len(removed.all())
                result = await self.session.execute(
                    insert(table).values(**record).returning(*table.columns)
                )
                rows = [dict(row) for row in result.mappings().all()]
                await self.session.commit()
            except SQLAlchemyError as e:
                await self.session.rollback()
                logger.error("replace_all on %s failed: %s", table.name, str(e))
                raise translate_error(e, table, "replace_all") from e

        logger.info("Replaced %d row(s) in %s", removed_count, table.name)
        return rows
