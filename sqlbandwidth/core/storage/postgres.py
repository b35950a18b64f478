"""
Postgres Transient Table

Session-scoped TEMP table on a single asyncpg connection. The table lives
only as long as the connection; it is still dropped explicitly at run end.
"""

from __future__ import annotations

import logging
from typing import AsyncIterator, Sequence

import asyncpg

from sqlbandwidth.core.storage.base import TransientStorage
from sqlbandwidth.errors import StorageOperationError

logger = logging.getLogger(__name__)

# Failures that mean the statement (or the session under it) did not complete.
_DRIVER_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


class PostgresTransientTable(TransientStorage):
    """Temporary `(id identity, data text)` table on one connection."""

    def __init__(
        self,
        conn: asyncpg.Connection,
        table_name: str,
        *,
        fetch_size: int = 1000,
        timeout: float | None = None,
    ):
        super().__init__(table_name)
        self.conn = conn
        self.fetch_size = fetch_size
        self.timeout = timeout

    def create_sql(self) -> str:
        return (
            f"CREATE TEMP TABLE {self.table_name} (\n"
            "  id BIGINT GENERATED ALWAYS AS IDENTITY PRIMARY KEY,\n"
            "  data TEXT\n"
            ")"
        )

    def drop_sql(self) -> str:
        return f"DROP TABLE IF EXISTS {self.table_name}"

    def insert_sql(self) -> str:
        # One array parameter keeps a whole batch in a single round trip
        # regardless of the 32767 bind-parameter limit.
        return f"INSERT INTO {self.table_name} (data) SELECT unnest($1::text[])"

    def select_sql(self) -> str:
        return f"SELECT id, data FROM {self.table_name} ORDER BY id"

    async def create_table(self) -> None:
        """Drop a stale instance, then create the temp table."""
        try:
            logger.info(f"Creating temp table: {self.table_name}")
            logger.debug(f"SQL: {self.create_sql()}")
            await self.conn.execute(self.drop_sql(), timeout=self.timeout)
            await self.conn.execute(self.create_sql(), timeout=self.timeout)
            logger.info(f"✅ Temp table created: {self.table_name}")
        except _DRIVER_ERRORS as e:
            raise StorageOperationError(
                "create", f"Failed to create table {self.table_name}: {e}"
            ) from e

    async def drop_table(self) -> None:
        try:
            logger.info(f"Dropping table: {self.table_name}")
            await self.conn.execute(self.drop_sql(), timeout=self.timeout)
            logger.info(f"✅ Table dropped: {self.table_name}")
        except _DRIVER_ERRORS as e:
            raise StorageOperationError(
                "drop", f"Failed to drop table {self.table_name}: {e}"
            ) from e

    async def insert_rows(self, payloads: Sequence[str]) -> None:
        if not payloads:
            return
        try:
            await self.conn.execute(
                self.insert_sql(), list(payloads), timeout=self.timeout
            )
        except _DRIVER_ERRORS as e:
            raise StorageOperationError(
                "insert", f"Failed to insert into {self.table_name}: {e}"
            ) from e

    async def stream_rows(self) -> AsyncIterator[str]:
        """
        Yield each row's payload through a server-side cursor.

        asyncpg cursors only exist inside a transaction; the temp table created
        outside it is visible because it belongs to the same session.
        """
        try:
            async with self.conn.transaction():
                async for record in self.conn.cursor(
                    self.select_sql(), prefetch=self.fetch_size, timeout=self.timeout
                ):
                    yield record["data"] or ""
        except _DRIVER_ERRORS as e:
            raise StorageOperationError(
                "select", f"Failed to read from {self.table_name}: {e}"
            ) from e
