"""
Base Transient Storage

Abstract interface for the session-scoped table a bandwidth test writes to
and reads back from.
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator, Sequence
import logging

logger = logging.getLogger(__name__)


class TransientStorage(ABC):
    """
    Abstract base class for the run's temporary table.

    Implementations own the SQL (or whatever the backing store needs); the
    drivers only see rows of text going in and coming out.
    """

    def __init__(self, table_name: str):
        """
        Initialize storage for a table name.

        Args:
            table_name: Name of the temporary table
        """
        self.table_name = table_name
        self._created = False

    @abstractmethod
    async def create_table(self) -> None:
        """
        Create the table, dropping any stale instance of the same name first.

        Raises:
            StorageOperationError: if the DDL fails
        """

    @abstractmethod
    async def drop_table(self) -> None:
        """
        Drop the table if it exists.

        Raises:
            StorageOperationError: if the DDL fails
        """

    @abstractmethod
    async def insert_rows(self, payloads: Sequence[str]) -> None:
        """
        Insert a batch of rows as one write operation.

        Args:
            payloads: Row payloads, one per row

        Raises:
            StorageOperationError: if the write fails
        """

    @abstractmethod
    def stream_rows(self) -> AsyncIterator[str]:
        """
        Iterate every row payload with a forward-only cursor, in insert order.

        Raises:
            StorageOperationError: if the read fails
        """

    async def setup(self) -> None:
        """Create the table and remember that teardown owes a drop."""
        logger.info(f"Setting up transient table: {self.table_name}")
        # Marked before the DDL runs: a half-finished create still gets dropped.
        self._created = True
        await self.create_table()

    async def teardown(self) -> None:
        """
        Drop the table if this instance created it.

        Raises:
            StorageOperationError: if the drop fails
        """
        if self._created:
            logger.info(f"Tearing down transient table: {self.table_name}")
            await self.drop_table()
            self._created = False

    async def teardown_quietly(self) -> bool:
        """
        Best-effort teardown used after a fatal error.

        Returns:
            bool: True if the table is gone (or was never created)
        """
        try:
            await self.teardown()
            return True
        except Exception as e:
            logger.error(f"Error tearing down table {self.table_name}: {e}")
            return False

    @property
    def is_created(self) -> bool:
        """Check if the table has been created and not yet dropped."""
        return self._created
