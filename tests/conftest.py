"""
Global pytest configuration and fixtures for SqlBandwidth tests.

This module provides:
- An in-memory TransientStorage that records every storage call
- A deterministic clock for elapsed-time assertions
- Benchmark config factories
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional, Sequence

import asyncpg
import pytest

from sqlbandwidth.core.storage.base import TransientStorage
from sqlbandwidth.errors import StorageOperationError
from sqlbandwidth.models.test_config import BenchmarkConfig


# =============================================================================
# Fakes
# =============================================================================


class InMemoryStorage(TransientStorage):
    """
    TransientStorage backed by a list.

    `fail_on_insert=N` makes the Nth insert (1-based) raise; `fail_on_drop`
    makes every drop raise. `calls` records the operation order.
    """

    def __init__(
        self,
        table_name: str = "bandwidth_test_data",
        *,
        fail_on_insert: Optional[int] = None,
        fail_on_read_after: Optional[int] = None,
        fail_on_create: bool = False,
        fail_on_drop: bool = False,
    ):
        super().__init__(table_name)
        self.rows: list[str] = []
        self.exists = False
        self.calls: list[str] = []
        self.insert_batches: list[int] = []
        self.fail_on_insert = fail_on_insert
        self.fail_on_read_after = fail_on_read_after
        self.fail_on_create = fail_on_create
        self.fail_on_drop = fail_on_drop
        self.drop_count = 0

    async def create_table(self) -> None:
        self.calls.append("create")
        if self.fail_on_create:
            raise StorageOperationError("create", "simulated create failure")
        self.rows = []
        self.exists = True

    async def drop_table(self) -> None:
        self.calls.append("drop")
        self.drop_count += 1
        if self.fail_on_drop:
            raise StorageOperationError("drop", "simulated drop failure")
        self.rows = []
        self.exists = False

    async def insert_rows(self, payloads: Sequence[str]) -> None:
        self.calls.append("insert")
        if self.fail_on_insert is not None and (
            len(self.insert_batches) + 1 == self.fail_on_insert
        ):
            raise StorageOperationError("insert", "simulated write failure")
        self.insert_batches.append(len(payloads))
        self.rows.extend(payloads)

    async def stream_rows(self) -> AsyncIterator[str]:
        self.calls.append("select")
        for index, row in enumerate(list(self.rows)):
            if self.fail_on_read_after is not None and index >= self.fail_on_read_after:
                raise StorageOperationError("select", "simulated read failure")
            yield row


class _FakeCursor:
    def __init__(self, rows: list[dict], fail_after: Optional[int]):
        self._rows = rows
        self._fail_after = fail_after

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for index, row in enumerate(self._rows):
            if self._fail_after is not None and index >= self._fail_after:
                raise asyncpg.ConnectionDoesNotExistError("connection was closed")
            yield row


class FakeConnection:
    """Just enough of asyncpg.Connection for the transient table."""

    def __init__(
        self,
        *,
        fail_on: Optional[str] = None,
        rows: Optional[list[dict]] = None,
        fail_after: Optional[int] = None,
    ):
        self.fail_on = fail_on
        self.rows = rows or []
        self.fail_after = fail_after
        self.executed: list[tuple[str, tuple, Any]] = []
        self.cursor_calls: list[tuple[str, dict]] = []
        self.transactions = 0

    async def execute(self, query: str, *args, timeout=None) -> str:
        self.executed.append((query, args, timeout))
        if self.fail_on and query.startswith(self.fail_on):
            raise asyncpg.PostgresError(f"{self.fail_on} failed")
        return "OK"

    @asynccontextmanager
    async def _transaction(self):
        self.transactions += 1
        yield

    def transaction(self):
        return self._transaction()

    def cursor(self, query: str, **kwargs):
        self.cursor_calls.append((query, kwargs))
        return _FakeCursor(self.rows, self.fail_after)


class FakeClock:
    """Advances by `step` seconds on every call."""

    def __init__(self, step: float = 0.001, start: float = 100.0):
        self.step = step
        self.now = start
        self.calls = 0

    def __call__(self) -> float:
        self.now += self.step
        self.calls += 1
        return self.now


class FrozenClock:
    """Always returns the same instant."""

    def __call__(self) -> float:
        return 42.0


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_config():
    """
    Factory for BenchmarkConfig with small defaults.

    Usage:
        config = make_config(target_mb=1, row_size=100, batch_size=10)
    """

    def _make(**overrides) -> BenchmarkConfig:
        values = {"target_mb": 1, "row_size": 1000, "batch_size": 100}
        values.update(overrides)
        return BenchmarkConfig(**values)

    return _make
