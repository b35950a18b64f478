"""
Transient storage for bandwidth tests.

The drivers talk to `TransientStorage`; `PostgresTransientTable` is the
asyncpg-backed implementation used by the CLI.
"""

from sqlbandwidth.core.storage.base import TransientStorage
from sqlbandwidth.core.storage.postgres import PostgresTransientTable

__all__ = [
    "TransientStorage",
    "PostgresTransientTable",
]
