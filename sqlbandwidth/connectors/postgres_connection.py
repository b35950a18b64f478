"""
Postgres Connection Provider

Opens the single asyncpg session a bandwidth test runs on, after verifying
the server is reachable with a throwaway connection.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

import asyncpg

from sqlbandwidth.config import settings
from sqlbandwidth.errors import connection_error
from sqlbandwidth.models.test_config import ConnectionConfig

logger = logging.getLogger(__name__)

# Anything that means "could not open a session" rather than a bug.
_CONNECT_ERRORS = (
    asyncpg.PostgresError,
    asyncpg.InterfaceError,
    OSError,
    TimeoutError,
)


class PostgresConnectionProvider:
    """
    Builds connections for one `ConnectionConfig`.

    No retries: a run either connects on the first attempt or fails.
    """

    def __init__(
        self,
        config: ConnectionConfig,
        *,
        application_name: Optional[str] = None,
        connect_timeout: Optional[float] = None,
        command_timeout: Optional[float] = None,
    ):
        """
        Initialize the provider.

        Args:
            config: Validated connection settings
            application_name: Reported to the server (pg_stat_activity)
            connect_timeout: Seconds to wait for the connection handshake
            command_timeout: Default per-statement timeout, None for no limit
        """
        self.config = config
        self.host, self.port = config.host_and_port
        self.application_name = application_name or settings.APPLICATION_NAME
        self.connect_timeout = (
            connect_timeout
            if connect_timeout is not None
            else settings.CONNECT_TIMEOUT_SECONDS
        )
        self.command_timeout = (
            command_timeout
            if command_timeout is not None
            else settings.COMMAND_TIMEOUT_SECONDS
        )

        user = "<integrated>" if config.integrated_security else config.user_id
        logger.info(
            f"Postgres connection configured: {user}@{self.host}:{self.port}/"
            f"{config.database}"
        )

    def connect_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for `asyncpg.connect`."""
        kwargs: Dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "database": self.config.database,
            "ssl": self.config.ssl,
            "timeout": self.connect_timeout,
            "command_timeout": self.command_timeout,
            "server_settings": {"application_name": self.application_name},
        }
        # Integrated security: leave user/password to PGUSER, .pgpass, peer or GSS.
        if not self.config.integrated_security:
            kwargs["user"] = self.config.user_id
            kwargs["password"] = self.config.password
        return kwargs

    async def open(self) -> asyncpg.Connection:
        """
        Open a new connection.

        Raises:
            DatabaseConnectionError: if the connection cannot be established
        """
        try:
            return await asyncpg.connect(**self.connect_kwargs())
        except _CONNECT_ERRORS as e:
            raise connection_error(e) from e

    async def verify(self) -> None:
        """
        Open, ping and close a throwaway connection.

        Raises:
            DatabaseConnectionError: if the server is unreachable or rejects us
        """
        logger.info("Verifying connection...")
        conn = await self.open()
        try:
            result = await conn.fetchval("SELECT 1")
            if result != 1:
                raise connection_error(
                    RuntimeError(f"Unexpected health check result: {result!r}")
                )
        except _CONNECT_ERRORS as e:
            raise connection_error(e) from e
        finally:
            await conn.close()
        logger.info("✅ Connection verified")

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[asyncpg.Connection]:
        """
        Open the benchmark connection (async context manager).

        Usage:
            async with provider.connect() as conn:
                await conn.execute("SELECT 1")

        Yields:
            Connection: an open asyncpg connection, closed on exit
        """
        conn = await self.open()
        try:
            yield conn
        finally:
            await conn.close()
            logger.info("Postgres connection closed")
