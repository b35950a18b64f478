"""
Error taxonomy and user-facing error rendering.

Goal: every failure ends up as one readable line on the terminal, with a hint
when the cause is something the user can fix (credentials, VPN, server name).
"""

from __future__ import annotations

import asyncio
import logging
import socket
from dataclasses import dataclass
from typing import Optional

import asyncpg

from sqlbandwidth.config import settings

logger = logging.getLogger(__name__)


class BandwidthTestError(Exception):
    """Base class for failures that abort a bandwidth test."""

    def __init__(self, message: str, *, hint: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.hint = hint


class ConfigurationError(BandwidthTestError):
    """Required configuration is missing or invalid. Raised before connecting."""


class DatabaseConnectionError(BandwidthTestError):
    """The server could not be reached or the session could not be opened."""


class StorageOperationError(BandwidthTestError):
    """A create/insert/select/drop against the transient table failed."""

    def __init__(
        self, operation: str, message: str, *, hint: Optional[str] = None
    ):
        super().__init__(message, hint=hint)
        self.operation = operation


@dataclass(frozen=True, slots=True)
class ErrorHint:
    code: str
    message: str
    hint: str | None = None


def _maybe_debug(exc: BaseException) -> str | None:
    if settings.APP_DEBUG:
        return str(exc)
    return None


def classify_connection_error(exc: BaseException) -> ErrorHint:
    """
    Classify driver/network failures raised while opening a session.

    asyncpg raises a mix of server-side errors (bad password, unknown database)
    and plain OS errors (DNS, refused, timeouts), so both are inspected.
    """
    if isinstance(exc, asyncpg.InvalidPasswordError):
        return ErrorHint(
            code="AUTH_FAILED",
            message="Authentication failed.",
            hint="Check UserId/Password, or use IntegratedSecurity.",
        )
    if isinstance(exc, asyncpg.InvalidAuthorizationSpecificationError):
        return ErrorHint(
            code="AUTH_REJECTED",
            message="The server rejected the login.",
            hint="Check that the user exists and pg_hba.conf allows this host.",
        )
    if isinstance(exc, asyncpg.InvalidCatalogNameError):
        return ErrorHint(
            code="UNKNOWN_DATABASE",
            message="The database does not exist.",
            hint="Check the Database setting.",
        )
    if isinstance(exc, socket.gaierror):
        return ErrorHint(
            code="UNKNOWN_HOST",
            message="The server name could not be resolved.",
            hint="Check the Server setting and your DNS/VPN.",
        )
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        return ErrorHint(
            code="CONNECT_TIMEOUT",
            message="Timed out connecting to the server.",
            hint="Check VPN/network access and firewall rules, then retry.",
        )
    if isinstance(exc, OSError):
        return ErrorHint(
            code="UNREACHABLE",
            message="Failed to connect to the server.",
            hint="Check that the server is running and the port is open.",
        )
    return ErrorHint(code="CONNECTION_FAILED", message="Failed to connect.")


def connection_error(exc: BaseException) -> DatabaseConnectionError:
    """Wrap a low-level connection failure in a `DatabaseConnectionError`."""
    info = classify_connection_error(exc)
    logger.error("Connection failed (%s): %s", info.code, exc)
    message = info.message
    dbg = _maybe_debug(exc)
    if dbg:
        message = f"{message} ({dbg})"
    return DatabaseConnectionError(message, hint=info.hint)


def describe_error(exc: BaseException) -> str:
    """Render any failure as the single line shown to the user."""
    if isinstance(exc, BandwidthTestError):
        text = f"Error: {exc.message}"
        if exc.hint:
            text += f" Hint: {exc.hint}"
        return text

    text = f"Error: {exc}" if str(exc) else f"Error: {type(exc).__name__}"
    return text
