#!/usr/bin/env python3
"""Run a database upload/download bandwidth test from the command line."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from sqlbandwidth.config import settings
from sqlbandwidth.core.config_loader import resolve_config
from sqlbandwidth.core.report import ConsoleReporter
from sqlbandwidth.core.runner import run_bandwidth_test
from sqlbandwidth.errors import BandwidthTestError, ConfigurationError, describe_error
from sqlbandwidth.models.test_config import BandwidthTestConfig

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2
EXIT_INTERRUPTED = 130


def _str2bool(value: str) -> bool:
    lowered = str(value).strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise argparse.ArgumentTypeError(f"Expected true/false, got {value!r}")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sqlbandwidth",
        description=(
            "Measure upload and download bandwidth to a database server through "
            "a temporary table."
        ),
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Settings file (.json/.yaml). Defaults to ./appsettings.json if present.",
    )
    parser.add_argument("--server", default=None, help="Server host[:port].")
    parser.add_argument("--database", default=None, help="Database name.")
    parser.add_argument("--user-id", default=None, help="Login name.")
    parser.add_argument("--password", default=None, help="Password.")
    parser.add_argument(
        "--integrated-security",
        type=_str2bool,
        nargs="?",
        const=True,
        default=None,
        help="Resolve credentials from the environment instead of UserId/Password.",
    )
    parser.add_argument(
        "--ssl",
        default=None,
        help="sslmode: disable, allow, prefer, require, verify-ca, verify-full.",
    )
    parser.add_argument(
        "--target-mb",
        type=int,
        default=None,
        help="Payload size in MB (default 1000).",
    )
    parser.add_argument(
        "--row-size",
        type=int,
        default=None,
        help="Characters per row (default 1000).",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Rows per bulk insert (default 1000).",
    )
    parser.add_argument(
        "--bytes-per-char",
        type=int,
        default=None,
        help="Bytes counted per character (default 2).",
    )
    parser.add_argument(
        "--fetch-size",
        type=int,
        default=None,
        help="Rows prefetched by the read cursor (default 1000).",
    )
    parser.add_argument(
        "--table-name",
        default=None,
        help="Temporary table name (default bandwidth_test_data).",
    )
    return parser


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    keys = (
        "server",
        "database",
        "user_id",
        "password",
        "integrated_security",
        "ssl",
        "target_mb",
        "row_size",
        "batch_size",
        "bytes_per_char",
        "fetch_size",
        "table_name",
    )
    return {key: getattr(args, key) for key in keys if getattr(args, key) is not None}


def _configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL),
        format=settings.LOG_FORMAT,
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(settings.LOG_FILE)
            if settings.LOG_FILE
            else logging.NullHandler(),
        ],
    )
    # Keep driver internals out of the benchmark output.
    logging.getLogger("asyncpg").setLevel(logging.WARNING)


async def _run(config: BandwidthTestConfig, reporter: ConsoleReporter) -> int:
    try:
        await run_bandwidth_test(config, reporter)
    except BandwidthTestError as e:
        reporter.message(describe_error(e))
        return EXIT_FAILED
    except Exception as e:
        logger.exception("Unexpected failure")
        reporter.message(describe_error(e))
        return EXIT_FAILED
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging()
    reporter = ConsoleReporter()

    try:
        config = resolve_config(args.config, _overrides(args))
    except ConfigurationError as e:
        reporter.message(describe_error(e))
        return EXIT_CONFIG

    reporter.config(config)
    try:
        return asyncio.run(_run(config, reporter))
    except KeyboardInterrupt:
        print("[sqlbandwidth] interrupted", file=sys.stderr)
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    raise SystemExit(main())
