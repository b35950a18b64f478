"""
Tests for the command-line entry point.

run_bandwidth_test is patched, so these cover argument handling, exit codes
and the single printed error line.
"""

from __future__ import annotations

import argparse
import json
from unittest.mock import AsyncMock, patch

import pytest

from sqlbandwidth import cli
from sqlbandwidth.errors import DatabaseConnectionError, StorageOperationError

RUN = "sqlbandwidth.cli.run_bandwidth_test"

CREDENTIALS = [
    "--server",
    "db.example.com",
    "--database",
    "bench",
    "--user-id",
    "alice",
    "--password",
    "s3cret",
]


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path, monkeypatch):
    """Keep a stray appsettings.json in the repo from leaking into tests."""
    monkeypatch.chdir(tmp_path)


def test_parser_overrides() -> None:
    args = cli._build_parser().parse_args(
        CREDENTIALS + ["--target-mb", "5", "--batch-size", "20", "--integrated-security"]
    )

    overrides = cli._overrides(args)

    assert overrides["server"] == "db.example.com"
    assert overrides["target_mb"] == 5
    assert overrides["batch_size"] == 20
    assert overrides["integrated_security"] is True
    assert "row_size" not in overrides


@pytest.mark.parametrize(
    "value, expected", [("true", True), ("YES", True), ("0", False), ("off", False)]
)
def test_str2bool(value: str, expected: bool) -> None:
    assert cli._str2bool(value) is expected


def test_str2bool_rejects_garbage() -> None:
    with pytest.raises(argparse.ArgumentTypeError):
        cli._str2bool("maybe")


def test_successful_run_exits_zero(capsys) -> None:
    with patch(RUN, new=AsyncMock()) as run:
        code = cli.main(CREDENTIALS + ["--target-mb", "1"])

    assert code == cli.EXIT_OK
    run.assert_awaited_once()
    config = run.await_args.args[0]
    assert config.benchmark.target_mb == 1
    out = capsys.readouterr().out
    assert "Current Configuration:" in out
    assert "s3cret" not in out


def test_missing_server_stops_before_connecting(capsys) -> None:
    with patch(RUN, new=AsyncMock()) as run:
        code = cli.main(["--database", "bench", "--integrated-security"])

    assert code == cli.EXIT_CONFIG
    run.assert_not_awaited()
    assert "Please provide Server and Database" in capsys.readouterr().out


def test_zero_target_is_configuration_error(capsys) -> None:
    with patch(RUN, new=AsyncMock()) as run:
        code = cli.main(CREDENTIALS + ["--target-mb", "0"])

    assert code == cli.EXIT_CONFIG
    run.assert_not_awaited()
    assert capsys.readouterr().out.startswith("Error: ")


def test_config_file_is_used(tmp_path, capsys) -> None:
    path = tmp_path / "custom.json"
    path.write_text(
        json.dumps(
            {"Server": "from-file", "Database": "bench", "IntegratedSecurity": True}
        )
    )

    with patch(RUN, new=AsyncMock()) as run:
        code = cli.main(["--config", str(path), "--row-size", "50"])

    assert code == cli.EXIT_OK
    config = run.await_args.args[0]
    assert config.connection.server == "from-file"
    assert config.benchmark.row_size == 50


def test_connection_error_prints_one_line(capsys) -> None:
    error = DatabaseConnectionError(
        "Failed to connect to the server.", hint="Check that the server is running."
    )
    with patch(RUN, new=AsyncMock(side_effect=error)):
        code = cli.main(CREDENTIALS)

    assert code == cli.EXIT_FAILED
    out = capsys.readouterr().out.strip().splitlines()
    assert out[-1] == (
        "Error: Failed to connect to the server. Hint: Check that the server is running."
    )


def test_storage_error_exits_one(capsys) -> None:
    error = StorageOperationError("insert", "Failed to insert into t: disk full")
    with patch(RUN, new=AsyncMock(side_effect=error)):
        code = cli.main(CREDENTIALS)

    assert code == cli.EXIT_FAILED
    assert "Error: Failed to insert into t: disk full" in capsys.readouterr().out


def test_unexpected_error_is_reported_not_raised(capsys) -> None:
    with patch(RUN, new=AsyncMock(side_effect=RuntimeError("kaboom"))):
        code = cli.main(CREDENTIALS)

    assert code == cli.EXIT_FAILED
    assert "Error: kaboom" in capsys.readouterr().out
