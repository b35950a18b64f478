"""
Bandwidth Test Configuration Loader

Resolves a validated `BandwidthTestConfig` from, in increasing precedence:
an optional settings file (JSON or YAML, `appsettings.json` by default) and
command-line overrides.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Type

import yaml
from pydantic import BaseModel, ValidationError

from sqlbandwidth.errors import ConfigurationError
from sqlbandwidth.models.test_config import (
    BandwidthTestConfig,
    BenchmarkConfig,
    ConnectionConfig,
)

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "appsettings.json"


def _key_map(model: Type[BaseModel]) -> Dict[str, str]:
    """Lower-cased field name and alias -> field name."""
    mapping: Dict[str, str] = {}
    for name, field in model.model_fields.items():
        mapping[name.lower()] = name
        if field.alias:
            mapping[field.alias.lower()] = name
    return mapping


_CONNECTION_KEYS = _key_map(ConnectionConfig)
_BENCHMARK_KEYS = _key_map(BenchmarkConfig)


def load_config_file(path: Path) -> Dict[str, Any]:
    """
    Read a settings file.

    Args:
        path: .json, .yaml or .yml file

    Returns:
        Dict of raw settings (empty for an empty file)
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Invalid config file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    return data


def _split(raw: Mapping[str, Any]) -> tuple[Dict[str, Any], Dict[str, Any]]:
    """Route flat settings to connection and benchmark fields."""
    connection: Dict[str, Any] = {}
    benchmark: Dict[str, Any] = {}
    for key, value in raw.items():
        if value is None:
            continue
        normalized = str(key).replace("-", "_").lower()
        if normalized in _CONNECTION_KEYS:
            connection[_CONNECTION_KEYS[normalized]] = value
        elif normalized in _BENCHMARK_KEYS:
            benchmark[_BENCHMARK_KEYS[normalized]] = value
        else:
            logger.debug(f"Ignoring unknown setting: {key}")
    return connection, benchmark


def _format_validation_error(exc: ValidationError) -> str:
    messages = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part)
        msg = str(err.get("msg", "")).removeprefix("Value error, ")
        messages.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(messages)


def build_config(raw: Mapping[str, Any]) -> BandwidthTestConfig:
    """
    Validate flat settings into a `BandwidthTestConfig`.

    Raises:
        ConfigurationError: if required fields are missing or invalid
    """
    connection, benchmark = _split(raw)
    try:
        return BandwidthTestConfig(
            connection=ConnectionConfig.model_validate(connection),
            benchmark=BenchmarkConfig.model_validate(benchmark),
        )
    except ValidationError as e:
        raise ConfigurationError(_format_validation_error(e)) from e


def resolve_config(
    config_path: Optional[Path] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> BandwidthTestConfig:
    """
    Merge the settings file with overrides and validate.

    Args:
        config_path: Explicit settings file; must exist when given. When None,
            `appsettings.json` in the working directory is used if present.
        overrides: Flat settings that win over the file (None values ignored)

    Raises:
        ConfigurationError: on unreadable files or invalid settings
    """
    raw: Dict[str, Any] = {}

    if config_path is not None:
        raw.update(load_config_file(Path(config_path)))
    else:
        default = Path(DEFAULT_CONFIG_FILE)
        if default.is_file():
            logger.info(f"Loading settings from {default}")
            raw.update(load_config_file(default))

    connection, benchmark = _split(raw)
    if overrides:
        over_conn, over_bench = _split(overrides)
        connection.update(over_conn)
        benchmark.update(over_bench)

    return build_config({**connection, **benchmark})
