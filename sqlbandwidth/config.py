"""
Application settings.

Process-wide knobs (logging, driver timeouts, debug output) read from
`SQLBW_*` environment variables or a `.env` file. Benchmark parameters live in
`sqlbandwidth.models.test_config` and are resolved per run.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings shared by the CLI, connectors and error reporting."""

    model_config = SettingsConfigDict(
        env_prefix="SQLBW_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
    )

    LOG_LEVEL: str = Field("INFO", description="Root log level")
    LOG_FORMAT: str = Field(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="logging.basicConfig format string",
    )
    LOG_FILE: Optional[str] = Field(None, description="Optional log file path")
    APP_DEBUG: bool = Field(
        False, description="Include raw driver errors in user-facing messages"
    )

    APPLICATION_NAME: str = Field(
        "MyBandwidthTest", description="application_name reported to the server"
    )
    CONNECT_TIMEOUT_SECONDS: float = Field(30.0, gt=0)
    COMMAND_TIMEOUT_SECONDS: Optional[float] = Field(None, gt=0)

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        level = str(value).strip().upper() or "INFO"
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level: {value}")
        return level

    @field_validator("LOG_FILE", mode="before")
    @classmethod
    def blank_log_file_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


settings = Settings()
