"""
Data models for SqlBandwidth.

This package contains Pydantic models for:
- Test configurations (connection, benchmark parameters)
- Run states and results
"""

from sqlbandwidth.models.test_config import (
    BYTES_PER_MB,
    BandwidthTestConfig,
    BenchmarkConfig,
    ConnectionConfig,
)

from sqlbandwidth.models.test_result import (
    RunResult,
    RunState,
)

__all__ = [
    # test_config
    "BYTES_PER_MB",
    "BandwidthTestConfig",
    "BenchmarkConfig",
    "ConnectionConfig",
    # test_result
    "RunResult",
    "RunState",
]
