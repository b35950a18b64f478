"""
Type definitions and dataclasses for the benchmark engine.
"""

from dataclasses import dataclass, field
from enum import Enum

BYTES_PER_MB = 1024 * 1024
BITS_PER_MEGABIT = 1_000_000


class Direction(str, Enum):
    """Which way data flows during a phase."""

    UPLOAD = "upload"
    DOWNLOAD = "download"


@dataclass(frozen=True)
class MilestoneSample:
    """One progress observation taken when a milestone threshold is crossed."""

    percent: float
    threshold_bytes: int
    interval_seconds: float
    rate_bits_per_sec: float

    @property
    def threshold_mb(self) -> int:
        """Cumulative threshold in whole MB."""
        return self.threshold_bytes // BYTES_PER_MB

    @property
    def rate_mbps(self) -> float:
        return self.rate_bits_per_sec / BITS_PER_MEGABIT


@dataclass
class PhaseResult:
    """Totals for one direction (upload or download)."""

    direction: Direction
    row_count: int
    total_bytes: int
    elapsed_seconds: float
    samples: list[MilestoneSample] = field(default_factory=list)

    @property
    def bandwidth_bytes_per_sec(self) -> float:
        if self.elapsed_seconds <= 0:
            return 0.0
        return self.total_bytes / self.elapsed_seconds
