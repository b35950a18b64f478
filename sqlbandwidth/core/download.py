"""
Download driver.

Streams every row back from transient storage and accounts the bytes read.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from sqlbandwidth.core.milestones import MilestoneTracker
from sqlbandwidth.core.storage.base import TransientStorage
from sqlbandwidth.core.types import BYTES_PER_MB, Direction, PhaseResult
from sqlbandwidth.core.upload import MilestoneCallback
from sqlbandwidth.models.test_config import BenchmarkConfig

logger = logging.getLogger(__name__)

# Read totals within this many MB of the target count as verified.
VERIFICATION_TOLERANCE_MB = 1.0


def verify_total(total_bytes_read: int, target_mb: int) -> bool:
    """True when the bytes read are within the tolerance band of the target."""
    return abs(total_bytes_read / BYTES_PER_MB - target_mb) < VERIFICATION_TOLERANCE_MB


class DownloadDriver:
    """Downstream phase of a bandwidth test."""

    direction = Direction.DOWNLOAD

    def __init__(
        self,
        config: BenchmarkConfig,
        storage: TransientStorage,
        *,
        on_milestone: Optional[MilestoneCallback] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.config = config
        self.storage = storage
        self.on_milestone = on_milestone
        self.clock = clock
        self.tracker = MilestoneTracker(config.target_bytes)

    async def run(self) -> PhaseResult:
        """
        Read all rows through a forward-only cursor.

        Raises:
            StorageOperationError: on a failed read (fatal)
        """
        bytes_per_char = self.config.bytes_per_char
        total_bytes = 0
        row_count = 0
        started = self.clock()

        logger.info(f"Download started from {self.storage.table_name}")

        async for data in self.storage.stream_rows():
            row_count += 1
            total_bytes += len(data) * bytes_per_char

            sample = self.tracker.observe(total_bytes, self.clock() - started)
            if sample is not None and self.on_milestone is not None:
                self.on_milestone(self.direction, sample)

        elapsed = self.clock() - started
        logger.info(
            f"Download finished: {row_count} rows, {total_bytes} bytes, {elapsed:.2f}s"
        )

        return PhaseResult(
            direction=self.direction,
            row_count=row_count,
            total_bytes=total_bytes,
            elapsed_seconds=elapsed,
            samples=list(self.tracker.samples),
        )
