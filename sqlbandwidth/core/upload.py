"""
Upload driver.

Writes `target_bytes` of synthetic rows to transient storage in bulk batches,
feeding the running byte total to a milestone tracker.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from sqlbandwidth.core.milestones import MilestoneTracker
from sqlbandwidth.core.storage.base import TransientStorage
from sqlbandwidth.core.types import Direction, MilestoneSample, PhaseResult
from sqlbandwidth.models.test_config import BenchmarkConfig

logger = logging.getLogger(__name__)

MilestoneCallback = Callable[[Direction, MilestoneSample], None]

PAYLOAD_CHAR = "A"


class UploadDriver:
    """
    Upstream phase of a bandwidth test.

    Batching amortizes per-round-trip overhead so the measured rate reflects
    bulk throughput rather than per-row latency.
    """

    direction = Direction.UPLOAD

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
        Insert rows until the accounted byte total reaches the target.

        Returns:
            PhaseResult with bytes inserted, rows inserted and elapsed time

        Raises:
            StorageOperationError: on any failed write (fatal)
        """
        target_bytes = self.config.target_bytes
        batch_size = self.config.batch_size
        row_bytes = self.config.row_bytes
        payload = PAYLOAD_CHAR * self.config.row_size

        inserted_bytes = 0
        row_count = 0
        batch_count = 0
        started = self.clock()

        logger.info(
            f"Upload started: target={target_bytes} bytes, "
            f"row_size={self.config.row_size}, batch_size={batch_size}"
        )

        while inserted_bytes < target_bytes:
            batch: list[str] = []
            while len(batch) < batch_size and inserted_bytes < target_bytes:
                batch.append(payload)
                inserted_bytes += row_bytes

                sample = self.tracker.observe(inserted_bytes, self.clock() - started)
                if sample is not None and self.on_milestone is not None:
                    self.on_milestone(self.direction, sample)

            await self.storage.insert_rows(batch)
            row_count += len(batch)
            batch_count += 1

        elapsed = self.clock() - started
        logger.info(
            f"Upload finished: {row_count} rows in {batch_count} batches, "
            f"{inserted_bytes} bytes, {elapsed:.2f}s"
        )

        return PhaseResult(
            direction=self.direction,
            row_count=row_count,
            total_bytes=inserted_bytes,
            elapsed_seconds=elapsed,
            samples=list(self.tracker.samples),
        )
