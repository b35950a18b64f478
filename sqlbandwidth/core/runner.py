"""
Bandwidth test runner.

Drives one run through its states:

    IDLE -> CONNECTED -> TABLE_CREATED -> UPLOADING -> UPLOADED -> DOWNLOADING
        -> VERIFIED | VERIFICATION_FAILED -> TABLE_DROPPED -> DONE

A fatal error from any state ends in ABORTED, after a best-effort drop of the
transient table.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from sqlbandwidth.config import settings
from sqlbandwidth.connectors.postgres_connection import PostgresConnectionProvider
from sqlbandwidth.core.download import DownloadDriver, verify_total
from sqlbandwidth.core.report import ConsoleReporter
from sqlbandwidth.core.storage.base import TransientStorage
from sqlbandwidth.core.storage.postgres import PostgresTransientTable
from sqlbandwidth.core.types import Direction, MilestoneSample
from sqlbandwidth.core.upload import UploadDriver
from sqlbandwidth.models.test_config import BandwidthTestConfig, BenchmarkConfig
from sqlbandwidth.models.test_result import RunResult, RunState

logger = logging.getLogger(__name__)


class BandwidthTestRunner:
    """Runs upload then download against one transient storage instance."""

    def __init__(
        self,
        config: BenchmarkConfig,
        storage: TransientStorage,
        *,
        reporter: Optional[ConsoleReporter] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.config = config
        self.storage = storage
        self.reporter = reporter
        self.clock = clock
        self.state = RunState.IDLE
        self.history: list[RunState] = [RunState.IDLE]
        self.error: Optional[BaseException] = None
        self.result: Optional[RunResult] = None

    def _transition(self, state: RunState) -> None:
        logger.debug(f"Run state: {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    def _on_milestone(self, direction: Direction, sample: MilestoneSample) -> None:
        if self.reporter is not None:
            self.reporter.progress(direction, sample)

    async def run(self) -> RunResult:
        """
        Execute the run. The storage handle must sit on an open connection.

        The summary goes to the reporter as soon as verification finishes, so a
        failed final drop still leaves the measurements on screen and on
        `self.result`.

        Returns:
            RunResult for the completed run (verified or not)

        Raises:
            StorageOperationError: if create/insert/select/drop fails; the
                table drop has already been attempted when this propagates
        """
        if self.state != RunState.IDLE:
            raise RuntimeError("A runner executes exactly one run")

        started = self.clock()
        self._transition(RunState.CONNECTED)

        try:
            await self.storage.setup()
            self._transition(RunState.TABLE_CREATED)

            self._transition(RunState.UPLOADING)
            upload = await UploadDriver(
                self.config,
                self.storage,
                on_milestone=self._on_milestone,
                clock=self.clock,
            ).run()
            self._transition(RunState.UPLOADED)

            self._transition(RunState.DOWNLOADING)
            download = await DownloadDriver(
                self.config,
                self.storage,
                on_milestone=self._on_milestone,
                clock=self.clock,
            ).run()

            verified = verify_total(download.total_bytes, self.config.target_mb)
            self._transition(
                RunState.VERIFIED if verified else RunState.VERIFICATION_FAILED
            )
            if not verified:
                logger.warning(
                    f"Verification failed: read {download.total_bytes} bytes, "
                    f"target {self.config.target_bytes} bytes"
                )
        except BaseException as e:
            # CancelledError and KeyboardInterrupt still get the drop attempt.
            self.error = e
            logger.error(
                f"Bandwidth test aborted in state {self.state.value}: "
                f"{str(e) or type(e).__name__}"
            )
            if await self.storage.teardown_quietly():
                self._transition(RunState.TABLE_DROPPED)
            self._transition(RunState.ABORTED)
            raise

        # Measurements are complete; report them even if the drop fails.
        self.result = RunResult(
            target_mb=self.config.target_mb,
            row_count=download.row_count,
            rows_written=upload.row_count,
            total_bytes_written=upload.total_bytes,
            total_bytes_read=download.total_bytes,
            upload_elapsed_seconds=upload.elapsed_seconds,
            download_elapsed_seconds=download.elapsed_seconds,
            total_elapsed_seconds=self.clock() - started,
            verified=verified,
            upload_samples=upload.samples,
            download_samples=download.samples,
        )
        if self.reporter is not None:
            self.reporter.summary(self.result)

        try:
            await self.storage.teardown()
        except Exception as e:
            self.error = e
            self._transition(RunState.ABORTED)
            raise
        self._transition(RunState.TABLE_DROPPED)
        self._transition(RunState.DONE)
        return self.result


async def run_bandwidth_test(
    test_config: BandwidthTestConfig,
    reporter: Optional[ConsoleReporter] = None,
    *,
    provider: Optional[PostgresConnectionProvider] = None,
) -> RunResult:
    """
    Verify the connection, open a session and run one bandwidth test on it.

    Raises:
        DatabaseConnectionError: if the server cannot be reached (no table
            is created in that case)
        StorageOperationError: if the run fails after connecting
    """
    reporter = reporter or ConsoleReporter()
    provider = provider or PostgresConnectionProvider(test_config.connection)
    bench = test_config.benchmark

    reporter.message("Verifying connection string...")
    await provider.verify()
    reporter.message("Connection successful.")

    reporter.message("Starting bandwidth test...")
    started = time.perf_counter()

    async with provider.connect() as conn:
        storage = PostgresTransientTable(
            conn,
            bench.table_name,
            fetch_size=bench.fetch_size,
            timeout=settings.COMMAND_TIMEOUT_SECONDS,
        )
        runner = BandwidthTestRunner(bench, storage, reporter=reporter)
        result = await runner.run()

    reporter.completed(time.perf_counter() - started)
    return result
