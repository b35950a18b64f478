"""
Console report formatting.

Everything the user sees on stdout: the configuration echo, one line per
milestone, and the end-of-run summary. Diagnostics go through logging instead.
"""

from __future__ import annotations

from typing import Callable, List

from sqlbandwidth.core.types import Direction, MilestoneSample
from sqlbandwidth.models.test_config import BandwidthTestConfig
from sqlbandwidth.models.test_result import RunResult

_PROGRESS_LABELS = {
    Direction.UPLOAD: "Upload",
    Direction.DOWNLOAD: "Download",
}


def format_config(config: BandwidthTestConfig) -> List[str]:
    """Configuration echo. The password is never printed."""
    conn = config.connection
    bench = config.benchmark
    return [
        "Current Configuration:",
        f"Server: {conn.server}",
        f"Database: {conn.database}",
        f"Integrated Security: {conn.integrated_security}",
        f"Target MB: {bench.target_mb}",
        f"Row Size: {bench.row_size}",
        f"Batch Size: {bench.batch_size}",
        f"Bytes Per Char: {bench.bytes_per_char}",
        "",
    ]


def format_progress(direction: Direction, sample: MilestoneSample) -> str:
    label = _PROGRESS_LABELS[Direction(direction)]
    return (
        f"{label} Progress: {sample.percent:.0f}% ({sample.threshold_mb} MB) - "
        f"Bandwidth: {sample.rate_mbps:.2f} Mbps"
    )


def format_summary(result: RunResult) -> List[str]:
    verdict = "successful" if result.verified else "failed"
    return [
        f"Inserted {result.row_count} rows totaling {result.mb_read:.2f} MB "
        f"({result.megabits_read:.2f} Mb).",
        f"Target was {result.target_mb} MB.",
        f"Upstream Elapsed Time: {result.upload_elapsed_seconds:.2f} seconds.",
        f"Upstream Bandwidth: {result.upload_mb_per_sec:.2f} MB/s "
        f"({result.upload_mbps:.2f} Mbps)",
        f"Downstream Elapsed Time: {result.download_elapsed_seconds:.2f} seconds.",
        f"Downstream Bandwidth: {result.download_mb_per_sec:.2f} MB/s "
        f"({result.download_mbps:.2f} Mbps)",
        f"Data verification {verdict}.",
    ]


class ConsoleReporter:
    """Writes report lines through `write` (print by default)."""

    def __init__(self, write: Callable[[str], None] = print):
        self.write = write

    def config(self, config: BandwidthTestConfig) -> None:
        for line in format_config(config):
            self.write(line)

    def message(self, text: str) -> None:
        self.write(text)

    def progress(self, direction: Direction, sample: MilestoneSample) -> None:
        self.write(format_progress(direction, sample))

    def summary(self, result: RunResult) -> None:
        for line in format_summary(result):
            self.write(line)

    def completed(self, total_seconds: float) -> None:
        self.write(f"Bandwidth test completed in {total_seconds:.2f} seconds.")
