"""
Milestone tracking.

Turns a growing byte count into "percent complete + instantaneous rate"
observations at fixed steps of the target (20 milestones = every 5%).
Used once per direction; instances never share state.
"""

from __future__ import annotations

from typing import Optional

from sqlbandwidth.core.types import MilestoneSample

DEFAULT_MILESTONE_COUNT = 20


class MilestoneTracker:
    """
    Tracks cumulative bytes against equally spaced thresholds.

    `observe` emits at most one sample per call. A single step that jumps past
    several thresholds only reports the first of them; the remaining ones are
    reported by later calls as long as the byte count stays ahead.
    """

    def __init__(self, target_bytes: int, milestone_count: int = DEFAULT_MILESTONE_COUNT):
        if target_bytes < 1:
            raise ValueError("target_bytes must be >= 1")
        if milestone_count < 1:
            raise ValueError("milestone_count must be >= 1")

        self.target_bytes = target_bytes
        self.milestone_count = milestone_count
        # Floor at one byte so a tiny target cannot pin the threshold at zero.
        self.increment_bytes = max(target_bytes // milestone_count, 1)
        self.next_threshold = self.increment_bytes
        self.last_sample_elapsed = 0.0
        self.cumulative_bytes = 0
        self.samples: list[MilestoneSample] = []

    @property
    def finished(self) -> bool:
        """True once no further threshold can be reported."""
        # The count cap only matters when the remainder of the integer
        # division spans whole increments (targets under 400 bytes).
        return (
            self.next_threshold > self.target_bytes
            or len(self.samples) >= self.milestone_count
        )

    def observe(
        self, cumulative_bytes: int, elapsed_seconds: float
    ) -> Optional[MilestoneSample]:
        """
        Record progress and return a sample if a threshold was crossed.

        Args:
            cumulative_bytes: Bytes transferred since the phase started
            elapsed_seconds: Seconds since the phase started

        Returns:
            The sample for the crossed threshold, or None
        """
        self.cumulative_bytes = cumulative_bytes

        if cumulative_bytes < self.next_threshold or self.finished:
            return None

        interval = elapsed_seconds - self.last_sample_elapsed
        rate = (self.increment_bytes * 8) / interval if interval > 0 else 0.0
        sample = MilestoneSample(
            percent=self.next_threshold / self.target_bytes * 100,
            threshold_bytes=self.next_threshold,
            interval_seconds=interval,
            rate_bits_per_sec=rate,
        )

        self.last_sample_elapsed = elapsed_seconds
        self.next_threshold += self.increment_bytes
        self.samples.append(sample)
        return sample
