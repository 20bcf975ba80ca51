"""HDR histogram wrapper for latency samples.

Samples are integer microseconds, which is what the request executor
measures and what the HDR histogram stores natively.
"""

from __future__ import annotations

from hdrh.histogram import HdrHistogram  # type: ignore[import-untyped]

from strain.metrics.models import LatencySummary

# Range: 1 microsecond to 60 seconds
_LOWEST_TRACKABLE_US = 1
_HIGHEST_TRACKABLE_US = 60_000_000
_SIGNIFICANT_DIGITS = 3


class LatencyHistogram:
    """Microsecond latency distribution backed by ``HdrHistogram``.

    Not thread-safe on its own; :class:`~strain.metrics.recorder.InMemoryRecorder`
    serializes access to it.

    Attributes:
        lowest_us: Lowest trackable value in microseconds.
        highest_us: Highest trackable value in microseconds.
    """

    def __init__(
        self,
        lowest_us: int = _LOWEST_TRACKABLE_US,
        highest_us: int = _HIGHEST_TRACKABLE_US,
        significant_digits: int = _SIGNIFICANT_DIGITS,
    ) -> None:
        self.lowest_us = lowest_us
        self.highest_us = highest_us
        self._histogram: HdrHistogram = HdrHistogram(  # type: ignore[no-any-unimported]
            lowest_us, highest_us, significant_digits
        )

    def record(self, value_us: int) -> bool:
        """Record one sample.

        Values outside ``[lowest_us, highest_us]`` are clamped so that every
        sample is counted, including sub-microsecond local failures.

        Args:
            value_us: Latency in microseconds.

        Returns:
            True if the value was recorded.
        """
        clamped = max(self.lowest_us, min(int(value_us), self.highest_us))
        return bool(self._histogram.record_value(clamped))

    @property
    def total_count(self) -> int:
        return int(self._histogram.total_count)

    def percentile(self, percentile: float) -> float:
        """Value at ``percentile`` (0-100) in microseconds, 0.0 when empty."""
        if self._histogram.total_count == 0:
            return 0.0
        return float(self._histogram.get_value_at_percentile(percentile))

    def summary(self) -> LatencySummary:
        """Return count, extremes, mean and the reported percentiles."""
        if self._histogram.total_count == 0:
            return LatencySummary()
        return LatencySummary(
            count=self.total_count,
            min=float(self._histogram.get_min_value()),
            max=float(self._histogram.get_max_value()),
            mean=float(self._histogram.get_mean_value()),
            p50=self.percentile(50.0),
            p90=self.percentile(90.0),
            p95=self.percentile(95.0),
            p99=self.percentile(99.0),
        )

