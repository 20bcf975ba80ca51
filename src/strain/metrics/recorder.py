"""Metrics recorder contract and its in-memory implementation.

The recorder is the only mutable state shared between workers. Workers
call :meth:`MetricsRecorder.notify` concurrently; implementations must
serialize updates internally so callers never lock.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from strain._internal.errors import MetricsError
from strain._internal.logging import get_logger
from strain.metrics.histogram import LatencyHistogram
from strain.metrics.models import LatencySummary, MetricKind, RunStats

if TYPE_CHECKING:
    from collections.abc import Sequence

    from strain.metrics.models import HttpTitles, MetricGroup

logger = get_logger("metrics.recorder")


@runtime_checkable
class MetricsRecorder(Protocol):
    """Sink for run metrics.

    ``register`` is called exactly once per run, before any ``notify``.
    """

    def register(self, groups: Sequence[MetricGroup], run_id: str) -> None: ...

    def notify(self, name: str, value: int) -> None: ...


class InMemoryRecorder:
    """Thread-safe recorder keeping counters and HDR histograms in memory.

    One instance holds the namespace of one run. A ``threading.Lock``
    guards every update and read, so it may be shared by asyncio tasks
    and by the sampler thread alike.

    Attributes:
        run_id: Identifier passed to :meth:`register`, or None before it.
        groups: Registered metric groups.
    """

    def __init__(self) -> None:
        self.run_id: str | None = None
        self.groups: tuple[MetricGroup, ...] = ()
        self._counters: dict[str, int] = {}
        self._histograms: dict[str, LatencyHistogram] = {}
        self._lock = threading.Lock()

    def register(self, groups: Sequence[MetricGroup], run_id: str) -> None:
        """Declare the metric namespace for ``run_id``.

        Args:
            groups: Metric groups to register.
            run_id: Run identifier owning the namespace.

        Raises:
            MetricsError: If a run is already registered, the run id is
                empty, or two metrics share a title.
        """
        if not run_id:
            msg = "run id must be a non-empty string"
            raise MetricsError(msg)

        counters: dict[str, int] = {}
        histograms: dict[str, LatencyHistogram] = {}
        for group in groups:
            for metric in group.iter_metrics():
                if metric.title in counters or metric.title in histograms:
                    msg = f"Duplicate metric title {metric.title!r} in run {run_id!r}"
                    raise MetricsError(msg)
                if metric.kind is MetricKind.COUNTER:
                    counters[metric.title] = 0
                else:
                    histograms[metric.title] = LatencyHistogram()

        with self._lock:
            if self.run_id is not None:
                msg = f"Recorder already holds run {self.run_id!r}, cannot register {run_id!r}"
                raise MetricsError(msg)
            self.run_id = run_id
            self.groups = tuple(groups)
            self._counters = counters
            self._histograms = histograms

        logger.debug(
            "Registered %d counters and %d histograms for run %s",
            len(counters),
            len(histograms),
            run_id,
        )

    def notify(self, name: str, value: int) -> None:
        """Add ``value`` to a counter or record it in a histogram.

        Raises:
            MetricsError: If ``name`` was not registered.
        """
        with self._lock:
            if name in self._counters:
                self._counters[name] += value
                return
            histogram = self._histograms.get(name)
            if histogram is None:
                msg = f"Metric {name!r} is not registered"
                raise MetricsError(msg)
            histogram.record(value)

    def counter(self, name: str) -> int:
        """Return the running total of counter ``name``."""
        with self._lock:
            try:
                return self._counters[name]
            except KeyError:
                msg = f"Counter {name!r} is not registered"
                raise MetricsError(msg) from None

    def histogram(self, name: str) -> LatencySummary:
        """Return the distribution summary of histogram ``name``."""
        with self._lock:
            histogram = self._histograms.get(name)
            if histogram is None:
                msg = f"Histogram {name!r} is not registered"
                raise MetricsError(msg)
            return histogram.summary()

    def snapshot(self, elapsed_seconds: float, titles: HttpTitles) -> RunStats:
        """Read the four HTTP metrics atomically into a :class:`RunStats`.

        Args:
            elapsed_seconds: Seconds since the run started.
            titles: Titles the run registered its metrics under.
        """
        with self._lock:
            histogram = self._histograms.get(titles.latency)
            return RunStats(
                run_id=self.run_id or "",
                elapsed_seconds=elapsed_seconds,
                success=self._counters.get(titles.success, 0),
                fail=self._counters.get(titles.fail, 0),
                other_fail=self._counters.get(titles.other_fail, 0),
                latency=histogram.summary() if histogram is not None else LatencySummary(),
            )


@runtime_checkable
class ReadableRecorder(MetricsRecorder, Protocol):
    """A recorder that can also report its current totals."""

    def snapshot(self, elapsed_seconds: float, titles: HttpTitles) -> RunStats: ...
