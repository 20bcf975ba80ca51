"""Periodic sampling of a running recorder.

The ``MetricSampler`` runs a daemon thread that reads the recorder's
totals every tick and appends the resulting ``RunStats`` to a
``MetricStore``. Sampling never touches the workers; it only takes the
recorder's lock for the duration of one read.
"""

from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING

from strain._internal.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

    from strain.metrics.models import HttpTitles, RunStats
    from strain.metrics.recorder import ReadableRecorder
    from strain.metrics.store import MetricStore

logger = get_logger("metrics.sampler")


class MetricSampler:
    """Background thread turning recorder totals into a time series.

    Attributes:
        tick_interval: Seconds between snapshots.
    """

    def __init__(
        self,
        recorder: ReadableRecorder,
        titles: HttpTitles,
        store: MetricStore,
        *,
        on_snapshot: Callable[[RunStats], None] | None = None,
        tick_interval: float = 1.0,
    ) -> None:
        """Initialize the sampler.

        Args:
            recorder: Recorder holding the run's metrics.
            titles: Titles of the run's HTTP metrics.
            store: Store receiving each snapshot.
            on_snapshot: Optional callback invoked with each snapshot, from
                the sampler thread.
            tick_interval: Seconds between snapshots.
        """
        self._recorder = recorder
        self._titles = titles
        self._store = store
        self._on_snapshot = on_snapshot
        self.tick_interval = tick_interval

        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._start_time: float = 0.0

    def start(self, start_time: float | None = None) -> None:
        """Start sampling.

        Args:
            start_time: Monotonic time the run started; defaults to now.
        """
        self._start_time = time.monotonic() if start_time is None else start_time
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            name="strain-sampler",
            daemon=True,
        )
        self._thread.start()
        logger.debug("Sampler thread started")

    def stop(self) -> None:
        """Stop the thread and wait for it to exit."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5.0)
            self._thread = None
        logger.debug("Sampler thread stopped")

    def sample(self) -> RunStats:
        """Take one snapshot now and store it."""
        elapsed = time.monotonic() - self._start_time
        snapshot = self._recorder.snapshot(elapsed, self._titles)
        self._store.append(snapshot)
        if self._on_snapshot is not None:
            self._on_snapshot(snapshot)
        return snapshot

    def _run_loop(self) -> None:
        while not self._stop_event.wait(timeout=self.tick_interval):
            try:
                self.sample()
            except Exception:
                logger.exception("Sampling failed")
