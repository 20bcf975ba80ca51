"""Thread-safe time series of run statistics snapshots."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from strain.metrics.models import RunStats


class MetricStore:
    """Ordered ``RunStats`` snapshots for one run.

    The sampler thread appends while the event loop thread (or the CLI)
    reads, so a ``threading.Lock`` guards the list.
    """

    def __init__(self) -> None:
        self._snapshots: list[RunStats] = []
        self._lock = threading.Lock()

    def append(self, snapshot: RunStats) -> None:
        with self._lock:
            self._snapshots.append(snapshot)

    def get_all(self) -> list[RunStats]:
        """Return a copy of all snapshots in chronological order."""
        with self._lock:
            return list(self._snapshots)

    def get_latest(self) -> RunStats | None:
        """Return the newest snapshot, or None if nothing was sampled yet."""
        with self._lock:
            if not self._snapshots:
                return None
            return self._snapshots[-1]

    def __len__(self) -> int:
        with self._lock:
            return len(self._snapshots)
