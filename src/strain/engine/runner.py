"""Public entry point for running one load configuration."""

from __future__ import annotations

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING

from strain._internal.config import EngineSettings
from strain._internal.errors import EngineError
from strain._internal.logging import get_logger
from strain.engine.manager import Manager
from strain.http.executor import HttpExecutor
from strain.metrics.models import Graph, HttpTitles, Metric, MetricGroup, MetricKind
from strain.metrics.recorder import InMemoryRecorder, ReadableRecorder
from strain.metrics.sampler import MetricSampler
from strain.metrics.store import MetricStore

if TYPE_CHECKING:
    from collections.abc import Callable

    from strain.engine.load_config import LoadConfig
    from strain.metrics.models import RunStats
    from strain.metrics.recorder import MetricsRecorder

logger = get_logger("engine.runner")

GROUP_PREFIX = "HTTP"


def http_metric_group(run_id: str, titles: HttpTitles) -> MetricGroup:
    """Build the namespace every HTTP run registers.

    Two graphs: "HTTP Response" with the success, failure and other-failure
    counters, and "Latency" with the microsecond latency histogram.
    """
    return MetricGroup(
        name=f"{GROUP_PREFIX} ({run_id})",
        graphs=(
            Graph(
                title="HTTP Response",
                unit="N",
                metrics=(
                    Metric(titles.success, MetricKind.COUNTER),
                    Metric(titles.fail, MetricKind.COUNTER),
                    Metric(titles.other_fail, MetricKind.COUNTER),
                ),
            ),
            Graph(
                title="Latency",
                unit="Microsecond",
                metrics=(Metric(titles.latency, MetricKind.HISTOGRAM),),
            ),
        ),
    )


class RunnerState(Enum):
    """State machine for a scenario runner."""

    CREATED = auto()
    RUNNING = auto()
    COMPLETED = auto()
    CANCELLED = auto()
    FAILED = auto()


@dataclass
class RunResult:
    """Complete result of a run.

    Attributes:
        run_id: Identifier the metrics were registered under.
        state: Terminal runner state.
        config: Configuration that was driven.
        group: Registered metric namespace.
        started_at: Wall-clock (epoch) time the run started.
        duration_seconds: Time from start until every worker had exited.
        snapshots: Periodic snapshots, the final one included.
        final_stats: Totals at the end of the run, None when the recorder
            cannot be read back.
    """

    run_id: str
    state: RunnerState
    config: LoadConfig
    group: MetricGroup
    started_at: float
    duration_seconds: float
    snapshots: list[RunStats] = field(default_factory=list)
    final_stats: RunStats | None = None


class ScenarioRunner:
    """Binds a run's metric namespace to a pool of request loops.

    Metrics are registered when the runner is created, so a registration
    failure surfaces before any request is sent. :meth:`run` can be called
    once.

    State machine: CREATED -> RUNNING -> COMPLETED | CANCELLED
                                      -> FAILED (on error)

    Attributes:
        run_id: Run identifier.
        titles: Titles of the four metrics this run owns.
        group: Registered metric namespace.
        recorder: Recorder receiving the run's notifications.
        start_time: Wall-clock time :meth:`run` started, None before.
    """

    def __init__(
        self,
        run_id: str | None = None,
        *,
        recorder: MetricsRecorder | None = None,
        settings: EngineSettings | None = None,
        capture_body: bool = False,
        on_snapshot: Callable[[RunStats], None] | None = None,
    ) -> None:
        """Initialize the runner and register its metrics.

        Args:
            run_id: Run identifier. A random hex id is generated if omitted.
            recorder: Metrics sink. A fresh ``InMemoryRecorder`` by default.
            settings: Pool size, timeout and sampling interval.
            capture_body: Read response bodies instead of discarding them.
            on_snapshot: Callback for each periodic snapshot; only used when
                the recorder can be read back.

        Raises:
            MetricsError: If the namespace cannot be registered.
        """
        self.run_id = run_id if run_id is not None else uuid.uuid4().hex
        self.titles = HttpTitles()
        self.group = http_metric_group(self.run_id, self.titles)
        self.recorder: MetricsRecorder = recorder if recorder is not None else InMemoryRecorder()
        self.start_time: float | None = None

        self._settings = settings or EngineSettings()
        self._capture_body = capture_body
        self._on_snapshot = on_snapshot
        self._state = RunnerState.CREATED
        self._store = MetricStore()

        self.recorder.register([self.group], self.run_id)

    @property
    def state(self) -> RunnerState:
        """Return the current runner state."""
        return self._state

    def stats(self) -> RunStats | None:
        """Current totals, or None if the recorder cannot be read back."""
        if not isinstance(self.recorder, ReadableRecorder):
            return None
        elapsed = time.time() - self.start_time if self.start_time is not None else 0.0
        return self.recorder.snapshot(elapsed, self.titles)

    async def run(self, config: LoadConfig, stop: asyncio.Event) -> RunResult:
        """Drive ``config`` until ``stop`` is set.

        Starts the workers and waits for whichever comes first: the
        workers finishing on their own, or ``stop`` being set. Either way
        every worker is joined before this returns, so no request is in
        flight and every attempt has been recorded.

        Args:
            config: Validated load configuration.
            stop: Cancellation signal. Setting it ends the run.

        Returns:
            The run result.

        Raises:
            EngineError: If the runner was already used, or the workers
                failed unexpectedly.
        """
        if self._state is not RunnerState.CREATED:
            msg = f"Runner {self.run_id} has already been started"
            raise EngineError(msg)

        self.start_time = time.time()
        start_mono = time.monotonic()
        self._state = RunnerState.RUNNING
        logger.info(
            "Starting run %s: %s %s with %d clients",
            self.run_id,
            config.method,
            config.url,
            config.clients,
            extra={"run_id": self.run_id},
        )

        sampler: MetricSampler | None = None
        if isinstance(self.recorder, ReadableRecorder):
            sampler = MetricSampler(
                self.recorder,
                self.titles,
                self._store,
                on_snapshot=self._on_snapshot,
                tick_interval=self._settings.tick_interval,
            )
            sampler.start(start_mono)

        try:
            async with HttpExecutor(
                self.recorder,
                self.titles,
                pool_size=self._settings.connection_pool_size,
                timeout=self._settings.request_timeout,
            ) as executor:
                manager = Manager(executor, config, capture_body=self._capture_body)
                await self._race(manager, stop)
        except EngineError:
            self._state = RunnerState.FAILED
            raise
        except Exception as exc:
            self._state = RunnerState.FAILED
            logger.exception("Run %s failed", self.run_id, extra={"run_id": self.run_id})
            msg = f"Run {self.run_id} failed"
            raise EngineError(msg) from exc
        finally:
            if sampler is not None:
                sampler.stop()

        duration = time.monotonic() - start_mono
        final_stats: RunStats | None = None
        if sampler is not None:
            final_stats = sampler.sample()
            logger.info(
                "Run %s finished: duration=%.1fs, ok=%d, fail=%d, other_fail=%d, p95=%.0fus",
                self.run_id,
                duration,
                final_stats.success,
                final_stats.fail,
                final_stats.other_fail,
                final_stats.latency.p95,
                extra={"run_id": self.run_id},
            )

        return RunResult(
            run_id=self.run_id,
            state=self._state,
            config=config,
            group=self.group,
            started_at=self.start_time,
            duration_seconds=duration,
            snapshots=self._store.get_all(),
            final_stats=final_stats,
        )

    async def _race(self, manager: Manager, stop: asyncio.Event) -> None:
        manager_task = asyncio.create_task(manager.run(stop), name=f"strain-manager-{self.run_id}")
        stop_task = asyncio.create_task(stop.wait(), name=f"strain-stop-{self.run_id}")
        try:
            done, _pending = await asyncio.wait(
                {manager_task, stop_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
            if stop_task in done:
                self._state = RunnerState.CANCELLED
                logger.info("Job completed", extra={"run_id": self.run_id})
            elif manager_task.exception() is None:
                self._state = RunnerState.COMPLETED
                logger.info("All workers finished", extra={"run_id": self.run_id})

            # Join the workers on both branches; re-raises a worker failure
            await manager_task
        finally:
            stop_task.cancel()
            if not manager_task.done():
                # The runner itself is being cancelled: take the workers down too
                stop.set()
                manager_task.cancel()
                await asyncio.gather(manager_task, return_exceptions=True)
