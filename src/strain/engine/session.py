"""Blocking entry point: event loop, signal handling and run duration."""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
import threading
from typing import TYPE_CHECKING

from strain._internal.logging import get_logger, setup_logging
from strain.engine.runner import ScenarioRunner

if TYPE_CHECKING:
    from collections.abc import Callable

    from strain._internal.config import EngineSettings
    from strain.engine.load_config import LoadConfig
    from strain.engine.runner import RunResult
    from strain.metrics.models import RunStats
    from strain.metrics.recorder import MetricsRecorder

logger = get_logger("engine.session")


def _loop_factory() -> Callable[[], asyncio.AbstractEventLoop] | None:
    """Return uvloop's loop factory if it is installed.

    Falls back to the default asyncio event loop on Windows or if uvloop
    is not installed.
    """
    if sys.platform == "win32":
        return None

    try:
        import uvloop
    except ImportError:
        logger.debug("uvloop not available, using default asyncio event loop")
        return None

    logger.debug("Using uvloop event loop")
    return uvloop.new_event_loop


def run_load(
    config: LoadConfig,
    duration_seconds: float | None = None,
    *,
    run_id: str | None = None,
    recorder: MetricsRecorder | None = None,
    settings: EngineSettings | None = None,
    capture_body: bool = False,
    on_snapshot: Callable[[RunStats], None] | None = None,
    log_level: int = logging.INFO,
    json_logs: bool = False,
) -> RunResult:
    """Run ``config`` in a fresh event loop and block until it ends.

    The run ends when ``duration_seconds`` elapses (if given) or when the
    process receives SIGINT or SIGTERM.

    Args:
        config: Validated load configuration.
        duration_seconds: Stop automatically after this many seconds.
        run_id: Run identifier; generated if omitted.
        recorder: Metrics sink; a fresh in-memory recorder by default.
        settings: Engine settings.
        capture_body: Read response bodies instead of discarding them.
        on_snapshot: Callback for each periodic snapshot.
        log_level: Logging level.
        json_logs: Emit JSON log lines.

    Returns:
        The run result.

    Raises:
        MetricsError: If the metric namespace cannot be registered.
        EngineError: If the run fails unexpectedly.
    """
    setup_logging(level=log_level, json_format=json_logs)

    return asyncio.run(
        _run(
            config,
            duration_seconds,
            run_id=run_id,
            recorder=recorder,
            settings=settings,
            capture_body=capture_body,
            on_snapshot=on_snapshot,
        ),
        loop_factory=_loop_factory(),
    )


async def _run(
    config: LoadConfig,
    duration_seconds: float | None,
    *,
    run_id: str | None,
    recorder: MetricsRecorder | None,
    settings: EngineSettings | None,
    capture_body: bool,
    on_snapshot: Callable[[RunStats], None] | None,
) -> RunResult:
    runner = ScenarioRunner(
        run_id,
        recorder=recorder,
        settings=settings,
        capture_body=capture_body,
        on_snapshot=on_snapshot,
    )
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()

    timer: asyncio.TimerHandle | None = None
    if duration_seconds is not None:
        timer = loop.call_later(duration_seconds, stop.set)

    handle_signals = threading.current_thread() is threading.main_thread()
    if handle_signals:
        _install_signal_handlers(loop, stop)
    try:
        return await runner.run(config, stop)
    finally:
        if timer is not None:
            timer.cancel()
        if handle_signals:
            _remove_signal_handlers(loop)


def _install_signal_handlers(loop: asyncio.AbstractEventLoop, stop: asyncio.Event) -> None:
    """Make SIGINT and SIGTERM set the stop event."""

    def _signal_handler() -> None:
        logger.info("Signal received, stopping run")
        stop.set()

    if sys.platform != "win32":
        loop.add_signal_handler(signal.SIGINT, _signal_handler)
        loop.add_signal_handler(signal.SIGTERM, _signal_handler)
    else:
        # Windows doesn't support add_signal_handler
        signal.signal(signal.SIGINT, lambda _s, _f: loop.call_soon_threadsafe(_signal_handler))
        signal.signal(signal.SIGTERM, lambda _s, _f: loop.call_soon_threadsafe(_signal_handler))


def _remove_signal_handlers(loop: asyncio.AbstractEventLoop) -> None:
    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)
    else:
        signal.signal(signal.SIGINT, signal.default_int_handler)
        signal.signal(signal.SIGTERM, signal.SIG_DFL)
