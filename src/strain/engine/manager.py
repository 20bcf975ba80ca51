"""Fixed-size pool of request loops driving one load configuration."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Protocol

from strain._internal.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping

    from strain.engine.load_config import LoadConfig
    from strain.http.executor import RequestResult

logger = get_logger("engine.manager")


class RequestExecutor(Protocol):
    """The part of :class:`~strain.http.executor.HttpExecutor` the pool uses."""

    async def request(
        self,
        method: str,
        url: str,
        body: bytes | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> RequestResult: ...

    async def ignore_response(
        self,
        method: str,
        url: str,
        body: bytes | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> RequestResult: ...


class Manager:
    """Runs ``config.clients`` request loops until the stop event is set.

    Headers and the serialized body are computed once, when the manager is
    created. Each loop checks ``stop.is_set()`` before every request and
    issues the next request as soon as the previous one finishes. An
    in-flight request is never interrupted; it completes or times out and
    is recorded like any other.

    Attributes:
        config: The load configuration being driven.
    """

    def __init__(
        self,
        executor: RequestExecutor,
        config: LoadConfig,
        *,
        capture_body: bool = False,
    ) -> None:
        """Initialize the manager.

        Args:
            executor: Request executor shared by all loops.
            config: Validated load configuration.
            capture_body: Read response bodies into memory instead of
                draining them.
        """
        self.config = config
        self._executor = executor
        self._headers = dict(config.headers)
        self._body: bytes | None = config.body() if config.sends_body else None
        self._send = executor.request if capture_body else executor.ignore_response
        self._active = 0
        self._requests_issued = 0

    @property
    def active_workers(self) -> int:
        """Number of loops currently running."""
        return self._active

    @property
    def requests_issued(self) -> int:
        """Requests started by all loops so far."""
        return self._requests_issued

    async def run(self, stop: asyncio.Event) -> None:
        """Spawn every loop and return once all of them have exited.

        Args:
            stop: Cancellation signal shared by all loops.

        Raises:
            Exception: The first unexpected error raised by a loop. The
                remaining loops are cancelled and joined before it
                propagates.
        """
        clients = self.config.clients
        logger.debug("Spawning %d workers for %s %s", clients, self.config.method, self.config.url)

        tasks = [
            asyncio.create_task(self._worker(worker_id, stop), name=f"strain-worker-{worker_id}")
            for worker_id in range(clients)
        ]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        logger.debug("All %d workers exited", clients)

    async def _worker(self, worker_id: int, stop: asyncio.Event) -> None:
        method = self.config.method
        url = self.config.url
        body = self._body
        headers = self._headers
        send = self._send

        self._active += 1
        try:
            while not stop.is_set():
                self._requests_issued += 1
                await send(method, url, body, headers)
        finally:
            self._active -= 1
            logger.debug("Worker %d stopped", worker_id)
