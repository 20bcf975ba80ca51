"""Instrumented HTTP request execution with outcome classification."""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

import aiohttp

from strain._internal.config import DEFAULT_POOL_SIZE, DEFAULT_TIMEOUT
from strain._internal.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

    from strain.metrics.models import HttpTitles
    from strain.metrics.recorder import MetricsRecorder

logger = get_logger("http.executor")

_DRAIN_CHUNK_SIZE = 64 * 1024


class Outcome(Enum):
    """Classification of a single request attempt."""

    SUCCESS = "success"
    APPLICATION_FAIL = "fail"
    TRANSPORT_FAIL = "other_fail"


def classify(status_code: int | None) -> Outcome:
    """Map a response status to an outcome.

    Args:
        status_code: HTTP status, or None when no response was obtained.

    Returns:
        ``TRANSPORT_FAIL`` without a response, ``SUCCESS`` for
        ``200 <= status < 300``, ``APPLICATION_FAIL`` otherwise.
    """
    if status_code is None:
        return Outcome.TRANSPORT_FAIL
    if 200 <= status_code < 300:
        return Outcome.SUCCESS
    return Outcome.APPLICATION_FAIL


@dataclass(frozen=True)
class RequestResult:
    """What one attempt produced.

    Attributes:
        outcome: Success, application failure or transport failure.
        status_code: HTTP status code, 0 if no response was obtained.
        latency_us: Wall-clock time to the response headers (or the
            failure), in microseconds.
        body: Response body in capturing mode, empty otherwise.
        error: ``"ExceptionType: message"`` if the transport failed or the
            body could not be read, None otherwise.
    """

    outcome: Outcome
    status_code: int
    latency_us: int
    body: bytes = b""
    error: str | None = None


async def _capture(response: aiohttp.ClientResponse) -> bytes:
    return await response.read()


async def _discard(response: aiohttp.ClientResponse) -> bytes:
    async for _chunk in response.content.iter_chunked(_DRAIN_CHUNK_SIZE):
        pass
    return b""


def _describe(exc: BaseException) -> str:
    text = str(exc)
    return f"{type(exc).__name__}: {text}" if text else type(exc).__name__


class HttpExecutor:
    """Issues single HTTP requests and reports them to a recorder.

    Wraps one ``aiohttp.ClientSession`` whose connector is shared by every
    worker of a run. Each call records exactly one latency sample and
    exactly one outcome counter increment, whatever happens.

    Use as an async context manager::

        async with HttpExecutor(recorder, titles) as executor:
            result = await executor.get("http://localhost:8080/")
    """

    def __init__(
        self,
        recorder: MetricsRecorder,
        titles: HttpTitles,
        *,
        pool_size: int = DEFAULT_POOL_SIZE,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the executor.

        Args:
            recorder: Recorder with ``titles`` registered.
            titles: Metric titles to notify.
            pool_size: Maximum pooled connections per host.
            timeout: Total per-request timeout in seconds.
        """
        self._recorder = recorder
        self._titles = titles
        self._pool_size = pool_size
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None
        self._counter_for = {
            Outcome.SUCCESS: titles.success,
            Outcome.APPLICATION_FAIL: titles.fail,
            Outcome.TRANSPORT_FAIL: titles.other_fail,
        }

    async def __aenter__(self) -> HttpExecutor:
        connector = aiohttp.TCPConnector(limit=0, limit_per_host=self._pool_size)
        self._session = aiohttp.ClientSession(connector=connector, timeout=self._timeout)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object | None,
    ) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def request(
        self,
        method: str,
        url: str,
        body: bytes | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> RequestResult:
        """Send a request and return the full response body.

        The response is always released, including when reading the body
        fails.
        """
        return await self._send(method, url, body, headers, _capture)

    async def ignore_response(
        self,
        method: str,
        url: str,
        body: bytes | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> RequestResult:
        """Send a request and drain the body without buffering it.

        Use this for traffic generation where the content is irrelevant.
        """
        return await self._send(method, url, body, headers, _discard)

    async def get(self, url: str, headers: Mapping[str, str] | None = None) -> RequestResult:
        return await self.request("GET", url, None, headers)

    async def get_ignore_response(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> RequestResult:
        return await self.ignore_response("GET", url, None, headers)

    async def post(
        self, url: str, body: bytes, headers: Mapping[str, str] | None = None
    ) -> RequestResult:
        return await self.request("POST", url, body, headers)

    async def post_ignore_response(
        self, url: str, body: bytes, headers: Mapping[str, str] | None = None
    ) -> RequestResult:
        return await self.ignore_response("POST", url, body, headers)

    async def put(
        self, url: str, body: bytes, headers: Mapping[str, str] | None = None
    ) -> RequestResult:
        return await self.request("PUT", url, body, headers)

    async def patch(
        self, url: str, body: bytes, headers: Mapping[str, str] | None = None
    ) -> RequestResult:
        return await self.request("PATCH", url, body, headers)

    async def _send(
        self,
        method: str,
        url: str,
        body: bytes | None,
        headers: Mapping[str, str] | None,
        read_body: Callable[[aiohttp.ClientResponse], Awaitable[bytes]],
    ) -> RequestResult:
        """Time one round trip, record it, then consume the body.

        Raises:
            RuntimeError: If used outside of the async context manager.
        """
        if self._session is None:
            msg = "HttpExecutor must be used as an async context manager"
            raise RuntimeError(msg)

        response: aiohttp.ClientResponse | None = None
        error: str | None = None
        begin = time.perf_counter()
        try:
            response = await self._session.request(
                method,
                url,
                data=body,
                headers=dict(headers) if headers else None,
            )
        except (aiohttp.ClientError, TimeoutError) as exc:
            error = _describe(exc)
            logger.debug("%s %s failed: %s", method, url, error)
        finally:
            latency_us = int((time.perf_counter() - begin) * 1_000_000)
            outcome = classify(response.status if response is not None else None)
            self._recorder.notify(self._titles.latency, latency_us)
            self._recorder.notify(self._counter_for[outcome], 1)

        if response is None:
            return RequestResult(outcome=outcome, status_code=0, latency_us=latency_us, error=error)

        payload = b""
        try:
            async with response:
                payload = await read_body(response)
        except (aiohttp.ClientError, TimeoutError) as exc:
            error = _describe(exc)
            logger.debug("%s %s: reading body failed: %s", method, url, error)

        return RequestResult(
            outcome=outcome,
            status_code=response.status,
            latency_us=latency_us,
            body=payload,
            error=error,
        )
