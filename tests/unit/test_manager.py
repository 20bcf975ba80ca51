"""Tests for the worker pool, using an in-memory executor double."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from strain.engine.load_config import LoadConfig
from strain.engine.manager import Manager
from strain.http.executor import Outcome, RequestResult

if TYPE_CHECKING:
    from collections.abc import Mapping


class _FakeExecutor:
    """Records every call and tracks how many are in flight at once."""

    def __init__(self, delay: float = 0.005) -> None:
        self.delay = delay
        self.calls: list[tuple[str, str, str, bytes | None, dict[str, str]]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def request(
        self,
        method: str,
        url: str,
        body: bytes | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> RequestResult:
        return await self._handle("capture", method, url, body, headers)

    async def ignore_response(
        self,
        method: str,
        url: str,
        body: bytes | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> RequestResult:
        return await self._handle("discard", method, url, body, headers)

    async def _handle(
        self,
        mode: str,
        method: str,
        url: str,
        body: bytes | None,
        headers: Mapping[str, str] | None,
    ) -> RequestResult:
        self.calls.append((mode, method, url, body, dict(headers or {})))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1
        return RequestResult(outcome=Outcome.SUCCESS, status_code=200, latency_us=1)


class _FailingExecutor(_FakeExecutor):
    async def _handle(self, *args: object) -> RequestResult:
        await asyncio.sleep(0)
        raise RuntimeError("executor bug")


async def _run_for(manager: Manager, seconds: float) -> None:
    stop = asyncio.Event()
    task = asyncio.create_task(manager.run(stop))
    await asyncio.sleep(seconds)
    stop.set()
    await task


class TestWorkerCount:
    @pytest.mark.parametrize("clients", [1, 3, 16])
    async def test_exactly_n_loops_live(self, clients: int):
        executor = _FakeExecutor(delay=0.01)
        manager = Manager(executor, LoadConfig(url="http://test/ok", clients=clients))
        stop = asyncio.Event()

        task = asyncio.create_task(manager.run(stop))
        await asyncio.sleep(0.05)

        assert manager.active_workers == clients
        assert executor.max_in_flight == clients

        stop.set()
        await task

        assert manager.active_workers == 0
        assert executor.max_in_flight == clients


class TestCancellation:
    async def test_no_requests_after_stop(self):
        executor = _FakeExecutor(delay=0.01)
        manager = Manager(executor, LoadConfig(url="http://test/ok", clients=4))
        stop = asyncio.Event()

        task = asyncio.create_task(manager.run(stop))
        await asyncio.sleep(0.05)
        stop.set()
        issued_at_stop = len(executor.calls)
        await task

        # In-flight calls finish, but no loop starts another one
        assert len(executor.calls) == issued_at_stop
        assert manager.requests_issued == issued_at_stop
        assert executor.in_flight == 0

    async def test_stop_before_run_issues_nothing(self):
        executor = _FakeExecutor()
        manager = Manager(executor, LoadConfig(url="http://test/ok", clients=3))
        stop = asyncio.Event()
        stop.set()

        await manager.run(stop)

        assert executor.calls == []

    async def test_worker_error_cancels_siblings_and_propagates(self):
        executor = _FailingExecutor()
        manager = Manager(executor, LoadConfig(url="http://test/ok", clients=3))

        with pytest.raises(RuntimeError, match="executor bug"):
            await manager.run(asyncio.Event())

        assert manager.active_workers == 0


class TestRequestShape:
    async def test_get_sends_no_body(self):
        executor = _FakeExecutor()
        config = LoadConfig(
            url="http://test/ok",
            method="GET",
            clients=2,
            headers={"X-Trace": "1"},
            post_data={"never": "sent"},
        )
        await _run_for(Manager(executor, config), 0.03)

        assert executor.calls
        for _mode, method, url, body, headers in executor.calls:
            assert method == "GET"
            assert url == "http://test/ok"
            assert body is None
            assert headers == {"X-Trace": "1"}

    async def test_non_get_sends_precomputed_body(self):
        executor = _FakeExecutor()
        config = LoadConfig(
            url="http://test/items",
            method="POST",
            clients=2,
            post_data={"name": "widget"},
        )
        manager = Manager(executor, config)
        await _run_for(manager, 0.03)

        bodies = {call[3] for call in executor.calls}
        assert bodies == {b'{"name": "widget"}'}
        # Same bytes object every time: serialized once, not per request
        first_body = executor.calls[0][3]
        assert all(call[3] is first_body for call in executor.calls)

    async def test_discarding_mode_by_default(self):
        executor = _FakeExecutor()
        await _run_for(Manager(executor, LoadConfig(url="http://test/ok")), 0.02)
        assert {call[0] for call in executor.calls} == {"discard"}

    async def test_capturing_mode_on_request(self):
        executor = _FakeExecutor()
        manager = Manager(executor, LoadConfig(url="http://test/ok"), capture_body=True)
        await _run_for(manager, 0.02)
        assert {call[0] for call in executor.calls} == {"capture"}
