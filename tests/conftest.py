"""Shared test fixtures for the Strain test suite."""

from __future__ import annotations

import asyncio
import socket
import threading
from typing import TYPE_CHECKING

import pytest
from aiohttp import web

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator


# =============================================================================
# Pytest configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-apply markers based on test directory structure."""
    for item in items:
        test_path = str(item.fspath)
        if "/unit/" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
        elif "/e2e/" in test_path:
            item.add_marker(pytest.mark.e2e)


# =============================================================================
# Network utilities
# =============================================================================


def _get_free_port() -> int:
    """Find an available port on localhost."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


# =============================================================================
# Target server handlers
# =============================================================================


async def _ok_handler(request: web.Request) -> web.Response:
    """Always 200."""
    return web.Response(text="ok")


async def _status_handler(request: web.Request) -> web.Response:
    """Respond with the status code in the path: /status/503."""
    status = int(request.match_info["code"])
    return web.Response(status=status, text=f"status {status}")


async def _echo_handler(request: web.Request) -> web.Response:
    """Echo back method, headers and body as JSON."""
    body = await request.read()
    return web.json_response(
        {
            "method": request.method,
            "headers": dict(request.headers),
            "body": body.decode("utf-8", errors="replace"),
            "body_length": len(body),
        }
    )


async def _delay_handler(request: web.Request) -> web.Response:
    """Respond after a configurable delay (query param: ?delay=0.5)."""
    delay = float(request.query.get("delay", "0.1"))
    await asyncio.sleep(delay)
    return web.Response(text="late")


async def _bytes_handler(request: web.Request) -> web.Response:
    """Return ``size`` bytes of payload (query param: ?size=1048576)."""
    size = int(request.query.get("size", "1024"))
    return web.Response(body=b"x" * size, content_type="application/octet-stream")


def _create_target_app() -> web.Application:
    app = web.Application()
    app.router.add_get("/ok", _ok_handler)
    app.router.add_route("*", "/status/{code}", _status_handler)
    app.router.add_route("*", "/echo", _echo_handler)
    app.router.add_get("/delay", _delay_handler)
    app.router.add_get("/bytes", _bytes_handler)
    return app


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
async def target_server() -> AsyncIterator[str]:
    """Aiohttp target server on the test's event loop.

    Returns the base URL (e.g., 'http://127.0.0.1:54321').
    """
    runner = web.AppRunner(_create_target_app())
    await runner.setup()
    port = _get_free_port()
    site = web.TCPSite(runner, "127.0.0.1", port)
    await site.start()
    yield f"http://127.0.0.1:{port}"
    await runner.cleanup()


@pytest.fixture
def unreachable_url() -> str:
    """A URL on a local port nothing listens on (connection refused)."""
    return f"http://127.0.0.1:{_get_free_port()}/nothing"


@pytest.fixture
def sync_target_server() -> Iterator[str]:
    """Target server running in a background thread for blocking callers.

    ``run_load`` and the CLI start their own event loop, so the server
    cannot share the test's loop.
    """
    port = _get_free_port()
    started = threading.Event()
    loop_holder: list[asyncio.AbstractEventLoop] = []

    def _thread_target() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        runner = web.AppRunner(_create_target_app())
        loop.run_until_complete(runner.setup())
        site = web.TCPSite(runner, "127.0.0.1", port)
        loop.run_until_complete(site.start())
        loop_holder.append(loop)
        started.set()
        loop.run_forever()
        loop.run_until_complete(runner.cleanup())
        loop.close()

    thread = threading.Thread(target=_thread_target, daemon=True)
    thread.start()
    started.wait(timeout=5.0)

    yield f"http://127.0.0.1:{port}"

    if loop_holder:
        loop_holder[0].call_soon_threadsafe(loop_holder[0].stop)
    thread.join(timeout=5.0)
