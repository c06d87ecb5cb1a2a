"""Shared test fixtures: in-memory WebSocket transport and client factories."""

import asyncio
import json
from collections.abc import Callable
from typing import Any

import pytest
import pytest_asyncio
import websockets.exceptions

from klingex.config import WebSocketOptions
from klingex.websocket import KlingExWebSocket

_CLEAN_CLOSE = object()


class FakeTransport:
    """Stands in for a ``websockets`` client connection.

    Frames pushed with ``feed()`` come out of ``async for``; ``drop()`` ends
    the iteration with ``ConnectionClosedError`` (abnormal closure) and
    ``close()`` ends it normally.
    """

    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []
        self.close_code: int | None = None
        self.close_reason: str | None = None
        self._inbox: asyncio.Queue[Any] = asyncio.Queue()

    async def send(self, data: str) -> None:
        self.sent.append(json.loads(data))

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self.close_code = code
        self.close_reason = reason
        self._inbox.put_nowait(_CLEAN_CLOSE)

    def feed(self, message: Any) -> None:
        self._inbox.put_nowait(message if isinstance(message, (str, bytes)) else json.dumps(message))

    def drop(self) -> None:
        self._inbox.put_nowait(websockets.exceptions.ConnectionClosedError(None, None))

    def actions(self, action: str) -> list[dict[str, Any]]:
        return [m for m in self.sent if m.get("action") == action]

    def __aiter__(self) -> "FakeTransport":
        return self

    async def __anext__(self) -> Any:
        item = await self._inbox.get()
        if item is _CLEAN_CLOSE:
            raise StopAsyncIteration
        if isinstance(item, Exception):
            raise item
        return item


async def wait_until(predicate: Callable[[], Any], timeout: float = 1.0) -> None:
    """Yield to the loop until ``predicate()`` is truthy or fail after ``timeout``."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.005)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def fast_options() -> WebSocketOptions:
    """Reconnect quickly and keep pings out of the way."""
    return WebSocketOptions(
        reconnect=True,
        reconnect_interval=0.01,
        max_reconnect_attempts=3,
        ping_interval=3600.0,
        open_timeout=1.0,
    )


@pytest_asyncio.fixture
async def make_ws(fast_options):
    """Factory for WebSocket clients that are disconnected after the test."""
    clients: list[KlingExWebSocket] = []

    def factory(**kwargs: Any) -> KlingExWebSocket:
        kwargs.setdefault("options", fast_options)
        client = KlingExWebSocket("wss://stream.test/ws", **kwargs)
        clients.append(client)
        return client

    yield factory

    for client in clients:
        await client.aclose()
