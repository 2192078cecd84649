"""
Shared fakes for feed tests.

FakeTransport stands in for the aiohttp websocket: frames are queued by the
test and handed out by receive(); None simulates a peer close and an
exception instance is raised from receive().
"""

import asyncio
from typing import Callable, Optional

import pytest

from liveboard.feed.connection import Frame


class FakeTransport:
    def __init__(self) -> None:
        self.sent: list[str] = []
        self.close_calls = 0
        self._inbox: asyncio.Queue = asyncio.Queue()

    @property
    def closed(self) -> bool:
        return self.close_calls > 0

    def push(self, frame: Frame) -> None:
        self._inbox.put_nowait(frame)

    def peer_close(self) -> None:
        self._inbox.put_nowait(None)

    def fail(self, error: Exception) -> None:
        self._inbox.put_nowait(error)

    async def send_str(self, data: str) -> None:
        self.sent.append(data)

    async def receive(self) -> Optional[Frame]:
        item = await self._inbox.get()
        if isinstance(item, Exception):
            raise item
        return item

    async def close(self) -> None:
        self.close_calls += 1


class FakeTransportFactory:
    """Records every open; `errors` are raised (in order) before a transport is handed out."""

    def __init__(self) -> None:
        self.urls: list[str] = []
        self.transports: list[FakeTransport] = []
        self.errors: list[Exception] = []
        self.gate: Optional[asyncio.Event] = None

    @property
    def last(self) -> FakeTransport:
        return self.transports[-1]

    async def __call__(self, url: str) -> FakeTransport:
        self.urls.append(url)
        if self.errors:
            raise self.errors.pop(0)
        if self.gate is not None:
            await self.gate.wait()
        transport = FakeTransport()
        self.transports.append(transport)
        return transport


async def _wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.001)


@pytest.fixture
def transport_factory() -> FakeTransportFactory:
    """Fresh fake transport factory."""
    return FakeTransportFactory()


@pytest.fixture
def wait_until() -> Callable:
    """Poll a predicate on the running loop until it holds."""
    return _wait_until
