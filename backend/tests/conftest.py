import asyncio
import heapq
import itertools
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure backend package is importable
backend_root = Path(__file__).resolve().parents[1]
if str(backend_root) not in sys.path:
    sys.path.insert(0, str(backend_root))

from resume_optimizer.client.errors import TransportError  # noqa: E402

# Marker entries for FakeTransport scripts
REFUSE = object()   # open() fails
HANG = object()     # channel stays open with nothing to say


async def settle():
    """Let every ready task run until the loop goes quiet."""
    for _ in range(50):
        await asyncio.sleep(0)


class VirtualClock:
    """Injectable ``sleep`` whose time only moves when the test advances it."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []
        self._waiters = []
        self._seq = itertools.count()

    async def sleep(self, delay):
        self.sleeps.append(delay)
        fut = asyncio.get_running_loop().create_future()
        heapq.heappush(self._waiters, (self.now + delay, next(self._seq), fut))
        await fut

    async def advance(self, seconds):
        target = self.now + seconds
        await settle()
        while self._waiters and self._waiters[0][0] <= target:
            deadline, _, fut = heapq.heappop(self._waiters)
            self.now = deadline
            if not fut.done():
                fut.set_result(None)
            await settle()
        self.now = target


class FakeChannel:
    def __init__(self, script):
        self.script = list(script)
        self.closed = False

    def __aiter__(self):
        return self._messages()

    async def _messages(self):
        for item in self.script:
            await asyncio.sleep(0)
            if item is HANG:
                await asyncio.Event().wait()
            elif isinstance(item, Exception):
                raise item
            else:
                yield item


class FakeTransport:
    """Each open() consumes the next script; ``default`` is used once they run out."""

    def __init__(self, *scripts, clock=None, default=(HANG,)):
        self.scripts = list(scripts)
        self.default = default
        self.clock = clock
        self.urls = []
        self.opened_at = []
        self.channels = []
        self.close_calls = 0

    async def open(self, url):
        await asyncio.sleep(0)
        self.urls.append(url)
        self.opened_at.append(self.clock.now if self.clock else None)
        script = self.scripts.pop(0) if self.scripts else self.default
        if script is REFUSE:
            raise TransportError("connection refused")
        channel = FakeChannel(script)
        self.channels.append(channel)
        return channel

    async def close(self, channel):
        channel.closed = True
        self.close_calls += 1


@pytest.fixture
def clock():
    return VirtualClock()


@pytest.fixture
def client(monkeypatch):
    """FastAPI TestClient with an empty resume store and fast heartbeats."""
    monkeypatch.setenv("CORS_ORIGINS", "*")

    from resume_optimizer import config
    from resume_optimizer.storage import RESUME_STORE
    from resume_optimizer.main import app

    RESUME_STORE.clear()
    app.dependency_overrides[config.get_settings] = lambda: config.Settings(heartbeat_interval=5.0)
    yield TestClient(app)
    app.dependency_overrides.clear()
    RESUME_STORE.clear()
