import json

import httpx
import pytest

from collectors.entry import Entry
from collectors.rolling_cache import RollingCache
from upstream.client import UpstreamClient

UPSTREAM_URL = "https://draw.example.test/api/webapi/GetNoaverageEmerdList"

# Fixed wall clock: 2025-01-01T00:00:00Z
T0 = 1_735_689_600.0


class FakeClock:
    """Manually advanced clock in seconds, injectable as RollingCache(clock=...)."""

    def __init__(self, start: float = T0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    @property
    def ms(self) -> int:
        return int(self.now * 1000)


def make_entry(period, number, timestamp_ms=int(T0 * 1000)) -> Entry:
    return Entry.create(str(period), number, timestamp_ms)


def draw_page(rows):
    """Upstream envelope in its most common shape: {"data": {"list": [...]}}."""
    return {"code": 0, "msg": "Succeed", "data": {"list": rows, "pageNo": 1, "totalPage": 50}}


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock) -> RollingCache:
    return RollingCache(capacity=21, clock=clock)


@pytest.fixture
def make_client():
    """
    Build an UpstreamClient whose HTTP layer is an httpx.MockTransport.

    handler may be a callable(request) -> httpx.Response or a plain JSON payload.
    """
    clients = []

    def factory(handler, **kwargs) -> UpstreamClient:
        if not callable(handler):
            payload = handler

            def handler(request):
                return httpx.Response(200, json=payload)

        c = UpstreamClient(UPSTREAM_URL, transport=httpx.MockTransport(handler), **kwargs)
        clients.append(c)
        return c

    yield factory

    for c in clients:
        c.close()


def request_json(request: httpx.Request) -> dict:
    return json.loads(request.content.decode("utf-8"))
