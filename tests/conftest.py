from datetime import datetime, timedelta, timezone

import httpx
import pytest

from rpcnaming.naming.models import Entry


class FakeClock:
    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class HostRouter(httpx.AsyncBaseTransport):
    """
    Routes requests to in-process ASGI apps by host name.
    Unknown hosts behave like a peer that is down.
    """

    def __init__(self, apps: dict | None = None):
        self.apps = {}
        for host, app in (apps or {}).items():
            self.add(host, app)

    def add(self, host: str, app) -> None:
        self.apps[host] = httpx.ASGITransport(app=app)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        transport = self.apps.get(request.url.host)
        if transport is None:
            raise httpx.ConnectError(f"connection refused: {request.url.host}", request=request)
        return await transport.handle_async_request(request)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def router():
    return HostRouter()


def make_entry(name="org.example.calc", host="10.0.0.1", port=6001, **kwargs) -> Entry:
    return Entry(name=name, host=host, port=port, **kwargs)
