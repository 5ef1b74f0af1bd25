"""Pytest fixtures for testing"""

import json
from datetime import datetime, timedelta
from typing import Any, Dict, Generator, List, Tuple

import httpx
import pytest
from fastapi.testclient import TestClient

from billing_gateway.api.dependencies import get_cache_store, get_upstream_client
from billing_gateway.api.main import create_app
from billing_gateway.domain.inquiry import InquiryCacheService
from billing_gateway.domain.models import Credentials
from billing_gateway.infrastructure.cache.sqlite_store import SQLiteStore
from billing_gateway.infrastructure.clients.upstream import UpstreamClient

TEST_USERNAME = "testuser"
TEST_API_KEY = "test-key"
UPSTREAM_BASE_URL = "http://upstream.test"


class FakeClock:
    """Manually advanced clock for expiry tests"""

    def __init__(self, start: datetime = datetime(2026, 1, 1, 8, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeUpstream:
    """
    Scripted upstream API behind httpx.MockTransport.

    Each path has a queue of replies; the last reply is repeated once the
    queue is down to one. A reply that is an exception is raised instead.
    """

    def __init__(self):
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.routes: Dict[str, list] = {}

    def reply(self, path: str, *replies: Any) -> None:
        self.routes.setdefault(path, []).extend(replies)

    def calls_to(self, path: str) -> List[Dict[str, Any]]:
        return [body for called, body in self.calls if called == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls.append((path, json.loads(request.content or b"{}")))
        queue = self.routes.get(path)
        if not queue:
            return httpx.Response(404, json={"message": f"no stub for {path}"})
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return item


def upstream_reply(status_code: int = 200, **data: Any) -> httpx.Response:
    """Upstream-shaped JSON reply: {"data": {...}}"""
    return httpx.Response(status_code, json={"data": data})


def subscriber_reply(customer_no: str = "12345678901", name: str = "JOHN", rc: str = "00") -> httpx.Response:
    return upstream_reply(
        customer_no=customer_no,
        rc=rc,
        status="success" if rc == "00" else "failed",
        message="Transaksi Sukses" if rc == "00" else "Nomor pelanggan tidak ditemukan",
        name=name if rc == "00" else "",
        meter_no="14012345678" if rc == "00" else "",
        segment_power="R1 /000001300" if rc == "00" else "",
    )


@pytest.fixture
def fake_upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(username=TEST_USERNAME, api_key=TEST_API_KEY)


@pytest.fixture
def upstream_client(fake_upstream: FakeUpstream, credentials: Credentials) -> UpstreamClient:
    """Client wired to the fake upstream, no backoff delay"""
    return UpstreamClient(
        credentials=credentials,
        base_url=UPSTREAM_BASE_URL,
        timeout=5.0,
        retry_attempts=3,
        backoff_seconds=0,
        transport=httpx.MockTransport(fake_upstream.handler),
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> Generator[SQLiteStore, None, None]:
    """In-memory SQLite cache store"""
    store = SQLiteStore.from_url("sqlite:///:memory:", clock=clock)
    try:
        yield store
    finally:
        store.close()


@pytest.fixture
def inquiry_service(upstream_client: UpstreamClient, store: SQLiteStore, clock: FakeClock) -> InquiryCacheService:
    return InquiryCacheService(upstream_client, store, clock=clock)


@pytest.fixture
def client(upstream_client: UpstreamClient, store: SQLiteStore) -> TestClient:
    """Create FastAPI test client wired to the fake upstream and test store"""
    app = create_app()
    app.dependency_overrides[get_upstream_client] = lambda: upstream_client
    app.dependency_overrides[get_cache_store] = lambda: store
    return TestClient(app)
