"""Shared pytest fixtures for Webhook Scheduler tests."""

import json
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Generator, List

import httpx
import pytest
from fastapi.testclient import TestClient
from prometheus_client import CollectorRegistry

from webhook_scheduler.api import dependencies
from webhook_scheduler.api.app import create_app
from webhook_scheduler.config import Config
from webhook_scheduler.database.engine import DatabaseEngine
from webhook_scheduler.domain.models import WebhookTarget
from webhook_scheduler.engines import DeferredSendEngine, RecurringScheduleEngine, ScheduleTicker
from webhook_scheduler.metrics import MetricsCollector
from webhook_scheduler.store import SqlStore
from webhook_scheduler.webhook.client import DeliveryClient

WEBHOOK_URL = "https://discord.com/api/webhooks/123/token-abc"


class FakeClock:
    """Settable clock; call it to read the current time."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class RecordingTransport:
    """httpx.MockTransport handler that records requests and replays responses.

    ``responses`` is consumed in order; once exhausted the last response is
    repeated. A response may be an exception instance, which is raised.
    """

    def __init__(self, responses: List = None):
        self.responses = list(responses or [httpx.Response(204)])
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def bodies(self) -> List[dict]:
        return [json.loads(request.content) for request in self.requests]


@pytest.fixture(scope="function")
def temp_db_path() -> Generator[str, None, None]:
    """Create a temporary database file."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name
    yield db_path
    Path(db_path).unlink(missing_ok=True)
    Path(f"{db_path}-wal").unlink(missing_ok=True)
    Path(f"{db_path}-shm").unlink(missing_ok=True)


@pytest.fixture(scope="function")
def test_config(temp_db_path: str) -> Config:
    """Create a test configuration."""
    return Config(
        db_path=temp_db_path,
        retention_days=30,
        cleanup_interval_hours=24,
        timezone="UTC",
        tick_enabled=False,
        tick_interval_seconds=0.05,
        delivery_timeout=5.0,
        api_host="127.0.0.1",
        api_port=8000,
        log_level="WARNING",
        log_format="text",
        metrics_enabled=False,
    )


@pytest.fixture(scope="function")
def db_engine(test_config: Config) -> Generator[DatabaseEngine, None, None]:
    """Create a database engine for testing."""
    engine = DatabaseEngine(test_config.db_path)
    engine.initialize()
    yield engine
    engine.close()


@pytest.fixture(scope="function")
def store(db_engine: DatabaseEngine) -> SqlStore:
    return SqlStore(db_engine)


@pytest.fixture(scope="function")
def clock() -> FakeClock:
    """Clock fixed at 2024-01-15 08:00 UTC (a Monday)."""
    return FakeClock(datetime(2024, 1, 15, 8, 0, tzinfo=timezone.utc))


@pytest.fixture(scope="function")
def metrics() -> MetricsCollector:
    """Metrics collector on a private registry."""
    return MetricsCollector(registry=CollectorRegistry())


@pytest.fixture(scope="function")
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture(scope="function")
def make_client() -> Callable[..., DeliveryClient]:
    """Factory for DeliveryClients backed by httpx.MockTransport."""

    def _make(handler: Callable, metrics: MetricsCollector = None) -> DeliveryClient:
        return DeliveryClient(
            timeout=5.0,
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
            metrics=metrics,
        )

    return _make


@pytest.fixture(scope="function")
def delivery_client(make_client, transport: RecordingTransport) -> DeliveryClient:
    return make_client(transport)


@pytest.fixture(scope="function")
def target(store: SqlStore, clock: FakeClock) -> WebhookTarget:
    """An active webhook target."""
    return store.add_target(
        WebhookTarget(name="alerts", url=WEBHOOK_URL, created_at=clock())
    )


@pytest.fixture(scope="function")
def recurring_engine(store, delivery_client, clock, metrics) -> RecurringScheduleEngine:
    return RecurringScheduleEngine(store, delivery_client, clock=clock, metrics=metrics)


@pytest.fixture(scope="function")
def deferred_engine(store, delivery_client, clock, metrics) -> DeferredSendEngine:
    return DeferredSendEngine(store, delivery_client, clock=clock, metrics=metrics)


@pytest.fixture(scope="function")
def ticker(recurring_engine, deferred_engine, metrics) -> ScheduleTicker:
    return ScheduleTicker(
        recurring_engine, deferred_engine, interval_seconds=0.05, metrics=metrics
    )


@pytest.fixture(scope="function")
def api_client(
    store: SqlStore,
    delivery_client: DeliveryClient,
    ticker: ScheduleTicker,
    clock: FakeClock,
) -> Generator[TestClient, None, None]:
    """FastAPI test client wired to the test store, client and ticker."""
    dependencies.set_store_instance(store)
    dependencies.set_delivery_client_instance(delivery_client)
    dependencies.set_ticker_instance(ticker)
    dependencies.set_clock(clock)

    app = create_app(enable_metrics=False)
    with TestClient(app) as client:
        yield client

    dependencies._store_instance = None
    dependencies._delivery_client_instance = None
    dependencies._ticker_instance = None
    dependencies._clock = dependencies.utc_now
