"""Tests for web module."""

from __future__ import annotations

import gzip
import json
import sys
from collections.abc import Callable, Iterator
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Skip all tests if FastAPI not installed
fastapi = pytest.importorskip("fastapi")

from fastapi.testclient import TestClient  # noqa: E402

# Add tests directory to path for conftest imports
sys.path.insert(0, str(Path(__file__).parent))

from conftest import FIXED_NOW, MockFileSystem, make_snapshot  # noqa: E402
from pulse_metrics.config import Config  # noqa: E402
from pulse_metrics.errors import RenderError  # noqa: E402
from pulse_metrics.metrics_service import MetricsService  # noqa: E402
from pulse_metrics.storage import SnapshotStore  # noqa: E402
from pulse_metrics.web import create_app  # noqa: E402
from pulse_metrics.web.caching import ClientThrottle, HourlyCache  # noqa: E402
from pulse_metrics.web.geolocation import StaticLocationResolver  # noqa: E402

INGEST_URL = "/api/pulse/metrics"
LOG_PATH = "/test/storage/snapshots.jsonl"

PAYLOAD = {
    "serverCore": "Paper",
    "serverVersion": "1.21.4",
    "osName": "Linux",
    "osArchitecture": "amd64",
    "javaVersion": "21",
    "cpuCores": 8,
    "totalRAM": 17179869184,
    "onlineMode": True,
    "playerCount": 12,
    "modules": {"chat": "enabled", "spit": False},
}


class CountingSink:
    """DrawingSink counting renders; output is a minimal SVG."""

    def __init__(self) -> None:
        self.renders = 0

    def render(self, commands: list, width: int, height: int) -> bytes:
        self.renders += 1
        return f'<svg width="{width}" height="{height}" data-n="{len(commands)}"/>'.encode()


class FailingSink:
    def render(self, commands: list, width: int, height: int) -> bytes:
        raise RenderError("backend exploded")


class RecordingResolver:
    """Location resolver remembering every looked-up address."""

    def __init__(self, location: str = "Germany") -> None:
        self.location = location
        self.seen: list[str] = []

    def resolve(self, ip: str) -> str:
        self.seen.append(ip)
        return self.location


class FakeMonotonic:
    """Settable monotonic clock for the throttle."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def sink() -> CountingSink:
    return CountingSink()


@pytest.fixture
def service(
    mock_fs: MockFileSystem, sink: CountingSink, fixed_clock: Callable[[], datetime]
) -> MetricsService:
    store = SnapshotStore(storage_dir="/test/storage", filesystem=mock_fs)
    return MetricsService(store=store, sink=sink, clock=fixed_clock)


@pytest.fixture
def resolver() -> RecordingResolver:
    return RecordingResolver()


@pytest.fixture
def monotonic() -> FakeMonotonic:
    return FakeMonotonic()


@pytest.fixture
def client(
    service: MetricsService,
    resolver: RecordingResolver,
    monotonic: FakeMonotonic,
    fixed_clock: Callable[[], datetime],
) -> Iterator[TestClient]:
    """Create FastAPI test client for HTTP endpoint testing.

    Business context:
    Servers post snapshots and the project website embeds the chart
    routes. Tests must verify both without a network or a real disk.

    Args:
        service: MetricsService over MockFileSystem.
        resolver: RecordingResolver standing in for the country lookup.
        monotonic: Controllable clock for the submission throttle.
        fixed_clock: UTC clock for the hourly chart cache.

    Returns:
        TestClient with lifespan events running.

    Example:
        >>> response = client.get('/health')
        >>> assert response.status_code == 200
    """
    app = create_app(
        service=service,
        location_resolver=resolver,
        cache=HourlyCache(clock=fixed_clock),
        throttle=ClientThrottle(clock=monotonic),
    )
    with TestClient(app) as test_client:
        yield test_client


class TestIngestion:
    """Test suite for POST /api/pulse/metrics.

    Categories:
    1. Plain and gzip bodies (3 tests)
    2. Throttling (2 tests)
    3. Location and client address (1 test)
    4. Failure modes (2 tests)
    """

    def test_post_json(self, client: TestClient, service: MetricsService) -> None:
        """Verifies a plain JSON snapshot is stored.

        Business context:
        This is the endpoint every reporting server calls once per hour.

        Arrangement:
        Empty store.

        Action:
        POST the sample payload.

        Assertion Strategy:
        200 with success, and the stored snapshot carries the payload's
        values plus the resolved location and server-side timestamp.
        """
        response = client.post(INGEST_URL, json=PAYLOAD)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Saved"

        (stored,) = service.store.query(FIXED_NOW - timedelta(days=1))
        assert stored.server_core == "Paper"
        assert stored.online_mode == "true"
        assert stored.modules == {"chat": "enabled", "spit": "false"}
        assert stored.location == "Germany"
        assert stored.created_at == FIXED_NOW

    def test_post_gzip(self, client: TestClient, service: MetricsService) -> None:
        """Gzip bodies with Content-Encoding: gzip are decompressed."""
        response = client.post(
            INGEST_URL,
            content=gzip.compress(json.dumps(PAYLOAD).encode()),
            headers={"Content-Encoding": "gzip", "Content-Type": "application/json"},
        )
        assert response.status_code == 200
        assert service.store.count() == 1

    def test_bad_gzip_rejected(self, client: TestClient, service: MetricsService) -> None:
        response = client.post(
            INGEST_URL,
            content=b"definitely not gzip",
            headers={"Content-Encoding": "gzip", "Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert service.store.count() == 0

    def test_throttled_until_window_passes(
        self, client: TestClient, monotonic: FakeMonotonic
    ) -> None:
        """Verifies one accepted submission per client per window.

        Business context:
        Misconfigured servers reporting every second would flood the log
        and skew every distribution.

        Arrangement:
        One accepted POST from the test client.

        Action:
        POST again immediately, then after the window elapses.

        Assertion Strategy:
        Second POST is 429 with Retry-After equal to the full window;
        third POST is accepted.
        """
        assert client.post(INGEST_URL, json=PAYLOAD).status_code == 200

        throttled = client.post(INGEST_URL, json=PAYLOAD)
        assert throttled.status_code == 429
        assert throttled.headers["Retry-After"] == str(Config.THROTTLE_WINDOW_SECONDS)

        monotonic.now += Config.THROTTLE_WINDOW_SECONDS
        assert client.post(INGEST_URL, json=PAYLOAD).status_code == 200

    def test_throttle_is_per_client(self, client: TestClient) -> None:
        first = client.post(INGEST_URL, json=PAYLOAD, headers={"X-Forwarded-For": "203.0.113.1"})
        second = client.post(INGEST_URL, json=PAYLOAD, headers={"X-Forwarded-For": "203.0.113.2"})
        assert (first.status_code, second.status_code) == (200, 200)

    def test_forwarded_address_used_for_location(
        self, client: TestClient, resolver: RecordingResolver
    ) -> None:
        """Behind a reverse proxy the first X-Forwarded-For entry is the client."""
        client.post(INGEST_URL, json=PAYLOAD, headers={"X-Forwarded-For": "203.0.113.5, 10.0.0.1"})
        assert resolver.seen == ["203.0.113.5"]

    def test_storage_failure_is_503(
        self, client: TestClient, mock_fs: MockFileSystem
    ) -> None:
        """A failed write is a 503 and does not consume the client's window."""
        mock_fs.set_read_only(LOG_PATH)
        first = client.post(INGEST_URL, json=PAYLOAD)
        assert first.status_code == 503
        assert first.json()["detail"] == "Snapshot storage is unavailable"
        assert client.post(INGEST_URL, json=PAYLOAD).status_code == 503

    def test_invalid_payload_is_422(self, client: TestClient) -> None:
        response = client.post(INGEST_URL, json={**PAYLOAD, "playerCount": "lots"})
        assert response.status_code == 422


class TestChartRoutes:
    """Tests for the SVG chart routes."""

    def test_main_chart(self, client: TestClient) -> None:
        response = client.get("/api/pulse/metrics/svg")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("image/svg+xml")
        assert response.content.startswith(b"<svg")

    def test_named_chart(self, client: TestClient, service: MetricsService) -> None:
        service.store.append(make_snapshot(FIXED_NOW - timedelta(minutes=5)))
        response = client.get("/api/pulse/metrics/svg/operation-systems")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("image/svg+xml")

    def test_unknown_chart_is_404(self, client: TestClient) -> None:
        assert client.get("/api/pulse/metrics/svg/pie").status_code == 404

    def test_charts_cached_per_hour(
        self, client: TestClient, service: MetricsService, sink: CountingSink
    ) -> None:
        """Verifies a chart is rendered once per route and UTC hour.

        Business context:
        Chart images are embedded on public pages; rendering on every
        page view would be wasteful when data changes hourly.

        Arrangement:
        Fixed clock, so every request falls in the same hour.

        Action:
        Request the same chart twice with a new snapshot in between,
        then a different chart.

        Assertion Strategy:
        Identical bytes for the repeated route, one render per route.
        """
        first = client.get("/api/pulse/metrics/svg/ram-usage").content
        service.store.append(make_snapshot(FIXED_NOW - timedelta(minutes=5)))
        second = client.get("/api/pulse/metrics/svg/ram-usage").content

        assert first == second
        assert sink.renders == 1

        client.get("/api/pulse/metrics/svg/core-counts")
        assert sink.renders == 2

    def test_render_error_is_500(self, mock_fs: MockFileSystem, fixed_clock) -> None:
        store = SnapshotStore(storage_dir="/test/storage", filesystem=mock_fs)
        service = MetricsService(store=store, sink=FailingSink(), clock=fixed_clock)
        app = create_app(service=service, location_resolver=StaticLocationResolver())

        with TestClient(app) as test_client:
            response = test_client.get("/api/pulse/metrics/svg")

        assert response.status_code == 500
        assert "backend exploded" in response.json()["detail"]


class TestHealthAndLifespan:
    """Tests for /health and startup hooks."""

    def test_health(self, client: TestClient, service: MetricsService) -> None:
        service.store.append(make_snapshot())
        assert client.get("/health").json() == {"status": "ok", "version": "1.0.0", "snapshots": 1}

    def test_retention_applied_on_startup(
        self, service: MetricsService, resolver: RecordingResolver
    ) -> None:
        """Verifies PULSE_RETENTION_DAYS purges old snapshots at startup.

        Business context:
        Operators opt into retention with one environment variable; the
        service applies it without a separate cron job.

        Arrangement:
        One snapshot 40 days old, one fresh; retention set to 30 days.

        Action:
        Start the application.

        Assertion Strategy:
        Only the fresh snapshot remains.
        """
        service.store.append(make_snapshot(FIXED_NOW - timedelta(days=40)))
        service.store.append(make_snapshot(FIXED_NOW))
        Config.set_test_overrides(retention_days=30)

        with TestClient(create_app(service=service, location_resolver=resolver)):
            pass

        assert service.store.count() == 1

    def test_static_resolver_when_geolocation_disabled(self, service: MetricsService) -> None:
        Config.set_test_overrides(geolocation=False)
        app = create_app(service=service)
        assert isinstance(app.state.location_resolver, StaticLocationResolver)
