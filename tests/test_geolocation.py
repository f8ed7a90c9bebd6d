"""Tests for client address extraction, country lookup and payload parsing."""

from __future__ import annotations

from datetime import UTC, datetime

import httpx
import pytest
from pydantic import ValidationError
from starlette.requests import Request

from pulse_metrics.web.geolocation import (
    IpApiLocationResolver,
    StaticLocationResolver,
    get_client_ip,
)
from pulse_metrics.web.schemas import SnapshotPayload


def _request(headers: dict[str, str] | None = None, client: tuple[str, int] | None = None) -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/api/pulse/metrics",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


def _resolver(handler) -> IpApiLocationResolver:
    return IpApiLocationResolver(client=httpx.Client(transport=httpx.MockTransport(handler)))


class TestGetClientIp:
    """Tests for get_client_ip header precedence."""

    def test_forwarded_for_first_entry(self) -> None:
        request = _request({"X-Forwarded-For": "203.0.113.5, 10.0.0.1"}, ("10.0.0.1", 5000))
        assert get_client_ip(request) == "203.0.113.5"

    def test_forwarded_unknown_skipped(self) -> None:
        request = _request({"X-Forwarded-For": "unknown", "X-Real-IP": "198.51.100.2"})
        assert get_client_ip(request) == "198.51.100.2"

    def test_socket_peer(self) -> None:
        assert get_client_ip(_request(client=("192.0.2.9", 1234))) == "192.0.2.9"

    def test_nothing_available(self) -> None:
        assert get_client_ip(_request()) == "unknown"


class TestIpApiLocationResolver:
    """Test suite for the ip-api.com country lookup.

    Categories:
    1. Successful lookup (1 test)
    2. Degraded answers map to Unknown (3 tests)
    """

    def test_resolves_country(self) -> None:
        """Verifies the plain-text country answer is returned trimmed.

        Business context:
        The server-locations chart groups snapshots by this value.

        Arrangement:
        Mock transport answering "Germany" with a trailing newline and
        recording the requested URL.

        Action:
        Resolve an address.

        Assertion Strategy:
        Country returned and the address is part of the request path.
        """
        requested = []

        def handler(request: httpx.Request) -> httpx.Response:
            requested.append(str(request.url))
            return httpx.Response(200, text="Germany\n")

        assert _resolver(handler).resolve("203.0.113.5") == "Germany"
        assert "/line/203.0.113.5" in requested[0]

    def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        assert _resolver(handler).resolve("203.0.113.5") == "Unknown"

    def test_http_error_status(self) -> None:
        assert _resolver(lambda request: httpx.Response(503)).resolve("1.2.3.4") == "Unknown"

    def test_empty_answer(self) -> None:
        assert _resolver(lambda request: httpx.Response(200, text="  \n")).resolve("1.2.3.4") == "Unknown"

    def test_static_resolver(self) -> None:
        assert StaticLocationResolver().resolve("1.2.3.4") == "Unknown"
        assert StaticLocationResolver("Japan").resolve("1.2.3.4") == "Japan"


class TestSnapshotPayload:
    """Tests for ingestion payload validation."""

    def test_aliases_and_coercion(self) -> None:
        """JSON booleans and numbers in text fields become strings."""
        payload = SnapshotPayload.model_validate(
            {"onlineMode": False, "javaVersion": 21, "modules": {"chat": True}, "unused": 1}
        )
        assert payload.online_mode == "false"
        assert payload.runtime_version == "21"
        assert payload.modules == {"chat": "true"}

    def test_created_at_defaults_to_now(self) -> None:
        now = datetime(2026, 3, 4, 10, 30, tzinfo=UTC)
        snapshot = SnapshotPayload.model_validate({}).to_snapshot(now, "Japan")
        assert snapshot.created_at == now
        assert snapshot.location == "Japan"

    def test_client_created_at_kept(self) -> None:
        snapshot = SnapshotPayload.model_validate({"createdAt": "2026-01-02T03:04:05+02:00"}).to_snapshot(
            datetime(2026, 3, 4, tzinfo=UTC)
        )
        assert snapshot.created_at == datetime(2026, 1, 2, 1, 4, 5, tzinfo=UTC)

    def test_rejects_bad_numbers(self) -> None:
        with pytest.raises(ValidationError):
            SnapshotPayload.model_validate({"cpuCores": "many"})

    def test_null_modules(self) -> None:
        assert SnapshotPayload.model_validate({"modules": None}).modules == {}
