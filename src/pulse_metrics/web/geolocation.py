"""
Client address and country lookup.

PURPOSE: Work out where a submitting server runs.
AI CONTEXT: The only outbound network call in the service. Failures never
block ingestion; they degrade to Config.UNKNOWN_LOCATION.
"""

from __future__ import annotations

import logging
from typing import Protocol

import httpx
from fastapi import Request

from ..config import Config

__all__ = [
    "IpApiLocationResolver",
    "LocationResolver",
    "StaticLocationResolver",
    "get_client_ip",
]

logger = logging.getLogger(__name__)


def get_client_ip(request: Request) -> str:
    """
    Client address, honouring reverse proxies.

    Order: first X-Forwarded-For entry, then X-Real-IP, then the socket
    peer. "unknown" when none is available.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first and first.lower() != "unknown":
            return first

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    if request.client:
        return request.client.host

    return "unknown"


class LocationResolver(Protocol):
    """Maps an IP address to a country name."""

    def resolve(self, ip: str) -> str:
        """Return the country for `ip`, or Config.UNKNOWN_LOCATION."""
        ...


class IpApiLocationResolver:
    """
    Country lookup through the ip-api.com line endpoint.

    The endpoint answers with the bare country name as plain text.
    Any transport error, non-2xx status or empty answer yields
    Config.UNKNOWN_LOCATION.

    Args:
        client: httpx client to use; one is created when omitted.
        url_template: URL with an `{ip}` placeholder.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        client: httpx.Client | None = None,
        url_template: str = Config.GEOLOCATION_URL,
        timeout: float = Config.GEOLOCATION_TIMEOUT_SECONDS,
    ) -> None:
        self._client = client or httpx.Client(timeout=timeout)
        self.url_template = url_template

    def resolve(self, ip: str) -> str:
        try:
            response = self._client.get(self.url_template.format(ip=ip))
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Geolocation lookup failed for {ip}: {e}")
            return Config.UNKNOWN_LOCATION

        country = response.text.strip().splitlines()[0].strip() if response.text.strip() else ""
        return country or Config.UNKNOWN_LOCATION

    def close(self) -> None:
        self._client.close()


class StaticLocationResolver:
    """Resolver returning one fixed location; used when lookups are disabled."""

    def __init__(self, location: str = Config.UNKNOWN_LOCATION) -> None:
        self.location = location

    def resolve(self, ip: str) -> str:  # noqa: ARG002
        return self.location
