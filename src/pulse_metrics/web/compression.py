"""
Gzip request bodies.

PURPOSE: Let servers post gzip-compressed snapshots.
AI CONTEXT: Used as `route_class` of the ingestion router only; chart
routes have no body.

A route built with GzipRoute wraps each incoming request in GzipRequest,
whose body() transparently decompresses when the request carries
`Content-Encoding: gzip`. FastAPI then parses JSON from the plain bytes.
"""

from __future__ import annotations

import gzip
import zlib
from collections.abc import Callable, Coroutine
from typing import Any

from fastapi import HTTPException, Request, Response
from fastapi.routing import APIRoute

__all__ = ["GzipRequest", "GzipRoute"]


class GzipRequest(Request):
    """Request whose body is decompressed when it is gzip-encoded."""

    async def body(self) -> bytes:
        if not hasattr(self, "_body"):
            body = await super().body()
            encoding = self.headers.get("content-encoding", "").lower()
            if "gzip" in encoding:
                try:
                    body = gzip.decompress(body)
                except (OSError, EOFError, zlib.error) as e:
                    raise HTTPException(status_code=400, detail="Invalid gzip request body") from e
            self._body = body
        return self._body


class GzipRoute(APIRoute):
    """APIRoute that hands handlers a GzipRequest."""

    def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        original_route_handler = super().get_route_handler()

        async def custom_route_handler(request: Request) -> Response:
            request = GzipRequest(request.scope, request.receive)
            return await original_route_handler(request)

        return custom_route_handler
