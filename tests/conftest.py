"""Shared fixtures: an in-memory stand-in for the HTTP client."""

import asyncio
from typing import Optional, Union

import pytest
from medium2md.errors import FetchError
from medium2md.http.protocols import HttpResponse

Route = Union[bytes, str, Exception]


class FakeHttpClient:
    """
    Serves canned responses by URL and records every request.

    Unknown URLs fail with a 404 FetchError. While ``gate`` is set to an
    unset asyncio.Event, every request waits on it.
    """

    def __init__(self, routes: Optional[dict[str, Route]] = None) -> None:
        self.routes: dict[str, Route] = dict(routes or {})
        self.calls: list[str] = []
        self.gate: Optional[asyncio.Event] = None

    def calls_to(self, url: str) -> int:
        return self.calls.count(url)

    async def get(self, url: str, *, timeout: Optional[float] = None) -> HttpResponse:
        self.calls.append(url)
        if self.gate is not None:
            await self.gate.wait()

        route = self.routes.get(url)
        if route is None:
            raise FetchError(url, "HTTP 404", 404)
        if isinstance(route, Exception):
            raise route
        content = route.encode("utf-8") if isinstance(route, str) else route
        return HttpResponse(status_code=200, content=content, content_type="text/html", url=url)


@pytest.fixture
def http_client():
    """Fake HTTP client with no routes."""
    return FakeHttpClient()
