"""Protocol definitions for the HTTP fetch collaborator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class HttpResponse:
    """
    Immutable HTTP response returned by HttpClient.

    Attributes:
        status_code: HTTP status code (200, 404, etc.)
        content: Raw response content as bytes
        content_type: Content-Type header value
        url: Final URL after any redirects
    """

    status_code: int
    content: bytes
    content_type: str
    url: str


class HttpClient(Protocol):
    """
    Protocol for the fetch collaborator used by the importer.

    Implementations raise ``FetchError`` for network failures and for
    responses with a status of 400 or above, so callers only ever see
    successful responses.
    """

    async def get(
        self,
        url: str,
        *,
        timeout: float | None = None,
    ) -> HttpResponse:
        """
        Perform an HTTP GET request.

        Args:
            url: The URL to fetch
            timeout: Request timeout in seconds

        Returns:
            HttpResponse with status, content and content type

        Raises:
            FetchError: On network errors or error statuses
        """
        ...
