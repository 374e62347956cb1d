"""FetchStep - downloads and parses a published post."""

import logging
from typing import Optional

from bs4 import BeautifulSoup

from ...http.protocols import HttpClient
from ...models.events import EventType, ImportEvent
from ..base import ArticleContext, EventEmitter

logger = logging.getLogger(__name__)


class FetchStep:
    """
    Pipeline step that fetches a post's HTML and parses it.

    Populates:
        ctx.soup: Parsed document

    Raises FetchError (from the HTTP client) on network errors or error
    statuses; the post is aborted.

    Example:
        fetch_step = FetchStep(http_client)
        ctx = await fetch_step.execute(ctx)
    """

    name = "fetch"

    def __init__(self, http_client: HttpClient, timeout: Optional[float] = None) -> None:
        """
        Initialize the fetch step.

        Args:
            http_client: HTTP client implementing HttpClient protocol
            timeout: Request timeout in seconds (client default if None)
        """
        self._client = http_client
        self._timeout = timeout

    async def execute(
        self,
        ctx: ArticleContext,
        emit: Optional[EventEmitter] = None,
    ) -> ArticleContext:
        """
        Execute the fetch step.

        Args:
            ctx: Article context whose source is the post URL
            emit: Optional callback to emit events

        Returns:
            ArticleContext with soup populated
        """
        url = ctx.source

        if emit:
            emit(ImportEvent(type=EventType.FETCH_STARTED, source=url, message=f"Fetching {url}"))

        response = await self._client.get(url, timeout=self._timeout)

        ctx.soup = BeautifulSoup(response.content, "html.parser")
        logger.debug(f"Fetched {url}: {len(response.content)} bytes")

        if emit:
            emit(
                ImportEvent(
                    type=EventType.FETCH_COMPLETED,
                    source=url,
                    message=f"Fetched {len(response.content)} bytes",
                )
            )

        return ctx
