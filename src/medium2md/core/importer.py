"""MediumImporter - public entry points for converting posts."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from types import TracebackType
from typing import Callable, Optional, Union

from bs4 import BeautifulSoup, Tag

from ..assets.collector import AssetCollector
from ..embeds.resolver import EmbedResolver
from ..http import AsyncHttpClient, HttpClient, PerHostRateLimiter
from ..models.config import ImporterConfig
from ..models.events import EventType, ImportEvent, ImportStats
from ..pipeline.base import ArticleContext, EventEmitter, FetchPipeline
from ..pipeline.steps import (
    DraftMetadataStep,
    FetchStep,
    RemoteMetadataStep,
    RenderStep,
    ResolveStep,
    ResponseFilterStep,
    SaveStep,
    UntitledCounter,
)

logger = logging.getLogger(__name__)

DraftSource = Union[BeautifulSoup, Tag, str, bytes]


class MediumImporter:
    """
    Converts published Medium posts and local drafts to Markdown.

    One importer is meant to live as long as the process. It owns the
    embed resolver, whose cache is shared by every post converted through
    it (an embed seen in one post is never fetched again), and the
    counter naming untitled drafts. Each conversion gets its own asset
    collector, so conversions can run concurrently.

    Example:
        config = ImporterConfig(content_folder=Path("./content"))

        async with MediumImporter(config) as importer:
            slug = await importer.import_post("https://medium.com/@me/hello-1a2b3c")
            if slug is None:
                print("Skipped: response to another post")

        print(f"Stats: {importer.stats.to_dict()}")
    """

    def __init__(
        self,
        config: Optional[ImporterConfig] = None,
        *,
        http_client: Optional[HttpClient] = None,
        resolver: Optional[EmbedResolver] = None,
        on_event: Optional[EventEmitter] = None,
        draft_counter: Optional[UntitledCounter] = None,
    ) -> None:
        """
        Initialize the importer.

        Args:
            config: Importer configuration (defaults if None)
            http_client: Fetch collaborator; an AsyncHttpClient is created
                         and managed by the importer if None
            resolver: Embed resolver to share; created if None
            on_event: Optional callback receiving ImportEvents
            draft_counter: Numbering for untitled drafts; created if None
        """
        self.config = config or ImporterConfig()
        self._stats = ImportStats()
        self._on_event = on_event
        self._draft_counter = draft_counter or UntitledCounter()

        self._owned_client: Optional[AsyncHttpClient] = None
        self._http_client = http_client
        self._resolver = resolver

        if self._http_client is not None and self._resolver is None:
            self._resolver = self._build_resolver(self._http_client)

    @property
    def stats(self) -> ImportStats:
        """Get import statistics."""
        return self._stats

    @property
    def resolver(self) -> EmbedResolver:
        """The embed resolver shared by every conversion."""
        if self._resolver is None:
            raise RuntimeError("Importer not initialized. Use 'async with' context manager.")
        return self._resolver

    def _build_resolver(self, http_client: HttpClient) -> EmbedResolver:
        return EmbedResolver(
            http_client,
            base_url=self.config.medium_base_url,
            timeout=self.config.network.embed_timeout,
        )

    async def __aenter__(self) -> MediumImporter:
        """Enter async context and initialize the HTTP client if needed."""
        if self._http_client is None:
            network = self.config.network
            self._owned_client = AsyncHttpClient(
                rate_limiter=PerHostRateLimiter(
                    delay=network.rate_limit,
                    max_concurrent=network.per_host_concurrent,
                ),
                max_retries=network.max_retries,
                user_agent=network.user_agent,
                proxy=network.proxy,
                default_timeout=float(network.read_timeout),
            )
            await self._owned_client.__aenter__()
            self._http_client = self._owned_client

        if self._resolver is None:
            self._resolver = self._build_resolver(self._http_client)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit async context and close the HTTP client if the importer owns it."""
        if self._owned_client is not None:
            await self._owned_client.__aexit__(exc_type, exc_val, exc_tb)
            self._owned_client = None
            self._http_client = None

    def _client(self) -> HttpClient:
        if self._http_client is None:
            raise RuntimeError("Importer not initialized. Use 'async with' context manager.")
        return self._http_client

    def _emit(self, event: ImportEvent) -> None:
        if event.type == EventType.ASSET_SAVED:
            self._stats.assets_saved += 1
        if self._on_event:
            self._on_event(event)

    def _new_context(self, source: str, soup: Optional[BeautifulSoup] = None) -> ArticleContext:
        return ArticleContext(
            source=source,
            content_folder=self.config.content_folder,
            assets=AssetCollector(self._client(), timeout=self.config.network.asset_timeout),
            soup=soup,
        )

    def _tail_steps(self) -> list:
        return [RenderStep(self.resolver), ResolveStep(self.resolver), SaveStep()]

    async def _run(self, pipeline: FetchPipeline, ctx: ArticleContext) -> Optional[str]:
        ctx = await pipeline.execute(ctx, emit=self._emit)

        if ctx.error is not None:
            self._stats.posts_failed += 1
            logger.error(f"Failed to convert {ctx.source}: {ctx.error}")
            raise ctx.error

        if ctx.should_skip:
            self._stats.posts_skipped += 1
            return None

        self._stats.posts_saved += 1
        return ctx.slug

    async def import_post(self, url: str) -> Optional[str]:
        """
        Convert a published post given its canonical URL.

        Args:
            url: Canonical URL of the post

        Returns:
            The post's slug, or None if the URL is a response to another post

        Raises:
            FetchError: If the post itself cannot be fetched
            MissingRequiredMetadata: If a mandatory meta tag is absent
        """
        pipeline = FetchPipeline(
            steps=[
                FetchStep(self._client(), timeout=float(self.config.network.read_timeout)),
                ResponseFilterStep(),
                RemoteMetadataStep(),
                *self._tail_steps(),
            ]
        )
        return await self._run(pipeline, self._new_context(url))

    async def import_draft(self, dom: DraftSource, label: str = "draft") -> Optional[str]:
        """
        Convert a local draft given its DOM.

        The DOM is modified in place (title and chrome nodes are removed).

        Args:
            dom: Parsed draft, or its raw HTML
            label: Name of the draft used in logs and events

        Returns:
            The draft's slug, or None if the DOM has no draft body
        """
        if isinstance(dom, (str, bytes)):
            dom = BeautifulSoup(dom, "html.parser")

        pipeline = FetchPipeline(steps=[DraftMetadataStep(self._draft_counter), *self._tail_steps()])
        return await self._run(pipeline, self._new_context(label, soup=dom))

    async def import_draft_file(self, path: Path) -> Optional[str]:
        """Convert a draft exported as an HTML file."""
        html = await asyncio.to_thread(path.read_bytes)
        return await self.import_draft(html, label=str(path))

    async def import_posts(self, urls: list[str]) -> list[Union[str, None, Exception]]:
        """
        Convert several published posts concurrently.

        At most ``crawl.max_concurrent`` posts are in flight at once. A
        failing post does not stop the others.

        Returns:
            One entry per URL, in order: the slug, None if skipped, or the
            exception that aborted that post
        """
        semaphore = asyncio.Semaphore(self.config.crawl.max_concurrent)

        async def one(url: str) -> Optional[str]:
            async with semaphore:
                return await self.import_post(url)

        self._emit(ImportEvent(type=EventType.STARTED, message=f"Converting {len(urls)} posts"))
        results = await asyncio.gather(*(one(url) for url in urls), return_exceptions=True)
        outcomes: list[Union[str, None, Exception]] = []
        for result in results:
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result
            outcomes.append(result)

        self._emit(
            ImportEvent(
                type=EventType.COMPLETED,
                message=f"Converted {len(urls)} posts",
            )
        )
        return outcomes
