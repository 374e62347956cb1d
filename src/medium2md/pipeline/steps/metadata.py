"""Pipeline steps for front-matter metadata extraction."""

import itertools
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from bs4 import BeautifulSoup, Tag

from ...errors import MissingRequiredMetadata
from ...models.events import EventType, ImportEvent
from ...models.post import PostMetadata
from ...utils import last_path_segment, slugify
from ..base import ArticleContext, EventEmitter

logger = logging.getLogger(__name__)

DRAFT_CONTENT_SELECTOR = ".e-content"

# Nodes that duplicate front-matter fields or page chrome
PUBLISHED_CHROME = (".section-divider", ".js-postMetaLockup")
DRAFT_CHROME = (".p-name", ".graf--title", ".graf--subtitle", ".section-divider")


def _remove_first(soup: BeautifulSoup, selector: str) -> None:
    node = soup.select_one(selector)
    if node is not None:
        node.decompose()


def _required_attr(soup: BeautifulSoup, selector: str, attr: str, url: str) -> str:
    node = soup.select_one(selector)
    value = node.get(attr) if isinstance(node, Tag) else None
    if value is None:
        raise MissingRequiredMetadata(url, selector)
    return str(value)


def _emit_metadata(ctx: ArticleContext, emit: Optional[EventEmitter]) -> None:
    if emit and ctx.metadata is not None:
        emit(
            ImportEvent(
                type=EventType.METADATA_EXTRACTED,
                source=ctx.source,
                slug=ctx.slug,
                message=f"Extracted metadata: title='{ctx.metadata.title}'",
            )
        )


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """ISO 8601 timestamp in UTC with millisecond precision and a ``Z`` suffix."""
    moment = (moment or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class UntitledCounter:
    """
    Numbering for drafts without a title.

    One instance lives as long as the importer; numbers are never reused
    within that lifetime.
    """

    def __init__(self, start: int = 1) -> None:
        self._numbers = itertools.count(start)

    def next_title(self) -> str:
        return f"Untitled Draft {next(self._numbers)}"


class RemoteMetadataStep:
    """
    Pipeline step that reads front-matter fields from a published post.

    Populates ctx.slug and ctx.metadata, then removes the title, the
    first section divider and the author lockup from the document so they
    are not rendered into the body.

    Raises:
        MissingRequiredMetadata: If the description or publish date meta
            tag is absent (no fallback value exists for them)
    """

    name = "metadata"

    async def execute(
        self,
        ctx: ArticleContext,
        emit: Optional[EventEmitter] = None,
    ) -> ArticleContext:
        soup = ctx.soup
        if soup is None:
            raise ValueError("No document to read metadata from")

        url = ctx.source
        description = _required_attr(soup, "meta[name='description']", "content", url)
        date = _required_attr(soup, "meta[property='article:published_time']", "content", url)

        categories = [li.get_text() for li in soup.select(".js-postTags li")]

        # Some posts have no title
        title_node = soup.select_one(".graf--title")
        title = title_node.get_text() if title_node is not None else ""

        redirect = last_path_segment(url)
        slug = (slugify(title) if title else "") or redirect
        if not slug:
            raise ValueError(f"Cannot derive a slug for {url}")

        canonical = soup.select_one("link[rel='canonical']")
        canonical_href = canonical.get("href") if isinstance(canonical, Tag) else None

        ctx.slug = slug
        ctx.metadata = PostMetadata(
            title=title,
            description=description,
            date=date,
            categories=categories,
            published=True,
            canonical_link=str(canonical_href) if canonical_href else url,
            redirect_from=[f"/{redirect}"] if redirect else [],
        )

        if title_node is not None:
            title_node.decompose()
        for selector in PUBLISHED_CHROME:
            _remove_first(soup, selector)

        logger.debug(f"Extracted metadata for {url}: title='{title}', slug='{slug}'")
        _emit_metadata(ctx, emit)
        return ctx


class DraftMetadataStep:
    """
    Pipeline step that reads front-matter fields from a local draft.

    Drafts are unpublished and dated at conversion time. A draft without
    a title is named ``Untitled Draft N`` from the shared counter. A DOM
    without an ``.e-content`` body is skipped.

    Populates ctx.content, ctx.slug and ctx.metadata, and removes the
    title, subtitle and first section divider from the document.
    """

    name = "draft-metadata"

    def __init__(
        self,
        counter: UntitledCounter,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        """
        Initialize the step.

        Args:
            counter: Importer-wide numbering for untitled drafts
            clock: Source of the draft's date
        """
        self._counter = counter
        self._clock = clock

    async def execute(
        self,
        ctx: ArticleContext,
        emit: Optional[EventEmitter] = None,
    ) -> ArticleContext:
        soup = ctx.soup
        if soup is None:
            raise ValueError("No draft document supplied")

        content = soup.select_one(DRAFT_CONTENT_SELECTOR)
        if content is None:
            ctx.should_skip = True
            ctx.skip_reason = "Draft has no content"
            logger.warning(f"Skipping {ctx.source}: no {DRAFT_CONTENT_SELECTOR} element")
            if emit:
                emit(ImportEvent(type=EventType.POST_SKIPPED, source=ctx.source, message=ctx.skip_reason))
            return ctx

        name_node = soup.select_one(".p-name")
        title = name_node.get_text().strip() if name_node is not None else ""
        if not title:
            title = self._counter.next_title()

        summary = soup.select_one('.p-summary[data-field="subtitle"]')
        description = summary.get_text().strip() if summary is not None else ""

        ctx.content = content
        ctx.slug = slugify(title, fallback="draft")
        ctx.metadata = PostMetadata(
            title=title,
            description=description,
            date=utc_timestamp(self._clock()),
            published=False,
        )

        for selector in DRAFT_CHROME:
            _remove_first(soup, selector)

        _emit_metadata(ctx, emit)
        return ctx
