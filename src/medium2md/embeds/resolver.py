"""Deferred resolution of embedded iframes into ``<Embed />`` tags."""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
from urllib.parse import parse_qs

from bs4 import BeautifulSoup, Tag

from ..errors import NoEmbedTarget, ParseError
from ..http.protocols import HttpClient

logger = logging.getLogger(__name__)

GIST_SCRIPT_SELECTOR = 'script[src^="https://gist.github.com"]'


class EmbedState(str, Enum):
    """Lifecycle of a cache entry. Leaves PENDING exactly once."""

    PENDING = "pending"
    RESOLVED = "resolved"
    ERRORED = "errored"


@dataclass
class EmbedCacheEntry:
    """
    Resolution state of one embed source key.

    Attributes:
        source_key: Raw ``src`` of the outer iframe
        placeholder: Token standing in for the embed until it is resolved
        aspect_ratio: Height/width ratio measured at first registration
        caption: First non-empty caption supplied for this key
        state: Current lifecycle state
        target: Renderable embed URL, once resolved
        link: Human-facing URL of the embedded resource, when known
        markup: Final ``<Embed />`` tag, once resolved
    """

    source_key: str
    placeholder: str
    aspect_ratio: float = 1.0
    caption: str = ""
    state: EmbedState = EmbedState.PENDING
    target: Optional[str] = None
    link: Optional[str] = None
    markup: Optional[str] = None
    task: Optional[asyncio.Task] = field(default=None, repr=False, compare=False)


def format_aspect_ratio(ratio: float) -> str:
    """Render a ratio the way it reads in JSX (``1`` rather than ``1.0``)."""
    text = repr(float(ratio))
    return text[:-2] if text.endswith(".0") else text


def render_embed(target: str, aspect_ratio: float, caption: str) -> str:
    """Build the inline ``<Embed />`` tag for a resolved embed."""
    caption = caption.replace('"', "&quot;")
    return f'<Embed src="{target}" aspectRatio={{{format_aspect_ratio(aspect_ratio)}}} caption="{caption}" />'


def parse_redirector(src: str) -> tuple[str, Optional[str]]:
    """
    Extract the real target from an embed redirector URL.

    Redirectors look like
    ``https://cdn.embedly.com/widgets/media.html?src=<player>&url=<page>&...``:
    ``src`` is the playable target and ``url`` the human-facing page.

    Raises:
        ParseError: If the query string carries no ``src`` parameter
    """
    _, _, query = src.partition("?")
    params = parse_qs(query)
    targets = params.get("src")
    if not targets or not targets[0]:
        raise ParseError(f"redirector has no src parameter: {src}")
    links = params.get("url")
    return targets[0], links[0] if links else None


class EmbedResolver:
    """
    Process-wide cache of embed resolutions, keyed by iframe source.

    Registration is synchronous so rendering never waits on the network;
    the resolution job for a key starts the moment the key is first seen
    and is awaited later, in a batch, by ``await_all``. Entries are never
    evicted: a key seen by an earlier post is reused verbatim by later
    posts, and two posts hitting the same pending key share one job.

    Example:
        resolver = EmbedResolver(http_client)

        text = resolver.resolve_or_register("/media/1a2b3c", caption="Demo")
        await resolver.await_all(["/media/1a2b3c"])
        text = resolver.substitute(text, ["/media/1a2b3c"])
    """

    def __init__(
        self,
        http_client: HttpClient,
        base_url: str = "https://medium.com",
        timeout: float = 30.0,
    ) -> None:
        """
        Initialize the resolver.

        Args:
            http_client: Fetch collaborator for embed frame documents
            base_url: Origin prepended to relative source keys
            timeout: Seconds allowed for one resolution job's I/O
        """
        self._client = http_client
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._entries: dict[str, EmbedCacheEntry] = {}

    def __contains__(self, source_key: object) -> bool:
        return source_key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, source_key: str) -> Optional[EmbedCacheEntry]:
        """Return the cache entry for a key, if it has been registered."""
        return self._entries.get(source_key)

    def resolve_or_register(
        self,
        source_key: str,
        caption: Optional[str] = "",
        aspect_ratio: float = 1.0,
    ) -> str:
        """
        Return inline text for an embed, registering it on first sight.

        Must be called from within a running event loop; the resolution
        job of a new key is scheduled immediately.

        Args:
            source_key: Raw ``src`` of the outer iframe
            caption: Caption candidate supplied by this caller
            aspect_ratio: Ratio to record if the key is new

        Returns:
            The cached ``<Embed />`` markup if the key is resolved, else
            its placeholder token, block-spaced
        """
        caption = caption if isinstance(caption, str) else ""
        entry = self._entries.get(source_key)

        if entry is None:
            entry = EmbedCacheEntry(
                source_key=source_key,
                placeholder=f"Embed placeholder {uuid.uuid4().hex}",
                aspect_ratio=aspect_ratio,
                caption=caption,
            )
            self._entries[source_key] = entry
            entry.task = asyncio.get_running_loop().create_task(self._resolve(entry))
            logger.debug(f"Registered embed {source_key} as {entry.placeholder}")
            return f"\n\n{entry.placeholder}\n\n"

        if not entry.caption and caption:
            entry.caption = caption

        if entry.state is EmbedState.RESOLVED:
            return f"\n\n{entry.markup}\n\n"
        return f"\n\n{entry.placeholder}\n\n"

    def _frame_url(self, source_key: str) -> str:
        if source_key.startswith(("http://", "https://")):
            return source_key
        if source_key.startswith("//"):
            return f"https:{source_key}"
        return f"{self._base_url}{source_key}"

    async def _find_target(self, entry: EmbedCacheEntry) -> tuple[str, Optional[str]]:
        """
        Fetch the embed frame and locate the real embed target.

        Returns:
            (target, link) tuple

        Raises:
            FetchError: If the frame document cannot be fetched
            ParseError: If a nested iframe's redirector is unusable
            NoEmbedTarget: If neither a nested iframe nor a gist is present
        """
        response = await self._client.get(self._frame_url(entry.source_key), timeout=self._timeout)
        frame = BeautifulSoup(response.content, "html.parser")

        nested = frame.find("iframe")
        if isinstance(nested, Tag):
            nested_src = nested.get("src")
            if not isinstance(nested_src, str) or not nested_src:
                raise ParseError(f"nested iframe without src in {entry.source_key}")
            return parse_redirector(nested_src)

        gist = frame.select_one(GIST_SCRIPT_SELECTOR)
        if gist is not None:
            return str(gist["src"]), None

        raise NoEmbedTarget(f"no embeddable content in {entry.source_key}")

    async def _resolve(self, entry: EmbedCacheEntry) -> None:
        """Run the resolution job for an entry. Never raises."""
        try:
            target, link = await asyncio.wait_for(self._find_target(entry), timeout=self._timeout)
        except asyncio.CancelledError:
            entry.state = EmbedState.ERRORED
            raise
        except Exception as e:
            entry.state = EmbedState.ERRORED
            logger.warning(f"Dropping embed {entry.source_key}: {type(e).__name__}: {e}")
            return

        entry.target = target
        entry.link = link
        entry.markup = render_embed(target, entry.aspect_ratio, entry.caption)
        entry.state = EmbedState.RESOLVED
        logger.debug(f"Resolved embed {entry.source_key} -> {target}")

    async def await_all(self, source_keys: Optional[Iterable[str]] = None) -> None:
        """
        Wait for every still-pending job among ``source_keys``.

        Args:
            source_keys: Keys touched by one render (every key if None)
        """
        keys = self._entries.keys() if source_keys is None else source_keys
        tasks = []
        for key in dict.fromkeys(keys):
            entry = self._entries.get(key)
            if entry is not None and entry.state is EmbedState.PENDING and entry.task is not None:
                tasks.append(entry.task)

        if tasks:
            await asyncio.gather(*tasks)

    def substitute(self, markdown: str, source_keys: Iterable[str]) -> str:
        """
        Replace the placeholders of ``source_keys`` with their final text.

        Resolved entries become their ``<Embed />`` markup; errored ones are
        removed. Entries still pending are left untouched.
        """
        for key in dict.fromkeys(source_keys):
            entry = self._entries.get(key)
            if entry is None or entry.state is EmbedState.PENDING:
                continue
            replacement = entry.markup if entry.state is EmbedState.RESOLVED else ""
            markdown = markdown.replace(entry.placeholder, replacement or "")
        return markdown

    def stats(self) -> dict:
        """Count cache entries by state."""
        counts = {state.value: 0 for state in EmbedState}
        for entry in self._entries.values():
            counts[entry.state.value] += 1
        return counts
