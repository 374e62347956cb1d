"""ResolveStep - awaits deferred jobs and substitutes placeholders."""

import asyncio
import logging
from typing import Optional

from ...embeds.resolver import EmbedResolver, EmbedState
from ...models.events import EventType, ImportEvent
from ..base import ArticleContext, EventEmitter

logger = logging.getLogger(__name__)


class ResolveStep:
    """
    Pipeline step that settles the jobs a render started.

    Awaits the embed jobs touched by this post and all of its image
    downloads concurrently, then replaces each embed placeholder in
    ctx.markdown with its ``<Embed />`` tag, or removes it if the embed
    could not be resolved.
    """

    name = "resolve"

    def __init__(self, resolver: EmbedResolver) -> None:
        self._resolver = resolver

    async def execute(
        self,
        ctx: ArticleContext,
        emit: Optional[EventEmitter] = None,
    ) -> ArticleContext:
        if ctx.markdown is None:
            raise ValueError("No rendered Markdown to resolve")

        await asyncio.gather(
            self._resolver.await_all(ctx.embed_keys),
            ctx.assets.wait(),
        )

        ctx.markdown = self._resolver.substitute(ctx.markdown, ctx.embed_keys)

        states = [self._resolver.get(key) for key in ctx.embed_keys]
        resolved = sum(1 for entry in states if entry is not None and entry.state is EmbedState.RESOLVED)
        failed = len(states) - resolved

        if failed:
            logger.warning(f"{ctx.source}: dropped {failed} of {len(states)} embeds")

        if emit:
            emit(
                ImportEvent(
                    type=EventType.EMBEDS_RESOLVED,
                    source=ctx.source,
                    slug=ctx.slug,
                    embeds_resolved=resolved,
                    embeds_failed=failed,
                )
            )
        return ctx
