"""RenderStep - synchronous Markdown rendering of the post body."""

import logging
from typing import Optional

from ...conversion.renderer import ArticleRenderer
from ...embeds.resolver import EmbedResolver
from ...models.events import EventType, ImportEvent
from ..base import ArticleContext, EventEmitter

logger = logging.getLogger(__name__)


class RenderStep:
    """
    Pipeline step that renders ctx.content to Markdown.

    Rendering never awaits: embeds and images found along the way are
    registered with the shared resolver and the post's asset collector,
    whose jobs start immediately and are awaited by ResolveStep.

    Populates:
        ctx.markdown: Body text, possibly containing embed placeholders
        ctx.embed_keys: Embed source keys referenced by the body
    """

    name = "render"

    def __init__(self, resolver: EmbedResolver, **renderer_options) -> None:
        self._resolver = resolver
        self._renderer_options = renderer_options

    async def execute(
        self,
        ctx: ArticleContext,
        emit: Optional[EventEmitter] = None,
    ) -> ArticleContext:
        if ctx.content is None:
            raise ValueError("No content to render")

        renderer = ArticleRenderer(self._resolver, ctx.assets, **self._renderer_options)
        result = renderer.render(ctx.content)

        ctx.markdown = result.markdown
        ctx.embed_keys = result.embed_keys

        logger.debug(
            f"Rendered {ctx.source}: {len(result.markdown)} chars, "
            f"{len(result.embed_keys)} embeds, {len(ctx.assets)} images"
        )

        if emit:
            emit(
                ImportEvent(
                    type=EventType.POST_RENDERED,
                    source=ctx.source,
                    slug=ctx.slug,
                    message=f"Rendered {len(result.markdown)} chars of Markdown",
                )
            )
        return ctx
