"""ResponseFilterStep - skips responses to other posts."""

import logging
from typing import Optional

from ...models.events import EventType, ImportEvent
from ..base import ArticleContext, EventEmitter

logger = logging.getLogger(__name__)

CONTENT_SELECTOR = ".postArticle-content"
RESPONSE_SELECTOR = ".postArticle--response"


class ResponseFilterStep:
    """
    Pipeline step that keeps only standalone posts.

    Medium publishes responses with the same URL scheme as posts. A
    document is a response (and is skipped, producing no output) when it
    has no ``.postArticle-content`` container or carries the
    ``.postArticle--response`` marker.

    Populates:
        ctx.content: The post body container
    """

    name = "filter"

    async def execute(
        self,
        ctx: ArticleContext,
        emit: Optional[EventEmitter] = None,
    ) -> ArticleContext:
        if ctx.soup is None:
            raise ValueError("No document to inspect")

        content = ctx.soup.select_one(CONTENT_SELECTOR)
        if content is None or ctx.soup.select_one(RESPONSE_SELECTOR) is not None:
            ctx.should_skip = True
            ctx.skip_reason = "Response to another post"
            logger.info(f"Skipping {ctx.source}: response to another post")

            if emit:
                emit(ImportEvent(type=EventType.POST_SKIPPED, source=ctx.source, message=ctx.skip_reason))
            return ctx

        ctx.content = content
        return ctx
