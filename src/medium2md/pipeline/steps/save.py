"""SaveStep - writes index.md and image assets."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from ...conversion.frontmatter import FrontmatterBuilder
from ...models.events import EventType, ImportEvent
from ..base import ArticleContext, EventEmitter

logger = logging.getLogger(__name__)

INDEX_FILENAME = "index.md"


class SaveStep:
    """
    Pipeline step that persists a converted post.

    Writes ``<content_folder>/<slug>/index.md`` (front-matter, body and a
    trailing newline) and every successfully downloaded image next to it.
    Creates the post directory as needed.

    Example:
        save_step = SaveStep()

        ctx = await save_step.execute(ctx)
        print(f"Saved to {ctx.output_path}")
    """

    name = "save"

    def __init__(self, frontmatter: Optional[FrontmatterBuilder] = None) -> None:
        self._frontmatter = frontmatter or FrontmatterBuilder()

    def _validate_post_dir(self, content_folder: Path, slug: str) -> Path:
        """
        Resolve the post directory and make sure it stays in the content folder.

        Raises:
            ValueError: If the slug escapes the content folder
        """
        base = content_folder.resolve()
        post_dir = (base / slug).resolve()
        try:
            post_dir.relative_to(base)
        except ValueError as err:
            raise ValueError(f"Post directory {post_dir} is outside {base}") from err
        if post_dir == base:
            raise ValueError(f"Slug {slug!r} does not name a directory")
        return post_dir

    async def execute(
        self,
        ctx: ArticleContext,
        emit: Optional[EventEmitter] = None,
    ) -> ArticleContext:
        if ctx.markdown is None or ctx.metadata is None or not ctx.slug:
            raise ValueError("Nothing to save")

        post_dir = self._validate_post_dir(ctx.content_folder, ctx.slug)
        post_dir.mkdir(parents=True, exist_ok=True)

        ctx.asset_paths = await ctx.assets.flush(ctx.content_folder, ctx.slug)
        if emit:
            for path in ctx.asset_paths:
                emit(ImportEvent(type=EventType.ASSET_SAVED, source=ctx.source, slug=ctx.slug, output_path=path))

        output_path = post_dir / INDEX_FILENAME
        document = self._frontmatter.compose(ctx.metadata, ctx.markdown)
        try:
            await asyncio.to_thread(output_path.write_text, document, encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to save {ctx.source} to {output_path}: {e}")
            raise

        ctx.output_path = output_path
        logger.info(f"Saved: {output_path}")

        if emit:
            emit(
                ImportEvent(
                    type=EventType.POST_SAVED,
                    source=ctx.source,
                    slug=ctx.slug,
                    output_path=output_path,
                    message=f"Saved to {output_path}",
                )
            )
        return ctx
