"""Base classes for the post conversion pipeline."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Protocol, runtime_checkable

from bs4 import BeautifulSoup, Tag

from ..assets.collector import AssetCollector
from ..models.events import EventType, ImportEvent
from ..models.post import PostMetadata

# Type alias for event emitter function
EventEmitter = Callable[[ImportEvent], None]


@dataclass
class ArticleContext:
    """
    Context object passed through pipeline steps.

    Contains all state for converting a single post, accumulated as it
    moves through the pipeline.

    Attributes:
        source: Canonical URL of a published post, or a label for a draft
        content_folder: Root folder receiving one directory per post
        assets: Image download queue owned by this conversion
        soup: Parsed document (fetched, or the supplied draft DOM)
        content: Root of the post body inside ``soup``
        slug: Directory name of the converted post
        metadata: Front-matter metadata
        markdown: Rendered body (placeholders substituted after resolve)
        embed_keys: Embed source keys referenced by ``markdown``
        output_path: Path of the written ``index.md``
        should_skip: If True, remaining steps will be skipped
        skip_reason: Human-readable reason for skipping
        error: Exception that aborted the conversion
    """

    source: str
    content_folder: Path
    assets: AssetCollector

    soup: Optional[BeautifulSoup] = None
    content: Optional[Tag] = None
    slug: Optional[str] = None
    metadata: Optional[PostMetadata] = None

    markdown: Optional[str] = None
    embed_keys: list[str] = field(default_factory=list)
    output_path: Optional[Path] = None
    asset_paths: list[Path] = field(default_factory=list)

    # Status
    should_skip: bool = False
    skip_reason: Optional[str] = None
    error: Optional[BaseException] = None


@runtime_checkable
class ArticleStep(Protocol):
    """
    Protocol for pipeline steps.

    Each step receives an ArticleContext, processes it, and returns the
    (possibly modified) context.

    Error Handling Contract:
    - For expected skips (a response rather than a post): set
      ctx.should_skip = True and ctx.skip_reason = "reason"
    - For failures that abort the post: raise an exception
    - The pipeline will catch exceptions and set ctx.error
    """

    name: str

    async def execute(
        self,
        ctx: ArticleContext,
        emit: Optional[EventEmitter] = None,
    ) -> ArticleContext:
        """
        Execute this pipeline step.

        Args:
            ctx: The article context with accumulated state
            emit: Optional callback to emit events

        Returns:
            The (possibly modified) article context
        """
        ...


@dataclass
class FetchPipeline:
    """
    Pipeline converting a single post through multiple steps.

    Steps are executed in order. If a step sets ctx.should_skip = True,
    remaining steps are skipped. If a step raises an exception, it is
    captured in ctx.error and processing stops.

    Example:
        pipeline = FetchPipeline(steps=[
            FetchStep(http_client),
            ResponseFilterStep(),
            RemoteMetadataStep(),
            RenderStep(resolver),
            ResolveStep(resolver),
            SaveStep(),
        ])

        ctx = await pipeline.execute(ctx, emit=log_event)
        if ctx.error:
            logger.error(f"Failed: {ctx.error}")
        elif ctx.should_skip:
            logger.info(f"Skipped: {ctx.skip_reason}")
        else:
            logger.info(f"Saved: {ctx.output_path}")
    """

    steps: list[ArticleStep]

    async def execute(
        self,
        ctx: ArticleContext,
        emit: Optional[EventEmitter] = None,
    ) -> ArticleContext:
        """
        Run every step over a context.

        Args:
            ctx: Freshly created context for one post
            emit: Optional callback for emitting events

        Returns:
            ArticleContext with final state (check error/should_skip for status)
        """
        for step in self.steps:
            if ctx.should_skip:
                break

            try:
                ctx = await step.execute(ctx, emit)
            except Exception as e:
                ctx.error = e
                ctx.should_skip = True

                if emit:
                    emit(
                        ImportEvent(
                            type=EventType.FAILED,
                            source=ctx.source,
                            error=f"{step.name}: {e}",
                        )
                    )
                break

        return ctx

    def add_step(self, step: ArticleStep) -> "FetchPipeline":
        """
        Add a step to the pipeline (fluent API).

        Args:
            step: The step to add

        Returns:
            Self for chaining
        """
        self.steps.append(step)
        return self
