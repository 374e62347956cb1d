"""Content conversion for medium2md (post body to Markdown, front-matter)."""

from .frontmatter import FrontmatterBuilder
from .renderer import ArticleRenderer, RenderResult

__all__ = [
    "ArticleRenderer",
    "FrontmatterBuilder",
    "RenderResult",
]
