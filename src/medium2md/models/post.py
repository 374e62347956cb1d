"""Front-matter metadata of a converted post."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class PostMetadata:
    """Metadata written to the front-matter of ``index.md``."""

    title: str
    description: str
    date: str
    categories: list[str] = field(default_factory=list)
    published: bool = False
    canonical_link: Optional[str] = None
    redirect_from: list[str] = field(default_factory=list)
