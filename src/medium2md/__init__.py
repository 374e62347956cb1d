"""
medium2md - Convert Medium posts and drafts to Markdown.

Usage:
    from medium2md import ImporterConfig, MediumImporter

    config = ImporterConfig(content_folder=Path("./content"))

    async with MediumImporter(config) as importer:
        slug = await importer.import_post("https://medium.com/@me/hello-1a2b3c")
"""

__version__ = "1.0.0"

from .assets import AssetCollector, AssetJob
from .conversion import ArticleRenderer, FrontmatterBuilder, RenderResult
from .core.importer import MediumImporter
from .embeds import EmbedCacheEntry, EmbedResolver, EmbedState
from .errors import (
    ConversionError,
    FetchError,
    MissingRequiredMetadata,
    NoEmbedTarget,
    ParseError,
)
from .models.config import CrawlConfig, ImporterConfig, NetworkConfig
from .models.events import EventType, ImportEvent, ImportStats
from .models.post import PostMetadata

__all__ = [
    "__version__",
    # Core
    "MediumImporter",
    # Config
    "ImporterConfig",
    "NetworkConfig",
    "CrawlConfig",
    # Conversion
    "ArticleRenderer",
    "RenderResult",
    "FrontmatterBuilder",
    "PostMetadata",
    # Deferred jobs
    "EmbedResolver",
    "EmbedCacheEntry",
    "EmbedState",
    "AssetCollector",
    "AssetJob",
    # Events
    "EventType",
    "ImportEvent",
    "ImportStats",
    # Errors
    "ConversionError",
    "FetchError",
    "ParseError",
    "MissingRequiredMetadata",
    "NoEmbedTarget",
]
