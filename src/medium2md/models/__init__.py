"""medium2md configuration, event and metadata models."""

from .config import CrawlConfig, ImporterConfig, NetworkConfig
from .events import EventType, ImportEvent, ImportStats
from .post import PostMetadata

__all__ = [
    # Config
    "CrawlConfig",
    "ImporterConfig",
    "NetworkConfig",
    # Events
    "EventType",
    "ImportEvent",
    "ImportStats",
    # Metadata
    "PostMetadata",
]
