"""Event types emitted while importing posts."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional


class EventType(str, Enum):
    """Types of events emitted during an import."""

    # Lifecycle events
    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"

    # Per-post phases
    FETCH_STARTED = "fetch_started"
    FETCH_COMPLETED = "fetch_completed"
    POST_SKIPPED = "post_skipped"
    METADATA_EXTRACTED = "metadata_extracted"
    POST_RENDERED = "post_rendered"
    EMBEDS_RESOLVED = "embeds_resolved"
    ASSET_SAVED = "asset_saved"
    POST_SAVED = "post_saved"


@dataclass
class ImportEvent:
    """
    Event emitted during an import.

    Example:
        def on_event(event: ImportEvent) -> None:
            if event.type == EventType.POST_SAVED:
                print(f"Saved: {event.output_path}")
            elif event.is_error:
                print(f"Error: {event.source} - {event.error}")
    """

    type: EventType

    # Timestamp (always UTC)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    # Post URL, or a description of the local draft
    source: Optional[str] = None
    slug: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None

    output_path: Optional[Path] = None
    embeds_resolved: Optional[int] = None
    embeds_failed: Optional[int] = None

    @property
    def is_error(self) -> bool:
        """Check if this is an error event."""
        return self.type == EventType.FAILED


@dataclass
class ImportStats:
    """Cumulative statistics for an importer's lifetime."""

    posts_saved: int = 0
    posts_skipped: int = 0
    posts_failed: int = 0
    assets_saved: int = 0

    def to_dict(self) -> dict:
        """Convert stats to dictionary for serialization."""
        return {
            "posts_saved": self.posts_saved,
            "posts_skipped": self.posts_skipped,
            "posts_failed": self.posts_failed,
            "assets_saved": self.assets_saved,
        }
