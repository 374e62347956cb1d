"""String helpers for slugs and path segments."""

from __future__ import annotations

import re
import unicodedata
from pathlib import PurePosixPath
from urllib.parse import unquote, urlparse

SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


def slugify(value: str, fallback: str = "") -> str:
    """Generate a lowercase, filesystem-friendly slug using ASCII characters only."""
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    normalized = SLUG_PATTERN.sub("-", normalized.lower()).strip("-")
    return normalized or fallback


def last_path_segment(url: str) -> str:
    """Return the percent-decoded last segment of a URL's path ('' if none)."""
    return PurePosixPath(unquote(urlparse(url).path)).name


def url_extension(url: str) -> str:
    """Return the file extension of a URL's path, including the dot ('' if none)."""
    return PurePosixPath(urlparse(url).path).suffix
