"""Embed resolution: iframe source keys to ``<Embed />`` tags."""

from .resolver import EmbedCacheEntry, EmbedResolver, EmbedState, parse_redirector, render_embed

__all__ = [
    "EmbedCacheEntry",
    "EmbedResolver",
    "EmbedState",
    "parse_redirector",
    "render_embed",
]
