"""Image asset downloads for converted posts."""

from .collector import AssetCollector, AssetJob

__all__ = ["AssetCollector", "AssetJob"]
