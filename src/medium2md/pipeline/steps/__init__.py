"""Pipeline steps for post conversion."""

from .fetch import FetchStep
from .filter import ResponseFilterStep
from .metadata import DraftMetadataStep, RemoteMetadataStep, UntitledCounter
from .render import RenderStep
from .resolve import ResolveStep
from .save import SaveStep

__all__ = [
    "DraftMetadataStep",
    "FetchStep",
    "RemoteMetadataStep",
    "RenderStep",
    "ResolveStep",
    "ResponseFilterStep",
    "SaveStep",
    "UntitledCounter",
]
