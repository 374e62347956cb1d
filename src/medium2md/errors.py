"""Exception types raised while converting Medium posts."""

from __future__ import annotations


class ConversionError(Exception):
    """Base class for every error raised by medium2md."""


class FetchError(ConversionError):
    """
    A network or HTTP status failure while fetching a resource.

    Attributes:
        url: The URL that could not be fetched
        status_code: HTTP status code, if a response was received
    """

    def __init__(self, url: str, message: str, status_code: int | None = None) -> None:
        super().__init__(f"{url}: {message}")
        self.url = url
        self.status_code = status_code


class ParseError(ConversionError):
    """An embed redirector URL could not be parsed into a target."""


class MissingRequiredMetadata(ConversionError):
    """A published post lacks a meta tag that has no fallback value."""

    def __init__(self, url: str, selector: str) -> None:
        super().__init__(f"{url}: missing required metadata {selector!r}")
        self.url = url
        self.selector = selector


class NoEmbedTarget(ConversionError):
    """An embed document contains neither a nested iframe nor a gist script."""
