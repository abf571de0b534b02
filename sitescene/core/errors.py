"""
Error types raised by the SiteScene pipeline.

Every error carries the offending field and optional user-facing
suggestions so the session layer can turn it into a notification.
"""

from typing import List, Optional


class SiteSceneError(ValueError):
    """Base class for recoverable pipeline errors."""

    def __init__(self, message: str, field: str = "", suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field = field
        self.suggestions = suggestions or []

    @property
    def kind(self) -> str:
        return type(self).__name__


class ParseError(SiteSceneError):
    """Raised when the input dataset cannot be parsed."""


class InvalidParameterError(SiteSceneError):
    """Raised when zoning parameters are out of range."""


class DegenerateGeometryError(SiteSceneError):
    """Raised when a ring has fewer than 3 usable vertices."""


class UnsupportedFileTypeError(SiteSceneError):
    """Raised when an upload is rejected before parsing."""
