"""Exception hierarchy for ghux.

Parsing and URL synthesis errors are always recoverable at the call site.
Listing failures inside a directory walk are recorded on the walk result
instead of being raised.
"""

from typing import Any


class GhuxError(Exception):
    """Base exception for all ghux errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(GhuxError):
    """Invalid settings or platform configuration."""


class ParseFailure(GhuxError):
    """Input does not resolve to an owner/repo reference."""


class NoFilePathError(GhuxError):
    """A raw download URL was requested for a bare repository reference."""


class UnsupportedPlatformError(GhuxError):
    """The platform has no known API shape for the requested operation."""


class HttpFetchError(GhuxError):
    """An HTTP request failed (network error, bad status or bad payload)."""

    def __init__(
        self,
        message: str,
        url: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details={"url": url, "status_code": status_code, **(details or {})})
        self.url = url
        self.status_code = status_code


class ListingFetchError(HttpFetchError):
    """A directory listing could not be fetched or decoded."""


class RootListingFetchError(ListingFetchError):
    """Listing the root of a directory walk failed."""
