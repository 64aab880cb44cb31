"""Core domain models and exceptions for ghux."""

from ghux.core.exceptions import (
    ConfigurationError,
    GhuxError,
    HttpFetchError,
    ListingFetchError,
    NoFilePathError,
    ParseFailure,
    RootListingFetchError,
    UnsupportedPlatformError,
)
from ghux.core.models import (
    DEFAULT_REF,
    DownloadReport,
    DownloadResult,
    FileEntry,
    FileInfo,
    ListingFailure,
    ParsedReference,
    PlatformConfig,
    PlatformKind,
    Release,
    ReleaseAsset,
    WalkResult,
)

__all__ = [
    # Models
    "DEFAULT_REF",
    "PlatformKind",
    "PlatformConfig",
    "ParsedReference",
    "FileEntry",
    "ListingFailure",
    "WalkResult",
    "FileInfo",
    "DownloadResult",
    "DownloadReport",
    "Release",
    "ReleaseAsset",
    # Exceptions
    "GhuxError",
    "ConfigurationError",
    "ParseFailure",
    "NoFilePathError",
    "UnsupportedPlatformError",
    "HttpFetchError",
    "ListingFetchError",
    "RootListingFetchError",
]
