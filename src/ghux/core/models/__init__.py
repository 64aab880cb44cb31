"""Domain models for ghux."""

from ghux.core.models.download import (
    DownloadReport,
    DownloadResult,
    FileInfo,
    Release,
    ReleaseAsset,
)
from ghux.core.models.platform import PlatformConfig, PlatformKind
from ghux.core.models.reference import (
    DEFAULT_REF,
    FileEntry,
    ListingFailure,
    ParsedReference,
    WalkResult,
)

__all__ = [
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
]
