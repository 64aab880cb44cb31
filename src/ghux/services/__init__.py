"""Service layer for ghux."""

from ghux.services.download import DownloadOptions, DownloadService

__all__ = ["DownloadOptions", "DownloadService"]
