"""HTTP access, directory walking and file transfers."""

from ghux.download.downloader import Downloader, DownloadTarget, RetryPolicy
from ghux.download.http import HttpClient, create_async_client
from ghux.download.walker import DirectoryWalker

__all__ = [
    "DirectoryWalker",
    "DownloadTarget",
    "Downloader",
    "HttpClient",
    "RetryPolicy",
    "create_async_client",
]
