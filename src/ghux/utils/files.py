"""File name and size helpers."""

import re
from pathlib import Path
from urllib.parse import unquote, urlsplit


def format_file_size(size: int) -> str:
    """Format a byte count for display."""
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.2f} KB"
    if size < 1024 * 1024 * 1024:
        return f"{size / (1024 * 1024):.2f} MB"
    return f"{size / (1024 * 1024 * 1024):.2f} GB"


def sanitize_filename(filename: str) -> str:
    """Make a single file name safe for the local file system."""
    filename = re.sub(r'[<>:"|?*\\/]', "_", filename)
    filename = filename.replace("..", "_")
    return re.sub(r"^\.", "_", filename) or "download"


def safe_relative_path(relative_path: str) -> Path:
    """Turn a repository path into a relative local path without traversal."""
    parts = [part for part in relative_path.split("/") if part and part not in (".", "..")]
    if not parts:
        return Path("download")
    return Path(*parts)


def filename_from_url(url: str) -> str:
    """Extract a file name from any URL, defaulting to ``download``."""
    try:
        path = urlsplit(url).path
    except ValueError:
        return "download"
    segments = [segment for segment in path.split("/") if segment]
    if not segments:
        return "download"
    return unquote(segments[-1]) or "download"
