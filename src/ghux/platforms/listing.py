"""Decoding of platform directory-listing payloads."""

from dataclasses import dataclass
from typing import Any

import httpx

from ghux.platforms.registry import ListingFormat

GITLAB_PAGE_SIZE = 100


@dataclass(frozen=True)
class ListingItem:
    """One entry of a directory listing, normalised across platforms."""

    path: str
    is_dir: bool
    download_url: str | None = None


@dataclass(frozen=True)
class ListingPage:
    items: list[ListingItem]
    next_url: str | None = None


class ListingPayloadError(ValueError):
    """The listing payload does not have the expected shape."""


def decode_listing(listing_format: ListingFormat, payload: Any, url: str) -> ListingPage:
    """Decode one page of a listing response.

    Raises:
        ListingPayloadError: If the payload is not a directory listing
            (for example the metadata object of a single file).
    """
    if listing_format == ListingFormat.CONTENTS:
        return _decode_contents(payload)
    if listing_format == ListingFormat.GITLAB_TREE:
        return _decode_gitlab_tree(payload, url)
    if listing_format == ListingFormat.BITBUCKET_SRC:
        return _decode_bitbucket_src(payload)
    raise ListingPayloadError(f"Unknown listing format: {listing_format}")


def _decode_contents(payload: Any) -> ListingPage:
    # [{"type": "file"|"dir", "path": ..., "download_url": ...}]
    if not isinstance(payload, list):
        raise ListingPayloadError("Expected a JSON array of directory entries")
    items = []
    for entry in payload:
        if not isinstance(entry, dict) or "path" not in entry:
            continue
        entry_type = entry.get("type")
        if entry_type == "file":
            items.append(ListingItem(entry["path"], False, entry.get("download_url") or None))
        elif entry_type == "dir":
            items.append(ListingItem(entry["path"], True))
    return ListingPage(items)


def _decode_gitlab_tree(payload: Any, url: str) -> ListingPage:
    # [{"type": "blob"|"tree", "path": ..., "name": ...}]
    if not isinstance(payload, list):
        raise ListingPayloadError("Expected a JSON array of tree entries")
    items = []
    for entry in payload:
        if not isinstance(entry, dict) or "path" not in entry:
            continue
        if entry.get("type") == "blob":
            items.append(ListingItem(entry["path"], False))
        elif entry.get("type") == "tree":
            items.append(ListingItem(entry["path"], True))

    next_url = None
    if len(payload) >= GITLAB_PAGE_SIZE:
        current = httpx.URL(url)
        page = int(current.params.get("page", "1"))
        next_url = str(current.copy_set_param("page", str(page + 1)))
    return ListingPage(items, next_url)


def _decode_bitbucket_src(payload: Any) -> ListingPage:
    # {"values": [{"type": "commit_file"|"commit_directory", "path": ..., "links": ...}], "next": ...}
    if not isinstance(payload, dict) or not isinstance(payload.get("values"), list):
        raise ListingPayloadError("Expected a paginated object with 'values'")
    items = []
    for entry in payload["values"]:
        if not isinstance(entry, dict) or "path" not in entry:
            continue
        if entry.get("type") == "commit_file":
            href = entry.get("links", {}).get("self", {}).get("href")
            items.append(ListingItem(entry["path"], False, href))
        elif entry.get("type") == "commit_directory":
            items.append(ListingItem(entry["path"], True))
    return ListingPage(items, payload.get("next"))
