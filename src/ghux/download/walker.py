"""Recursive directory listing through platform APIs."""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from ghux.core.exceptions import HttpFetchError, ListingFetchError, RootListingFetchError
from ghux.core.models.reference import FileEntry, ListingFailure, ParsedReference, WalkResult
from ghux.download.http import HttpClient
from ghux.git.url_builder import URLBuilder
from ghux.platforms.listing import ListingItem, ListingPayloadError, decode_listing
from ghux.platforms.registry import ListingFormat
from ghux.utils.glob import GlobFilter

logger = structlog.get_logger(__name__)

DEFAULT_MAX_DEPTH = 10
MAX_PAGES = 100


@dataclass(frozen=True)
class ListingSuccess:
    path: str
    depth: int
    items: list[ListingItem]


class DirectoryWalker:
    """Lists every file below a directory reference.

    The walk is bounded by ``max_depth`` (the start directory is depth 0) and
    fans out over sibling directories with at most ``concurrency`` listing
    requests in flight. A directory whose listing fails contributes no
    entries and is recorded as a :class:`ListingFailure`; the walk itself
    never raises for fetch failures.
    """

    def __init__(
        self,
        http: HttpClient,
        builder: URLBuilder | None = None,
        concurrency: int = 4,
    ) -> None:
        self._http = http
        self._builder = builder or URLBuilder()
        self._concurrency = max(1, concurrency)

    async def list_files(
        self,
        reference: ParsedReference,
        max_depth: int = DEFAULT_MAX_DEPTH,
        glob_filter: GlobFilter | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> list[FileEntry]:
        """Return the (filtered) files below ``reference``."""
        result = await self.walk(reference, max_depth, glob_filter, cancel_event)
        return result.files

    async def walk(
        self,
        reference: ParsedReference,
        max_depth: int = DEFAULT_MAX_DEPTH,
        glob_filter: GlobFilter | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> WalkResult:
        """Walk the tree below ``reference`` and report files and failures.

        Raises:
            UnsupportedPlatformError: Before any request, if the platform
                has no listing API.
        """
        listing_format = self._builder.listing_format(reference)
        semaphore = asyncio.Semaphore(self._concurrency)
        files: list[FileEntry] = []
        failures: list[ListingFailure] = []
        cancelled = False

        def is_cancelled() -> bool:
            nonlocal cancelled
            if cancel_event is not None and cancel_event.is_set():
                cancelled = True
            return cancelled

        async def visit(path: str, depth: int) -> None:
            if is_cancelled():
                return
            outcome = await self._fetch_listing(
                reference, path, depth, listing_format, semaphore, is_cancelled
            )
            if isinstance(outcome, ListingFailure):
                failures.append(outcome)
                return

            subdirectories = []
            for item in outcome.items:
                if not item.is_dir:
                    files.append(
                        FileEntry(
                            relative_path=item.path,
                            download_url=item.download_url or self._builder.raw_url(reference.with_path(item.path)),
                        )
                    )
                elif depth < max_depth:
                    subdirectories.append(item.path)

            if subdirectories:
                await asyncio.gather(*(visit(child, depth + 1) for child in subdirectories))

        await visit(reference.path or "", 0)

        # Filtering runs on the complete listing, independent of depth pruning.
        if glob_filter is not None:
            files = glob_filter.apply(files)
        files.sort(key=lambda entry: entry.relative_path)

        logger.debug(
            "Directory walk finished",
            repository=reference.full_name,
            files=len(files),
            failures=len(failures),
            cancelled=cancelled,
        )
        return WalkResult(files=files, failures=failures, cancelled=cancelled)

    async def _fetch_listing(
        self,
        reference: ParsedReference,
        path: str,
        depth: int,
        listing_format: ListingFormat,
        semaphore: asyncio.Semaphore,
        is_cancelled: Callable[[], bool],
    ) -> ListingSuccess | ListingFailure:
        try:
            items = await self._fetch_pages(reference, path, depth, listing_format, semaphore, is_cancelled)
        except ListingFetchError as exc:
            event = "Root listing fetch failed" if depth == 0 else "Listing fetch failed"
            logger.warning(event, path=path or "/", depth=depth, reason=exc.message)
            return ListingFailure(path=path, depth=depth, reason=exc.message)
        return ListingSuccess(path=path, depth=depth, items=items)

    async def _fetch_pages(
        self,
        reference: ParsedReference,
        path: str,
        depth: int,
        listing_format: ListingFormat,
        semaphore: asyncio.Semaphore,
        is_cancelled: Callable[[], bool],
    ) -> list[ListingItem]:
        error_type = RootListingFetchError if depth == 0 else ListingFetchError
        url: str | None = self._builder.api_url(reference.with_path(path, is_directory=True))
        items: list[ListingItem] = []
        seen: set[str] = set()

        while url and url not in seen and len(seen) < MAX_PAGES and not is_cancelled():
            seen.add(url)
            try:
                async with semaphore:
                    payload = await self._http.fetch_json(url)
                page = decode_listing(listing_format, payload, url)
            except HttpFetchError as exc:
                raise error_type(exc.message, url=url, status_code=exc.status_code) from exc
            except ListingPayloadError as exc:
                raise error_type(f"Unexpected listing payload from {url}: {exc}", url=url) from exc
            items.extend(page.items)
            url = page.next_url
        return items
