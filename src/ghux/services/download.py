"""Download flows: single files, URL lists, directories, patterns and releases."""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, replace
from pathlib import Path
from urllib.parse import urlsplit

import structlog

from ghux.config.settings import Settings
from ghux.core.exceptions import GhuxError, HttpFetchError
from ghux.core.models.download import DownloadReport, FileInfo, Release
from ghux.core.models.platform import PlatformKind
from ghux.core.models.reference import ParsedReference, WalkResult
from ghux.download.downloader import Downloader, DownloadTarget, RetryPolicy
from ghux.download.http import HttpClient
from ghux.download.walker import DirectoryWalker
from ghux.git.url_builder import URLBuilder
from ghux.git.url_parser import URLParser
from ghux.platforms.registry import PlatformRegistry
from ghux.utils.files import filename_from_url, safe_relative_path, sanitize_filename
from ghux.utils.glob import GlobFilter

logger = structlog.get_logger(__name__)


@dataclass
class DownloadOptions:
    """Options shared by the download flows."""

    output: str | None = None
    output_dir: str | None = None
    preserve_path: bool = False
    branch: str | None = None
    tag: str | None = None
    commit: str | None = None
    depth: int | None = None
    overwrite: bool = False

    @property
    def ref_override(self) -> str | None:
        # commit beats tag beats branch
        return self.commit or self.tag or self.branch


def _always_yes(message: str) -> bool:
    return True


class DownloadService:
    """Service for download operations.

    ``confirm`` is asked before bulk transfers; the CLI wires it to an
    interactive prompt.
    """

    def __init__(
        self,
        http: HttpClient,
        settings: Settings,
        registry: PlatformRegistry,
        confirm: Callable[[str], bool] = _always_yes,
        follow_redirects: bool = True,
    ) -> None:
        self._http = http
        self._settings = settings
        self._confirm = confirm
        self.parser = URLParser(registry)
        self.builder = URLBuilder(registry)
        self.walker = DirectoryWalker(http, self.builder, concurrency=settings.listing_concurrency)
        self.downloader = Downloader(
            http,
            retry_policy=RetryPolicy(
                max_attempts=settings.max_retries,
                initial_delay=settings.retry_base_delay,
            ),
            concurrency=settings.download_concurrency,
            follow_redirects=follow_redirects,
        )

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(self, url: str, options: DownloadOptions | None = None) -> ParsedReference | None:
        """Parse ``url`` and apply any branch/tag/commit override."""
        reference = self.parser.parse(url)
        if reference is None:
            return None
        override = options.ref_override if options else None
        return reference.with_ref(override) if override else reference

    def _require_reference(self, url: str, options: DownloadOptions | None) -> ParsedReference:
        reference = self.resolve(url, options)
        if reference is None:
            raise GhuxError(f"Invalid URL format: {url}", details={"url": url})
        return reference

    def resolve_git(self, url: str, options: DownloadOptions | None = None) -> ParsedReference | None:
        """Resolve ``url`` only if it names a file or directory on a known platform."""
        if not self.parser.looks_like_git_url(url):
            return None
        reference = self.resolve(url, options)
        if reference is None or reference.platform == PlatformKind.OTHER:
            return None
        return reference

    # ------------------------------------------------------------------
    # Single files
    # ------------------------------------------------------------------

    async def file_info(self, url: str, options: DownloadOptions | None = None) -> FileInfo:
        """Fetch size and modification metadata before downloading."""
        reference = self.resolve_git(url, options)
        if reference is not None:
            url = self.builder.raw_url(reference)
        return await self._http.fetch_head(url)

    async def download_url(self, url: str, options: DownloadOptions | None = None) -> DownloadReport:
        """Download one file from a Git hosting URL or any other URL.

        Inputs that are not recognised Git references are downloaded as-is.
        Directory references are handed to :meth:`download_directory`.

        Raises:
            NoFilePathError: If the URL points at a bare repository.
        """
        options = options or DownloadOptions()
        reference = self.resolve_git(url, options)
        if reference is None:
            return await self.download_generic(url, options)

        if reference.is_directory:
            logger.info("Reference is a directory", repository=reference.full_name, path=reference.path)
            return await self.download_directory(url, options)

        raw_url = self.builder.raw_url(reference)
        destination = self._single_destination(
            options.output or self.builder.filename(reference),
            options,
            repo_path=reference.path,
        )
        result = await self.downloader.download(raw_url, destination, overwrite=options.overwrite)
        return DownloadReport(results=[result], found=1)

    async def download_generic(self, url: str, options: DownloadOptions | None = None) -> DownloadReport:
        """Download any HTTP(S) URL like curl/wget."""
        options = options or DownloadOptions()
        self._validate_http_url(url)
        destination = self._single_destination(options.output or filename_from_url(url), options)
        result = await self.downloader.download(url, destination, overwrite=options.overwrite)
        return DownloadReport(results=[result], found=1)

    # ------------------------------------------------------------------
    # Many files
    # ------------------------------------------------------------------

    async def download_urls(self, urls: list[str], options: DownloadOptions | None = None) -> DownloadReport:
        """Download several URLs concurrently (Git references and plain URLs)."""
        # one output name cannot serve several files
        options = replace(options or DownloadOptions(), output=None)
        targets = []
        for url in urls:
            reference = self.resolve_git(url, options)
            if reference is not None and reference.path:
                filename = self.builder.filename(reference)
                targets.append(
                    DownloadTarget(
                        self.builder.raw_url(reference),
                        self._single_destination(filename, options, repo_path=reference.path),
                    )
                )
            else:
                targets.append(DownloadTarget(url, self._single_destination(filename_from_url(url), options)))

        if not targets:
            raise GhuxError("No valid URLs to download")
        results = await self.downloader.download_many(targets, overwrite=options.overwrite)
        return DownloadReport(results=results, found=len(targets))

    async def download_file_list(self, list_path: str | Path, options: DownloadOptions | None = None) -> DownloadReport:
        """Download every URL in a text file (blank lines and ``#`` comments skipped)."""
        try:
            content = Path(list_path).read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise GhuxError(f"File list not found: {list_path}") from exc

        urls = [
            line.strip()
            for line in content.splitlines()
            if line.strip() and not line.strip().startswith("#")
        ]
        if not urls:
            raise GhuxError("No URLs found in file list", details={"path": str(list_path)})
        return await self.download_urls(urls, options)

    # ------------------------------------------------------------------
    # Directories and patterns
    # ------------------------------------------------------------------

    async def list_directory(
        self,
        url: str,
        options: DownloadOptions | None = None,
        glob_filter: GlobFilter | None = None,
        max_depth: int | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> tuple[ParsedReference, WalkResult]:
        """Resolve ``url`` and walk the directory it points to."""
        options = options or DownloadOptions()
        reference = self._require_reference(url, options)
        if max_depth is None:
            max_depth = options.depth if options.depth is not None else self._settings.max_depth
        result = await self.walker.walk(reference, max_depth, glob_filter, cancel_event)
        return reference, result

    async def download_directory(
        self,
        url: str,
        options: DownloadOptions | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> DownloadReport:
        """Download every file below a directory reference."""
        options = options or DownloadOptions()
        reference, walk = await self.list_directory(url, options, cancel_event=cancel_event)
        return await self._download_walk(reference, walk, options)

    async def download_pattern(
        self,
        url: str,
        pattern: str,
        exclude: str | None = None,
        options: DownloadOptions | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> DownloadReport:
        """Download the files of a repository matching a glob pattern."""
        options = options or DownloadOptions()
        max_depth = options.depth if options.depth is not None else self._settings.pattern_max_depth
        reference, walk = await self.list_directory(
            url,
            options,
            glob_filter=GlobFilter(pattern, exclude),
            max_depth=max_depth,
            cancel_event=cancel_event,
        )
        return await self._download_walk(reference, walk, options)

    async def _download_walk(
        self, reference: ParsedReference, walk: WalkResult, options: DownloadOptions
    ) -> DownloadReport:
        report = DownloadReport(
            listing_failures=walk.failures,
            found=len(walk.files),
            cancelled=walk.cancelled,
        )
        if not walk.files or walk.cancelled:
            return report
        if not self._confirm(f"Download {len(walk.files)} files?"):
            report.declined = True
            return report

        output_dir = Path(options.output_dir or reference.repo)
        targets = [
            DownloadTarget(entry.download_url, output_dir / safe_relative_path(entry.relative_path))
            for entry in walk.files
        ]
        report.results = await self.downloader.download_many(targets, overwrite=options.overwrite)
        return report

    # ------------------------------------------------------------------
    # Releases
    # ------------------------------------------------------------------

    async def fetch_release(self, url: str, version: str | None = None) -> Release:
        """Fetch the latest release (or the release for ``version``)."""
        reference = self._require_reference(url, None)
        api_url = self.builder.release_api_url(reference, version)
        try:
            payload = await self._http.fetch_json(api_url)
        except HttpFetchError as exc:
            raise GhuxError(f"Failed to fetch release: {exc.message}", details=exc.details) from exc
        return Release.model_validate(payload)

    async def download_release(
        self,
        url: str,
        asset_filter: str | None = None,
        version: str | None = None,
        options: DownloadOptions | None = None,
    ) -> tuple[Release, DownloadReport]:
        """Download the assets of a GitHub release, optionally filtered by name."""
        options = options or DownloadOptions()
        release = await self.fetch_release(url, version)
        assets = release.assets
        if asset_filter:
            needle = asset_filter.lower()
            assets = [asset for asset in assets if needle in asset.name.lower()]

        report = DownloadReport(found=len(assets))
        if not assets:
            return release, report
        if not self._confirm(f"Download {len(assets)} assets?"):
            report.declined = True
            return release, report

        output_dir = Path(options.output_dir) if options.output_dir else Path()
        targets = [
            DownloadTarget(asset.download_url, output_dir / sanitize_filename(asset.name))
            for asset in assets
        ]
        report.results = await self.downloader.download_many(targets, overwrite=options.overwrite)
        return release, report

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_http_url(url: str) -> None:
        parts = urlsplit(url)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise GhuxError(f"Invalid URL: {url}", details={"url": url})

    @staticmethod
    def _single_destination(filename: str, options: DownloadOptions, repo_path: str | None = None) -> Path:
        if options.output and options.output_dir:
            return Path(options.output_dir) / options.output
        if options.output:
            return Path(options.output)
        if options.preserve_path and repo_path:
            relative = safe_relative_path(repo_path)
        else:
            relative = Path(sanitize_filename(filename))
        return Path(options.output_dir or ".") / relative

