"""File transfers: streaming to disk, retries and bounded fan-out."""

import asyncio
import os
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

import structlog

from ghux.core.exceptions import HttpFetchError
from ghux.core.models.download import DownloadResult
from ghux.download.http import HttpClient

logger = structlog.get_logger(__name__)

CHUNK_SIZE = 64 * 1024


@dataclass
class RetryPolicy:
    """Retry policy with exponential backoff."""

    max_attempts: int = 3
    initial_delay: float = 1.0
    backoff_factor: float = 2.0
    max_delay: float = 30.0

    def get_delay(self, attempt: int) -> float:
        """Delay before retrying after the given (1-indexed) failed attempt."""
        delay = self.initial_delay * (self.backoff_factor ** (attempt - 1))
        return min(delay, self.max_delay)

    @staticmethod
    def is_retryable(error: Exception) -> bool:
        if isinstance(error, HttpFetchError) and error.status_code is not None:
            return error.status_code >= 500 or error.status_code in (408, 429)
        return isinstance(error, (HttpFetchError, OSError))


@dataclass(frozen=True)
class DownloadTarget:
    """A URL and the local path it is written to."""

    url: str
    destination: Path


class Downloader:
    """Downloads files through :class:`HttpClient`.

    Files are streamed to ``<name>.part`` and moved into place once
    complete. Existing files are left alone unless ``overwrite`` is set.
    """

    def __init__(
        self,
        http: HttpClient,
        retry_policy: RetryPolicy | None = None,
        concurrency: int = 4,
        follow_redirects: bool = True,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._http = http
        self._retry_policy = retry_policy or RetryPolicy()
        self._concurrency = max(1, concurrency)
        self._follow_redirects = follow_redirects
        self._sleep = sleep

    async def download(self, url: str, destination: Path, overwrite: bool = False) -> DownloadResult:
        """Download one file, retrying transient failures with backoff."""
        if destination.exists() and not overwrite:
            return DownloadResult(
                url=url,
                success=False,
                file_path=str(destination),
                error=f"File already exists: {destination}",
                attempts=0,
            )

        policy = self._retry_policy
        last_error: Exception | None = None
        for attempt in range(1, policy.max_attempts + 1):
            try:
                size = await self._transfer(url, destination)
            except (HttpFetchError, OSError) as exc:
                last_error = exc
                if attempt == policy.max_attempts or not policy.is_retryable(exc):
                    break
                delay = policy.get_delay(attempt)
                logger.info("Retrying download", url=url, attempt=attempt, delay=delay, error=str(exc))
                await self._sleep(delay)
                continue

            logger.debug("Downloaded file", url=url, path=str(destination), size=size)
            return DownloadResult(
                url=url, success=True, file_path=str(destination), size=size, attempts=attempt
            )

        error = str(last_error) if last_error else "Download failed after retries"
        logger.warning("Download failed", url=url, error=error)
        return DownloadResult(url=url, success=False, error=error, attempts=attempt)

    async def download_many(
        self,
        targets: Sequence[DownloadTarget],
        overwrite: bool = False,
        on_complete: Callable[[DownloadResult], None] | None = None,
    ) -> list[DownloadResult]:
        """Download several files concurrently; results keep input order.

        Only the first target for a given destination is transferred; later
        targets for the same path fail without touching it.
        """
        semaphore = asyncio.Semaphore(self._concurrency)
        claimed: set[Path] = set()
        duplicates: list[bool] = []
        for target in targets:
            key = target.destination.resolve()
            duplicates.append(key in claimed)
            claimed.add(key)

        async def run(target: DownloadTarget, duplicate: bool) -> DownloadResult:
            if duplicate:
                logger.warning("Duplicate download destination", url=target.url, path=str(target.destination))
                result = DownloadResult(
                    url=target.url,
                    success=False,
                    file_path=str(target.destination),
                    error=f"Another download already writes to {target.destination}",
                    attempts=0,
                )
            else:
                async with semaphore:
                    result = await self.download(target.url, target.destination, overwrite=overwrite)
            if on_complete is not None:
                on_complete(result)
            return result

        return list(await asyncio.gather(*(run(target, dup) for target, dup in zip(targets, duplicates))))

    async def _transfer(self, url: str, destination: Path) -> int:
        destination.parent.mkdir(parents=True, exist_ok=True)
        partial = destination.with_name(destination.name + ".part")
        size = 0
        try:
            async with self._http.stream(url, follow_redirects=self._follow_redirects) as response:
                with partial.open("wb") as handle:
                    async for chunk in response.aiter_bytes(CHUNK_SIZE):
                        handle.write(chunk)
                        size += len(chunk)
            os.replace(partial, destination)
        finally:
            if partial.exists():
                partial.unlink()
        return size
