"""HTTP access for listings, metadata and transfers."""

import base64
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

import httpx
import structlog

from ghux.config.settings import Settings, get_settings
from ghux.core.exceptions import HttpFetchError
from ghux.core.models.download import FileInfo
from ghux.core.models.platform import PlatformKind
from ghux.platforms.registry import DEFAULT_REGISTRY, PlatformRegistry
from ghux.utils.files import filename_from_url

logger = structlog.get_logger(__name__)


def create_async_client(settings: Settings | None = None, **kwargs: Any) -> httpx.AsyncClient:
    """Create the shared ``httpx.AsyncClient``."""
    settings = settings or get_settings()
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.request_timeout),
        follow_redirects=True,
        **kwargs,
    )


class HttpClient:
    """Thin wrapper around ``httpx.AsyncClient`` with per-host credentials.

    Every failure (network error, non-2xx status, undecodable JSON) is
    translated into :class:`HttpFetchError`.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: Settings | None = None,
        registry: PlatformRegistry = DEFAULT_REGISTRY,
        extra_headers: Mapping[str, str] | None = None,
        user_agent: str | None = None,
    ) -> None:
        self._client = client
        self._settings = settings or get_settings()
        self._registry = registry
        self._base_headers = {"User-Agent": user_agent or self._settings.user_agent}
        self._base_headers.update(extra_headers or {})

    def headers_for(self, url: str) -> dict[str, str]:
        """Default headers plus the credentials matching the URL's host."""
        headers = dict(self._base_headers)
        host = httpx.URL(url).host
        kind = self._registry.raw_host_kind(host) or self._registry.classify(host)
        settings = self._settings

        if kind == PlatformKind.GITHUB and settings.github_token:
            headers.setdefault("Authorization", f"Bearer {settings.github_token.get_secret_value()}")
        elif kind == PlatformKind.GITLAB and settings.gitlab_token:
            headers.setdefault("PRIVATE-TOKEN", settings.gitlab_token.get_secret_value())
        elif kind == PlatformKind.GITEA and settings.gitea_token:
            headers.setdefault("Authorization", f"token {settings.gitea_token.get_secret_value()}")
        elif (
            kind == PlatformKind.BITBUCKET
            and settings.bitbucket_username
            and settings.bitbucket_app_password
        ):
            raw = f"{settings.bitbucket_username}:{settings.bitbucket_app_password.get_secret_value()}"
            headers.setdefault("Authorization", "Basic " + base64.b64encode(raw.encode()).decode())
        return headers

    async def fetch_json(self, url: str) -> Any:
        """GET ``url`` and decode the JSON body."""
        response = await self._get(url, accept="application/json")
        try:
            return response.json()
        except ValueError as exc:
            raise HttpFetchError(f"Invalid JSON from {url}", url=url, status_code=response.status_code) from exc

    async def fetch_head(self, url: str, follow_redirects: bool = True) -> FileInfo:
        """HEAD ``url`` and return the advertised file metadata."""
        try:
            response = await self._client.head(
                url, headers=self.headers_for(url), follow_redirects=follow_redirects
            )
        except httpx.HTTPError as exc:
            raise HttpFetchError(f"Network error fetching {url}: {exc}", url=url) from exc
        self._raise_for_status(response, url)

        length = response.headers.get("content-length", "")
        return FileInfo(
            url=str(response.url),
            filename=filename_from_url(str(response.url)),
            size=int(length) if length.isdigit() else 0,
            last_modified=response.headers.get("last-modified"),
            content_type=response.headers.get("content-type"),
        )

    @asynccontextmanager
    async def stream(self, url: str, follow_redirects: bool = True) -> AsyncIterator[httpx.Response]:
        """Open a streaming GET; the response is checked before it is yielded."""
        try:
            async with self._client.stream(
                "GET", url, headers=self.headers_for(url), follow_redirects=follow_redirects
            ) as response:
                self._raise_for_status(response, url)
                yield response
        except httpx.HTTPError as exc:
            raise HttpFetchError(f"Network error fetching {url}: {exc}", url=url) from exc

    async def _get(self, url: str, accept: str | None = None) -> httpx.Response:
        logger.debug("HTTP GET", url=url)
        headers = self.headers_for(url)
        if accept:
            headers.setdefault("Accept", accept)
        try:
            response = await self._client.get(url, headers=headers)
        except httpx.HTTPError as exc:
            raise HttpFetchError(f"Network error fetching {url}: {exc}", url=url) from exc
        self._raise_for_status(response, url)
        return response

    @staticmethod
    def _raise_for_status(response: httpx.Response, url: str) -> None:
        status = response.status_code
        if 200 <= status < 300:
            return

        if status == 404:
            raise HttpFetchError(f"Not found: {url}", url=url, status_code=status)

        if status in (403, 429) and response.headers.get("x-ratelimit-remaining") == "0":
            reset_raw = response.headers.get("x-ratelimit-reset", "")
            try:
                reset_str = datetime.fromtimestamp(int(reset_raw), tz=timezone.utc).strftime(
                    "%Y-%m-%d %H:%M:%S UTC"
                )
            except (ValueError, OSError):
                reset_str = reset_raw or "unknown"
            raise HttpFetchError(
                f"API rate limit exceeded. Resets at {reset_str}. "
                "Set GHUX_GITHUB_TOKEN to increase the limit.",
                url=url,
                status_code=status,
            )

        reason = response.reason_phrase or "error"
        raise HttpFetchError(f"HTTP {status} {reason} for {url}", url=url, status_code=status)
