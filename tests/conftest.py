"""Pytest configuration and fixtures."""

from collections.abc import Callable, Iterable

import httpx
import pytest
import structlog

from ghux.config.settings import Settings, get_settings
from ghux.core.models.platform import PlatformConfig, PlatformKind
from ghux.download.http import HttpClient
from ghux.platforms.registry import PlatformRegistry

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are cached per process; isolate tests from each other."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def reset_logging():
    """CLI runs configure structlog against a captured stream; undo that."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def settings() -> Settings:
    """Settings with no credentials and no retry delay."""
    return Settings(_env_file=None, retry_base_delay=0.0)


@pytest.fixture
def registry() -> PlatformRegistry:
    """Registry with a self-hosted Gitea instance that has an API URL."""
    return PlatformRegistry(
        configs=[
            PlatformConfig(
                kind=PlatformKind.GITEA,
                domain="codeberg.org",
                api_url="https://codeberg.org/api/v1",
            )
        ]
    )


@pytest.fixture
def make_http(settings: Settings, registry: PlatformRegistry) -> Callable[[Handler], HttpClient]:
    """Build an HttpClient whose requests are answered by ``handler``."""

    def _make(handler: Handler, **kwargs) -> HttpClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)
        return HttpClient(client, settings, registry, **kwargs)

    return _make


@pytest.fixture
def contents_api() -> Callable[..., Handler]:
    """Fake GitHub contents API serving an in-memory tree.

    ``tree`` maps a directory path ("" for the root) to child names; names
    ending with "/" are directories. Directories listed in ``fail`` answer
    with HTTP 500. Every handled request path is appended to ``calls``.
    """

    def _build(
        tree: dict[str, list[str]],
        fail: Iterable[str] = (),
        calls: list[str] | None = None,
    ) -> Handler:
        failing = set(fail)

        def handler(request: httpx.Request) -> httpx.Response:
            marker = "/contents"
            path = request.url.path.split(marker, 1)[1].strip("/")
            if calls is not None:
                calls.append(path)
            if path in failing:
                return httpx.Response(500, json={"message": "boom"})
            if path not in tree:
                return httpx.Response(404, json={"message": "Not Found"})

            entries = []
            for name in tree[path]:
                child = f"{path}/{name.rstrip('/')}" if path else name.rstrip("/")
                if name.endswith("/"):
                    entries.append({"type": "dir", "path": child, "download_url": None})
                else:
                    entries.append(
                        {
                            "type": "file",
                            "path": child,
                            "download_url": f"https://raw.githubusercontent.com/o/r/main/{child}",
                        }
                    )
            return httpx.Response(200, json=entries)

        return handler

    return _build
