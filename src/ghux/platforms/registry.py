"""Registry of supported Git hosting platforms.

The registry is an immutable lookup table built once at startup (optionally
extended with per-account ``PlatformConfig`` entries for self-hosted
instances) and passed to the parser, the URL builder and the walker.
"""

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING

from pydantic import ValidationError

from ghux.core.models.platform import PlatformConfig, PlatformKind

if TYPE_CHECKING:
    from ghux.config.settings import Settings


class ListingFormat(str, Enum):
    """Shape of a platform's directory-listing API."""

    CONTENTS = "contents"  # GitHub and Gitea contents API
    GITLAB_TREE = "gitlab_tree"
    BITBUCKET_SRC = "bitbucket_src"


@dataclass(frozen=True)
class PlatformSpec:
    """Static description of one hosting platform.

    URL templates use ``{domain}``, ``{owner}``, ``{repo}``, ``{ref}`` and
    ``{path}`` placeholders.
    """

    kind: PlatformKind
    display_name: str
    default_domain: str
    host_patterns: tuple[re.Pattern[str], ...]
    raw_url_template: str
    ssh_success_pattern: re.Pattern[str]
    ssh_key_page: str
    token_page: str
    web_file_segment: str | None = None
    web_dir_segment: str | None = None
    api_base_template: str | None = None
    self_hosted_api_template: str | None = None
    api_requires_override: bool = False
    listing_format: ListingFormat | None = None
    raw_hosts: tuple[str, ...] = ()
    supports_webhooks: bool = True


def _patterns(*sources: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(source, re.IGNORECASE) for source in sources)


DEFAULT_SPECS: Mapping[PlatformKind, PlatformSpec] = MappingProxyType(
    {
        PlatformKind.GITHUB: PlatformSpec(
            kind=PlatformKind.GITHUB,
            display_name="GitHub",
            default_domain="github.com",
            host_patterns=_patterns(r"^github\.com$", r"^.*\.github\.com$"),
            raw_url_template="https://raw.githubusercontent.com/{owner}/{repo}/{ref}/{path}",
            ssh_success_pattern=re.compile(r"successfully authenticated", re.IGNORECASE),
            ssh_key_page="https://github.com/settings/keys",
            token_page="https://github.com/settings/tokens",
            web_file_segment="blob",
            web_dir_segment="tree",
            api_base_template="https://api.github.com",
            self_hosted_api_template="https://{domain}/api/v3",
            listing_format=ListingFormat.CONTENTS,
            raw_hosts=("raw.githubusercontent.com",),
        ),
        PlatformKind.GITLAB: PlatformSpec(
            kind=PlatformKind.GITLAB,
            display_name="GitLab",
            default_domain="gitlab.com",
            host_patterns=_patterns(r"^gitlab\.com$", r"^.*\.gitlab\.com$", r"gitlab"),
            raw_url_template="https://{domain}/{owner}/{repo}/-/raw/{ref}/{path}",
            ssh_success_pattern=re.compile(r"Welcome to GitLab", re.IGNORECASE),
            ssh_key_page="https://{host}/-/profile/keys",
            token_page="https://{host}/-/profile/personal_access_tokens",
            web_file_segment="-/blob",
            web_dir_segment="-/tree",
            api_base_template="https://{domain}/api/v4",
            listing_format=ListingFormat.GITLAB_TREE,
        ),
        PlatformKind.BITBUCKET: PlatformSpec(
            kind=PlatformKind.BITBUCKET,
            display_name="Bitbucket",
            default_domain="bitbucket.org",
            host_patterns=_patterns(r"^bitbucket\.org$", r"^.*\.bitbucket\.org$", r"^bitbucket\."),
            raw_url_template="https://{domain}/{owner}/{repo}/raw/{ref}/{path}",
            ssh_success_pattern=re.compile(r"authenticated via|logged in as", re.IGNORECASE),
            ssh_key_page="https://{host}/account/settings/ssh-keys/",
            token_page="https://{host}/account/settings/app-passwords/",
            web_file_segment="src",
            web_dir_segment="src",
            api_base_template="https://api.bitbucket.org/2.0",
            listing_format=ListingFormat.BITBUCKET_SRC,
        ),
        PlatformKind.GITEA: PlatformSpec(
            kind=PlatformKind.GITEA,
            display_name="Gitea",
            default_domain="gitea.com",
            host_patterns=_patterns(r"^gitea\.com$", r"^.*\.gitea\.com$", r"gitea", r"^codeberg\.org$"),
            raw_url_template="https://{domain}/{owner}/{repo}/raw/branch/{ref}/{path}",
            ssh_success_pattern=re.compile(r"Hi there|successfully authenticated", re.IGNORECASE),
            ssh_key_page="https://{host}/user/settings/keys",
            token_page="https://{host}/user/settings/applications",
            web_file_segment="src/branch",
            web_dir_segment="src/branch",
            api_base_template="https://{domain}/api/v1",
            api_requires_override=True,
            listing_format=ListingFormat.CONTENTS,
        ),
        PlatformKind.OTHER: PlatformSpec(
            kind=PlatformKind.OTHER,
            display_name="Other",
            default_domain="",
            host_patterns=(),
            raw_url_template="https://{domain}/{owner}/{repo}/raw/{ref}/{path}",
            ssh_success_pattern=re.compile(r"authenticated|welcome|hi", re.IGNORECASE),
            ssh_key_page="https://{host}/settings/ssh",
            token_page="https://{host}/settings/tokens",
            supports_webhooks=False,
        ),
    }
)

# First match wins.
CLASSIFY_ORDER: tuple[PlatformKind, ...] = (
    PlatformKind.GITHUB,
    PlatformKind.GITLAB,
    PlatformKind.BITBUCKET,
    PlatformKind.GITEA,
)

_SCP_REMOTE_RE = re.compile(r"^[\w.-]+@([^:/]+):")
_HTTP_REMOTE_RE = re.compile(r"^https?://(?:[^@/]+@)?([^/]+)", re.IGNORECASE)
_SSH_REMOTE_RE = re.compile(r"^ssh://(?:[^@/]+@)?([^/]+)", re.IGNORECASE)


def extract_domain(url: str) -> str | None:
    """Extract the host from an SSH, ssh:// or HTTP(S) remote URL."""
    url = url.strip()
    for pattern in (_SCP_REMOTE_RE, _HTTP_REMOTE_RE, _SSH_REMOTE_RE):
        match = pattern.match(url)
        if match:
            return match.group(1).lower()
    return None


class PlatformRegistry:
    """Immutable platform lookup with optional self-hosted overrides."""

    def __init__(
        self,
        specs: Mapping[PlatformKind, PlatformSpec] | None = None,
        configs: Iterable[PlatformConfig] = (),
    ) -> None:
        self._specs = MappingProxyType(dict(specs or DEFAULT_SPECS))
        self._configs = MappingProxyType(
            {config.domain: config for config in configs if config.domain}
        )

    @classmethod
    def from_settings(cls, settings: "Settings") -> "PlatformRegistry":
        return cls(configs=settings.platforms)

    def spec(self, kind: PlatformKind) -> PlatformSpec:
        return self._specs[kind]

    def config_for(self, domain: str) -> PlatformConfig | None:
        """Return the configured override for a self-hosted domain, if any."""
        return self._configs.get(domain.lower())

    def classify(self, domain: str) -> PlatformKind:
        """Classify a host name; unknown hosts are ``OTHER``."""
        domain = domain.strip().lower()
        configured = self._configs.get(domain)
        if configured is not None:
            return configured.kind
        for kind in CLASSIFY_ORDER:
            spec = self._specs.get(kind)
            if spec and any(pattern.search(domain) for pattern in spec.host_patterns):
                return kind
        return PlatformKind.OTHER

    def raw_host_kind(self, domain: str) -> PlatformKind | None:
        """Return the platform serving raw content from a dedicated host."""
        domain = domain.lower()
        for spec in self._specs.values():
            if domain in spec.raw_hosts:
                return spec.kind
        return None

    def display_name(self, kind: PlatformKind) -> str:
        return self._specs[kind].display_name

    def default_domain(self, kind: PlatformKind) -> str:
        return self._specs[kind].default_domain

    def api_base(
        self,
        kind: PlatformKind,
        override: str | None = None,
        domain: str | None = None,
    ) -> str:
        """Return the API base URL, or ``""`` if the platform has none.

        Precedence: explicit override, configured ``api_url`` for the domain,
        the self-hosted template for a non-default domain (GitHub
        Enterprise), then the platform template formatted with the domain.
        """
        if override:
            return override.rstrip("/")
        if domain:
            configured = self.config_for(domain)
            if configured is not None and configured.api_url:
                return configured.api_url
        spec = self._specs[kind]
        template = spec.api_base_template
        if domain and domain != spec.default_domain and spec.self_hosted_api_template:
            template = spec.self_hosted_api_template
        if template is None:
            return ""
        return template.format(domain=domain or self.default_domain(kind))

    def has_api_override(self, domain: str) -> bool:
        configured = self.config_for(domain)
        return configured is not None and configured.api_url is not None

    def ssh_success_pattern(self, kind: PlatformKind) -> re.Pattern[str]:
        return self._specs[kind].ssh_success_pattern

    def web_path_segment(self, kind: PlatformKind, is_directory: bool) -> str | None:
        """Return the web path segment before ``{ref}``, e.g. ``blob`` or ``-/tree``."""
        spec = self._specs[kind]
        return spec.web_dir_segment if is_directory else spec.web_file_segment

    def supports_feature(self, kind: PlatformKind, feature: str, domain: str | None = None) -> bool:
        """Check support for ``ssh``, ``token``, ``api`` or ``webhooks``.

        Platforms whose API location is not derivable (Gitea) only support
        ``api`` for a ``domain`` with a configured ``api_url``.
        """
        if feature in ("ssh", "token"):
            return True
        if feature == "api":
            spec = self._specs[kind]
            if spec.listing_format is None:
                return False
            return not spec.api_requires_override or (domain is not None and self.has_api_override(domain))
        if feature == "webhooks":
            return self._specs[kind].supports_webhooks
        return False

    def instructions(self, kind: PlatformKind, domain: str | None = None) -> dict[str, str]:
        """Return setup links and the SSH test command for a platform."""
        spec = self._specs[kind]
        host = domain or spec.default_domain
        return {
            "ssh_key_url": spec.ssh_key_page.format(host=host),
            "token_url": spec.token_page.format(host=host),
            "ssh_test_command": f"ssh -T git@{host}",
        }

    def detect_from_remote_url(self, url: str | None) -> PlatformConfig:
        """Detect the platform of a Git remote URL.

        ``domain`` is only set when it differs from the platform default.
        Remotes without a recognisable host default to GitHub.
        """
        if not url:
            return PlatformConfig(kind=PlatformKind.GITHUB)

        domain = extract_domain(url)
        if domain is None:
            return PlatformConfig(kind=PlatformKind.GITHUB)

        host = domain.split(":", 1)[0]
        kind = self.classify(host)
        if kind == PlatformKind.OTHER:
            return PlatformConfig(kind=kind, domain=host)
        if host != self.default_domain(kind):
            return PlatformConfig(kind=kind, domain=host)
        return PlatformConfig(kind=kind)

    def ssh_host(self, config: PlatformConfig) -> str:
        return config.domain or self.default_domain(config.kind)

    def build_remote_url(self, config: PlatformConfig, repo_path: str, use_ssh: bool = True) -> str:
        """Build an SSH (``git@host:path``) or HTTPS remote URL."""
        host = self.ssh_host(config)
        if use_ssh:
            return f"git@{host}:{repo_path}"
        return f"https://{host}/{repo_path}"


def validate_platform_config(data: Mapping[str, object]) -> tuple[bool, str | None]:
    """Validate raw platform settings, returning ``(valid, error)``."""
    try:
        PlatformConfig.model_validate(dict(data))
    except ValidationError as exc:
        error = exc.errors()[0]
        message = str(error.get("msg", "invalid platform configuration"))
        return False, message.removeprefix("Value error, ")
    return True, None


DEFAULT_REGISTRY = PlatformRegistry()
