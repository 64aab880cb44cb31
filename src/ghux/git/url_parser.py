"""Parser for Git hosting URLs and short-form references.

Accepted inputs:
- owner/repo/path/to/file and owner/repo:ref/path/to/file (GitHub)
- raw.githubusercontent.com/owner/repo/ref/path and the raw forms of
  GitLab (-/raw), Bitbucket (raw) and Gitea (raw/branch)
- web URLs: github.com/owner/repo/blob|tree/ref/path,
  gitlab.com/group/repo/-/blob|tree/ref/path,
  bitbucket.org/owner/repo/src/ref/path,
  gitea.com/owner/repo/src/branch/ref/path
- Git remotes: git@host:owner/repo.git and ssh://git@host/owner/repo.git
"""

import re
from urllib.parse import unquote, urlsplit

import structlog

from ghux.core.exceptions import ParseFailure
from ghux.core.models.platform import PlatformKind
from ghux.core.models.reference import DEFAULT_REF, ParsedReference
from ghux.platforms.registry import DEFAULT_REGISTRY, PlatformRegistry

logger = structlog.get_logger(__name__)

_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.-]*://", re.IGNORECASE)
_SCP_RE = re.compile(r"^[\w.-]+@(?P<host>[^:/\s]+):(?P<path>[^\s]+)$")
_SUPPORTED_SCHEMES = frozenset({"http", "https", "ssh", "git"})
_GIT_PATH_MARKERS = ("/blob/", "/tree/", "/-/blob/", "/-/tree/", "/-/raw/", "/src/")
_GITEA_REF_KINDS = frozenset({"branch", "tag", "commit"})


def _strip_git_suffix(name: str) -> str:
    return re.sub(r"\.git$", "", name)


def _join(segments: list[str]) -> str | None:
    return "/".join(segments) or None


def _leading_host(text: str) -> str:
    return text.split("/", 1)[0].split(":", 1)[0].lower()


class URLParser:
    """Decomposes Git hosting locations into :class:`ParsedReference`.

    ``parse`` never raises: any input that does not yield an owner and a
    repository returns ``None`` so callers can fall back to a generic
    download of the URL.
    """

    def __init__(self, registry: PlatformRegistry = DEFAULT_REGISTRY) -> None:
        self._registry = registry

    def parse(self, text: str) -> ParsedReference | None:
        text = text.strip()
        if not text:
            return None

        scp = _SCP_RE.match(text)
        if scp and not _SCHEME_RE.match(text):
            return self._parse_url(f"ssh://{scp['host']}/{scp['path']}")

        if not _SCHEME_RE.match(text):
            if self._is_known_host(_leading_host(text)):
                return self._parse_url(f"https://{text}")
            return self._parse_short(text)

        return self._parse_url(text)

    def parse_or_raise(self, text: str) -> ParsedReference:
        parsed = self.parse(text)
        if parsed is None:
            raise ParseFailure(f"Not a recognized Git reference: {text}", details={"input": text})
        return parsed

    def looks_like_git_url(self, text: str) -> bool:
        """Cheap check used to route inputs between Git and generic downloads."""
        text = text.strip()
        lowered = text.lower()
        if not _SCHEME_RE.match(text):
            if _SCP_RE.match(text):
                return True
            if not self._is_known_host(_leading_host(text)):
                return text.count("/") >= 2
            lowered = f"https://{lowered}"

        host = urlsplit(lowered).hostname or ""
        if self._registry.raw_host_kind(host) is not None:
            return True
        if self._registry.classify(host) != PlatformKind.OTHER:
            return True
        return any(marker in lowered for marker in _GIT_PATH_MARKERS)

    def _is_known_host(self, host: str) -> bool:
        # Scheme-less input is a host URL only for dotted hosts the registry
        # knows; anything else is owner/repo short form.
        return "." in host and (
            self._registry.raw_host_kind(host) is not None
            or self._registry.config_for(host) is not None
            or self._registry.classify(host) != PlatformKind.OTHER
        )

    # ------------------------------------------------------------------
    # Short form
    # ------------------------------------------------------------------

    def _parse_short(self, text: str) -> ParsedReference | None:
        # Only the first ':' separates the ref; the ref runs up to the next '/'.
        ref = DEFAULT_REF
        left, colon, right = text.partition(":")
        if colon:
            if not left or not right:
                return None
            ref, _, remainder = right.partition("/")
            if not ref:
                return None
            segments = left.split("/") + remainder.split("/")
        else:
            segments = text.split("/")

        if len(segments) < 3:
            return None
        owner, repo = segments[0], _strip_git_suffix(segments[1])
        path = "/".join(segments[2:]).strip("/")
        if not owner or not repo or not path:
            return None

        return ParsedReference(
            platform=PlatformKind.GITHUB,
            domain=self._registry.default_domain(PlatformKind.GITHUB),
            owner=owner,
            repo=repo,
            ref=ref,
            path=path,
        )

    # ------------------------------------------------------------------
    # Full URLs
    # ------------------------------------------------------------------

    def _parse_url(self, url: str) -> ParsedReference | None:
        try:
            parts = urlsplit(url)
            port = parts.port
        except ValueError:
            logger.debug("Unparseable URL", url=url)
            return None

        if parts.scheme.lower() not in _SUPPORTED_SCHEMES or not parts.hostname:
            return None

        host = parts.hostname
        domain = f"{host}:{port}" if port else host
        segments = [unquote(segment) for segment in parts.path.split("/") if segment]

        raw_kind = self._registry.raw_host_kind(host)
        if raw_kind is not None:
            return self._parse_raw_host(raw_kind, url, segments)

        kind = self._registry.classify(host)
        if kind == PlatformKind.GITHUB:
            return self._parse_github(domain, segments)
        if kind == PlatformKind.GITLAB:
            return self._parse_gitlab(domain, segments, url)
        if kind == PlatformKind.BITBUCKET:
            return self._parse_bitbucket(domain, segments, url)
        if kind == PlatformKind.GITEA:
            return self._parse_gitea(domain, segments, url)
        return self._parse_generic(domain, segments)

    def _build(self, kind: PlatformKind, domain: str, owner: str, repo: str, **fields) -> ParsedReference | None:
        repo = _strip_git_suffix(repo)
        if not owner or not repo:
            return None
        return ParsedReference(platform=kind, domain=domain, owner=owner, repo=repo, **fields)

    def _parse_raw_host(self, kind: PlatformKind, url: str, segments: list[str]) -> ParsedReference | None:
        # raw.githubusercontent.com/{owner}/{repo}/{ref}/{path}
        # or .../{owner}/{repo}/refs/heads/{ref}/{path}
        if len(segments) >= 6 and segments[2] == "refs" and segments[3] in ("heads", "tags"):
            segments = segments[:2] + segments[4:]
        if len(segments) < 4:
            return None
        owner, repo, ref = segments[0], segments[1], segments[2]
        return self._build(
            kind,
            self._registry.default_domain(kind),
            owner,
            repo,
            ref=ref,
            path=_join(segments[3:]),
            precomputed_raw_url=url,
        )

    def _parse_github(self, domain: str, segments: list[str]) -> ParsedReference | None:
        # {owner}/{repo}[/{blob|tree|raw}/{ref}/{path...}]
        if len(segments) < 2:
            return None
        owner, repo = segments[0], segments[1]
        if len(segments) >= 4 and segments[2] in ("blob", "tree", "raw"):
            path = _join(segments[4:])
            is_directory = segments[2] == "tree"
            return self._build(
                PlatformKind.GITHUB, domain, owner, repo,
                ref=segments[3], path=path, is_directory=is_directory,
            )
        return self._build(PlatformKind.GITHUB, domain, owner, repo)

    def _parse_gitlab(self, domain: str, segments: list[str], url: str) -> ParsedReference | None:
        # {group...}/{repo}/-/{blob|tree|raw}/{ref}/{path...}
        if "-" in segments:
            separator = segments.index("-")
            namespace, rest = segments[:separator], segments[separator + 1:]
        else:
            namespace, rest = segments, []
        if len(namespace) < 2:
            return None
        owner, repo = "/".join(namespace[:-1]), namespace[-1]

        if len(rest) >= 2 and rest[0] in ("blob", "tree", "raw"):
            fields = {"ref": rest[1], "path": _join(rest[2:]), "is_directory": rest[0] == "tree"}
            if rest[0] == "raw" and len(rest) > 2:
                fields["precomputed_raw_url"] = url
            return self._build(PlatformKind.GITLAB, domain, owner, repo, **fields)
        return self._build(PlatformKind.GITLAB, domain, owner, repo)

    def _parse_bitbucket(self, domain: str, segments: list[str], url: str) -> ParsedReference | None:
        # {owner}/{repo}/src/{ref}/{path...}; file vs directory is not encoded
        if len(segments) < 2:
            return None
        owner, repo = segments[0], segments[1]
        if len(segments) >= 4 and segments[2] in ("src", "raw"):
            path = _join(segments[4:])
            fields = {"ref": segments[3], "path": path, "is_directory": path is None}
            if segments[2] == "raw" and path:
                fields["precomputed_raw_url"] = url
            return self._build(PlatformKind.BITBUCKET, domain, owner, repo, **fields)
        return self._build(PlatformKind.BITBUCKET, domain, owner, repo)

    def _parse_gitea(self, domain: str, segments: list[str], url: str) -> ParsedReference | None:
        # {owner}/{repo}/{src|raw}/{branch|tag|commit}/{ref}/{path...}
        if len(segments) < 2:
            return None
        owner, repo = segments[0], segments[1]
        if len(segments) >= 4 and segments[2] in ("src", "raw"):
            if segments[3] in _GITEA_REF_KINDS and len(segments) >= 5:
                ref, path = segments[4], _join(segments[5:])
            else:
                ref, path = segments[3], _join(segments[4:])
            fields = {"ref": ref, "path": path, "is_directory": path is None}
            if segments[2] == "raw" and path:
                fields["precomputed_raw_url"] = url
            return self._build(PlatformKind.GITEA, domain, owner, repo, **fields)
        return self._build(PlatformKind.GITEA, domain, owner, repo)

    def _parse_generic(self, domain: str, segments: list[str]) -> ParsedReference | None:
        # Best effort: {owner}/{repo}, nothing beyond
        if len(segments) < 2:
            return None
        return self._build(PlatformKind.OTHER, domain, segments[0], segments[1])


def parse_git_url(text: str, registry: PlatformRegistry = DEFAULT_REGISTRY) -> ParsedReference | None:
    """Parse ``text`` into a :class:`ParsedReference`, or ``None``."""
    return URLParser(registry).parse(text)
