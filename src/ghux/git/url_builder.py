"""URL builder: raw, API and web URLs for parsed references."""

from urllib.parse import quote, urlencode

from ghux.core.exceptions import NoFilePathError, UnsupportedPlatformError
from ghux.core.models.platform import PlatformKind
from ghux.core.models.reference import DEFAULT_REF, ParsedReference
from ghux.platforms.listing import GITLAB_PAGE_SIZE
from ghux.platforms.registry import DEFAULT_REGISTRY, ListingFormat, PlatformRegistry

# GitHub Enterprise serves raw files from the web host.
_ENTERPRISE_RAW_TEMPLATE = "https://{domain}/{owner}/{repo}/raw/{ref}/{path}"


class URLBuilder:
    """Derives raw, API and web URLs from a :class:`ParsedReference`.

    All methods are pure functions of the reference and the registry.
    """

    def __init__(self, registry: PlatformRegistry = DEFAULT_REGISTRY) -> None:
        self._registry = registry

    def raw_url(self, reference: ParsedReference) -> str:
        """Return the URL serving the file's bytes.

        Raises:
            NoFilePathError: If the reference has no file path.
        """
        if reference.precomputed_raw_url:
            return reference.precomputed_raw_url
        if not reference.path:
            raise NoFilePathError(
                "No file path specified",
                details={"repository": reference.full_name},
            )

        template = self._registry.spec(reference.platform).raw_url_template
        if (
            reference.platform == PlatformKind.GITHUB
            and reference.domain != self._registry.default_domain(PlatformKind.GITHUB)
        ):
            template = _ENTERPRISE_RAW_TEMPLATE
        return template.format(
            domain=reference.domain,
            owner=reference.owner,
            repo=reference.repo,
            ref=reference.ref,
            path=quote(reference.path),
        )

    def api_url(self, reference: ParsedReference) -> str:
        """Return the content-listing (or file metadata) API endpoint.

        Raises:
            UnsupportedPlatformError: If the platform has no known API, or
                is Gitea without a configured API URL for its domain.
        """
        listing_format = self.listing_format(reference)
        base = self._registry.api_base(reference.platform, domain=reference.domain)
        path = reference.path or ""

        if listing_format == ListingFormat.CONTENTS:
            endpoint = f"{base}/repos/{reference.owner}/{reference.repo}/contents"
            if path:
                endpoint += "/" + quote(path)
            return f"{endpoint}?{urlencode({'ref': reference.ref})}"

        if listing_format == ListingFormat.GITLAB_TREE:
            project = quote(reference.full_name, safe="")
            query = urlencode({"path": path, "ref": reference.ref, "per_page": GITLAB_PAGE_SIZE})
            return f"{base}/projects/{project}/repository/tree?{query}"

        # ListingFormat.BITBUCKET_SRC
        return (
            f"{base}/repositories/{reference.owner}/{reference.repo}"
            f"/src/{quote(reference.ref, safe='')}/{quote(path)}"
        )

    def listing_format(self, reference: ParsedReference) -> ListingFormat:
        """Return the listing API shape, refusing unsupported platforms up front."""
        spec = self._registry.spec(reference.platform)
        if spec.listing_format is None:
            raise UnsupportedPlatformError(
                f"API not supported for platform: {spec.display_name}",
                details={"platform": reference.platform.value, "domain": reference.domain},
            )
        if not self._registry.supports_feature(reference.platform, "api", domain=reference.domain):
            raise UnsupportedPlatformError(
                f"API not supported for platform: {spec.display_name} "
                f"(configure an API URL for {reference.domain})",
                details={"platform": reference.platform.value, "domain": reference.domain},
            )
        return spec.listing_format

    def release_api_url(self, reference: ParsedReference, version: str | None = None) -> str:
        """Return the GitHub releases endpoint (latest, or a specific tag)."""
        if reference.platform != PlatformKind.GITHUB:
            raise UnsupportedPlatformError(
                "Release downloads are only supported for GitHub repositories",
                details={"platform": reference.platform.value},
            )
        base = self._registry.api_base(PlatformKind.GITHUB, domain=reference.domain)
        releases = f"{base}/repos/{reference.owner}/{reference.repo}/releases"
        if version:
            return f"{releases}/tags/{quote(version, safe='')}"
        return f"{releases}/latest"

    def web_url(self, reference: ParsedReference) -> str:
        """Return the browsable page for the reference.

        Paths are percent-encoded. The blob/tree segment is omitted when
        there is no path, unless the reference is a directory or names a
        ref other than the default.
        """
        base = f"https://{reference.domain}/{reference.owner}/{reference.repo}"
        segment = self._registry.web_path_segment(reference.platform, reference.is_directory)
        if segment is None:
            return base
        if reference.path:
            return f"{base}/{segment}/{reference.ref}/{quote(reference.path)}"
        if reference.is_directory or reference.ref != DEFAULT_REF:
            return f"{base}/{segment}/{reference.ref}"
        return base

    @staticmethod
    def filename(reference: ParsedReference) -> str:
        """Return the last path segment, or the repository name."""
        if not reference.path:
            return reference.repo
        return reference.path.rsplit("/", 1)[-1] or reference.repo
