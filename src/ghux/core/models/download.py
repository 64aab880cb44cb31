"""Download-related models."""

from pydantic import AliasChoices, BaseModel, Field

from ghux.core.models.reference import ListingFailure


class FileInfo(BaseModel):
    """Metadata returned by a HEAD request."""

    url: str
    filename: str
    size: int = 0
    last_modified: str | None = None
    content_type: str | None = None


class DownloadResult(BaseModel):
    """Outcome of a single file transfer."""

    url: str
    success: bool
    file_path: str | None = None
    size: int | None = None
    error: str | None = None
    attempts: int = 1


class DownloadReport(BaseModel):
    """Outcome of a download flow (one or many files)."""

    results: list[DownloadResult] = Field(default_factory=list)
    listing_failures: list[ListingFailure] = Field(default_factory=list)
    found: int = 0
    declined: bool = False
    cancelled: bool = False

    @property
    def successful(self) -> int:
        return sum(1 for result in self.results if result.success)

    @property
    def failed(self) -> int:
        return len(self.results) - self.successful


class ReleaseAsset(BaseModel):
    """A downloadable asset attached to a GitHub release."""

    name: str
    size: int = 0
    download_url: str = Field(validation_alias=AliasChoices("download_url", "browser_download_url"))


class Release(BaseModel):
    """A GitHub release with its assets."""

    tag_name: str
    name: str | None = None
    published_at: str | None = None
    assets: list[ReleaseAsset] = Field(default_factory=list)
