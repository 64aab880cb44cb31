"""Parsed repository references and walk results."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ghux.core.models.platform import PlatformKind

DEFAULT_REF = "main"


class ParsedReference(BaseModel):
    """Canonical decomposition of a Git hosting location.

    Immutable; use :meth:`with_ref` or :meth:`with_path` to derive variants.
    An unspecified ref defaults to ``"main"`` without asking the platform
    for the repository's real default branch.
    """

    model_config = ConfigDict(frozen=True)

    platform: PlatformKind
    domain: str = Field(min_length=1)
    owner: str = Field(min_length=1)
    repo: str = Field(min_length=1)
    ref: str = DEFAULT_REF
    path: str | None = None
    is_directory: bool = False
    precomputed_raw_url: str | None = None

    @field_validator("path")
    @classmethod
    def _strip_slashes(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip("/") or None

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    def with_ref(self, ref: str) -> "ParsedReference":
        """Return a copy pointing at another branch, tag or commit."""
        return self.model_copy(update={"ref": ref, "precomputed_raw_url": None})

    def with_path(self, path: str | None, is_directory: bool = False) -> "ParsedReference":
        """Return a copy pointing at another path in the same repository."""
        # model_copy skips validation
        if path:
            path = path.strip("/") or None
        return self.model_copy(
            update={"path": path, "is_directory": is_directory, "precomputed_raw_url": None}
        )


class FileEntry(BaseModel):
    """A file found by a directory walk, ready to download."""

    model_config = ConfigDict(frozen=True)

    relative_path: str
    download_url: str


class ListingFailure(BaseModel):
    """A directory whose listing could not be fetched."""

    model_config = ConfigDict(frozen=True)

    path: str
    depth: int
    reason: str


class WalkResult(BaseModel):
    """Outcome of a directory walk: files found plus per-directory failures."""

    files: list[FileEntry] = Field(default_factory=list)
    failures: list[ListingFailure] = Field(default_factory=list)
    cancelled: bool = False

    @property
    def root_failed(self) -> bool:
        return any(failure.depth == 0 for failure in self.failures)
