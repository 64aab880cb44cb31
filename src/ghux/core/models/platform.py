"""Platform models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class PlatformKind(str, Enum):
    """Supported Git hosting platforms."""

    GITHUB = "github"
    GITLAB = "gitlab"
    BITBUCKET = "bitbucket"
    GITEA = "gitea"
    OTHER = "other"


class PlatformConfig(BaseModel):
    """Per-account platform settings.

    ``domain`` overrides the platform's default domain for self-hosted
    instances and ``api_url`` overrides the derived API base URL.
    """

    model_config = ConfigDict(frozen=True)

    kind: PlatformKind = PlatformKind.GITHUB
    domain: str | None = None
    api_url: str | None = None

    @field_validator("domain")
    @classmethod
    def _normalize_domain(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip().lower().rstrip("/")
        return value or None

    @field_validator("api_url")
    @classmethod
    def _strip_api_url(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip().rstrip("/") or None

    @model_validator(mode="after")
    def _require_domain_for_other(self) -> "PlatformConfig":
        if self.kind == PlatformKind.OTHER and not self.domain:
            raise ValueError("Domain is required for custom platforms")
        return self
