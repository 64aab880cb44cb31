"""Application settings using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from ghux import __version__
from ghux.core.models.platform import PlatformConfig


class Settings(BaseSettings):
    """Settings loaded from ``GHUX_*`` environment variables or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="GHUX_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # General
    log_level: str = "WARNING"

    # Credentials sent to matching hosts
    github_token: SecretStr | None = None
    gitlab_token: SecretStr | None = None
    gitea_token: SecretStr | None = None
    bitbucket_username: str | None = None
    bitbucket_app_password: SecretStr | None = None

    # Self-hosted instances, e.g.
    # GHUX_PLATFORMS='[{"kind": "gitlab", "domain": "git.example.com"}]'
    platforms: list[PlatformConfig] = Field(default_factory=list)

    # Directory walk
    max_depth: int = Field(default=10, ge=0)
    pattern_max_depth: int = Field(default=999, ge=0)
    listing_concurrency: int = Field(default=4, ge=1, le=32)

    # Transfers
    download_concurrency: int = Field(default=4, ge=1, le=32)
    request_timeout: float = Field(default=30.0, gt=0)
    max_retries: int = Field(default=3, ge=1)
    retry_base_delay: float = Field(default=1.0, ge=0)
    user_agent: str = f"ghux/{__version__}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
