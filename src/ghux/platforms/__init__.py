"""Hosting platform registry and listing formats."""

from ghux.platforms.registry import (
    DEFAULT_REGISTRY,
    ListingFormat,
    PlatformRegistry,
    PlatformSpec,
    extract_domain,
    validate_platform_config,
)

__all__ = [
    "DEFAULT_REGISTRY",
    "ListingFormat",
    "PlatformRegistry",
    "PlatformSpec",
    "extract_domain",
    "validate_platform_config",
]
