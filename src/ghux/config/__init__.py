"""Configuration for ghux."""

from ghux.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
