"""Configuration module for the Apple Music client."""

from .settings import DEFAULT_BASE_URL, ClientConfig

__all__ = ["ClientConfig", "DEFAULT_BASE_URL"]
