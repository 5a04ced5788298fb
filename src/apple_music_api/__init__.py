"""Typed async client for the Apple Music API."""

from apple_music_api.config import ClientConfig
from apple_music_api.domain.credentials import Credentials, JwtAuth, SimpleAuth
from apple_music_api.domain.exceptions import (
    ApiError,
    AppleMusicError,
    AuthError,
    ConfigError,
    DecodeError,
    InvalidRequestError,
    RateLimitError,
    ServerError,
    TransportError,
)
from apple_music_api.domain.value_objects import MediaType, SearchOptions
from apple_music_api.infrastructure.integrations import (
    AppleMusicClient,
    RequestPipeline,
    RequestSpec,
)
from apple_music_api.version import __version__

__all__ = [
    "ApiError",
    "AppleMusicClient",
    "AppleMusicError",
    "AuthError",
    "ClientConfig",
    "ConfigError",
    "Credentials",
    "DecodeError",
    "InvalidRequestError",
    "JwtAuth",
    "MediaType",
    "RateLimitError",
    "RequestPipeline",
    "RequestSpec",
    "SearchOptions",
    "ServerError",
    "SimpleAuth",
    "TransportError",
    "__version__",
]
