"""Logging helpers."""

from apple_music_api.infrastructure.observability.logging import (
    RequestIdFilter,
    configure_logging,
    get_request_id,
    request_scope,
    set_request_id,
)

__all__ = [
    "RequestIdFilter",
    "configure_logging",
    "get_request_id",
    "request_scope",
    "set_request_id",
]
