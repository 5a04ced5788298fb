"""Apple Music HTTP integration."""

from apple_music_api.infrastructure.integrations.apple_music_client import (
    AppleMusicClient,
)
from apple_music_api.infrastructure.integrations.endpoints import (
    ENDPOINTS,
    Endpoint,
    next_page_spec,
)
from apple_music_api.infrastructure.integrations.request_pipeline import (
    Outcome,
    RequestPipeline,
    RequestSpec,
    classify_status,
)

__all__ = [
    "ENDPOINTS",
    "AppleMusicClient",
    "Endpoint",
    "Outcome",
    "RequestPipeline",
    "RequestSpec",
    "classify_status",
    "next_page_spec",
]
