"""Value objects used when building requests."""

from apple_music_api.domain.value_objects.identifiers import (
    MAX_RESOURCE_ID_LENGTH,
    parse_storefront,
    validate_resource_id,
    validate_resource_ids,
)
from apple_music_api.domain.value_objects.media import (
    MAX_SEARCH_LIMIT,
    MediaType,
    SearchOptions,
    media_types_to_param,
)

__all__ = [
    "MAX_RESOURCE_ID_LENGTH",
    "MAX_SEARCH_LIMIT",
    "MediaType",
    "SearchOptions",
    "media_types_to_param",
    "parse_storefront",
    "validate_resource_id",
    "validate_resource_ids",
]
