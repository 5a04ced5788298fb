"""Storefront codes and resource IDs."""

import re

from apple_music_api.domain.exceptions import InvalidRequestError

_STOREFRONT_RE = re.compile(r"^[A-Za-z]{2}$")
_RESOURCE_ID_RE = re.compile(r"^[A-Za-z0-9._-]+$")
MAX_RESOURCE_ID_LENGTH = 100


def parse_storefront(storefront: str) -> str:
    """Normalize a storefront code ("US", " gb ") to its lower-case form.

    Syntactic check only - whether Apple actually serves that storefront is
    for the API to decide.

    Raises:
        InvalidRequestError: If the code is not exactly two letters
    """
    normalized = storefront.strip().lower()
    if not _STOREFRONT_RE.match(normalized):
        raise InvalidRequestError(
            f"Storefront must be a two-letter country code, got {storefront!r}"
        )
    return normalized


def validate_resource_id(resource_id: str) -> str:
    """Check an Apple Music catalog or library ID before it goes into a path.

    Raises:
        InvalidRequestError: If the ID is empty, too long or has characters
            outside ``[A-Za-z0-9._-]``
    """
    if not resource_id:
        raise InvalidRequestError("Resource ID cannot be empty")
    if len(resource_id) > MAX_RESOURCE_ID_LENGTH:
        raise InvalidRequestError("Resource ID is too long")
    if not _RESOURCE_ID_RE.match(resource_id):
        raise InvalidRequestError(
            "Resource ID contains invalid characters. Only alphanumeric characters, "
            "hyphens, underscores, and periods are allowed"
        )
    return resource_id


def validate_resource_ids(resource_ids: list[str] | tuple[str, ...]) -> list[str]:
    """Validate a batch of IDs for ``ids=`` style lookups."""
    if not resource_ids:
        raise InvalidRequestError("At least one resource ID is required")
    return [validate_resource_id(resource_id) for resource_id in resource_ids]
