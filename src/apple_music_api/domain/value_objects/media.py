"""Media types and search options."""

from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from enum import Enum

from apple_music_api.domain.exceptions import InvalidRequestError

# Apple caps catalog search pages at 25 results per type.
MAX_SEARCH_LIMIT = 25


class MediaType(str, Enum):
    """Resource types accepted by the ``types`` search parameter."""

    SONGS = "songs"
    ALBUMS = "albums"
    ARTISTS = "artists"
    PLAYLISTS = "playlists"
    MUSIC_VIDEOS = "music-videos"
    STATIONS = "stations"
    APPLE_CURATORS = "apple-curators"
    CURATORS = "curators"

    @classmethod
    def all(cls) -> tuple["MediaType", ...]:
        return tuple(cls)


def media_types_to_param(types: Iterable[MediaType | str]) -> str:
    """Join media types into the comma separated form Apple expects.

    Raises:
        InvalidRequestError: If a string does not name a known media type
    """
    values = []
    for media_type in types:
        try:
            values.append(MediaType(media_type).value)
        except ValueError as e:
            raise InvalidRequestError(f"Unknown media type: {media_type!r}") from e
    return ",".join(values)


@dataclass(frozen=True)
class SearchOptions:
    """Optional knobs for catalog search.

    Example:
        options = SearchOptions().with_limit(10).with_types([MediaType.SONGS])
    """

    limit: int | None = None
    offset: int | None = None
    types: tuple[MediaType, ...] = field(default_factory=tuple)

    def with_limit(self, limit: int) -> "SearchOptions":
        if not 1 <= limit <= MAX_SEARCH_LIMIT:
            raise InvalidRequestError(
                f"Search limit must be between 1 and {MAX_SEARCH_LIMIT}"
            )
        return replace(self, limit=limit)

    def with_offset(self, offset: int) -> "SearchOptions":
        if offset < 0:
            raise InvalidRequestError("Search offset cannot be negative")
        return replace(self, offset=offset)

    def with_types(self, types: Iterable[MediaType | str]) -> "SearchOptions":
        parsed = []
        for media_type in types:
            try:
                parsed.append(MediaType(media_type))
            except ValueError as e:
                raise InvalidRequestError(f"Unknown media type: {media_type!r}") from e
        return replace(self, types=tuple(parsed))

    def to_query(self) -> list[tuple[str, str]]:
        """Render as ordered query pairs (``types`` first, then paging)."""
        query: list[tuple[str, str]] = []
        if self.types:
            query.append(("types", media_types_to_param(self.types)))
        if self.limit is not None:
            query.append(("limit", str(self.limit)))
        if self.offset is not None:
            query.append(("offset", str(self.offset)))
        return query
