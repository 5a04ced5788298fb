"""Apple Music API client.

Hey future me - this is the class applications actually use. It is a thin
facade: every method picks an Endpoint from the catalog, validates caller
input, and lets RequestPipeline do auth headers, retries and decoding.

Usage:
    config = ClientConfig.from_jwt(team_id, key_id, pem).with_storefront("gb")
    async with AppleMusicClient(config) as client:
        results = await client.search("bohemian rhapsody", SearchOptions().with_limit(5))
        song = await client.get_song("1440650711")

        client.set_user_token(music_user_token)
        library = await client.get_library_songs(limit=25)

Catalog endpoints only need the developer token. Library endpoints also need
a Music-User-Token - without one they fail fast with AuthError.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel

from apple_music_api.config.settings import ClientConfig
from apple_music_api.domain.credentials import Credentials
from apple_music_api.domain.dtos import (
    Genre,
    Resource,
    ResourceResponse,
    SearchHintsResponse,
    SearchResponse,
    SearchSuggestionsResponse,
    Storefront,
)
from apple_music_api.domain.exceptions import ApiError, AuthError, InvalidRequestError
from apple_music_api.domain.value_objects import (
    MediaType,
    SearchOptions,
    validate_resource_id,
    validate_resource_ids,
)
from apple_music_api.infrastructure.integrations import endpoints
from apple_music_api.infrastructure.integrations.endpoints import (
    Endpoint,
    next_page_spec,
)
from apple_music_api.infrastructure.integrations.request_pipeline import (
    RequestPipeline,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# Media types that POST v1/me/library accepts.
LIBRARY_MEDIA_TYPES = frozenset(
    {MediaType.SONGS, MediaType.ALBUMS, MediaType.PLAYLISTS, MediaType.MUSIC_VIDEOS}
)


class AppleMusicClient:
    """Async client for the Apple Music catalog, library and storefront APIs."""

    def __init__(
        self,
        config: ClientConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        pipeline: RequestPipeline | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Validated configuration (see ClientConfig builders)
            http_client: Optional shared httpx client, left open on close()
            sleep: Awaitable sleep used between retries
            pipeline: Pre-built pipeline, mainly for tests
        """
        self._config = config
        self._pipeline = pipeline or RequestPipeline(
            config,
            config.credentials(),
            http_client=http_client,
            sleep=sleep,
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def storefront(self) -> str:
        return self._config.storefront

    @property
    def base_url(self) -> str:
        return self._config.base_url

    @property
    def credentials(self) -> Credentials:
        return self._pipeline.credentials

    # =========================================================================
    # LIFECYCLE / USER TOKEN
    # =========================================================================

    def set_user_token(self, user_token: str | None) -> None:
        """Set the Music-User-Token used by library endpoints.

        Takes effect for the next request attempt; requests already on the
        wire keep the token they were sent with.
        """
        self.credentials.set_user_token(user_token)

    def clear_user_token(self) -> None:
        self.credentials.clear_user_token()

    def has_user_token(self) -> bool:
        return self.credentials.has_user_token()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._pipeline.close()

    async def __aenter__(self) -> "AppleMusicClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # Hey future me - every public method funnels through here. The user token check happens
    # BEFORE any I/O so a missing token never burns a request (or a retry budget).
    async def _call(
        self,
        endpoint: Endpoint,
        query: Iterable[tuple[str, str]] = (),
        body: bytes | None = None,
        **params: str,
    ) -> Any:
        if endpoint.requires_user_token and not self.has_user_token():
            raise AuthError(
                f"{endpoint.name} requires a user token. Call set_user_token() first."
            )
        if "storefront" in endpoint.placeholders:
            params["storefront"] = self.storefront
        spec = endpoint.build(query=query, body=body, **params)
        return await self._pipeline.execute(spec, endpoint.response_model)

    async def _get_one(self, endpoint: Endpoint, resource_id: str, label: str) -> Resource:
        response: ResourceResponse = await self._call(
            endpoint, id=validate_resource_id(resource_id)
        )
        if not response.data:
            raise ApiError(404, f"{label} not found")
        return response.data[0]

    async def _get_many(self, endpoint: Endpoint, resource_ids: Sequence[str]) -> list[Resource]:
        if not resource_ids:
            return []
        ids = validate_resource_ids(resource_ids)
        response: ResourceResponse = await self._call(endpoint, query=[("ids", ",".join(ids))])
        return response.data

    # =========================================================================
    # SEARCH
    # =========================================================================

    async def search(
        self, term: str, options: SearchOptions | None = None
    ) -> SearchResponse:
        """Search the catalog of the configured storefront.

        Args:
            term: Search text (spaces are fine, encoding is handled)
            options: Types, limit and offset

        Returns:
            SearchResponse; use ``.group("songs")`` to read one result type

        Raises:
            InvalidRequestError: If the term is blank
        """
        term = _require_term(term)
        query = [("term", term), *(options or SearchOptions()).to_query()]
        return await self._call(endpoints.SEARCH, query=query)

    async def get_search_hints(
        self, term: str, limit: int | None = None
    ) -> SearchHintsResponse:
        """Autocomplete terms for a partial search string."""
        query = [("term", _require_term(term))]
        if limit is not None:
            query.append(("limit", str(limit)))
        return await self._call(endpoints.SEARCH_HINTS, query=query)

    async def get_search_suggestions(
        self, term: str, kinds: str = "terms"
    ) -> SearchSuggestionsResponse:
        """Search suggestions (``kinds`` is ``terms`` or ``topResults``)."""
        query = [("term", _require_term(term)), ("kinds", kinds)]
        return await self._call(endpoints.SEARCH_SUGGESTIONS, query=query)

    # =========================================================================
    # CATALOG
    # =========================================================================

    async def get_song(self, song_id: str) -> Resource:
        """Get a catalog song.

        Raises:
            ApiError: 404 if Apple returns no data for the ID
        """
        return await self._get_one(endpoints.SONG, song_id, "Song")

    async def get_album(self, album_id: str) -> Resource:
        return await self._get_one(endpoints.ALBUM, album_id, "Album")

    async def get_artist(self, artist_id: str) -> Resource:
        return await self._get_one(endpoints.ARTIST, artist_id, "Artist")

    async def get_playlist(self, playlist_id: str) -> Resource:
        return await self._get_one(endpoints.PLAYLIST, playlist_id, "Playlist")

    # Hey future me - empty ID lists return [] WITHOUT a request. Apple answers ids= with a 400,
    # and "give me nothing" is a perfectly valid thing for a caller to ask for.
    async def get_songs(self, song_ids: Sequence[str]) -> list[Resource]:
        """Get several catalog songs in one request (``?ids=a,b,c``)."""
        return await self._get_many(endpoints.SONGS, song_ids)

    async def get_albums(self, album_ids: Sequence[str]) -> list[Resource]:
        return await self._get_many(endpoints.ALBUMS, album_ids)

    async def get_artists(self, artist_ids: Sequence[str]) -> list[Resource]:
        return await self._get_many(endpoints.ARTISTS, artist_ids)

    async def get_playlists(self, playlist_ids: Sequence[str]) -> list[Resource]:
        return await self._get_many(endpoints.PLAYLISTS, playlist_ids)

    async def get_genres(self) -> list[Genre]:
        """Top-level genres of the configured storefront."""
        response = await self._call(endpoints.GENRES)
        return response.data

    # =========================================================================
    # LIBRARY (requires user token)
    # =========================================================================

    async def get_library_songs(
        self, limit: int | None = None, offset: int | None = None
    ) -> ResourceResponse:
        return await self._call(endpoints.LIBRARY_SONGS, query=_paging(limit, offset))

    async def get_library_albums(
        self, limit: int | None = None, offset: int | None = None
    ) -> ResourceResponse:
        return await self._call(endpoints.LIBRARY_ALBUMS, query=_paging(limit, offset))

    async def get_library_artists(
        self, limit: int | None = None, offset: int | None = None
    ) -> ResourceResponse:
        return await self._call(endpoints.LIBRARY_ARTISTS, query=_paging(limit, offset))

    async def get_library_playlists(
        self, limit: int | None = None, offset: int | None = None
    ) -> ResourceResponse:
        return await self._call(
            endpoints.LIBRARY_PLAYLISTS, query=_paging(limit, offset)
        )

    async def add_to_library(
        self, media_type: MediaType | str, resource_ids: Sequence[str]
    ) -> None:
        """Add catalog resources to the user's library.

        Apple answers 202 Accepted with an empty body; the add itself happens
        asynchronously on their side.

        Args:
            media_type: songs, albums, playlists or music-videos
            resource_ids: Catalog IDs (at least one)

        Raises:
            InvalidRequestError: Unsupported media type or bad IDs
            AuthError: No user token set
        """
        try:
            kind = MediaType(media_type)
        except ValueError as e:
            raise InvalidRequestError(f"Unknown media type: {media_type!r}") from e
        if kind not in LIBRARY_MEDIA_TYPES:
            raise InvalidRequestError(f"{kind.value} cannot be added to the library")

        ids = validate_resource_ids(resource_ids)
        await self._call(
            endpoints.ADD_TO_LIBRARY, query=[(f"ids[{kind.value}]", ",".join(ids))]
        )
        logger.info("Added %d %s to library", len(ids), kind.value)

    async def add_songs_to_library(self, song_ids: Sequence[str]) -> None:
        await self.add_to_library(MediaType.SONGS, song_ids)

    async def add_albums_to_library(self, album_ids: Sequence[str]) -> None:
        await self.add_to_library(MediaType.ALBUMS, album_ids)

    async def add_playlists_to_library(self, playlist_ids: Sequence[str]) -> None:
        await self.add_to_library(MediaType.PLAYLISTS, playlist_ids)

    # =========================================================================
    # STOREFRONTS
    # =========================================================================

    async def get_storefront(self) -> Storefront:
        """The configured storefront's details.

        Raises:
            ApiError: 404 if Apple returns no data
        """
        response = await self._call(endpoints.STOREFRONT)
        if not response.data:
            raise ApiError(404, "Storefront not found")
        return response.data[0]

    async def get_storefronts(self) -> list[Storefront]:
        """All storefronts Apple Music is available in."""
        response = await self._call(endpoints.STOREFRONTS)
        return response.data

    # =========================================================================
    # PAGINATION
    # =========================================================================

    async def get_next_page(
        self,
        next_url: str,
        response_model: type[ModelT] = ResourceResponse,  # type: ignore[assignment]
    ) -> ModelT:
        """Follow a ``next`` href from a previous response.

        Example:
            page = await client.get_library_songs()
            while page.next:
                page = await client.get_next_page(page.next)
        """
        spec = next_page_spec(next_url)
        if spec.path.startswith("v1/me/") and not self.has_user_token():
            raise AuthError("Library pages require a user token. Call set_user_token() first.")
        return await self._pipeline.execute(spec, response_model)


def _require_term(term: str) -> str:
    if not term or not term.strip():
        raise InvalidRequestError("Search term cannot be empty")
    return term.strip()


def _paging(limit: int | None, offset: int | None) -> list[tuple[str, str]]:
    query: list[tuple[str, str]] = []
    if limit is not None:
        if limit < 1:
            raise InvalidRequestError("Limit must be positive")
        query.append(("limit", str(limit)))
    if offset is not None:
        if offset < 0:
            raise InvalidRequestError("Offset cannot be negative")
        query.append(("offset", str(offset)))
    return query
