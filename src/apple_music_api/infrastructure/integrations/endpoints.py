"""Apple Music REST endpoint catalog.

Hey future me - this table is the ONLY place API paths live. AppleMusicClient
looks an entry up, fills the path template and hands the RequestSpec to the
pipeline. Adding an endpoint = one line here + one method on the client.

Path placeholders:
- {storefront} - always filled from ClientConfig.storefront by the client
- {id}         - validated with validate_resource_id() before substitution

Library endpoints (``v1/me/...``) need a Music-User-Token; the client refuses
them locally with AuthError when none is set, so no request is wasted on a
guaranteed 401/403.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from string import Formatter
from urllib.parse import parse_qsl, quote, urlsplit

from pydantic import BaseModel

from apple_music_api.domain.dtos import (
    GenreResponse,
    ResourceResponse,
    SearchHintsResponse,
    SearchResponse,
    SearchSuggestionsResponse,
    StorefrontResponse,
)
from apple_music_api.domain.exceptions import InvalidRequestError
from apple_music_api.infrastructure.integrations.request_pipeline import RequestSpec


@dataclass(frozen=True)
class Endpoint:
    """One Apple Music API operation."""

    name: str
    method: str
    path_template: str
    response_model: type[BaseModel] | None = None
    requires_user_token: bool = False

    @property
    def placeholders(self) -> frozenset[str]:
        return frozenset(
            field for _, field, _, _ in Formatter().parse(self.path_template) if field
        )

    def build(
        self,
        query: Iterable[tuple[str, str]] = (),
        body: bytes | None = None,
        **params: str,
    ) -> RequestSpec:
        """Fill the path template and return a RequestSpec.

        Raises:
            InvalidRequestError: If a placeholder has no value or an unknown
                parameter is passed
        """
        missing = self.placeholders - params.keys()
        if missing:
            raise InvalidRequestError(
                f"{self.name} needs path parameter(s): {', '.join(sorted(missing))}"
            )
        unknown = params.keys() - self.placeholders
        if unknown:
            raise InvalidRequestError(
                f"{self.name} got unknown path parameter(s): {', '.join(sorted(unknown))}"
            )

        path = self.path_template.format(
            **{key: quote(str(value), safe="") for key, value in params.items()}
        )
        return RequestSpec(self.method, path, query=tuple(query), body=body)


SEARCH = Endpoint("search", "GET", "v1/catalog/{storefront}/search", SearchResponse)
SEARCH_HINTS = Endpoint("search_hints", "GET", "v1/catalog/{storefront}/search/hints", SearchHintsResponse)
SEARCH_SUGGESTIONS = Endpoint("search_suggestions", "GET", "v1/catalog/{storefront}/search/suggestions", SearchSuggestionsResponse)

SONG = Endpoint("song", "GET", "v1/catalog/{storefront}/songs/{id}", ResourceResponse)
SONGS = Endpoint("songs", "GET", "v1/catalog/{storefront}/songs", ResourceResponse)
ALBUM = Endpoint("album", "GET", "v1/catalog/{storefront}/albums/{id}", ResourceResponse)
ALBUMS = Endpoint("albums", "GET", "v1/catalog/{storefront}/albums", ResourceResponse)
ARTIST = Endpoint("artist", "GET", "v1/catalog/{storefront}/artists/{id}", ResourceResponse)
ARTISTS = Endpoint("artists", "GET", "v1/catalog/{storefront}/artists", ResourceResponse)
PLAYLIST = Endpoint("playlist", "GET", "v1/catalog/{storefront}/playlists/{id}", ResourceResponse)
PLAYLISTS = Endpoint("playlists", "GET", "v1/catalog/{storefront}/playlists", ResourceResponse)
GENRES = Endpoint("genres", "GET", "v1/catalog/{storefront}/genres", GenreResponse)

LIBRARY_SONGS = Endpoint("library_songs", "GET", "v1/me/library/songs", ResourceResponse, requires_user_token=True)
LIBRARY_ALBUMS = Endpoint("library_albums", "GET", "v1/me/library/albums", ResourceResponse, requires_user_token=True)
LIBRARY_ARTISTS = Endpoint("library_artists", "GET", "v1/me/library/artists", ResourceResponse, requires_user_token=True)
LIBRARY_PLAYLISTS = Endpoint("library_playlists", "GET", "v1/me/library/playlists", ResourceResponse, requires_user_token=True)
ADD_TO_LIBRARY = Endpoint("add_to_library", "POST", "v1/me/library", None, requires_user_token=True)

STOREFRONT = Endpoint("storefront", "GET", "v1/storefronts/{storefront}", StorefrontResponse)
STOREFRONTS = Endpoint("storefronts", "GET", "v1/storefronts", StorefrontResponse)

ENDPOINTS: dict[str, Endpoint] = {
    endpoint.name: endpoint
    for endpoint in (
        SEARCH,
        SEARCH_HINTS,
        SEARCH_SUGGESTIONS,
        SONG,
        SONGS,
        ALBUM,
        ALBUMS,
        ARTIST,
        ARTISTS,
        PLAYLIST,
        PLAYLISTS,
        GENRES,
        LIBRARY_SONGS,
        LIBRARY_ALBUMS,
        LIBRARY_ARTISTS,
        LIBRARY_PLAYLISTS,
        ADD_TO_LIBRARY,
        STOREFRONT,
        STOREFRONTS,
    )
}


def next_page_spec(next_url: str) -> RequestSpec:
    """Turn a response ``next`` href into a GET RequestSpec.

    Apple returns relative hrefs like ``/v1/me/library/songs?offset=25``; an
    absolute URL is accepted too, only its path and query are kept so the
    request still goes to the configured base URL.

    Raises:
        InvalidRequestError: If the href is empty or has no path
    """
    if not next_url or not next_url.strip():
        raise InvalidRequestError("Next page href cannot be empty")

    parts = urlsplit(next_url.strip())
    path = parts.path.lstrip("/")
    if not path:
        raise InvalidRequestError(f"Next page href has no path: {next_url!r}")
    return RequestSpec.get(path, parse_qsl(parts.query, keep_blank_values=True))
