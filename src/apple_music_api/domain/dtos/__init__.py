"""Response shapes for the Apple Music REST API.

Only the fields needed to identify and navigate resources are required;
everything else Apple sends is kept as extra fields so a decoded value dumps
back (``model_dump(by_alias=True, exclude_unset=True)``) to the payload it
came from. A payload missing a required field fails validation as a whole -
the pipeline turns that into ``DecodeError``, never a half-filled object.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AppleMusicModel(BaseModel):
    """Base for all response models: camelCase on the wire, extras kept."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_payload(self) -> dict[str, Any]:
        """Dump back to the JSON structure Apple sent."""
        return self.model_dump(by_alias=True, exclude_unset=True, mode="json")


class Artwork(AppleMusicModel):
    url: str
    width: int | None = None
    height: int | None = None
    bg_color: str | None = None
    text_color1: str | None = None
    text_color2: str | None = None
    text_color3: str | None = None
    text_color4: str | None = None

    def image_url(self, width: int, height: int) -> str:
        """Fill the ``{w}x{h}`` template of the artwork URL."""
        return self.url.replace("{w}", str(width)).replace("{h}", str(height))


class EditorialNotes(AppleMusicModel):
    standard: str | None = None
    short: str | None = None
    tagline: str | None = None


class PlayParameters(AppleMusicModel):
    id: str
    kind: str
    is_library: bool | None = None
    catalog_id: str | None = None


class Relationship(AppleMusicModel):
    """A to-many relationship; related resources stay loosely typed."""

    data: list["Resource"] = Field(default_factory=list)
    href: str | None = None
    next: str | None = None


class Resource(AppleMusicModel):
    """Generic Apple Music resource (song, album, library-song, ...)."""

    id: str
    resource_type: str = Field(alias="type")
    href: str | None = None
    attributes: dict[str, Any] | None = None
    relationships: dict[str, Relationship] | None = None

    @property
    def name(self) -> str | None:
        if not self.attributes:
            return None
        return self.attributes.get("name")


class PaginationMeta(AppleMusicModel):
    total: int | None = None


class ResourceResponse(AppleMusicModel):
    """``{"data": [...]}`` document returned by most endpoints."""

    data: list[Resource]
    href: str | None = None
    next: str | None = None
    meta: PaginationMeta | None = None


class StorefrontAttributes(AppleMusicModel):
    name: str
    default_language_tag: str
    supported_language_tags: list[str] = Field(default_factory=list)
    explicit_content_policy: str | None = None


class Storefront(AppleMusicModel):
    id: str
    resource_type: str = Field(alias="type")
    href: str | None = None
    attributes: StorefrontAttributes | None = None


class StorefrontResponse(AppleMusicModel):
    data: list[Storefront]
    next: str | None = None


class GenreAttributes(AppleMusicModel):
    name: str
    parent_id: str | None = None
    parent_name: str | None = None


class Genre(AppleMusicModel):
    id: str
    resource_type: str = Field(alias="type")
    href: str | None = None
    attributes: GenreAttributes | None = None


class GenreResponse(AppleMusicModel):
    data: list[Genre]
    next: str | None = None


class SearchResultData(AppleMusicModel):
    """One result group (``results.songs``, ``results.albums``, ...)."""

    data: list[Resource]
    href: str | None = None
    next: str | None = None


class SearchResponse(AppleMusicModel):
    results: dict[str, SearchResultData]
    meta: dict[str, Any] | None = None

    def group(self, media_type: str) -> list[Resource]:
        """Resources of one type, empty when Apple returned none."""
        found = self.results.get(media_type)
        return found.data if found else []


class SearchHintsResults(AppleMusicModel):
    terms: list[str]


class SearchHintsResponse(AppleMusicModel):
    results: SearchHintsResults


class SearchSuggestion(AppleMusicModel):
    kind: str
    search_term: str | None = None
    display_term: str | None = None
    content: Resource | None = None


class SearchSuggestionsResults(AppleMusicModel):
    suggestions: list[SearchSuggestion]


class SearchSuggestionsResponse(AppleMusicModel):
    results: SearchSuggestionsResults


class ApiErrorDetail(AppleMusicModel):
    """One entry of Apple's ``errors`` array."""

    id: str | None = None
    status: str | None = None
    code: str | None = None
    title: str | None = None
    detail: str | None = None

    def describe(self) -> str:
        text = self.detail or self.title or "Unknown error"
        if self.title and self.detail and self.title != self.detail:
            text = f"{self.title}: {self.detail}"
        if self.code:
            text = f"{text} ({self.code})"
        return text


class ApiErrorPayload(AppleMusicModel):
    errors: list[ApiErrorDetail]


Relationship.model_rebuild()
Resource.model_rebuild()


__all__ = [
    "AppleMusicModel",
    "ApiErrorDetail",
    "ApiErrorPayload",
    "Artwork",
    "EditorialNotes",
    "Genre",
    "GenreAttributes",
    "GenreResponse",
    "PaginationMeta",
    "PlayParameters",
    "Relationship",
    "Resource",
    "ResourceResponse",
    "SearchHintsResponse",
    "SearchHintsResults",
    "SearchResponse",
    "SearchResultData",
    "SearchSuggestion",
    "SearchSuggestionsResponse",
    "SearchSuggestionsResults",
    "Storefront",
    "StorefrontAttributes",
    "StorefrontResponse",
]
