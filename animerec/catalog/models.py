from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

MediaType = Literal["ANIME", "MANGA"]


class _CatalogModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class MediaTitle(_CatalogModel):
    romaji: str | None = None
    english: str | None = None
    native: str | None = None


class CoverImage(_CatalogModel):
    large: str | None = None
    medium: str | None = None


class MediaTag(_CatalogModel):
    name: str
    rank: int | None = None


class MediaRecord(_CatalogModel):
    """One AniList media entry, as returned by the catalog. Never mutated."""

    id: int
    title: MediaTitle = Field(default_factory=MediaTitle)
    cover_image: CoverImage | None = Field(default=None, alias="coverImage")
    type: MediaType | None = None
    format: str | None = None
    episodes: int | None = None
    chapters: int | None = None
    volumes: int | None = None
    genres: list[str] = Field(default_factory=list)
    tags: list[MediaTag] = Field(default_factory=list)
    average_score: int | None = Field(default=None, alias="averageScore")
    popularity: int | None = None
    description: str | None = None
    is_adult: bool | None = Field(default=None, alias="isAdult")

    @property
    def tag_names(self) -> list[str]:
        return [t.name for t in self.tags]


class TitleGenres(BaseModel):
    genres: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


class MediaSearchFilters(BaseModel):
    """Search filters in Python naming; ``to_variables`` maps them to GraphQL."""

    type: MediaType | None = None
    search: str | None = None
    genre_in: list[str] | None = None
    genre_not_in: list[str] | None = None
    tag_in: list[str] | None = None
    tag_not_in: list[str] | None = None
    format_in: list[str] | None = None
    is_adult: bool | None = None
    sort: list[str] = Field(default_factory=lambda: ["POPULARITY_DESC"])
    page: int = 1
    per_page: int = 20
    start_date_greater: int | None = None
    start_date_lesser: int | None = None

    def to_variables(self, max_per_page: int = 50) -> dict[str, Any]:
        """GraphQL variables with unset and empty filters left out entirely."""
        variables: dict[str, Any] = {
            "page": self.page,
            "perPage": min(self.per_page, max_per_page),
            "sort": self.sort or ["POPULARITY_DESC"],
        }
        if self.type:
            variables["type"] = self.type
        if self.search:
            variables["search"] = self.search
        for name in ("genre_in", "genre_not_in", "tag_in", "tag_not_in", "format_in"):
            values = getattr(self, name)
            if values:
                variables[name] = list(values)
        if self.is_adult is not None:
            variables["isAdult"] = self.is_adult
        if self.start_date_greater is not None:
            variables["startDate_greater"] = self.start_date_greater
        if self.start_date_lesser is not None:
            variables["startDate_lesser"] = self.start_date_lesser
        return variables


def display_title(media: MediaRecord) -> str:
    t = media.title
    return t.english or t.romaji or t.native or "Unknown"


def cover_url(media: MediaRecord) -> str | None:
    if media.cover_image is None:
        return None
    return media.cover_image.large or media.cover_image.medium
