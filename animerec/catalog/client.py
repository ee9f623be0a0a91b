from __future__ import annotations

import logging
from typing import Any, Protocol

import requests
from pydantic import ValidationError

from .cache import get_title_genres, set_title_genres
from .config import DEFAULT_CATALOG_CONFIG, CatalogConfig
from .models import MediaRecord, MediaSearchFilters, MediaType, TitleGenres

logger = logging.getLogger(__name__)

MEDIA_FRAGMENT = """
  id
  title { romaji english native }
  coverImage { large medium }
  type
  format
  episodes
  chapters
  volumes
  genres
  tags { name rank }
  averageScore
  popularity
  description
  isAdult
"""

MEDIA_SEARCH_QUERY = f"""
query MediaSearch(
  $type: MediaType
  $search: String
  $genre_in: [String]
  $genre_not_in: [String]
  $tag_in: [String]
  $tag_not_in: [String]
  $format_in: [MediaFormat]
  $isAdult: Boolean
  $sort: [MediaSort]
  $page: Int
  $perPage: Int
  $startDate_greater: FuzzyDateInt
  $startDate_lesser: FuzzyDateInt
) {{
  Page(page: $page, perPage: $perPage) {{
    pageInfo {{ total hasNextPage }}
    media(
      type: $type
      search: $search
      genre_in: $genre_in
      genre_not_in: $genre_not_in
      tag_in: $tag_in
      tag_not_in: $tag_not_in
      format_in: $format_in
      isAdult: $isAdult
      sort: $sort
      startDate_greater: $startDate_greater
      startDate_lesser: $startDate_lesser
    ) {{
      {MEDIA_FRAGMENT}
    }}
  }}
}}
"""


class CatalogError(RuntimeError):
    """The catalog could not be queried or answered with an error."""


class CatalogClient(Protocol):
    def search_media(self, filters: MediaSearchFilters) -> list[MediaRecord]: ...

    def get_genres_for_title(self, title: str, media_type: MediaType = "ANIME") -> TitleGenres: ...


def _join_errors(errors: list) -> str:
    # GraphQL error entries are usually {"message": ...} but may be bare strings
    return "; ".join(
        str(e.get("message", e)) if isinstance(e, dict) else str(e) for e in errors
    )


class AniListClient:
    """Query the AniList GraphQL API for media and per-title genres."""

    def __init__(
        self,
        *,
        config: CatalogConfig = DEFAULT_CATALOG_CONFIG,
        session: requests.Session | None = None,
    ) -> None:
        self._config = config
        self._session = session or requests.Session()

    # ------------------------------------------------------------------
    def search_media(self, filters: MediaSearchFilters) -> list[MediaRecord]:
        variables = filters.to_variables(self._config.max_per_page)
        logger.debug(
            "Searching media type=%s search=%s page=%s perPage=%s",
            filters.type, filters.search, variables["page"], variables["perPage"],
        )
        data = self._query(MEDIA_SEARCH_QUERY, variables)
        raw_media = (data.get("Page") or {}).get("media") or []
        try:
            media = [MediaRecord.model_validate(m) for m in raw_media]
        except ValidationError as exc:
            raise CatalogError(f"Unexpected AniList media payload: {exc}") from exc
        logger.debug("Search completed with %d results", len(media))
        return media

    def get_genres_for_title(self, title: str, media_type: MediaType = "ANIME") -> TitleGenres:
        """Genres and tag names of the best AniList match for ``title``.

        An empty result means no match and is not an error.
        """
        title = title.strip()
        cached = get_title_genres(title, media_type, self._config.title_cache_ttl)
        if cached is not None:
            return cached

        media = self.search_media(
            MediaSearchFilters(search=title, type=media_type, per_page=1, page=1)
        )
        if not media:
            logger.debug("No AniList result for title %r", title)
            result = TitleGenres()
        else:
            result = TitleGenres(genres=list(media[0].genres), tags=media[0].tag_names)
            logger.debug("Found %d genres for title %r", len(result.genres), title)

        set_title_genres(title, media_type, result)
        return result

    # ------------------------------------------------------------------
    def _query(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        try:
            response = self._session.post(
                self._config.url,
                json={"query": query, "variables": variables},
                headers={"Content-Type": "application/json", "Accept": "application/json"},
                timeout=self._config.timeout,
            )
        except requests.RequestException as exc:
            logger.error("AniList request failed: %s", exc)
            raise CatalogError(f"AniList request failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        errors = payload.get("errors") if isinstance(payload, dict) else None
        if not response.ok:
            if errors:
                message = _join_errors(errors)
            else:
                message = payload.get("message") if isinstance(payload, dict) else None
                message = message or response.reason
            logger.error("AniList API error status=%s message=%s", response.status_code, message)
            raise CatalogError(f"AniList API error: {response.status_code} - {message}")

        if errors:
            message = _join_errors(errors)
            logger.error("AniList GraphQL errors: %s", message)
            raise CatalogError(message)

        data = payload.get("data") if isinstance(payload, dict) else None
        if not data:
            logger.error("AniList API returned no data")
            raise CatalogError("AniList API returned no data")
        return data


__all__ = ["AniListClient", "CatalogClient", "CatalogError"]
