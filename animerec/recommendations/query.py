from __future__ import annotations

from ..catalog.models import MediaSearchFilters, MediaType
from ..profile.models import Preferences

# Too many ANDed genre_in values make AniList return nothing.
MAX_GENRE_IN = 5
CANDIDATES_PER_PAGE = 50

ERA_START_AFTER = {"recent": 20180101}
ERA_START_BEFORE = {"2000s": 20120101}


def _is_no_go(prefs: Preferences, *terms: str) -> bool:
    no_go = {x.lower() for x in prefs.no_go_filters}
    return any(t in no_go for t in terms)


def build_search_filters(prefs: Preferences, media_type: MediaType) -> MediaSearchFilters:
    """Catalog filters for one page of candidates matching the profile.

    No-go tags are never sent as ``tag_not_in``; they are enforced by
    ``genre_not_in`` (ecchi) and by the scoring penalty after the fetch.
    """
    genre_not_in = list(prefs.disliked_genres)
    if _is_no_go(prefs, "ecchi"):
        genre_not_in.append("Ecchi")
    excluded = {g.lower() for g in genre_not_in}

    genre_in = [g for g in prefs.liked_genres if g.lower() not in excluded][:MAX_GENRE_IN]

    return MediaSearchFilters(
        type=media_type,
        genre_in=genre_in or None,
        genre_not_in=genre_not_in or None,
        tag_not_in=list(prefs.disliked_tags) or None,
        is_adult=False if _is_no_go(prefs, "ecchi", "hentai") else None,
        sort=["POPULARITY_DESC"],
        page=1,
        per_page=CANDIDATES_PER_PAGE,
        start_date_greater=ERA_START_AFTER.get(prefs.era or ""),
        start_date_lesser=ERA_START_BEFORE.get(prefs.era or ""),
    )
