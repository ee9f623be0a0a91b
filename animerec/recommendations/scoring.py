from __future__ import annotations

import logging
import math
import re

from ..catalog.models import MediaRecord, cover_url, display_title
from ..profile.models import Preferences
from .models import RecommendationItem

logger = logging.getLogger(__name__)

LIKED_GENRE_POINTS = 3
LIKED_TAG_POINTS = 2
DISLIKED_GENRE_POINTS = -4
DISLIKED_TAG_POINTS = -3
NO_GO_POINTS = -20
RATING_STEP = 25  # averageScore / 25 -> 0..4
MAX_POPULARITY_POINTS = 10

# Candidates scoring at or below this are dropped.
SCORE_FLOOR = -15
DEFAULT_LIMIT = 10

_DARK_TAG_RE = re.compile(r"dark|tragedy|violent", re.IGNORECASE)


def _has_genre(genres_lower: set[str], genre: str) -> bool:
    return genre.lower() in genres_lower


def _has_tag(tags_lower: list[str], fragment: str) -> bool:
    fragment = fragment.lower()
    return any(fragment in t for t in tags_lower)


def no_go_hits(media: MediaRecord, prefs: Preferences) -> list[str]:
    """No-go terms matched by genre (exact) or tag (substring)."""
    genres_lower = {g.lower() for g in media.genres}
    tags_lower = [t.lower() for t in media.tag_names]
    return [
        term for term in prefs.no_go_filters
        if _has_genre(genres_lower, term) or _has_tag(tags_lower, term)
    ]


def score_media(media: MediaRecord, prefs: Preferences) -> int:
    """Additive integer score of one candidate against the profile."""
    genres_lower = {g.lower() for g in media.genres}
    tags_lower = [t.lower() for t in media.tag_names]
    score = 0

    for g in prefs.liked_genres:
        if _has_genre(genres_lower, g):
            score += LIKED_GENRE_POINTS
    for t in prefs.liked_tags:
        if _has_tag(tags_lower, t):
            score += LIKED_TAG_POINTS
    for g in prefs.disliked_genres:
        if _has_genre(genres_lower, g):
            score += DISLIKED_GENRE_POINTS
    for t in prefs.disliked_tags:
        if _has_tag(tags_lower, t):
            score += DISLIKED_TAG_POINTS
    score += NO_GO_POINTS * len(no_go_hits(media, prefs))

    if media.average_score is not None:
        score += media.average_score // RATING_STEP
    if media.popularity is not None:
        score += min(MAX_POPULARITY_POINTS, int(math.floor(math.log10(media.popularity + 1))))

    return score


def build_why_fits(media: MediaRecord, prefs: Preferences) -> str:
    """Short justification for showing ``media``; independent of the score."""
    parts: list[str] = []
    genres_lower = {g.lower() for g in media.genres}

    matched = [g for g in prefs.liked_genres if _has_genre(genres_lower, g)]
    if matched:
        parts.append(f"Matches your interest in {' and '.join(matched[:2])}.")
    if media.average_score is not None and media.average_score >= 80:
        parts.append("Highly rated by the community.")
    if prefs.mood == "dark" and (
        "Drama" in media.genres
        or "Action" in media.genres
        or any(_DARK_TAG_RE.search(t) for t in media.tag_names)
    ):
        parts.append("Fits a darker, more serious tone.")
    if prefs.mood == "light" and ("Comedy" in media.genres or "Slice of Life" in media.genres):
        parts.append("Lighter tone that fits your mood.")

    if not parts:
        parts.append("Popular and well-received; worth a try based on your format preference.")
    return " ".join(parts)


def to_recommendation_item(media: MediaRecord, prefs: Preferences, score: int) -> RecommendationItem:
    return RecommendationItem(
        id=media.id,
        title=display_title(media),
        cover_image=cover_url(media),
        format=media.format,
        episodes=media.episodes,
        chapters=media.chapters,
        genres=list(media.genres),
        tags=media.tag_names,
        why_fits=build_why_fits(media, prefs),
        score=score,
        raw=media,
    )


def rank_candidates(
    candidates: list[MediaRecord],
    prefs: Preferences,
    limit: int = DEFAULT_LIMIT,
) -> list[RecommendationItem]:
    """Score, drop anything at or below the floor, sort and truncate.

    A candidate with a no-go hit is dropped even when rating and popularity
    lift it back above the floor. Ties keep catalog order (``sorted`` is
    stable).
    """
    scored = [(media, score_media(media, prefs)) for media in candidates]
    kept = [
        (media, score) for media, score in scored
        if score > SCORE_FLOOR and not no_go_hits(media, prefs)
    ]
    top = sorted(kept, key=lambda pair: pair[1], reverse=True)[: max(limit, 0)]

    logger.debug(
        "Ranked candidates: %d in, %d above floor, %d returned",
        len(candidates), len(kept), len(top),
    )
    return [to_recommendation_item(media, prefs, score) for media, score in top]
