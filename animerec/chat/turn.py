from __future__ import annotations

import logging
from typing import Callable, Sequence

from ..catalog.client import CatalogClient
from ..catalog.models import MediaType
from ..llm.groq_client import generate_reply
from ..profile.extractor import extract_preferences
from ..profile.merge import merge_preferences
from ..profile.models import MAX_QUESTION_COUNT, Preferences
from ..recommendations.models import RecommendationItem
from ..recommendations.retrieval import get_recommendations
from .models import ChatHistoryMessage, TurnResult
from .planner import get_next_question, should_ask_more

logger = logging.getLogger(__name__)

MAX_TITLE_LOOKUPS = 4
MAX_LIKED_GENRES_FOR_INFERENCE = 10
RECOMMENDATION_LIMIT = 8

ReplyGenerator = Callable[..., str]


def infer_genres_from_titles(
    titles: Sequence[str],
    media_type: MediaType,
    catalog: CatalogClient,
) -> list[str]:
    """Union of catalog genres for the first few titles, in lookup order.

    A failed lookup skips that title; the rest still run.
    """
    found: list[str] = []
    for title in list(titles)[:MAX_TITLE_LOOKUPS]:
        try:
            result = catalog.get_genres_for_title(title, media_type)
        except Exception:
            logger.warning("Genre lookup failed for title %r, skipping", title, exc_info=True)
            continue
        for genre in result.genres:
            if genre not in found:
                found.append(genre)
    return found


def _with_inferred_genres(prefs: Preferences, catalog: CatalogClient) -> Preferences:
    if not prefs.examples_liked or len(prefs.liked_genres) >= MAX_LIKED_GENRES_FOR_INFERENCE:
        return prefs

    media_type: MediaType = prefs.preferred_format or "ANIME"
    inferred = infer_genres_from_titles(prefs.examples_liked, media_type, catalog)
    if not inferred:
        return prefs

    known = {g.lower() for g in prefs.liked_genres}
    liked = list(prefs.liked_genres) + [g for g in inferred if g.lower() not in known]
    logger.debug("Inferred genres %s from titles %s", inferred, prefs.examples_liked)
    return prefs.model_copy(update={"liked_genres": liked})


def run_turn(
    message: str,
    existing_preferences: Preferences,
    existing_question_count: int,
    recent_history: Sequence[ChatHistoryMessage] = (),
    *,
    catalog: CatalogClient,
    reply_generator: ReplyGenerator = generate_reply,
) -> TurnResult:
    """
    Run one conversation turn.

    1. Extract a sparse update from ``message`` and merge it. The question
       count becomes ``existing_question_count + 1``, capped.
    2. Infer liked genres from any titles the user named.
    3. Ask the next clarifying question, or fetch and rank recommendations.

    ``recent_history`` only reaches ``reply_generator``. Catalog search
    failures propagate to the caller.
    """
    update = extract_preferences(message, existing_preferences)
    prefs = merge_preferences(existing_preferences, update)
    prefs = prefs.model_copy(
        update={"question_count": min(existing_question_count + 1, MAX_QUESTION_COUNT)}
    )

    prefs = _with_inferred_genres(prefs, catalog)

    if should_ask_more(prefs):
        question = get_next_question(prefs)
        logger.debug(
            "Asking clarifying question count=%d has_format=%s liked_genres=%d",
            prefs.question_count, bool(prefs.preferred_format), len(prefs.liked_genres),
        )
        reply = reply_generator(
            user_message=message,
            preferences=prefs,
            chat_history=recent_history,
            recommendations=None,
            next_question=question,
        )
        return TurnResult(assistant_message=reply, preferences=prefs)

    media_type: MediaType = prefs.preferred_format or "ANIME"
    logger.info(
        "Fetching recommendations type=%s liked_genres=%d disliked_genres=%d",
        media_type, len(prefs.liked_genres), len(prefs.disliked_genres),
    )
    recs: list[RecommendationItem] = get_recommendations(
        prefs, catalog, media_type=media_type, limit=RECOMMENDATION_LIMIT,
    )
    logger.info("Recommendations ready count=%d", len(recs))

    reply = reply_generator(
        user_message=message,
        preferences=prefs,
        chat_history=recent_history,
        recommendations=recs,
        next_question=None,
    )
    return TurnResult(
        assistant_message=reply,
        preferences=prefs,
        recommendations=recs,
        is_recommendation=True,
    )
