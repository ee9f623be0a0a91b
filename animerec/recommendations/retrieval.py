from __future__ import annotations

import logging

from ..catalog.client import CatalogClient
from ..catalog.models import MediaType
from ..profile.models import Preferences
from .models import RecommendationItem
from .query import build_search_filters
from .scoring import DEFAULT_LIMIT, rank_candidates

logger = logging.getLogger(__name__)


def get_recommendations(
    prefs: Preferences,
    catalog: CatalogClient,
    media_type: MediaType | None = None,
    limit: int = DEFAULT_LIMIT,
) -> list[RecommendationItem]:
    """Fetch one candidate page for the profile and rank it.

    Catalog failures propagate: a partial recommendation set is meaningless.
    """
    media_type = media_type or prefs.preferred_format or "ANIME"
    filters = build_search_filters(prefs, media_type)

    candidates = catalog.search_media(filters)
    items = rank_candidates(candidates, prefs, limit)

    logger.debug(
        "Ranked and filtered recommendations type=%s candidates=%d returned=%d",
        media_type, len(candidates), len(items),
    )
    return items
