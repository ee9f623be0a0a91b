from __future__ import annotations

import pytest

from animerec.catalog.client import CatalogError
from animerec.catalog.models import MediaRecord, MediaSearchFilters, cover_url, display_title
from animerec.profile.models import Preferences
from animerec.recommendations.query import build_search_filters
from animerec.recommendations.retrieval import get_recommendations
from animerec.recommendations.scoring import build_why_fits, rank_candidates, score_media


def _media(media_id: int = 1, **fields) -> MediaRecord:
    payload = {
        "id": media_id,
        "title": {"romaji": f"Title {media_id}", "english": None, "native": None},
        "genres": [],
        "tags": [],
        "averageScore": None,
        "popularity": None,
    }
    payload.update(fields)
    return MediaRecord.model_validate(payload)


def _tags(*names: str) -> list[dict]:
    return [{"name": n, "rank": 80} for n in names]


# ── Scoring ──────────────────────────────────────────────────────────────


class TestScoreMedia:
    def test_reference_candidate_scores_ten(self):
        prefs = Preferences(liked_genres=["Action"])
        media = _media(genres=["Action"], averageScore=90, popularity=50000)
        assert score_media(media, prefs) == 10

    def test_genre_match_is_case_insensitive(self):
        prefs = Preferences(liked_genres=["action"])
        assert score_media(_media(genres=["Action"]), prefs) == 3

    def test_liked_tag_substring(self):
        prefs = Preferences(liked_tags=["reven"])
        assert score_media(_media(tags=_tags("Revenge")), prefs) == 2

    def test_disliked_genre_and_tag(self):
        prefs = Preferences(disliked_genres=["Horror"], disliked_tags=["harem"])
        media = _media(genres=["Horror"], tags=_tags("Male Harem"))
        assert score_media(media, prefs) == -7

    def test_no_go_on_genre_and_tag(self):
        prefs = Preferences(no_go_filters=["ecchi", "gore"])
        media = _media(genres=["Ecchi"], tags=_tags("Gore"))
        assert score_media(media, prefs) == -40

    def test_rating_contribution(self):
        prefs = Preferences()
        assert score_media(_media(averageScore=24), prefs) == 0
        assert score_media(_media(averageScore=75), prefs) == 3
        assert score_media(_media(averageScore=100), prefs) == 4

    def test_popularity_is_logarithmic_and_capped(self):
        prefs = Preferences()
        assert score_media(_media(popularity=0), prefs) == 0
        assert score_media(_media(popularity=1500), prefs) == 3
        assert score_media(_media(popularity=10**12), prefs) == 10


# ── Ranking ──────────────────────────────────────────────────────────────


class TestRankCandidates:
    def test_sorted_by_score_descending(self):
        prefs = Preferences(liked_genres=["Action", "Drama"])
        media = [
            _media(1, genres=["Comedy"]),
            _media(2, genres=["Action", "Drama"]),
            _media(3, genres=["Action"]),
        ]
        assert [item.id for item in rank_candidates(media, prefs)] == [2, 3, 1]

    def test_ties_keep_catalog_order(self):
        media = [_media(i, genres=["Action"]) for i in (5, 3, 9)]
        items = rank_candidates(media, Preferences(liked_genres=["Action"]))
        assert [item.id for item in items] == [5, 3, 9]

    def test_truncates_to_limit(self):
        media = [_media(i) for i in range(20)]
        assert len(rank_candidates(media, Preferences(), limit=8)) == 8

    def test_floor_is_exclusive(self):
        prefs = Preferences(
            disliked_genres=["Horror", "Drama", "Mystery"],
            disliked_tags=["Gore", "Harem"],
        )
        at_floor = _media(1, genres=["Horror", "Drama", "Mystery"], tags=_tags("Gore"))
        above_floor = _media(2, genres=["Horror", "Drama"], tags=_tags("Gore", "Harem"))
        assert score_media(at_floor, prefs) == -15
        assert score_media(above_floor, prefs) == -14
        assert [item.id for item in rank_candidates([at_floor, above_floor], prefs)] == [2]

    def test_single_no_go_genre_is_always_excluded(self):
        prefs = Preferences(no_go_filters=["ecchi"])
        plain = _media(1, genres=["Ecchi"])
        boosted = _media(2, genres=["Ecchi"], averageScore=100, popularity=10**12)
        clean = _media(3, genres=["Comedy"])
        assert score_media(plain, prefs) <= -15
        assert [item.id for item in rank_candidates([plain, boosted, clean], prefs)] == [3]

    def test_item_fields(self):
        media = _media(
            7,
            title={"romaji": "Shingeki no Kyojin", "english": "Attack on Titan", "native": None},
            coverImage={"large": None, "medium": "https://img/medium.jpg"},
            format="TV",
            episodes=25,
            genres=["Action"],
            tags=_tags("Military"),
        )
        [item] = rank_candidates([media], Preferences())
        assert item.title == "Attack on Titan"
        assert item.cover_image == "https://img/medium.jpg"
        assert item.format == "TV"
        assert item.episodes == 25
        assert item.chapters is None
        assert item.tags == ["Military"]
        assert item.raw is media

    def test_empty_candidates(self):
        assert rank_candidates([], Preferences()) == []


# ── Justification ────────────────────────────────────────────────────────


class TestWhyFits:
    def test_names_up_to_two_liked_genres(self):
        prefs = Preferences(liked_genres=["Action", "Drama", "Fantasy"])
        media = _media(genres=["Fantasy", "Drama", "Action"])
        assert build_why_fits(media, prefs) == "Matches your interest in Action and Drama."

    def test_highly_rated(self):
        text = build_why_fits(_media(averageScore=85), Preferences())
        assert text == "Highly rated by the community."

    def test_dark_mood_by_tag(self):
        prefs = Preferences(mood="dark")
        text = build_why_fits(_media(genres=["Fantasy"], tags=_tags("Tragedy")), prefs)
        assert text == "Fits a darker, more serious tone."

    def test_light_mood(self):
        prefs = Preferences(mood="light", liked_genres=["Comedy"])
        text = build_why_fits(_media(genres=["Comedy"], averageScore=82), prefs)
        assert text == (
            "Matches your interest in Comedy. Highly rated by the community. "
            "Lighter tone that fits your mood."
        )

    def test_fallback(self):
        text = build_why_fits(_media(genres=["Sports"], averageScore=60), Preferences(mood="dark"))
        assert text.startswith("Popular and well-received")


# ── Display helpers ──────────────────────────────────────────────────────


class TestDisplay:
    def test_title_fallbacks(self):
        assert display_title(_media(title={"english": "E", "romaji": "R", "native": "N"})) == "E"
        assert display_title(_media(title={"english": None, "romaji": None, "native": "N"})) == "N"
        assert display_title(_media(title={})) == "Unknown"

    def test_cover_url(self):
        assert cover_url(_media()) is None
        assert cover_url(_media(coverImage={"large": "L", "medium": "M"})) == "L"


# ── Catalog query ────────────────────────────────────────────────────────


class TestSearchFilters:
    def test_empty_profile_sends_only_paging(self):
        variables = build_search_filters(Preferences(), "ANIME").to_variables()
        assert variables == {
            "page": 1,
            "perPage": 50,
            "sort": ["POPULARITY_DESC"],
            "type": "ANIME",
        }

    def test_genre_in_excludes_disliked_and_is_capped(self):
        prefs = Preferences(
            liked_genres=["Action", "Drama", "Horror", "Fantasy", "Mystery", "Sports", "Mecha"],
            disliked_genres=["horror"],
        )
        filters = build_search_filters(prefs, "MANGA")
        assert filters.genre_in == ["Action", "Drama", "Fantasy", "Mystery", "Sports"]
        assert filters.genre_not_in == ["horror"]
        assert filters.type == "MANGA"

    def test_ecchi_no_go(self):
        prefs = Preferences(liked_genres=["Ecchi", "Comedy"], no_go_filters=["ecchi", "gore"])
        filters = build_search_filters(prefs, "ANIME")
        assert filters.genre_not_in == ["Ecchi"]
        assert filters.genre_in == ["Comedy"]
        assert filters.is_adult is False
        assert filters.tag_not_in is None

    def test_hentai_no_go_sets_adult_flag_only(self):
        filters = build_search_filters(Preferences(no_go_filters=["hentai"]), "ANIME")
        assert filters.is_adult is False
        assert filters.genre_not_in is None
        assert filters.to_variables()["isAdult"] is False

    def test_disliked_tags(self):
        filters = build_search_filters(Preferences(disliked_tags=["Harem"]), "ANIME")
        assert filters.tag_not_in == ["Harem"]

    def test_era_bounds(self):
        recent = build_search_filters(Preferences(era="recent"), "ANIME").to_variables()
        assert recent["startDate_greater"] == 20180101
        assert "startDate_lesser" not in recent
        older = build_search_filters(Preferences(era="2000s"), "ANIME").to_variables()
        assert older["startDate_lesser"] == 20120101
        assert "startDate_greater" not in older


# ── Retrieval ────────────────────────────────────────────────────────────


class _FakeCatalog:
    def __init__(self, media=None, error=None):
        self.media = media or []
        self.error = error
        self.searches: list[MediaSearchFilters] = []

    def search_media(self, filters):
        self.searches.append(filters)
        if self.error:
            raise self.error
        return self.media

    def get_genres_for_title(self, title, media_type="ANIME"):
        raise AssertionError("not used")


class TestGetRecommendations:
    def test_uses_preferred_format_and_ranks(self):
        catalog = _FakeCatalog([_media(1, genres=["Comedy"]), _media(2, genres=["Action"])])
        prefs = Preferences(preferred_format="MANGA", liked_genres=["Action"])
        items = get_recommendations(prefs, catalog, limit=8)
        assert [item.id for item in items] == [2, 1]
        assert catalog.searches[0].type == "MANGA"
        assert catalog.searches[0].genre_in == ["Action"]

    def test_defaults_to_anime(self):
        catalog = _FakeCatalog()
        assert get_recommendations(Preferences(), catalog) == []
        assert catalog.searches[0].type == "ANIME"

    def test_catalog_failure_propagates(self):
        catalog = _FakeCatalog(error=CatalogError("down"))
        with pytest.raises(CatalogError):
            get_recommendations(Preferences(), catalog)
