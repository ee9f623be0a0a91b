"""
Question planner.

Decides, from the profile alone, whether to keep asking or to recommend, and
which single question to ask next. Questions are tried in a fixed priority
order so that format and taste are asked for before refinements.
"""
from __future__ import annotations

from ..profile.models import MAX_QUESTION_COUNT, Preferences

# Stop asking after this many questions even if the profile is thin.
RECOMMEND_AFTER_QUESTIONS = 3

FORMAT_QUESTION = "Do you want recommendations for **anime**, **manga**, or both?"
FAVORITES_QUESTION = (
    "Any favorite anime or manga? (e.g. Frieren, Vinland Saga) "
    "I'll use that to match your taste."
)
AVOID_QUESTION = "Any genres or themes you'd rather avoid? (e.g. ecchi, horror)"
MOOD_QUESTION = "Do you prefer darker/serious stories or lighter/fun ones?"
REFINE_QUESTION = "Anything else? (e.g. short or long series, recent or classic)"


def has_taste_signal(prefs: Preferences) -> bool:
    return bool(prefs.liked_genres or prefs.examples_liked)


def should_ask_more(prefs: Preferences) -> bool:
    if prefs.question_count >= MAX_QUESTION_COUNT:
        return False
    if prefs.question_count >= RECOMMEND_AFTER_QUESTIONS:
        return False
    if prefs.preferred_format and has_taste_signal(prefs):
        return False
    return True


def get_next_question(prefs: Preferences) -> str | None:
    """First applicable question, or None when there is nothing left to ask."""
    if prefs.question_count >= MAX_QUESTION_COUNT:
        return None
    if not prefs.preferred_format:
        return FORMAT_QUESTION
    if not has_taste_signal(prefs):
        return FAVORITES_QUESTION
    if prefs.question_count <= 2:
        return AVOID_QUESTION
    if not prefs.mood:
        return MOOD_QUESTION
    if prefs.question_count < 5:
        return REFINE_QUESTION
    return None
