from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import BaseModel, Field

MediaFormat = Literal["ANIME", "MANGA"]
Era = Literal["recent", "2000s"]
Pacing = Literal["slow", "medium", "fast"]
Mood = Literal["dark", "light", "mixed"]

MAX_QUESTION_COUNT = 6

LIST_FIELDS: tuple[str, ...] = (
    "liked_genres",
    "disliked_genres",
    "liked_tags",
    "disliked_tags",
    "no_go_filters",
    "examples_liked",
)

_CHOICE_FIELDS: dict[str, tuple[str, ...]] = {
    "preferred_format": ("ANIME", "MANGA"),
    "era": ("recent", "2000s"),
    "pacing": ("slow", "medium", "fast"),
    "mood": ("dark", "light", "mixed"),
}


class Preferences(BaseModel):
    """The evolving taste profile of one conversation."""

    liked_genres: list[str] = Field(default_factory=list)
    disliked_genres: list[str] = Field(default_factory=list)
    liked_tags: list[str] = Field(default_factory=list)
    disliked_tags: list[str] = Field(default_factory=list)
    preferred_format: MediaFormat | None = None
    era: Era | None = None
    pacing: Pacing | None = None
    mood: Mood | None = None
    no_go_filters: list[str] = Field(default_factory=list)
    examples_liked: list[str] = Field(default_factory=list)
    question_count: int = Field(default=0, ge=0, le=MAX_QUESTION_COUNT)


class PreferencesUpdate(BaseModel):
    """Sparse update produced from a single message.

    Only fields touched by the message are set; use ``touched_fields()`` (or
    ``model_dump(exclude_unset=True)``) to tell them apart from defaults.
    """

    liked_genres: list[str] | None = None
    disliked_genres: list[str] | None = None
    liked_tags: list[str] | None = None
    disliked_tags: list[str] | None = None
    preferred_format: MediaFormat | None = None
    era: Era | None = None
    pacing: Pacing | None = None
    mood: Mood | None = None
    no_go_filters: list[str] | None = None
    examples_liked: list[str] | None = None
    question_count: int | None = Field(default=None, ge=0, le=MAX_QUESTION_COUNT)

    def touched_fields(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude_none=True)

    def is_empty(self) -> bool:
        return not self.touched_fields()


EMPTY_PREFERENCES = Preferences()


def empty_preferences() -> Preferences:
    return EMPTY_PREFERENCES.model_copy(deep=True)


# ---------------------------------------------------------------------------
# Persisted row encoding
# ---------------------------------------------------------------------------


def preferences_to_row(prefs: Preferences) -> dict[str, Any]:
    """Encode a profile for storage: lists as JSON strings, absent optionals as None."""
    row: dict[str, Any] = {}
    for name in LIST_FIELDS:
        row[name] = json.dumps(getattr(prefs, name))
    for name in _CHOICE_FIELDS:
        row[name] = getattr(prefs, name)
    row["question_count"] = prefs.question_count
    return row


def _load_list(raw: Any) -> list[str]:
    if isinstance(raw, list):
        values = raw
    else:
        try:
            values = json.loads(raw or "[]")
        except (TypeError, ValueError):
            return []
    if not isinstance(values, list):
        return []

    out: list[str] = []
    seen: set[str] = set()
    for v in values:
        if not isinstance(v, str):
            continue
        v = v.strip()
        if v and v.lower() not in seen:
            seen.add(v.lower())
            out.append(v)
    return out


def _load_question_count(raw: Any) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return 0
    return max(0, min(MAX_QUESTION_COUNT, value))


def preferences_from_row(row: dict[str, Any] | None) -> Preferences:
    """Decode a stored row. Each corrupt field falls back to its empty value."""
    if not row:
        return empty_preferences()

    data: dict[str, Any] = {}
    for name in LIST_FIELDS:
        data[name] = _load_list(row.get(name))
    for name, allowed in _CHOICE_FIELDS.items():
        value = row.get(name)
        data[name] = value if value in allowed else None
    data["question_count"] = _load_question_count(row.get("question_count"))

    return Preferences(**data)
