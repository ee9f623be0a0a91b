from __future__ import annotations

from .models import Preferences, PreferencesUpdate


def merge_preferences(existing: Preferences, update: PreferencesUpdate) -> Preferences:
    """Fold a sparse update into a profile.

    Per-field override: a field set on ``update`` replaces the existing value,
    anything else is kept. Lists are replaced, not concatenated, because the
    extractor already returns the full de-duplicated list. ``question_count``
    never goes down.
    """
    touched = update.touched_fields()
    if "question_count" in touched:
        touched["question_count"] = max(existing.question_count, touched["question_count"])
    return existing.model_copy(update=touched, deep=True)
