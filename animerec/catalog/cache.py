"""
In-process TTL cache for title -> genre lookups.

Once a user names a title it is looked up again on every later turn, so the
catalog answer is kept for ``CatalogConfig.title_cache_ttl`` seconds.
"""
from __future__ import annotations

import time

from .models import MediaType, TitleGenres

_entries: dict[tuple[str, str], tuple[TitleGenres, float]] = {}
_hits: int = 0
_misses: int = 0


def _key(title: str, media_type: MediaType) -> tuple[str, str]:
    return " ".join(title.lower().split()), media_type


def get_title_genres(title: str, media_type: MediaType, ttl: int) -> TitleGenres | None:
    global _hits, _misses
    key = _key(title, media_type)
    entry = _entries.get(key)
    if entry and time.time() - entry[1] < ttl:
        _hits += 1
        return entry[0]
    if entry:
        del _entries[key]
    _misses += 1
    return None


def set_title_genres(title: str, media_type: MediaType, value: TitleGenres) -> None:
    _entries[_key(title, media_type)] = (value, time.time())


def get_cache_stats() -> dict:
    total = _hits + _misses
    return {
        "size": len(_entries),
        "hits": _hits,
        "misses": _misses,
        "hit_rate": round(_hits / total * 100, 1) if total > 0 else 0.0,
    }


def clear_cache() -> None:
    global _hits, _misses
    _entries.clear()
    _hits = 0
    _misses = 0
