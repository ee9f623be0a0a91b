"""
Rule-based preference extraction.

Turns one free-text chat message into a sparse ``PreferencesUpdate``. Every
rule is a keyword table evaluated in a fixed order, so the policy can be read
(and tested) without following control flow:

1. no-go terms           -> ``no_go_filters``
2. genre aliases         -> ``liked_genres`` or ``disliked_genres``
3. format words          -> ``preferred_format``
4. mood / pacing / era   -> last matching rule wins
5. known titles          -> ``examples_liked``

List-valued fields in the update already contain the existing values plus
the new ones, de-duplicated, so merging is a plain per-field override.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Iterable

from .models import Preferences, PreferencesUpdate

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Keyword tables
# ---------------------------------------------------------------------------

GENRE_ALIASES: dict[str, str] = {
    "action": "Action",
    "adventure": "Adventure",
    "comedy": "Comedy",
    "drama": "Drama",
    "romance": "Romance",
    "scifi": "Sci-Fi",
    "sci-fi": "Sci-Fi",
    "sci fi": "Sci-Fi",
    "fantasy": "Fantasy",
    "horror": "Horror",
    "mystery": "Mystery",
    "thriller": "Thriller",
    "sliceoflife": "Slice of Life",
    "slice-of-life": "Slice of Life",
    "slice of life": "Slice of Life",
    "sports": "Sports",
    "supernatural": "Supernatural",
    "psychological": "Psychological",
    "mecha": "Mecha",
    "historical": "Historical",
    "military": "Military",
    "ecchi": "Ecchi",
}

NO_GO_TERMS: tuple[str, ...] = ("ecchi", "hentai", "gore", "torture")

NEGATION_TOKENS = frozenset({"no", "not", "don't", "dont", "without", "avoid"})

AVOID_TOKENS = frozenset({"avoid", "don't", "dont", "not", "skip", "without", "no"})
AVOID_PHRASES: tuple[str, ...] = ("rather avoid", "stay away")

# Genres people tend to name on their own when asked what to avoid.
COMMON_AVOID_GENRES = frozenset({"horror", "ecchi", "gore", "torture", "romance"})

_ANIME_RE = re.compile(r"\b(anime|tv|show)\b")
_MANGA_RE = re.compile(r"\bmanga\b")

# (field, value, pattern); evaluated top to bottom, later matches overwrite.
ATTRIBUTE_RULES: tuple[tuple[str, str, re.Pattern[str]], ...] = (
    ("mood", "dark", re.compile(r"\b(dark|grim|violent|gritty)\b")),
    ("mood", "light", re.compile(r"\b(light|fun|comedy|happy)\b")),
    ("mood", "mixed", re.compile(r"\b(mixed|both)\b")),
    ("pacing", "slow", re.compile(r"\b(slow|slice of life|calm)\b")),
    ("pacing", "fast", re.compile(r"\b(fast|action|intense)\b")),
    ("era", "2000s", re.compile(r"\b(2000s|old|classic|90s|80s)\b")),
    ("era", "recent", re.compile(r"\b(recent|new|latest|2020)\b")),
)

# (pattern, display name). Extend here to teach the extractor new titles.
KNOWN_TITLES: tuple[tuple[re.Pattern[str], str], ...] = tuple(
    (re.compile(pattern, re.IGNORECASE), name)
    for pattern, name in (
        (r"\bvinland saga\b", "Vinland Saga"),
        (r"\bberserk\b", "Berserk"),
        (r"\battack on titan\b", "Attack on Titan"),
        (r"\bdeath note\b", "Death Note"),
        (r"\b(?:fullmetal(?: alchemist)?|fma)\b", "Fullmetal Alchemist"),
        (r"\bsteins?[;: ]?gate\b", "Steins;Gate"),
        (r"\bcowboy bebop\b", "Cowboy Bebop"),
        (r"\bdemon slayer\b", "Demon Slayer"),
        (r"\bjujutsu kaisen\b", "Jujutsu Kaisen"),
        (r"\bone piece\b", "One Piece"),
        (r"\bnaruto\b", "Naruto"),
        (r"\bbleach\b", "Bleach"),
        (r"\bspy x family\b", "Spy x Family"),
        (r"\bchainsaw man\b", "Chainsaw Man"),
        (r"\bmob psycho(?: 100)?\b", "Mob Psycho 100"),
        (r"\bre:\s?zero\b", "Re:Zero"),
        (r"\bmushoku tensei\b", "Mushoku Tensei"),
        (r"\bfrieren\b", "Frieren"),
        (r"\bviolet evergarden\b", "Violet Evergarden"),
    )
)

_NON_WORD_RE = re.compile(r"[^\w\s'-]")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _normalise_text(message: str) -> str:
    return message.replace("’", "'").replace("‘", "'").lower()


def tokenize(message: str) -> list[str]:
    """Lowercase word tokens; punctuation other than ``'`` and ``-`` is dropped."""
    return _NON_WORD_RE.sub(" ", _normalise_text(message)).split()


def _union(existing: Iterable[str], new: Iterable[str]) -> list[str]:
    """Ordered, case-insensitive de-duplicated union of two string lists."""
    out: list[str] = []
    seen: set[str] = set()
    for value in [*existing, *new]:
        value = value.strip()
        if value and value.lower() not in seen:
            seen.add(value.lower())
            out.append(value)
    return out


def _is_negated(tokens: list[str], index: int) -> bool:
    return index > 0 and tokens[index - 1] in NEGATION_TOKENS


def find_no_go_terms(tokens: list[str]) -> list[str]:
    found: list[str] = []
    for term in NO_GO_TERMS:
        index = next((i for i, tok in enumerate(tokens) if term in tok), None)
        if index is None or _is_negated(tokens, index):
            continue
        found.append(term)
    return found


def find_genres(tokens: list[str]) -> list[str]:
    """Canonical genres mentioned in the token stream, in alias-table order."""
    joined = f" {' '.join(tokens)} "
    found: list[str] = []
    for alias, genre in GENRE_ALIASES.items():
        if " " in alias:
            hit = f" {alias} " in joined
        else:
            hit = any(len(tok) >= 3 and alias in tok for tok in tokens)
        if hit and genre not in found:
            found.append(genre)
    return found


def find_titles(message: str) -> list[str]:
    """Known titles in order of first appearance in the message."""
    hits: list[tuple[int, str]] = []
    for pattern, name in KNOWN_TITLES:
        match = pattern.search(message)
        if match:
            hits.append((match.start(), name))
    hits.sort(key=lambda h: h[0])
    return _union([], (name for _, name in hits))


def _is_avoid_context(text: str, tokens: list[str]) -> bool:
    if AVOID_TOKENS.intersection(tokens):
        return True
    return any(phrase in text for phrase in AVOID_PHRASES)


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------


def extract_preferences(
    message: str,
    existing: Preferences | None = None,
) -> PreferencesUpdate:
    """Derive a sparse profile update from one message.

    Never raises on odd input: text with no recognised keyword yields an
    update with no fields set.
    """
    existing = existing or Preferences()
    message = message or ""
    text = _normalise_text(message)
    tokens = tokenize(message)
    word_count = len(message.split())
    updates: dict[str, Any] = {}

    # 1. Hard exclusions
    existing_no_go = {x.lower() for x in existing.no_go_filters}
    new_no_go = [t for t in find_no_go_terms(tokens) if t not in existing_no_go]
    if new_no_go:
        updates["no_go_filters"] = _union(existing.no_go_filters, new_no_go)

    # 2. Genres, liked or disliked depending on the whole message
    genres = find_genres(tokens)
    if genres:
        avoid = _is_avoid_context(text, tokens) or (word_count <= 3 and bool(new_no_go))
        short_avoid_reply = word_count <= 2 and all(
            g.lower() in COMMON_AVOID_GENRES for g in genres
        )
        if avoid or short_avoid_reply:
            updates["disliked_genres"] = _union(existing.disliked_genres, genres)
        else:
            no_go = existing_no_go.union(new_no_go)
            to_add = [g for g in genres if g.lower() not in no_go]
            if to_add:
                updates["liked_genres"] = _union(existing.liked_genres, to_add)

    # 3. Format
    wants_anime = bool(_ANIME_RE.search(text))
    wants_manga = bool(_MANGA_RE.search(text))
    if wants_anime and not wants_manga:
        updates["preferred_format"] = "ANIME"
    elif wants_manga and not wants_anime:
        updates["preferred_format"] = "MANGA"

    # 4. Mood, pacing, era
    for field, value, pattern in ATTRIBUTE_RULES:
        if pattern.search(text):
            updates[field] = value

    # 5. Titles
    titles = find_titles(message)
    if titles:
        updates["examples_liked"] = _union(existing.examples_liked, titles)

    if updates:
        logger.debug("Extracted preference fields: %s", sorted(updates))
    return PreferencesUpdate(**updates)
