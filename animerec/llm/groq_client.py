from __future__ import annotations

import logging
from typing import Sequence

from groq import Groq

from ..chat.models import ChatHistoryMessage
from ..profile.models import Preferences
from ..recommendations.models import RecommendationItem
from .config import DEFAULT_LLM_CONFIG, LLMConfig

logger = logging.getLogger(__name__)

_FALLBACK_QUESTION = "Tell me a bit more about what you're in the mood for!"


def _format_label(prefs: Preferences) -> str:
    if prefs.preferred_format == "ANIME":
        return "anime"
    if prefs.preferred_format == "MANGA":
        return "manga"
    return "anime or manga"


def _item_line(index: int, item: RecommendationItem) -> str:
    if item.episodes is not None:
        length = f"{item.episodes} eps"
    elif item.chapters is not None:
        length = f"{item.chapters} ch"
    else:
        length = ""
    meta = ", ".join(p for p in (item.format or "", length) if p)
    return f"{index}. **{item.title}** ({meta}) – {item.why_fits}"


def build_system_prompt(
    prefs: Preferences,
    recommendations: Sequence[RecommendationItem] | None,
    next_question: str | None = None,
) -> str:
    lines = [
        "You are OtakuPal, a friendly anime and manga recommendation assistant.",
        "You know about anime, manga, and manhwa.",
        "Use the user's taste profile to personalize responses.",
        f"Preferred format: {_format_label(prefs)}.",
    ]
    if prefs.liked_genres:
        lines.append(f"Likes genres: {', '.join(prefs.liked_genres)}.")
    if prefs.disliked_genres:
        lines.append(f"Avoids genres: {', '.join(prefs.disliked_genres)}.")
    if prefs.examples_liked:
        lines.append(f"Likes titles: {', '.join(prefs.examples_liked)}.")
    if prefs.mood:
        lines.append(f"Mood: {prefs.mood}.")
    if prefs.no_go_filters:
        lines.append(f"Strictly avoid: {', '.join(prefs.no_go_filters)}.")

    if recommendations:
        lines.append(
            "\nHere are AniList recommendations that match the user. "
            "Format them naturally in your reply:"
        )
        for i, item in enumerate(recommendations, start=1):
            lines.append(_item_line(i, item))
    else:
        lines.append(
            "\nThe user hasn't given enough info yet. Ask one short, friendly "
            "clarifying question. Don't recommend yet."
        )
        if next_question:
            lines.append(f"The question to ask next: {next_question}")

    lines.append("\nBe conversational, brief, and helpful. Use markdown for titles.")
    return "\n".join(lines)


def fallback_reply(
    recommendations: Sequence[RecommendationItem] | None,
    next_question: str | None = None,
) -> str:
    """Deterministic reply used whenever the LLM is unavailable."""
    if recommendations is None:
        return next_question or _FALLBACK_QUESTION
    if not recommendations:
        return (
            "I couldn't find anything matching all of that. "
            "Could you loosen a filter or name a title you enjoyed?"
        )
    lines = ["Here are some picks I think you'll like:"]
    lines.extend(_item_line(i, item) for i, item in enumerate(recommendations, start=1))
    return "\n".join(lines)


def generate_reply(
    user_message: str,
    preferences: Preferences,
    chat_history: Sequence[ChatHistoryMessage] = (),
    recommendations: Sequence[RecommendationItem] | None = None,
    next_question: str | None = None,
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> str:
    """
    Phrase the assistant's reply with Groq.

    ``recommendations`` is None on asking turns. Returns the deterministic
    ``fallback_reply`` when the LLM is disabled, unconfigured or fails.
    """
    if not config.enabled or not config.api_key:
        return fallback_reply(recommendations, next_question)

    try:
        messages: list[dict[str, str]] = [
            {
                "role": "system",
                "content": build_system_prompt(preferences, recommendations, next_question),
            },
        ]
        for turn in chat_history:
            messages.append({"role": turn.role, "content": turn.content})
        messages.append({"role": "user", "content": user_message})

        client = Groq(api_key=config.api_key, timeout=config.timeout)
        response = client.chat.completions.create(
            model=config.model,
            messages=messages,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
        )

        text = (response.choices[0].message.content or "").strip()
        return text if text else fallback_reply(recommendations, next_question)

    except Exception:
        logger.warning("Groq reply generation failed, using fallback", exc_info=True)
        return fallback_reply(recommendations, next_question)
