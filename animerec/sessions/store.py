"""
In-memory conversation sessions.

Each session keeps its ordered chat messages and the encoded preference row
(see ``profile.models.preferences_to_row``). The chat endpoint is the only
writer of a session during a turn.
"""
from __future__ import annotations

import time
from typing import Any
from uuid import uuid4

from ..chat.models import ChatHistoryMessage
from ..profile.models import Preferences, preferences_from_row, preferences_to_row

_sessions: dict[str, dict[str, Any]] = {}


def create_session() -> str:
    session_id = uuid4().hex
    _sessions[session_id] = {
        "created_at": time.time(),
        "messages": [],
        "preference_row": None,
    }
    return session_id


def session_exists(session_id: str) -> bool:
    return session_id in _sessions


def get_messages(session_id: str, last: int | None = None) -> list[ChatHistoryMessage]:
    messages = _sessions[session_id]["messages"]
    if last is not None:
        messages = messages[-last:] if last > 0 else []
    return [ChatHistoryMessage(**m) for m in messages]


def append_messages(session_id: str, *messages: ChatHistoryMessage) -> None:
    _sessions[session_id]["messages"].extend(m.model_dump() for m in messages)


def load_preferences(session_id: str) -> Preferences | None:
    """Stored profile, or None when nothing was saved yet."""
    row = _sessions[session_id]["preference_row"]
    if row is None:
        return None
    return preferences_from_row(row)


def save_preferences(session_id: str, prefs: Preferences) -> None:
    _sessions[session_id]["preference_row"] = preferences_to_row(prefs)


def clear_sessions() -> None:
    _sessions.clear()
