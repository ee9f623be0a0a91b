from __future__ import annotations

import logging
import os

from fastapi import Depends, FastAPI, HTTPException, Request
from starlette.middleware.sessions import SessionMiddleware

from .catalog.client import AniListClient, CatalogClient, CatalogError
from .chat.models import (
    ChatHistoryMessage,
    ChatRequest,
    ChatResponse,
    SessionResponse,
)
from .chat.turn import ReplyGenerator, run_turn
from .llm.groq_client import generate_reply
from .profile.models import empty_preferences
from .sessions import store

logger = logging.getLogger(__name__)


def configure_logging(level: str | None = None) -> None:
    """Set the level of the ``animerec`` loggers. Handlers and the root logger are left to the server."""
    logging.getLogger("animerec").setLevel((level or os.environ.get("LOG_LEVEL", "INFO")).upper())


configure_logging()

HISTORY_WINDOW = 10

app = FastAPI(title="Anime & Manga Recommendation API", version="1.0.0")
app.add_middleware(
    SessionMiddleware,
    secret_key=os.environ.get("SESSION_SECRET", "otakupal-secret-change-in-production"),
)

_catalog: AniListClient | None = None


def get_catalog() -> CatalogClient:
    global _catalog
    if _catalog is None:
        _catalog = AniListClient()
    return _catalog


def get_reply_generator() -> ReplyGenerator:
    return generate_reply


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# ── Chat endpoint ────────────────────────────────────────────────────────


@app.post("/chat", response_model=ChatResponse)
def chat(
    body: ChatRequest,
    request: Request,
    catalog: CatalogClient = Depends(get_catalog),
    reply_generator: ReplyGenerator = Depends(get_reply_generator),
) -> ChatResponse:
    # 1. Resolve the session: explicit id first, then the cookie, else a new one
    session_id = body.session_id or request.session.get("session_id")
    if session_id is None:
        session_id = store.create_session()
        logger.info("New session created session_id=%s", session_id)
    elif not store.session_exists(session_id):
        if body.session_id:
            logger.warning("Session not found session_id=%s", session_id)
            raise HTTPException(status_code=404, detail="Session not found")
        session_id = store.create_session()
        logger.info("Stale session cookie, new session created session_id=%s", session_id)
    request.session["session_id"] = session_id

    # 2. Load the stored profile and recent history
    prefs = store.load_preferences(session_id) or empty_preferences()
    history = store.get_messages(session_id, last=HISTORY_WINDOW)
    logger.debug(
        "Running chat turn session_id=%s message_length=%d question_count=%d",
        session_id, len(body.message), prefs.question_count,
    )

    # 3. Run the turn
    try:
        result = run_turn(
            body.message,
            prefs,
            prefs.question_count,
            history,
            catalog=catalog,
            reply_generator=reply_generator,
        )
    except CatalogError:
        logger.error("Catalog unavailable during chat turn session_id=%s", session_id, exc_info=True)
        raise HTTPException(
            status_code=502,
            detail="The anime catalog is unavailable right now. Please try again in a moment.",
        )

    # 4. Persist messages and the updated profile
    store.append_messages(
        session_id,
        ChatHistoryMessage(role="user", content=body.message),
        ChatHistoryMessage(role="assistant", content=result.assistant_message),
    )
    store.save_preferences(session_id, result.preferences)

    logger.info(
        "Chat turn completed session_id=%s is_recommendation=%s recommendation_count=%d",
        session_id, result.is_recommendation, len(result.recommendations or []),
    )
    return ChatResponse(
        session_id=session_id,
        assistant_message=result.assistant_message,
        preferences=result.preferences,
        recommendations=result.recommendations,
        is_recommendation=result.is_recommendation,
    )


# ── Session endpoint ─────────────────────────────────────────────────────


@app.get("/session/{session_id}", response_model=SessionResponse)
def session(session_id: str) -> SessionResponse:
    if not store.session_exists(session_id):
        logger.warning("Session not found session_id=%s", session_id)
        raise HTTPException(status_code=404, detail="Session not found")

    messages = store.get_messages(session_id)
    logger.info("Session loaded session_id=%s message_count=%d", session_id, len(messages))
    return SessionResponse(
        session_id=session_id,
        messages=messages,
        preferences=store.load_preferences(session_id),
    )
