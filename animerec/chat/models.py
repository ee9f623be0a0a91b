from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from ..profile.models import Preferences
from ..recommendations.models import RecommendationItem


class ChatRequest(BaseModel):
    session_id: str | None = None
    message: str = Field(..., min_length=1, max_length=10000)


class ChatHistoryMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class TurnResult(BaseModel):
    assistant_message: str
    preferences: Preferences
    recommendations: list[RecommendationItem] | None = None
    is_recommendation: bool = False


class ChatResponse(BaseModel):
    session_id: str
    assistant_message: str
    preferences: Preferences
    recommendations: list[RecommendationItem] | None = None
    is_recommendation: bool = False


class SessionResponse(BaseModel):
    session_id: str
    messages: list[ChatHistoryMessage] = Field(default_factory=list)
    preferences: Preferences | None = None
