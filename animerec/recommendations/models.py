from __future__ import annotations

from pydantic import BaseModel, Field

from ..catalog.models import MediaRecord


class RecommendationItem(BaseModel):
    id: int
    title: str
    cover_image: str | None = None
    format: str | None = None
    episodes: int | None = None
    chapters: int | None = None
    genres: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    why_fits: str
    score: int
    raw: MediaRecord
