"""Pydantic schemas for flashcard reviews."""

from datetime import date
from uuid import UUID

from pydantic import Field, StrictInt

from studyhub.schemas.common import CamelModel


class ReviewSubmit(CamelModel):
    """Self-assessed recall quality: 1 (again), 2 (hard), 4 (good), 5 (easy)."""

    quality: StrictInt = Field(..., description="Rating value: 1, 2, 4 or 5")


class ReviewOut(CamelModel):
    card_id: UUID
    quality: int
    new_interval: int
    new_ease_factor: float
    new_repetitions: int
    next_review_date: date
    mastered: bool
    message: str


class DueCardOut(CamelModel):
    card_id: UUID
    front: str
    hint: str | None = None
    tags: list[str] = Field(default_factory=list)
    next_review_date: date | None


class DeckStatsOut(CamelModel):
    deck_id: UUID
    total_cards: int
    due_count: int
    new_count: int
    mastered_count: int
