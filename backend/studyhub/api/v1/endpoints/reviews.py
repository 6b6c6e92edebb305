"""Flashcard review endpoints."""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from studyhub.core.config import settings
from studyhub.core.dependencies import get_current_user_id, get_now
from studyhub.db.session import get_db
from studyhub.learning_engine.srs import service as srs_service
from studyhub.schemas.review import DeckStatsOut, DueCardOut, ReviewOut, ReviewSubmit

router = APIRouter()


@router.post(
    "/cards/{card_id}/reviews",
    response_model=ReviewOut,
    status_code=status.HTTP_200_OK,
    summary="Submit a card review",
)
def submit_review(
    card_id: UUID,
    body: ReviewSubmit,
    owner_id: UUID = Depends(get_current_user_id),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
) -> ReviewOut:
    """Apply a self-assessed review and return the card's new schedule."""
    outcome = srs_service.submit_review(db, card_id, owner_id, body.quality, now)
    schedule = outcome.schedule
    return ReviewOut(
        card_id=outcome.card_id,
        quality=outcome.quality,
        new_interval=schedule.interval,
        new_ease_factor=schedule.ease_factor,
        new_repetitions=schedule.repetitions,
        next_review_date=schedule.next_review_date,
        mastered=outcome.mastered,
        message=outcome.message,
    )


@router.get(
    "/decks/{deck_id}/due",
    response_model=list[DueCardOut],
    summary="Cards due for review",
)
def list_due_cards(
    deck_id: UUID,
    limit: int | None = Query(None, ge=1, le=settings.DUE_CARDS_LIMIT_MAX),
    owner_id: UUID = Depends(get_current_user_id),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
) -> list[DueCardOut]:
    cards = srs_service.get_due_cards(db, deck_id, owner_id, now, limit=limit)
    return [
        DueCardOut(
            card_id=card.card_id,
            front=card.front,
            hint=card.hint,
            tags=card.tags,
            next_review_date=card.next_review_date,
        )
        for card in cards
    ]


@router.get(
    "/decks/{deck_id}/stats",
    response_model=DeckStatsOut,
    summary="Deck review statistics",
)
def deck_stats(
    deck_id: UUID,
    owner_id: UUID = Depends(get_current_user_id),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
) -> DeckStatsOut:
    stats = srs_service.get_deck_stats(db, deck_id, owner_id, now)
    return DeckStatsOut(
        deck_id=deck_id,
        total_cards=stats.total_cards,
        due_count=stats.due_count,
        new_count=stats.new_count,
        mastered_count=stats.mastered_count,
    )
