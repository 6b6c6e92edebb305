"""
SRS service layer - applies SM-2 reviews to stored card schedules.

Main responsibilities:
- Load a card and its schedule, enforcing deck ownership
- Run the scheduler and persist the new schedule atomically
- Emit a FLASHCARD_REVIEW progress event in the same transaction
- List due cards and deck statistics
"""

from dataclasses import dataclass
from datetime import date, datetime
from uuid import UUID
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from studyhub.core.config import settings
from studyhub.core.logging import get_logger
from studyhub.core.redis_lock import keyed_lock
from studyhub.learning_engine.errors import (
    AccessDeniedError,
    CardNotFoundError,
    DeckNotFoundError,
    InvalidQualityError,
)
from studyhub.learning_engine.srs.due_selector import DeckStats, deck_stats, due_cards
from studyhub.learning_engine.srs.sm2 import (
    CardSchedule,
    ReviewRating,
    advance,
    review_date,
    review_message,
)
from studyhub.models.flashcard import Card, Deck, ReviewSchedule
from studyhub.models.progress import ProgressEventType
from studyhub.models.question import QuestionCategory
from studyhub.services.progress_events import emit_event
from studyhub.services.session_store import atomic_write, read_with_retry

logger = get_logger(__name__)

# The review endpoint accepts the four rating buttons only
ALLOWED_QUALITIES = frozenset(int(r) for r in ReviewRating)


@dataclass(frozen=True)
class ReviewOutcome:
    card_id: UUID
    quality: int
    schedule: CardSchedule
    message: str

    @property
    def mastered(self) -> bool:
        return self.schedule.is_mastered


@dataclass(frozen=True)
class DueCard:
    card_id: UUID
    front: str
    hint: str | None
    tags: list[str]
    next_review_date: date | None


def _tz(tz: ZoneInfo | None) -> ZoneInfo:
    return tz or settings.schedule_tz


def to_card_schedule(row: ReviewSchedule) -> CardSchedule:
    return CardSchedule(
        card_id=row.card_id,
        ease_factor=row.ease_factor,
        interval=row.interval,
        repetitions=row.repetitions,
        next_review_date=row.next_review_date,
    )


def create_deck(
    db: Session,
    owner_id: UUID,
    name: str,
    category: QuestionCategory | None = None,
    description: str | None = None,
) -> Deck:
    """Create an empty deck."""
    deck = Deck(owner_id=owner_id, name=name, category=category, description=description)
    with atomic_write(db, "create_deck", f"deck_owner:{owner_id}"):
        db.add(deck)
    return deck


def add_card(
    db: Session,
    deck: Deck,
    front: str,
    back: str,
    now: datetime,
    hint: str | None = None,
    tags: list[str] | None = None,
    tz: ZoneInfo | None = None,
) -> Card:
    """
    Create a card together with its default schedule.

    The schedule starts due on the creation date in the scheduling timezone.
    """
    created_on = review_date(now, _tz(tz))
    initial = CardSchedule.new(None, created_on)

    card = Card(deck_id=deck.id, front=front, back=back, hint=hint, tags=list(tags or []), created_at=now)
    card.schedule = ReviewSchedule(
        ease_factor=initial.ease_factor,
        interval=initial.interval,
        repetitions=initial.repetitions,
        next_review_date=initial.next_review_date,
    )
    with atomic_write(db, "add_card", f"deck:{deck.id}"):
        db.add(card)
    return card


def get_owned_deck(db: Session, deck_id: UUID, owner_id: UUID) -> Deck:
    deck = read_with_retry(db, "load_deck", lambda: db.get(Deck, deck_id))
    if deck is None:
        raise DeckNotFoundError(deck_id)
    if deck.owner_id != owner_id:
        raise AccessDeniedError("deck")
    return deck


def get_owned_card(db: Session, card_id: UUID, owner_id: UUID) -> Card:
    def _load() -> Card | None:
        db.expire_all()
        return db.get(Card, card_id)

    card = read_with_retry(db, "load_card", _load)
    if card is None or card.is_deleted or card.schedule is None:
        raise CardNotFoundError(card_id)
    if card.deck.owner_id != owner_id:
        raise AccessDeniedError("card")
    return card


def submit_review(
    db: Session,
    card_id: UUID,
    owner_id: UUID,
    quality: int,
    now: datetime,
    tz: ZoneInfo | None = None,
) -> ReviewOutcome:
    """
    Apply one self-assessed review to a card.

    Args:
        db: Database session
        card_id: Card being reviewed
        owner_id: Caller; must own the card's deck
        quality: One of the rating values 1, 2, 4, 5
        now: Submission time
        tz: Scheduling timezone (defaults to SCHEDULE_TIMEZONE)

    Returns:
        ReviewOutcome with the persisted schedule

    Raises:
        InvalidQualityError: quality is not a rating value
        CardNotFoundError / AccessDeniedError
        ConcurrentModificationError: another review of this card won the race
    """
    if isinstance(quality, bool) or quality not in ALLOWED_QUALITIES:
        raise InvalidQualityError(quality, allowed="1, 2, 4, 5")

    # Reviews of one card run one at a time
    with keyed_lock(f"card_schedule:{card_id}"):
        card = get_owned_card(db, card_id, owner_id)
        row = card.schedule

        updated = advance(to_card_schedule(row), quality, review_date(now, _tz(tz)))

        with atomic_write(db, "submit_review", f"card_schedule:{card_id}"):
            row.ease_factor = updated.ease_factor
            row.interval = updated.interval
            row.repetitions = updated.repetitions
            row.next_review_date = updated.next_review_date
            row.last_reviewed_at = now
            row.last_quality = quality

            emit_event(
                db,
                owner_id=owner_id,
                event_type=ProgressEventType.FLASHCARD_REVIEW,
                occurred_at=now,
                category=card.deck.category,
                payload={
                    "card_id": str(card_id),
                    "deck_id": str(card.deck_id),
                    "quality": quality,
                    "interval": updated.interval,
                },
            )

    logger.info(
        "Card reviewed",
        extra={
            "card_id": str(card_id),
            "quality": quality,
            "interval": updated.interval,
            "ease_factor": updated.ease_factor,
        },
    )
    return ReviewOutcome(
        card_id=card_id,
        quality=quality,
        schedule=updated,
        message=review_message(updated.interval),
    )


def _deck_cards(db: Session, deck_id: UUID) -> list[Card]:
    stmt = (
        select(Card)
        .options(selectinload(Card.schedule))
        .where(Card.deck_id == deck_id, Card.is_deleted.is_(False))
    )
    return read_with_retry(db, "load_deck_cards", lambda: list(db.scalars(stmt)))


def get_due_cards(
    db: Session,
    deck_id: UUID,
    owner_id: UUID,
    now: datetime,
    limit: int | None = None,
    tz: ZoneInfo | None = None,
) -> list[DueCard]:
    """Cards of a deck due today, soonest first, capped at ``limit``."""
    get_owned_deck(db, deck_id, owner_id)

    candidates = [
        DueCard(
            card_id=card.id,
            front=card.front,
            hint=card.hint,
            tags=list(card.tags or []),
            next_review_date=card.schedule.next_review_date if card.schedule else None,
        )
        for card in _deck_cards(db, deck_id)
    ]
    selected = due_cards(candidates, now, _tz(tz))

    cap = min(limit, settings.DUE_CARDS_LIMIT_MAX) if limit else settings.DUE_CARDS_LIMIT_MAX
    return selected[:cap]


def get_deck_stats(
    db: Session,
    deck_id: UUID,
    owner_id: UUID,
    now: datetime,
    tz: ZoneInfo | None = None,
) -> DeckStats:
    """Total, due, new and mastered card counts for a deck."""
    get_owned_deck(db, deck_id, owner_id)
    schedules = [card.schedule for card in _deck_cards(db, deck_id) if card.schedule is not None]
    return deck_stats(schedules, now, _tz(tz))
