"""Selection of the cards that are due for review."""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Protocol, Sequence, TypeVar
from uuid import UUID
from zoneinfo import ZoneInfo

from studyhub.learning_engine.srs.sm2 import MASTERED_INTERVAL_DAYS, review_date


class SchedulableCard(Protocol):
    card_id: UUID
    next_review_date: date | None


C = TypeVar("C", bound=SchedulableCard)


def is_due(next_review_date: date | None, today: date) -> bool:
    # Missing date: never scheduled, so due now
    return next_review_date is None or next_review_date <= today


def due_cards(cards: Iterable[C], now: datetime, tz: ZoneInfo) -> list[C]:
    """
    Cards whose next review date is on or before today.

    Ordered by next review date ascending, ties broken by card id ascending.
    Returns a new list; the input is not modified.
    """
    today = review_date(now, tz)
    due = [card for card in cards if is_due(card.next_review_date, today)]
    due.sort(key=lambda card: (card.next_review_date or date.min, str(card.card_id)))
    return due


@dataclass(frozen=True)
class DeckStats:
    total_cards: int
    due_count: int
    new_count: int
    mastered_count: int


def deck_stats(schedules: Sequence, now: datetime, tz: ZoneInfo) -> DeckStats:
    """Counts over a deck's schedules: due today, never reviewed, mastered."""
    today = review_date(now, tz)
    return DeckStats(
        total_cards=len(schedules),
        due_count=sum(1 for s in schedules if is_due(s.next_review_date, today)),
        new_count=sum(1 for s in schedules if s.repetitions == 0 and s.interval == 0),
        mastered_count=sum(1 for s in schedules if s.interval >= MASTERED_INTERVAL_DAYS),
    )
