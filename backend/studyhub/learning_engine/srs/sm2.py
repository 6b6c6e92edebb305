"""
SM-2 spaced repetition scheduler.

Given a card's current schedule and a recall quality in 0..5, compute the next
schedule:

    EF' = max(1.3, EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)))

    q < 3   -> repetitions' = 0, interval' = 1
    q >= 3  -> repetitions' = repetitions + 1
               interval' = 1 on the first pass, 6 on the second,
                           round(interval * EF') afterwards

The interval growth uses the updated ease factor. All functions here are pure:
the caller supplies the review date.
"""

from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from enum import IntEnum
from uuid import UUID
from zoneinfo import ZoneInfo

from studyhub.learning_engine.errors import InvalidQualityError
from studyhub.learning_engine.utils import ensure_utc, round_half_up

MIN_EASE_FACTOR = 1.3
DEFAULT_EASE_FACTOR = 2.5
MIN_QUALITY = 0
MAX_QUALITY = 5
PASSING_QUALITY = 3
FIRST_INTERVAL_DAYS = 1
SECOND_INTERVAL_DAYS = 6
MASTERED_INTERVAL_DAYS = 21


class ReviewRating(IntEnum):
    """Self-assessment buttons and the quality each one submits."""

    AGAIN = 1
    HARD = 2
    GOOD = 4
    EASY = 5


@dataclass(frozen=True)
class CardSchedule:
    """Scheduling state of one card."""

    card_id: UUID | None
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval: int = 0
    repetitions: int = 0
    next_review_date: date | None = None

    @classmethod
    def new(cls, card_id: UUID | None, created_on: date) -> "CardSchedule":
        """Default state for a fresh card: due on its creation date."""
        return cls(card_id=card_id, next_review_date=created_on)

    @property
    def is_mastered(self) -> bool:
        return self.interval >= MASTERED_INTERVAL_DAYS


def review_date(now: datetime, tz: ZoneInfo) -> date:
    """Calendar date of a review instant in the scheduling timezone."""
    return ensure_utc(now).astimezone(tz).date()


def validate_quality(quality: object) -> int:
    # bool is an int subclass; True must not pass as quality 1
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidQualityError(quality)
    if quality < MIN_QUALITY or quality > MAX_QUALITY:
        raise InvalidQualityError(quality)
    return int(quality)


def next_ease_factor(ease_factor: float, quality: int) -> float:
    miss = MAX_QUALITY - quality
    updated = ease_factor + (0.1 - miss * (0.08 + miss * 0.02))
    return max(MIN_EASE_FACTOR, round(updated, 2))


def advance(schedule: CardSchedule, quality: int, reviewed_on: date) -> CardSchedule:
    """
    Apply one review to ``schedule``.

    Args:
        schedule: current state
        quality: recall quality, integer 0..5
        reviewed_on: date of the review in the scheduling timezone

    Returns:
        New schedule; the input is not modified.

    Raises:
        InvalidQualityError: quality is not an integer in 0..5
    """
    quality = validate_quality(quality)
    ease_factor = next_ease_factor(schedule.ease_factor, quality)

    if quality < PASSING_QUALITY:
        repetitions = 0
        interval = FIRST_INTERVAL_DAYS
    else:
        repetitions = schedule.repetitions + 1
        if repetitions == 1:
            interval = FIRST_INTERVAL_DAYS
        elif repetitions == 2:
            interval = SECOND_INTERVAL_DAYS
        else:
            interval = round_half_up(schedule.interval * ease_factor)

    return replace(
        schedule,
        ease_factor=ease_factor,
        interval=interval,
        repetitions=repetitions,
        next_review_date=reviewed_on + timedelta(days=interval),
    )


def review_message(days_until_next: int) -> str:
    """Short human-readable description of when the card comes back."""
    if days_until_next <= 0:
        return "Review again today"
    if days_until_next == 1:
        return "Review tomorrow"
    if days_until_next < 7:
        return f"Review in {days_until_next} days"
    if days_until_next < MASTERED_INTERVAL_DAYS:
        return f"Review in {days_until_next // 7} week(s)"
    return f"Card mastered! Review in {days_until_next} days"
