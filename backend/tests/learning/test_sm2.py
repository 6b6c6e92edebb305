"""Tests for the SM-2 scheduler."""

from datetime import UTC, date, datetime, timedelta
from uuid import uuid4
from zoneinfo import ZoneInfo

import pytest

from studyhub.learning_engine.errors import InvalidQualityError
from studyhub.learning_engine.srs.sm2 import (
    DEFAULT_EASE_FACTOR,
    MIN_EASE_FACTOR,
    CardSchedule,
    ReviewRating,
    advance,
    next_ease_factor,
    review_date,
    review_message,
)
from studyhub.learning_engine.utils import round_half_up

TODAY = date(2026, 3, 2)


def _schedule(**kwargs) -> CardSchedule:
    defaults = {"card_id": uuid4(), "next_review_date": TODAY}
    defaults.update(kwargs)
    return CardSchedule(**defaults)


class TestNewCard:
    """Default schedule of a freshly created card."""

    def test_defaults(self):
        schedule = CardSchedule.new(uuid4(), TODAY)
        assert schedule.ease_factor == DEFAULT_EASE_FACTOR
        assert schedule.interval == 0
        assert schedule.repetitions == 0
        assert schedule.next_review_date == TODAY

    def test_first_good_review(self):
        """A new card reviewed as Good comes back tomorrow."""
        result = advance(CardSchedule.new(uuid4(), TODAY), 4, TODAY)

        assert result.interval == 1
        assert result.repetitions == 1
        assert result.next_review_date == TODAY + timedelta(days=1)
        # q=4 leaves the ease factor unchanged
        assert result.ease_factor == 2.5


class TestIntervals:
    def test_third_pass_uses_updated_ease_factor(self):
        result = advance(_schedule(interval=6, repetitions=2, ease_factor=2.5), 5, TODAY)

        assert result.ease_factor == 2.6
        assert result.interval == 16
        assert result.repetitions == 3
        assert result.next_review_date == TODAY + timedelta(days=16)

    def test_second_pass_is_six_days(self):
        result = advance(_schedule(interval=1, repetitions=1), 4, TODAY)
        assert result.interval == 6
        assert result.repetitions == 2

    def test_interval_rounds_half_up(self):
        # 5 * 2.5 = 12.5 -> 13 (banker's rounding would give 12)
        result = advance(_schedule(interval=5, repetitions=2, ease_factor=2.5), 4, TODAY)
        assert result.interval == 13

    def test_perfect_streak(self):
        schedule = CardSchedule.new(uuid4(), TODAY)
        intervals = []
        for _ in range(4):
            schedule = advance(schedule, 5, TODAY)
            intervals.append(schedule.interval)

        assert intervals == [1, 6, 17, 49]
        assert schedule.ease_factor == 2.9

    @pytest.mark.parametrize("quality", [0, 1, 2])
    def test_failing_review_resets(self, quality):
        result = advance(_schedule(interval=40, repetitions=7, ease_factor=2.2), quality, TODAY)

        assert result.repetitions == 0
        assert result.interval == 1
        assert result.next_review_date == TODAY + timedelta(days=1)

    def test_passing_after_reset_starts_over(self):
        lapsed = advance(_schedule(interval=40, repetitions=7), 1, TODAY)
        result = advance(lapsed, 4, TODAY + timedelta(days=1))
        assert result.repetitions == 1
        assert result.interval == 1


class TestEaseFactor:
    @pytest.mark.parametrize(
        "quality,expected",
        [(5, 2.6), (4, 2.5), (3, 2.36), (2, 2.18), (1, 1.96), (0, 1.7)],
    )
    def test_adjustment_per_quality(self, quality, expected):
        assert next_ease_factor(2.5, quality) == expected

    def test_floor(self):
        result = advance(_schedule(ease_factor=MIN_EASE_FACTOR), 0, TODAY)
        assert result.ease_factor == MIN_EASE_FACTOR

    def test_floor_after_repeated_failures(self):
        schedule = _schedule()
        for _ in range(10):
            schedule = advance(schedule, 0, TODAY)
        assert schedule.ease_factor == MIN_EASE_FACTOR


class TestQualityValidation:
    @pytest.mark.parametrize("quality", [-1, 6, 100])
    def test_out_of_range(self, quality):
        with pytest.raises(InvalidQualityError) as exc_info:
            advance(_schedule(), quality, TODAY)
        assert exc_info.value.code == "INVALID_QUALITY"
        assert exc_info.value.status_code == 422

    @pytest.mark.parametrize("quality", [True, False, 3.0, 4.5, "4", None])
    def test_non_integer(self, quality):
        with pytest.raises(InvalidQualityError):
            advance(_schedule(), quality, TODAY)

    def test_input_unchanged(self):
        original = _schedule(interval=6, repetitions=2)
        advance(original, 5, TODAY)
        assert original.interval == 6
        assert original.repetitions == 2

    def test_rating_buttons(self):
        assert [int(r) for r in ReviewRating] == [1, 2, 4, 5]


class TestReviewDate:
    def test_utc(self):
        now = datetime(2026, 3, 2, 23, 30, tzinfo=UTC)
        assert review_date(now, ZoneInfo("UTC")) == date(2026, 3, 2)

    def test_local_zone_shifts_date(self):
        now = datetime(2026, 3, 2, 2, 0, tzinfo=UTC)
        assert review_date(now, ZoneInfo("America/New_York")) == date(2026, 3, 1)

    def test_naive_treated_as_utc(self):
        assert review_date(datetime(2026, 3, 2, 12, 0), ZoneInfo("UTC")) == date(2026, 3, 2)


class TestReviewMessage:
    @pytest.mark.parametrize(
        "days,expected",
        [
            (0, "Review again today"),
            (1, "Review tomorrow"),
            (3, "Review in 3 days"),
            (6, "Review in 6 days"),
            (7, "Review in 1 week(s)"),
            (16, "Review in 2 week(s)"),
            (21, "Card mastered! Review in 21 days"),
            (49, "Card mastered! Review in 49 days"),
        ],
    )
    def test_messages(self, days, expected):
        assert review_message(days) == expected

    def test_mastery_threshold(self):
        assert not _schedule(interval=20).is_mastered
        assert _schedule(interval=21).is_mastered


class TestRoundHalfUp:
    @pytest.mark.parametrize(
        "value,expected",
        [(0.5, 1), (2.5, 3), (12.5, 13), (66.666, 67), (66.4, 66), (0.0, 0), (100.0, 100)],
    )
    def test_values(self, value, expected):
        assert round_half_up(value) == expected
