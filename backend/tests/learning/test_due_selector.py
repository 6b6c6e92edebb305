"""Tests for due-card selection and deck statistics."""

from datetime import UTC, date, datetime
from uuid import UUID
from zoneinfo import ZoneInfo

from studyhub.learning_engine.srs.due_selector import deck_stats, due_cards
from studyhub.learning_engine.srs.sm2 import CardSchedule

UTC_ZONE = ZoneInfo("UTC")
NOW = datetime(2026, 3, 10, 15, 0, tzinfo=UTC)


def _card(n: int, next_review_date: date | None, **kwargs) -> CardSchedule:
    return CardSchedule(card_id=UUID(int=n), next_review_date=next_review_date, **kwargs)


class TestDueCards:
    def test_only_due_cards(self):
        cards = [
            _card(1, date(2026, 3, 9)),
            _card(2, date(2026, 3, 10)),
            _card(3, date(2026, 3, 11)),
        ]
        due = due_cards(cards, NOW, UTC_ZONE)
        assert [c.card_id for c in due] == [UUID(int=1), UUID(int=2)]

    def test_ordering_with_tie_break(self):
        """Ascending next review date, then ascending card id."""
        cards = [
            _card(5, date(2026, 3, 8)),
            _card(3, date(2026, 3, 1)),
            _card(4, date(2026, 3, 8)),
            _card(1, date(2026, 3, 10)),
        ]
        due = due_cards(cards, NOW, UTC_ZONE)
        assert [c.card_id.int for c in due] == [3, 4, 5, 1]

    def test_missing_date_is_due_first(self):
        cards = [_card(2, date(2026, 3, 1)), _card(1, None)]
        due = due_cards(cards, NOW, UTC_ZONE)
        assert [c.card_id.int for c in due] == [1, 2]

    def test_empty(self):
        assert due_cards([], NOW, UTC_ZONE) == []
        assert due_cards([_card(1, date(2026, 4, 1))], NOW, UTC_ZONE) == []

    def test_returns_new_list(self):
        cards = [_card(2, date(2026, 3, 2)), _card(1, date(2026, 3, 1))]
        snapshot = list(cards)
        due = due_cards(cards, NOW, UTC_ZONE)
        assert due is not cards
        assert cards == snapshot

    def test_today_follows_timezone(self):
        # 01:00 UTC on the 11th is still the 10th in New York
        now = datetime(2026, 3, 11, 1, 0, tzinfo=UTC)
        cards = [_card(1, date(2026, 3, 11))]
        assert due_cards(cards, now, ZoneInfo("America/New_York")) == []
        assert len(due_cards(cards, now, UTC_ZONE)) == 1


class TestDeckStats:
    def test_counts(self):
        schedules = [
            _card(1, date(2026, 3, 10)),  # new, due
            _card(2, date(2026, 3, 20), interval=6, repetitions=2),
            _card(3, date(2026, 4, 30), interval=30, repetitions=5),  # mastered
            _card(4, date(2026, 3, 1), interval=21, repetitions=4),  # mastered, due
        ]
        stats = deck_stats(schedules, NOW, UTC_ZONE)
        assert stats.total_cards == 4
        assert stats.due_count == 2
        assert stats.new_count == 1
        assert stats.mastered_count == 2

    def test_empty_deck(self):
        stats = deck_stats([], NOW, UTC_ZONE)
        assert (stats.total_cards, stats.due_count, stats.new_count, stats.mastered_count) == (0, 0, 0, 0)
