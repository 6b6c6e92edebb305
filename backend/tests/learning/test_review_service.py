"""Tests for the flashcard review service."""

import threading
from datetime import date, timedelta
from uuid import uuid4
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy import select

from studyhub.learning_engine.errors import (
    AccessDeniedError,
    CardNotFoundError,
    ConcurrentModificationError,
    DeckNotFoundError,
    InvalidQualityError,
)
from studyhub.learning_engine.srs import service as srs_service
from studyhub.models.progress import ProgressEvent, ProgressEventType
from tests.conftest import T0
from tests.helpers.seed import create_deck_with_cards, set_schedule


class TestAddCard:
    def test_new_card_is_due_on_creation_date(self, db, owner_id):
        _, [card] = create_deck_with_cards(db, owner_id, 1, T0)

        schedule = card.schedule
        assert schedule.ease_factor == 2.5
        assert schedule.interval == 0
        assert schedule.repetitions == 0
        assert schedule.next_review_date == date(2026, 3, 2)

    def test_creation_date_in_schedule_timezone(self, db, owner_id):
        deck = srs_service.create_deck(db, owner_id, "Late night")
        # 02:00 UTC on the 2nd is still the 1st in Chicago
        card = srs_service.add_card(
            db, deck, "f", "b", now=T0.replace(hour=2), tz=ZoneInfo("America/Chicago")
        )
        assert card.schedule.next_review_date == date(2026, 3, 1)


class TestSubmitReview:
    def test_good_on_new_card(self, db, owner_id):
        _, [card] = create_deck_with_cards(db, owner_id, 1, T0)

        outcome = srs_service.submit_review(db, card.id, owner_id, 4, T0)

        assert outcome.schedule.repetitions == 1
        assert outcome.schedule.interval == 1
        assert outcome.schedule.ease_factor == 2.5
        assert outcome.schedule.next_review_date == date(2026, 3, 3)
        assert outcome.message == "Review tomorrow"
        assert not outcome.mastered

        db.refresh(card.schedule)
        assert card.schedule.interval == 1
        assert card.schedule.last_quality == 4

    def test_second_and_third_reviews(self, db, owner_id):
        _, [card] = create_deck_with_cards(db, owner_id, 1, T0)

        srs_service.submit_review(db, card.id, owner_id, 5, T0)
        second = srs_service.submit_review(db, card.id, owner_id, 5, T0 + timedelta(days=1))
        third = srs_service.submit_review(db, card.id, owner_id, 5, T0 + timedelta(days=7))

        assert second.schedule.interval == 6
        assert second.schedule.ease_factor == 2.7
        # round(6 * 2.8) = 17
        assert third.schedule.interval == 17
        assert third.schedule.ease_factor == 2.8
        assert third.schedule.next_review_date == date(2026, 3, 9) + timedelta(days=17)
        assert third.message == "Review in 2 week(s)"

    def test_lapse_resets(self, db, owner_id):
        _, [card] = create_deck_with_cards(db, owner_id, 1, T0)
        set_schedule(db, card, date(2026, 3, 2), interval=15, repetitions=4, ease_factor=2.2)

        outcome = srs_service.submit_review(db, card.id, owner_id, 1, T0)

        assert outcome.schedule.repetitions == 0
        assert outcome.schedule.interval == 1
        assert outcome.schedule.ease_factor == 1.66
        assert outcome.schedule.next_review_date == date(2026, 3, 3)

    @pytest.mark.parametrize("quality", [0, 3, 6, -1, True])
    def test_rejects_non_rating_values(self, db, owner_id, quality):
        _, [card] = create_deck_with_cards(db, owner_id, 1, T0)

        with pytest.raises(InvalidQualityError):
            srs_service.submit_review(db, card.id, owner_id, quality, T0)

        db.refresh(card.schedule)
        assert card.schedule.repetitions == 0

    def test_emits_progress_event(self, db, owner_id):
        deck, [card] = create_deck_with_cards(db, owner_id, 1, T0)

        srs_service.submit_review(db, card.id, owner_id, 2, T0)

        events = list(db.scalars(select(ProgressEvent)))
        assert len(events) == 1
        event = events[0]
        assert event.event_type == ProgressEventType.FLASHCARD_REVIEW
        assert event.owner_id == owner_id
        assert event.payload_json["card_id"] == str(card.id)
        assert event.payload_json["deck_id"] == str(deck.id)
        assert event.payload_json["quality"] == 2

    def test_unknown_card(self, db, owner_id):
        with pytest.raises(CardNotFoundError):
            srs_service.submit_review(db, uuid4(), owner_id, 4, T0)

    def test_deleted_card(self, db, owner_id):
        _, [card] = create_deck_with_cards(db, owner_id, 1, T0)
        card.is_deleted = True
        db.commit()

        with pytest.raises(CardNotFoundError):
            srs_service.submit_review(db, card.id, owner_id, 4, T0)

    def test_other_owner(self, db, owner_id):
        _, [card] = create_deck_with_cards(db, owner_id, 1, T0)

        with pytest.raises(AccessDeniedError):
            srs_service.submit_review(db, card.id, uuid4(), 4, T0)

    def test_concurrent_reviews_apply_one_after_another(self, file_factory):
        owner_id = uuid4()
        setup = file_factory()
        _, [card] = create_deck_with_cards(setup, owner_id, 1, T0)
        card_id = card.id
        setup.close()

        n_reviewers = 4
        barrier = threading.Barrier(n_reviewers)
        outcomes: list[object] = []

        def review():
            db = file_factory()
            try:
                barrier.wait(5)
                outcomes.append(srs_service.submit_review(db, card_id, owner_id, 4, T0))
            except ConcurrentModificationError as e:
                outcomes.append(e)
            finally:
                db.close()

        threads = [threading.Thread(target=review) for _ in range(n_reviewers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(15)

        assert len(outcomes) == n_reviewers
        accepted = [o for o in outcomes if not isinstance(o, Exception)]
        assert accepted
        # Each accepted review built on the one before it
        assert sorted(o.schedule.repetitions for o in accepted) == list(range(1, len(accepted) + 1))

        check = file_factory()
        stored = srs_service.get_owned_card(check, card_id, owner_id).schedule
        assert stored.repetitions == len(accepted)
        check.close()


class TestDueCards:
    def test_due_ordering_and_limit(self, db, owner_id):
        deck, cards = create_deck_with_cards(db, owner_id, 4, T0)
        set_schedule(db, cards[0], date(2026, 3, 1), interval=1, repetitions=1)
        set_schedule(db, cards[1], date(2026, 3, 20), interval=6, repetitions=2)
        set_schedule(db, cards[2], date(2026, 2, 20), interval=6, repetitions=2)
        # cards[3] stays new and due today

        due = srs_service.get_due_cards(db, deck.id, owner_id, T0)
        assert [d.card_id for d in due] == [cards[2].id, cards[0].id, cards[3].id]

        limited = srs_service.get_due_cards(db, deck.id, owner_id, T0, limit=1)
        assert [d.card_id for d in limited] == [cards[2].id]

    def test_deleted_cards_are_skipped(self, db, owner_id):
        deck, cards = create_deck_with_cards(db, owner_id, 2, T0)
        cards[0].is_deleted = True
        db.commit()

        due = srs_service.get_due_cards(db, deck.id, owner_id, T0)
        assert [d.card_id for d in due] == [cards[1].id]

    def test_unknown_deck(self, db, owner_id):
        with pytest.raises(DeckNotFoundError):
            srs_service.get_due_cards(db, uuid4(), owner_id, T0)

    def test_other_owner(self, db, owner_id):
        deck, _ = create_deck_with_cards(db, owner_id, 1, T0)
        with pytest.raises(AccessDeniedError):
            srs_service.get_due_cards(db, deck.id, uuid4(), T0)


class TestDeckStats:
    def test_counts_after_reviews(self, db, owner_id):
        deck, cards = create_deck_with_cards(db, owner_id, 3, T0)
        srs_service.submit_review(db, cards[0].id, owner_id, 4, T0)
        set_schedule(db, cards[1], date(2026, 5, 1), interval=30, repetitions=5)

        stats = srs_service.get_deck_stats(db, deck.id, owner_id, T0)

        assert stats.total_cards == 3
        assert stats.due_count == 1
        assert stats.new_count == 1
        assert stats.mastered_count == 1
