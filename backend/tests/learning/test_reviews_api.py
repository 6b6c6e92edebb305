"""API tests for flashcard review endpoints."""

from datetime import date
from uuid import uuid4

from tests.conftest import T0
from tests.helpers.seed import create_deck_with_cards, set_schedule


def test_submit_review(client, db, owner_id, auth_headers):
    _, [card] = create_deck_with_cards(db, owner_id, 1, T0)

    response = client.post(f"/v1/cards/{card.id}/reviews", json={"quality": 4}, headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["cardId"] == str(card.id)
    assert data["newInterval"] == 1
    assert data["newEaseFactor"] == 2.5
    assert data["newRepetitions"] == 1
    assert data["nextReviewDate"] == "2026-03-03"
    assert data["mastered"] is False
    assert data["message"] == "Review tomorrow"


def test_quality_three_is_rejected(client, db, owner_id, auth_headers):
    _, [card] = create_deck_with_cards(db, owner_id, 1, T0)

    response = client.post(f"/v1/cards/{card.id}/reviews", json={"quality": 3}, headers=auth_headers)

    assert response.status_code == 422
    body = response.json()
    assert body["error_code"] == "INVALID_QUALITY"
    assert body["request_id"]


def test_quality_must_be_an_integer(client, db, owner_id, auth_headers):
    _, [card] = create_deck_with_cards(db, owner_id, 1, T0)

    response = client.post(f"/v1/cards/{card.id}/reviews", json={"quality": "4"}, headers=auth_headers)

    assert response.status_code == 422
    assert response.json()["error_code"] == "VALIDATION_ERROR"


def test_missing_identity(client, db, owner_id):
    _, [card] = create_deck_with_cards(db, owner_id, 1, T0)

    response = client.post(f"/v1/cards/{card.id}/reviews", json={"quality": 4})

    assert response.status_code == 401
    assert response.json()["error_code"] == "AUTH_REQUIRED"


def test_malformed_identity(client):
    response = client.get(f"/v1/decks/{uuid4()}/due", headers={"X-User-Id": "not-a-uuid"})
    assert response.status_code == 401


def test_other_owner_is_forbidden(client, db, owner_id):
    _, [card] = create_deck_with_cards(db, owner_id, 1, T0)

    response = client.post(
        f"/v1/cards/{card.id}/reviews",
        json={"quality": 4},
        headers={"X-User-Id": str(uuid4())},
    )

    assert response.status_code == 403
    assert response.json()["error_code"] == "ACCESS_DENIED"


def test_unknown_card(client, auth_headers):
    response = client.post(f"/v1/cards/{uuid4()}/reviews", json={"quality": 4}, headers=auth_headers)

    assert response.status_code == 404
    body = response.json()
    assert body["error_code"] == "CARD_NOT_FOUND"
    assert body["details"]["resource"] == "card"


def test_due_cards(client, db, owner_id, auth_headers):
    deck, cards = create_deck_with_cards(db, owner_id, 3, T0)
    set_schedule(db, cards[0], date(2026, 2, 1), interval=6, repetitions=2)
    set_schedule(db, cards[1], date(2026, 4, 1), interval=30, repetitions=4)

    response = client.get(f"/v1/decks/{deck.id}/due", headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert [d["cardId"] for d in data] == [str(cards[0].id), str(cards[2].id)]
    assert data[0]["front"] == "Front 0"
    assert data[0]["tags"] == ["t"]
    assert data[0]["nextReviewDate"] == "2026-02-01"


def test_due_cards_limit(client, db, owner_id, auth_headers):
    deck, _ = create_deck_with_cards(db, owner_id, 3, T0)

    response = client.get(f"/v1/decks/{deck.id}/due", params={"limit": 2}, headers=auth_headers)
    assert len(response.json()) == 2

    response = client.get(f"/v1/decks/{deck.id}/due", params={"limit": 0}, headers=auth_headers)
    assert response.status_code == 422


def test_due_cards_follow_the_clock(client, clock, db, owner_id, auth_headers):
    deck, [card] = create_deck_with_cards(db, owner_id, 1, T0)
    client.post(f"/v1/cards/{card.id}/reviews", json={"quality": 5}, headers=auth_headers)

    assert client.get(f"/v1/decks/{deck.id}/due", headers=auth_headers).json() == []

    clock.advance(days=1)
    due = client.get(f"/v1/decks/{deck.id}/due", headers=auth_headers).json()
    assert [d["cardId"] for d in due] == [str(card.id)]


def test_deck_stats(client, db, owner_id, auth_headers):
    deck, cards = create_deck_with_cards(db, owner_id, 2, T0)
    set_schedule(db, cards[0], date(2026, 6, 1), interval=40, repetitions=6)

    response = client.get(f"/v1/decks/{deck.id}/stats", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == {
        "deckId": str(deck.id),
        "totalCards": 2,
        "dueCount": 1,
        "newCount": 1,
        "masteredCount": 1,
    }


def test_unknown_deck_stats(client, auth_headers):
    response = client.get(f"/v1/decks/{uuid4()}/stats", headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["error_code"] == "DECK_NOT_FOUND"
