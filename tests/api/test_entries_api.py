"""Tests for drafting, publishing and winner notes over HTTP."""

from datetime import UTC, datetime

import pytest

pytestmark = pytest.mark.integration

ALICE = {"X-Test-User": "alice"}
BOB = {"X-Test-User": "bob"}
CRON_HEADERS = {"X-Cron-Secret": "test-cron-secret"}

AFTER_EDIT_DEADLINE = datetime(2026, 2, 20, 11, 0, tzinfo=UTC)
AFTER_FREEZE = datetime(2026, 2, 20, 14, 1, tzinfo=UTC)
AFTER_REVEAL = datetime(2026, 2, 20, 15, 1, tzinfo=UTC)
AFTER_WEEK_END = datetime(2026, 2, 23, 10, 0, tzinfo=UTC)


def draft(api_client, challenge_id, text, headers=ALICE, initials=None):
    body = {"text": text}
    if initials is not None:
        body["author_initials"] = initials
    return api_client.put(f"/api/challenges/{challenge_id}/entries/me", headers=headers, json=body)


def publish(api_client, challenge_id, headers=ALICE):
    return api_client.post(f"/api/challenges/{challenge_id}/entries/me/publish", headers=headers)


def test_draft_is_private_until_published(api_client, start_week):
    challenge_id = start_week()

    saved = draft(api_client, challenge_id, "Price is what you pay", initials=" AB ")

    assert saved.status_code == 200
    assert saved.json()["is_published"] is False
    assert saved.json()["draft_text"] == "Price is what you pay"
    assert saved.json()["author_initials"] == "AB"

    mine = api_client.get(f"/api/challenges/{challenge_id}/entries/me", headers=ALICE).json()
    assert mine["id"] == saved.json()["id"]

    bobs_view = api_client.get("/api/challenges/current", headers=BOB).json()
    assert saved.json()["id"] not in [entry["id"] for entry in bobs_view["entries"]]


def test_publish_is_one_way(api_client, start_week):
    challenge_id = start_week()
    draft(api_client, challenge_id, "First version")
    draft(api_client, challenge_id, "Second version")

    published = publish(api_client, challenge_id)

    assert published.status_code == 200
    assert published.json()["is_published"] is True
    assert published.json()["text"] == "Second version"
    assert published.json()["draft_text"] is None

    again = publish(api_client, challenge_id)
    assert again.status_code == 200
    assert again.json()["published_at"] == published.json()["published_at"]

    locked = draft(api_client, challenge_id, "Third version")
    assert locked.status_code == 409
    assert locked.json()["code"] == "entry_locked"

    view = api_client.get("/api/challenges/current", headers=ALICE).json()
    mine = [entry for entry in view["entries"] if entry["is_mine"]]
    assert [entry["text"] for entry in mine] == ["Second version"]
    assert view["can_edit"] is False


def test_blank_draft_rejected(api_client, start_week):
    challenge_id = start_week()

    response = draft(api_client, challenge_id, "   ")

    assert response.status_code == 422
    assert response.json()["code"] == "invalid_entry"


def test_missing_entry(api_client, start_week):
    challenge_id = start_week()

    assert api_client.get(f"/api/challenges/{challenge_id}/entries/me", headers=ALICE).status_code == 404
    response = publish(api_client, challenge_id)
    assert response.status_code == 404
    assert response.json()["code"] == "entry_not_found"


def test_editing_closes_at_deadline(api_client, start_week, clock):
    challenge_id = start_week()
    draft(api_client, challenge_id, "Almost there")
    clock.now = AFTER_EDIT_DEADLINE

    saved = draft(api_client, challenge_id, "Too late")
    published = publish(api_client, challenge_id)

    assert saved.status_code == 409
    assert saved.json()["code"] == "editing_closed"
    assert published.status_code == 409
    assert published.json()["code"] == "editing_closed"


def test_draft_on_unknown_challenge(api_client):
    response = draft(api_client, "00000000-0000-0000-0000-000000000001", "Hello")

    assert response.status_code == 404
    assert response.json()["code"] == "challenge_not_found"


class TestWinnerNotes:
    @pytest.fixture
    def placed_entry(self, api_client, start_week, clock):
        challenge_id = start_week()
        draft(api_client, challenge_id, "Winning line")
        entry_id = publish(api_client, challenge_id).json()["id"]
        api_client.post(
            f"/api/challenges/{challenge_id}/votes",
            headers=BOB,
            json={"entry_id": entry_id, "weight": 2},
        )
        return entry_id

    def reveal(self, api_client, clock):
        clock.now = AFTER_FREEZE
        api_client.post("/api/phases/freeze", headers=CRON_HEADERS)
        clock.now = AFTER_REVEAL
        api_client.post("/api/phases/reveal", headers=CRON_HEADERS)

    def notes(self, api_client, entry_id, text, headers=ALICE):
        return api_client.put(f"/api/entries/{entry_id}/winner-notes", headers=headers, json={"notes": text})

    def test_author_writes_notes_after_reveal(self, api_client, clock, placed_entry):
        self.reveal(api_client, clock)

        response = self.notes(api_client, placed_entry, "  Smile while saying it.  ")

        assert response.status_code == 200
        assert response.json()["winner_notes"] == "Smile while saying it."
        view = api_client.get("/api/challenges/current", headers=BOB).json()
        assert [e["winner_notes"] for e in view["entries"] if e["id"] == placed_entry] == ["Smile while saying it."]

    def test_notes_before_reveal_rejected(self, api_client, placed_entry):
        response = self.notes(api_client, placed_entry, "Too early")

        assert response.status_code == 409
        assert response.json()["code"] == "editing_closed"

    def test_notes_by_other_user_forbidden(self, api_client, clock, placed_entry):
        self.reveal(api_client, clock)

        response = self.notes(api_client, placed_entry, "Not mine", headers=BOB)

        assert response.status_code == 403
        assert response.json()["code"] == "forbidden"

    def test_notes_after_week_end_rejected(self, api_client, clock, placed_entry):
        self.reveal(api_client, clock)
        clock.now = AFTER_WEEK_END

        response = self.notes(api_client, placed_entry, "Too late")

        assert response.status_code == 409
