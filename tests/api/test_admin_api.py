"""Tests for the admin endpoints: test week and stats."""

from datetime import UTC, datetime

import pytest

pytestmark = pytest.mark.integration

CRON_HEADERS = {"X-Cron-Secret": "test-cron-secret"}
TEST_WEEK = "2099-W01"


def test_seed_with_voter(api_client):
    response = api_client.post(
        "/api/admin/test-week/seed",
        headers=CRON_HEADERS,
        json={"voter_user_id": "alice"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["week_key"] == TEST_WEEK
    assert body["entries"] == 5
    assert body["votes"] == 3

    view = api_client.get(f"/api/challenges/{TEST_WEEK}", headers={"X-Test-User": "alice"}).json()
    assert view["challenge"]["title"] == f"Test Challenge {TEST_WEEK}"
    assert view["votes_used"] == 3
    assert view["can_vote"] is True
    assert sorted(entry["source"] for entry in view["entries"]) == ["ai", "ai", "human", "human", "human"]


def test_seed_twice_is_noop(api_client):
    first = api_client.post("/api/admin/test-week/seed", headers=CRON_HEADERS).json()
    second = api_client.post("/api/admin/test-week/seed", headers=CRON_HEADERS).json()

    assert first["votes"] == 0
    assert second["message"] == "Challenge already exists"
    assert second["challenge_id"] == first["challenge_id"]


def test_reset_removes_test_week(api_client):
    api_client.post("/api/admin/test-week/seed", headers=CRON_HEADERS, json={"voter_user_id": "alice"})

    reset = api_client.post("/api/admin/test-week/reset", headers=CRON_HEADERS).json()
    again = api_client.post("/api/admin/test-week/reset", headers=CRON_HEADERS).json()

    assert reset["message"] == "reset done"
    assert again["message"] == "nothing to delete"
    assert api_client.get(f"/api/challenges/{TEST_WEEK}", headers={"X-Test-User": "alice"}).status_code == 404


def test_reset_leaves_real_weeks_alone(api_client, start_week):
    start_week()
    api_client.post("/api/admin/test-week/seed", headers=CRON_HEADERS)

    api_client.post("/api/admin/test-week/reset", headers=CRON_HEADERS)

    assert api_client.get("/api/challenges/current", headers={"X-Test-User": "alice"}).status_code == 200


@pytest.mark.parametrize("path", ["/api/admin/test-week/seed", "/api/admin/test-week/reset"])
def test_secret_required(api_client, path):
    response = api_client.post(path, headers={"X-Cron-Secret": "wrong"})

    assert response.status_code == 401
    assert response.json()["code"] == "unauthorized"


def test_stats_after_a_full_week(api_client, start_week, clock):
    challenge_id = start_week()
    alice = {"X-Test-User": "alice"}
    api_client.put(f"/api/challenges/{challenge_id}/entries/me", headers=alice, json={"text": "Mine"})
    entry_id = api_client.post(f"/api/challenges/{challenge_id}/entries/me/publish", headers=alice).json()["id"]
    api_client.post(f"/api/challenges/{challenge_id}/votes", headers={"X-Test-User": "bob"}, json={"entry_id": entry_id, "weight": 2})
    clock.now = datetime(2026, 2, 20, 14, 1, tzinfo=UTC)
    api_client.post("/api/phases/freeze", headers=CRON_HEADERS)
    clock.now = datetime(2026, 2, 20, 15, 1, tzinfo=UTC)
    api_client.post("/api/phases/reveal", headers=CRON_HEADERS)
    clock.now = datetime(2026, 2, 23, 10, 0, tzinfo=UTC)
    api_client.post("/api/phases/archive-and-rollover", headers=CRON_HEADERS)

    response = api_client.get("/api/admin/stats", headers=CRON_HEADERS, params={"weeks": 4})

    assert response.status_code == 200
    stats = response.json()
    assert stats["challenges_count"] == 1
    assert stats["total_votes"] == 2
    assert stats["published_entries_count"] == 1
    assert stats["ai_in_top3_count"] == 2
    assert stats["ai_place1_count"] == 0
    assert stats["rows"][0]["week_key"] == "2026-W08"
    assert stats["rows"][0]["place1_source"] == "human"


def test_stats_requires_secret(api_client):
    response = api_client.get("/api/admin/stats", headers={"X-Cron-Secret": "wrong"})

    assert response.status_code == 401


def test_stats_rejects_empty_window(api_client):
    response = api_client.get("/api/admin/stats", headers=CRON_HEADERS, params={"weeks": 0})

    assert response.status_code == 422
