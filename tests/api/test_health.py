"""Tests for the liveness and readiness endpoints."""


def test_health(api_client):
    response = api_client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "sales-challenge"}


def test_health_while_draining(api_client):
    api_client.app.state.shutting_down = True

    response = api_client.get("/api/health")

    assert response.status_code == 503
    assert response.json()["status"] == "shutting_down"


def test_ready(api_client):
    response = api_client.get("/api/ready")

    assert response.status_code == 200
    assert response.json() == {"status": "ready", "checks": {"database": True, "redis": True}}


def test_current_challenge_missing(api_client):
    response = api_client.get("/api/challenges/current", headers={"X-Test-User": "alice"})

    assert response.status_code == 404
    assert response.json()["error"] == "No challenge this week"


def test_bad_week_key(api_client):
    response = api_client.get("/api/challenges/2026-W99", headers={"X-Test-User": "alice"})

    assert response.status_code == 422
