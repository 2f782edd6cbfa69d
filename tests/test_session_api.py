"""
API endpoint tests for the sessions router.

Tests cover:
- GET /api/sessions - list with filters
- POST /api/sessions - start a session
- PUT /api/sessions/{id}/end - end a session
- GET /api/sessions/stats/{studio_id} - studio statistics
- GET /api/sessions/band/{band_id} - band history
- GET /api/sessions/{id} - single session
- Authentication gate and error mapping

The app runs without its lifespan; module globals are patched with a
SessionModule over the test database and a real auth stack.
"""

import time
from unittest.mock import AsyncMock

import jwt
import pytest
from conftest import BAND_X, BAND_Y, STUDIO_A, STUDIO_B, USER_1
from fastapi.testclient import TestClient
from redis.exceptions import TimeoutError as RedisTimeoutError

from studiosessions import main
from studiosessions.config.provider import EnvConfigProvider
from studiosessions.modules.auth import AuthFactory
from studiosessions.modules.session import SessionModule

API_KEY = "test-api-key"
JWT_SECRET = "test-jwt-secret"
HEADERS = {"X-API-Key": API_KEY}


@pytest.fixture
def auth_service(monkeypatch, mock_redis):
    """Real auth stack built from environment configuration."""
    monkeypatch.setenv("API_KEYS", f"frontend:{API_KEY}")
    monkeypatch.setenv("JWT_SECRET", JWT_SECRET)
    return AuthFactory.build(EnvConfigProvider(), mock_redis)


@pytest.fixture
def client(monkeypatch, auth_service, session_module):
    """TestClient with initialized module globals."""
    monkeypatch.setattr(main, "auth_service", auth_service)
    monkeypatch.setattr(main, "session_module", session_module)
    return TestClient(main.app)


def make_token(**claims):
    payload = {"email": "booker@example.com", "exp": int(time.time()) + 3600}
    payload.update(claims)
    return jwt.encode(payload, JWT_SECRET, algorithm="HS256")


def start_session(client, **body):
    payload = {"studio_id": STUDIO_A, "band_id": BAND_X}
    payload.update(body)
    response = client.post("/api/sessions", json=payload, headers=HEADERS)
    assert response.status_code == 201, response.text
    return response.json()


# =============================================================================
# Authentication
# =============================================================================


def test_requires_credentials(client):
    """Requests without credentials never reach the handler."""
    response = client.get("/api/sessions")

    assert response.status_code == 401
    assert "No token provided" in response.json()["detail"]


def test_rejects_unknown_api_key(client):
    response = client.get("/api/sessions", headers={"X-API-Key": "wrong"})

    assert response.status_code == 401
    assert "Invalid credentials" in response.json()["detail"]


def test_accepts_bearer_token(client):
    response = client.get(
        "/api/sessions", headers={"Authorization": f"Bearer {make_token()}"}
    )

    assert response.status_code == 200
    assert response.json() == []


def test_rejects_expired_bearer_token(client):
    token = make_token(exp=int(time.time()) - 60)

    response = client.get("/api/sessions", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_rejects_token_signed_with_other_secret(client):
    token = jwt.encode(
        {"email": "mallory@example.com", "exp": int(time.time()) + 3600},
        "some-other-secret",
        algorithm="HS256",
    )

    response = client.get("/api/sessions", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_unauthenticated_mutation_is_not_applied(client, executor):
    response = client.post(
        "/api/sessions", json={"studio_id": STUDIO_A, "band_id": BAND_X}
    )

    assert response.status_code == 401
    listed = client.get("/api/sessions", headers=HEADERS)
    assert listed.json() == []


def test_service_not_initialized(monkeypatch, auth_service):
    monkeypatch.setattr(main, "auth_service", auth_service)
    monkeypatch.setattr(main, "session_module", None)

    response = TestClient(main.app).get("/api/sessions", headers=HEADERS)

    assert response.status_code == 503


# =============================================================================
# Start / End
# =============================================================================


def test_start_session(client, clock):
    body = start_session(client, user_id=USER_1, session_notes="Vocals")

    assert body["message"] == "Session started successfully"
    assert body["status"] == "active"
    assert body["connection_type"] == "both"
    assert body["session_notes"] == "Vocals"
    assert body["end_time"] is None
    assert body["duration_minutes"] is None
    assert body["session_date"] == "2026-10-18"


def test_collection_served_with_trailing_slash(client):
    """/api/sessions/ is handled directly rather than redirected."""
    created = client.post(
        "/api/sessions/",
        json={"studio_id": STUDIO_A, "band_id": BAND_X},
        headers=HEADERS,
        follow_redirects=False,
    )
    listed = client.get("/api/sessions/", headers=HEADERS, follow_redirects=False)

    assert created.status_code == 201
    assert listed.status_code == 200
    assert [s["id"] for s in listed.json()] == [created.json()["id"]]


def test_start_session_ignores_client_supplied_server_fields(client):
    """status, start_time and session_date are always server-assigned."""
    body = start_session(
        client,
        status="completed",
        start_time="2020-01-01T00:00:00Z",
        session_date="2020-01-01",
    )

    assert body["status"] == "active"
    assert body["session_date"] == "2026-10-18"
    assert body["start_time"].startswith("2026-10-18T10:00:00")


def test_start_session_missing_band_rejected_before_store(client):
    response = client.post(
        "/api/sessions", json={"studio_id": STUDIO_A}, headers=HEADERS
    )

    assert response.status_code == 422
    assert client.get("/api/sessions", headers=HEADERS).json() == []


def test_start_session_invalid_connection_type(client):
    response = client.post(
        "/api/sessions",
        json={"studio_id": STUDIO_A, "band_id": BAND_X, "connection_type": "carrier-pigeon"},
        headers=HEADERS,
    )

    assert response.status_code == 422


def test_end_session_flow(client, clock):
    session = start_session(client)
    clock.advance(minutes=5, seconds=30)

    response = client.put(
        f"/api/sessions/{session['id']}/end",
        json={"session_notes": "Two good takes", "recording_files": [{"filename": "mix.wav"}]},
        headers=HEADERS,
    )

    assert response.status_code == 200
    assert response.json() == {"message": "Session ended successfully", "duration_minutes": 6}

    stored = client.get(f"/api/sessions/{session['id']}", headers=HEADERS).json()
    assert stored["status"] == "completed"
    assert stored["session_notes"] == "Two good takes"
    assert stored["recording_files"] == [{"filename": "mix.wav"}]


def test_end_session_without_body(client, clock):
    session = start_session(client)
    clock.advance(minutes=1)

    response = client.put(f"/api/sessions/{session['id']}/end", headers=HEADERS)

    assert response.status_code == 200
    assert response.json()["duration_minutes"] == 1


def test_end_session_twice_returns_404(client):
    session = start_session(client)
    url = f"/api/sessions/{session['id']}/end"

    assert client.put(url, json={}, headers=HEADERS).status_code == 200
    second = client.put(url, json={}, headers=HEADERS)

    assert second.status_code == 404
    assert second.json() == {"error": "Active session not found"}


def test_end_unknown_session_returns_404(client):
    response = client.put("/api/sessions/nope/end", json={}, headers=HEADERS)

    assert response.status_code == 404
    assert response.json() == {"error": "Active session not found"}


# =============================================================================
# Queries
# =============================================================================


def test_list_sessions_with_filters(client, clock):
    a_x = start_session(client, studio_id=STUDIO_A, band_id=BAND_X)
    clock.advance(minutes=1)
    a_y = start_session(client, studio_id=STUDIO_A, band_id=BAND_Y)
    clock.advance(minutes=1)
    start_session(client, studio_id=STUDIO_B, band_id=BAND_X)

    by_studio = client.get("/api/sessions", params={"studio_id": STUDIO_A}, headers=HEADERS)
    both = client.get(
        "/api/sessions", params={"studio_id": STUDIO_A, "band_id": BAND_X}, headers=HEADERS
    )

    assert [s["id"] for s in by_studio.json()] == [a_y["id"], a_x["id"]]
    assert [s["id"] for s in both.json()] == [a_x["id"]]
    assert both.json()[0]["studio_name"] == "Blackbird Room"
    assert both.json()[0]["band_name"] == "The Feedback Loops"


def test_list_sessions_invalid_status_filter(client):
    response = client.get("/api/sessions", params={"status": "paused"}, headers=HEADERS)

    assert response.status_code == 422


def test_studio_stats(client, clock):
    for band_id, minutes in ((BAND_X, 30), (BAND_Y, 90)):
        session = start_session(client, band_id=band_id)
        clock.advance(minutes=minutes)
        client.put(f"/api/sessions/{session['id']}/end", json={}, headers=HEADERS)

    response = client.get(f"/api/sessions/stats/{STUDIO_A}", headers=HEADERS)

    assert response.status_code == 200
    body = response.json()
    assert body["summary"] == {"total_sessions": 2, "total_minutes": 120, "avg_duration": 60.0}
    assert [b["band_name"] for b in body["by_band"]] == ["Null Pointers", "The Feedback Loops"]


def test_studio_stats_empty(client):
    response = client.get(f"/api/sessions/stats/{STUDIO_B}", headers=HEADERS)

    assert response.status_code == 200
    assert response.json() == {
        "summary": {"total_sessions": 0, "total_minutes": None, "avg_duration": None},
        "by_band": [],
    }


def test_band_history(client, clock):
    ended = start_session(client, band_id=BAND_Y)
    clock.advance(minutes=20)
    client.put(f"/api/sessions/{ended['id']}/end", json={}, headers=HEADERS)
    active = start_session(client, studio_id=STUDIO_B, band_id=BAND_Y)

    response = client.get(f"/api/sessions/band/{BAND_Y}", headers=HEADERS)

    assert response.status_code == 200
    assert [s["id"] for s in response.json()] == [active["id"], ended["id"]]
    assert [s["status"] for s in response.json()] == ["active", "completed"]


def test_get_unknown_session(client):
    response = client.get("/api/sessions/unknown", headers=HEADERS)

    assert response.status_code == 404
    assert response.json() == {"error": "Session not found"}


# =============================================================================
# Failure mapping
# =============================================================================


@pytest.mark.parametrize(
    "method,path,message",
    [
        ("get", "/api/sessions", "Failed to fetch sessions"),
        ("get", f"/api/sessions/stats/{STUDIO_A}", "Failed to fetch statistics"),
        ("get", f"/api/sessions/band/{BAND_X}", "Failed to fetch sessions"),
        ("put", "/api/sessions/abc/end", "Failed to end session"),
    ],
)
def test_store_failures_map_to_500(monkeypatch, auth_service, clock, method, path, message):
    """Store faults surface as a fixed message without internal details."""
    broken = AsyncMock()
    broken.fetch_all = AsyncMock(side_effect=RuntimeError("password authentication failed"))
    broken.fetch_one = AsyncMock(side_effect=RuntimeError("password authentication failed"))
    broken.run_in_transaction = AsyncMock(side_effect=RuntimeError("password authentication failed"))

    monkeypatch.setattr(main, "auth_service", auth_service)
    monkeypatch.setattr(main, "session_module", SessionModule(broken, clock=clock))
    client = TestClient(main.app)

    response = getattr(client, method)(path, headers=HEADERS)

    assert response.status_code == 500
    assert response.json() == {"error": message}


def test_healthz_is_unauthenticated():
    response = TestClient(main.app).get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_health_reports_database(monkeypatch, auth_service, session_module, executor):
    monkeypatch.setattr(main, "auth_service", auth_service)
    monkeypatch.setattr(main, "session_module", session_module)
    monkeypatch.setattr(main, "query_executor", executor)
    monkeypatch.setattr(main, "redis_client", None)

    response = TestClient(main.app).get("/health")

    assert response.status_code == 200
    assert response.json()["database"] == "connected"
    assert response.json()["redis"] == "disabled"


def test_health_survives_redis_timeout(monkeypatch, auth_service, session_module, executor, mock_redis):
    """Redis only backs the audit trail, so a slow Redis keeps the service healthy."""
    mock_redis.ping = AsyncMock(side_effect=RedisTimeoutError("Timeout reading from socket"))
    monkeypatch.setattr(main, "auth_service", auth_service)
    monkeypatch.setattr(main, "session_module", session_module)
    monkeypatch.setattr(main, "query_executor", executor)
    monkeypatch.setattr(main, "redis_client", mock_redis)

    response = TestClient(main.app).get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["redis"] == "disconnected"
