"""
HTTP API tests: health endpoints and room lookup.
"""

import pytest

from app import create_app
from conftest import SettingsForTests


@pytest.fixture
def app():
    app, _ = create_app(SettingsForTests)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def http(app):
    return app.test_client()


def test_liveness(http):
    res = http.get("/api/health/live")
    assert res.status_code == 200
    assert res.get_json()["status"] == "ok"
    assert "uptimeSeconds" in res.get_json()


def test_health_counts_rooms(app, http):
    coordinator = app.extensions["coordinator"]
    assert http.get("/api/health").get_json()["rooms"] == 0
    coordinator.create_room("c1", "Ann", "buzzer")
    body = http.get("/api/health").get_json()
    assert body["status"] == "ok"
    assert body["checks"] == {"coordinator": "ok"}
    assert body["rooms"] == 1


def test_readiness(http):
    res = http.get("/api/health/ready")
    assert res.status_code == 200
    assert res.get_json()["ready"] is True


def test_room_lookup(app, http):
    coordinator = app.extensions["coordinator"]
    (created,) = coordinator.create_room("c1", "Ann", "impostor")
    code = created.payload["roomCode"]

    res = http.get(f"/api/rooms/{code}")
    assert res.status_code == 200
    body = res.get_json()
    assert body["roomCode"] == code
    assert body["roomType"] == "impostor"
    assert body["maxPlayers"] == SettingsForTests.IMPOSTOR_MAX_VIDEOS
    assert [p["name"] for p in body["players"]] == ["Ann"]


def test_unknown_room(http):
    res = http.get("/api/rooms/000000")
    assert res.status_code == 404
    assert res.get_json()["error"] == "room_not_found"
