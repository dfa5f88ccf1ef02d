"""
Tests for the Flask API, using Flask's test client
"""

import sqlite3

import pytest

from api import SessionStore, create_app
from database import Database


@pytest.fixture
def client(tmp_path):
    app = create_app(str(tmp_path / "api.db"))
    app.config["TESTING"] = True
    with app.test_client() as c:
        yield c


@pytest.fixture
def session_id(client):
    resp = client.post("/api/sessions")
    return resp.get_json()["data"]["session_id"]


def test_api_info(client):
    resp = client.get("/api")
    assert resp.status_code == 200
    assert b"/api/sessions" in resp.data


def test_create_session(client):
    resp = client.post("/api/sessions")
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["success"] is True
    assert body["data"]["display"] == "0"
    assert body["data"]["session_id"]


def test_press_single_key(client, session_id):
    resp = client.post(f"/api/sessions/{session_id}/press", json={"key": "7"})
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["text"] == "7"
    assert data["is_error"] is False
    assert data["error"] is None
    assert data["calculations"] == []


def test_press_sequence(client, session_id):
    resp = client.post(f"/api/sessions/{session_id}/press", json={"keys": "3 + 4 * 2 ="})
    data = resp.get_json()["data"]
    assert data["text"] == "14"
    assert data["calculation"] == {"expression": "7 × 2", "result": "14", "approximate": False}
    assert [c["expression"] for c in data["calculations"]] == ["3 + 4", "7 × 2"]


def test_state_persists_between_requests(client, session_id):
    client.post(f"/api/sessions/{session_id}/press", json={"keys": "6 + 4 ="})
    resp = client.post(f"/api/sessions/{session_id}/press", json={"keys": "+ 1 ="})
    assert resp.get_json()["data"]["text"] == "11"


def test_division_by_zero(client, session_id):
    resp = client.post(f"/api/sessions/{session_id}/press", json={"keys": "5 / 0 ="})
    data = resp.get_json()["data"]
    assert data["text"] == "Error"
    assert data["is_error"] is True
    assert data["error"] == "division_by_zero"


def test_get_session_registers(client, session_id):
    client.post(f"/api/sessions/{session_id}/press", json={"keys": "9 M+ 2 +"})
    resp = client.get(f"/api/sessions/{session_id}")
    data = resp.get_json()["data"]
    assert data["display"] == "2"
    assert data["registers"]["memory"] == "9"
    assert data["registers"]["pending_operator"] == "+"


def test_sessions_are_independent(client, session_id):
    other = client.post("/api/sessions").get_json()["data"]["session_id"]
    client.post(f"/api/sessions/{session_id}/press", json={"key": "5"})
    resp = client.get(f"/api/sessions/{other}")
    assert resp.get_json()["data"]["display"] == "0"


def test_unknown_key(client, session_id):
    resp = client.post(f"/api/sessions/{session_id}/press", json={"key": "?"})
    assert resp.status_code == 400
    assert resp.get_json()["success"] is False


def test_missing_key(client, session_id):
    resp = client.post(f"/api/sessions/{session_id}/press", json={})
    assert resp.status_code == 400


def test_unknown_session(client):
    resp = client.post("/api/sessions/nope/press", json={"key": "1"})
    assert resp.status_code == 404
    assert client.get("/api/sessions/nope").status_code == 404


def test_delete_session(client, session_id):
    assert client.delete(f"/api/sessions/{session_id}").status_code == 200
    assert client.get(f"/api/sessions/{session_id}").status_code == 404
    assert client.delete(f"/api/sessions/{session_id}").status_code == 404


def test_calculation_history(client, session_id):
    client.post(f"/api/sessions/{session_id}/press", json={"keys": "1 + 2 = AC 1 / 3 ="})
    resp = client.get("/api/calculations")
    body = resp.get_json()
    assert body["count"] == 2
    assert body["data"][0]["expression"] == "1 ÷ 3"
    assert body["data"][0]["approximate"] is True
    assert body["data"][1]["result"] == "3"

    resp = client.get("/api/calculations?limit=1")
    assert resp.get_json()["count"] == 1


def test_calculation_history_bad_limit(client):
    assert client.get("/api/calculations?limit=abc").status_code == 400


def test_clear_calculations(client, session_id):
    client.post(f"/api/sessions/{session_id}/press", json={"keys": "1 + 2 ="})
    assert client.delete("/api/calculations").status_code == 200
    assert client.get("/api/calculations").get_json()["count"] == 0


def test_history_failure_still_returns_display(client, session_id, monkeypatch):
    def broken(self, expression, result, approximate=False):
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(Database, "add_calculation", broken)
    resp = client.post(f"/api/sessions/{session_id}/press", json={"keys": "2 + 3 ="})
    assert resp.status_code == 500
    body = resp.get_json()
    assert body["success"] is False
    assert body["data"]["text"] == "5"
    assert client.get(f"/api/sessions/{session_id}").get_json()["data"]["display"] == "5"


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_idle_sessions_expire():
    clock = FakeClock()
    store = SessionStore(ttl=60, max_sessions=10, clock=clock)
    old_id, _ = store.create()
    clock.now = 30
    assert store.get(old_id) is not None
    clock.now = 100
    assert store.get(old_id) is None
    assert len(store) == 0


def test_creating_sessions_drops_idle_ones():
    clock = FakeClock()
    store = SessionStore(ttl=60, max_sessions=10, clock=clock)
    old_id, _ = store.create()
    clock.now = 61
    new_id, _ = store.create()
    assert len(store) == 1
    assert store.get(new_id) is not None


def test_session_cap_drops_least_recently_used():
    clock = FakeClock()
    store = SessionStore(ttl=3600, max_sessions=2, clock=clock)
    first, _ = store.create()
    clock.now = 1
    second, _ = store.create()
    clock.now = 2
    store.get(first)
    clock.now = 3
    third, _ = store.create()
    assert len(store) == 2
    assert store.get(second) is None
    assert store.get(first) is not None
    assert store.get(third) is not None


def test_app_uses_given_session_store(tmp_path):
    store = SessionStore(ttl=3600, max_sessions=1)
    app = create_app(str(tmp_path / "api.db"), sessions=store)
    with app.test_client() as c:
        first = c.post("/api/sessions").get_json()["data"]["session_id"]
        c.post("/api/sessions")
        assert c.get(f"/api/sessions/{first}").status_code == 404
    assert len(store) == 1
