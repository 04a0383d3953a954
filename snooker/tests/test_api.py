"""
API integration tests.
Uses TestClient to avoid starting a server.
"""
from __future__ import annotations

import json
import sys
from pathlib import Path
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from snooker.api import app, cors_origins
from snooker.persistence.db import set_db_path


@pytest.fixture(autouse=True)
def isolated_db(tmp_path):
    """Use a temporary DB for each test."""
    db_path = tmp_path / "test.db"
    set_db_path(db_path)
    yield db_path
    set_db_path(None)


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def start(client, best_of: int = 5) -> dict:
    resp = client.post("/matches", json={"player1": "Ann", "player2": "Bob", "best_of": best_of})
    assert resp.status_code == 200
    return resp.json()


def test_start_match(client):
    data = start(client)
    assert data["result"]["applied"] is True
    snap = data["snapshot"]
    assert snap["state"] == "awaiting_play_start"
    assert snap["match"]["players"] == ["Ann", "Bob"]
    assert snap["legal_balls"] == ["red"]
    assert snap["points_remaining"] == 147


def test_start_match_blank_name(client):
    resp = client.post("/matches", json={"player1": "Ann", "player2": "   "})
    assert resp.status_code == 400


def test_shot_before_start_play_conflicts(client):
    start(client)
    resp = client.post("/match/pot", json={"ball": "red"})
    assert resp.status_code == 409
    assert client.get("/match").json()["match"]["frames"][0]["scores"] == [0, 0]


def test_pot_flow(client):
    start(client)
    assert client.post("/match/start-play").status_code == 200
    resp = client.post("/match/pot", json={"ball": "red", "action_id": "a1"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["result"]["shot"]["points"] == 1
    assert body["snapshot"]["match"]["frames"][0]["scores"] == [1, 0]
    legal = client.get("/match/legal-balls").json()["legal_balls"]
    assert legal == ["yellow", "green", "brown", "blue", "pink", "black"]

    again = client.post("/match/pot", json={"ball": "red", "action_id": "a1"}).json()
    assert again["result"]["duplicate"] is True
    assert again["snapshot"]["match"]["frames"][0]["scores"] == [1, 0]


def test_unknown_ball_is_bad_request(client):
    start(client)
    client.post("/match/start-play")
    assert client.post("/match/pot", json={"ball": "white"}).status_code == 400


def test_foul_validation(client):
    start(client)
    client.post("/match/start-play")
    assert client.post("/match/foul", json={"points": 3}).status_code == 422
    resp = client.post("/match/foul", json={"points": 4, "free_ball": True})
    assert resp.status_code == 200
    snap = resp.json()["snapshot"]
    assert snap["free_ball_active"] is True
    assert snap["active_player"] == 1
    assert snap["match"]["frames"][0]["scores"] == [0, 4]


def test_pause_blocks_shots_but_allows_undo(client):
    start(client)
    client.post("/match/start-play")
    client.post("/match/pot", json={"ball": "red"})
    assert client.post("/match/pause").json()["snapshot"]["state"] == "paused"
    assert client.post("/match/miss", json={}).status_code == 409
    resp = client.post("/match/undo")
    assert resp.status_code == 200
    assert resp.json()["snapshot"]["match"]["frames"][0]["scores"] == [0, 0]
    assert client.post("/match/undo").status_code == 409
    assert client.post("/match/resume").json()["snapshot"]["state"] == "in_play"


def test_end_break_and_safety(client):
    start(client)
    client.post("/match/start-play")
    snap = client.post("/match/end-break").json()["snapshot"]
    assert snap["active_player"] == 1
    snap = client.post("/match/safety", json={"ball": "red"}).json()["snapshot"]
    assert snap["active_player"] == 0


def test_match_to_completion(client):
    start(client, best_of=1)
    client.post("/match/start-play")
    client.post("/match/pot", json={"ball": "red"})
    body = client.post("/match/end-frame").json()
    assert body["result"]["match_complete"] is True
    assert body["snapshot"]["state"] == "match_complete"
    history = client.get("/matches").json()
    assert len(history) == 1
    assert history[0]["status"] == "completed"
    assert history[0]["winner"] == 0
    stats = client.get("/match/stats").json()
    assert stats["current_score"] == [1, 0]
    assert client.post("/match/next-frame").status_code == 409


def test_next_frame(client):
    start(client)
    client.post("/match/start-play")
    client.post("/match/pot", json={"ball": "red"})
    client.post("/match/end-frame")
    snap = client.post("/match/next-frame").json()["snapshot"]
    assert snap["state"] == "awaiting_play_start"
    assert snap["match"]["current_frame"] == 1


def test_export_and_import(client):
    start(client)
    client.post("/match/start-play")
    client.post("/match/pot", json={"ball": "red"})
    resp = client.get("/match/export")
    assert resp.status_code == 200
    assert "attachment" in resp.headers["content-disposition"]
    doc = resp.json()
    assert doc["schema_version"] == "1.0"

    start(client)
    resp = client.post("/matches/import", json={"document": json.dumps(doc)})
    assert resp.status_code == 200
    assert resp.json()["snapshot"]["match"]["id"] == doc["id"]

    bad = client.post("/matches/import", json={"document": '{"id": "x", "players": ["A"]}'})
    assert bad.status_code == 400


def test_resume_and_delete(client):
    start(client)
    first_id = client.get("/match").json()["match"]["id"]
    start(client)
    assert [m["id"] for m in client.get("/matches").json()] == [first_id]

    resp = client.post(f"/matches/{first_id}/resume")
    assert resp.status_code == 200
    assert resp.json()["snapshot"]["match"]["id"] == first_id

    assert client.post("/matches/match_missing/resume").status_code == 404
    assert client.delete(f"/matches/{first_id}").status_code == 200
    assert client.delete(f"/matches/{first_id}").status_code == 404


def test_current_match_survives_restart(client):
    start(client)
    client.post("/match/start-play")
    client.post("/match/pot", json={"ball": "red"})
    match_id = client.get("/match").json()["match"]["id"]
    with TestClient(app) as restarted:
        snap = restarted.get("/match").json()
        assert snap["match"]["id"] == match_id
        assert snap["state"] == "awaiting_play_start"
        assert snap["match"]["frames"][0]["scores"] == [1, 0]


def test_settings_read_and_update(client):
    assert client.get("/settings").json() == {"auto_save": True, "confirm_actions": True}
    resp = client.put("/settings", json={"auto_save": False})
    assert resp.status_code == 200
    assert resp.json() == {"auto_save": False, "confirm_actions": True}
    assert start(client)["result"]["persisted"] is False
    with TestClient(app) as restarted:
        assert restarted.get("/settings").json()["auto_save"] is False
        assert restarted.get("/match").json() == {"state": None, "match": None}


def test_settings_rejects_bad_value(client):
    assert client.put("/settings", json={"auto_save": "sometimes"}).status_code == 422


def test_cors_origins_from_env():
    with patch.dict("os.environ", {"SNOOKER_CORS_ORIGINS": "http://a.test, http://b.test,"}):
        assert cors_origins() == ["http://a.test", "http://b.test"]
    with patch.dict("os.environ", {}, clear=True):
        assert cors_origins() == []


def test_no_cors_headers_by_default(client):
    resp = client.get("/match", headers={"Origin": "http://example.test"})
    assert "access-control-allow-origin" not in resp.headers
