import sqlite3

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.routes import install_routes
from config.registry import INTERVIEWER_KEY, TRANSCRIBER_KEY, bind_model


@pytest.fixture
def client():
    app = FastAPI()
    install_routes(app)
    return TestClient(app)


def _start(client, **overrides):
    body = {"user_id": "u1", "job_type": "frontend", "difficulty": "easy"}
    body.update(overrides)
    resp = client.post("/api/interview/start", json=body)
    assert resp.status_code == 200, resp.text
    return resp.json()


def test_start_returns_session_and_first_message(client):
    data = _start(client, max_turns=4, timer_config={"default_time_limit": 90, "warning_threshold": 15})
    assert data["success"] is True
    assert data["session"]["status"] == "active"
    assert data["session"]["max_turns"] == 4
    assert data["session"]["timer_config"]["default_time_limit"] == 90
    assert data["first_message"]["role"] == "interviewer"
    assert data["first_message"]["interviewer_id"] == "hiring_manager"
    assert data["interviewer"]["role"] == "Hiring Manager"
    assert set(data["interviewer_names"]) == {"hiring_manager", "hr_manager", "senior_peer"}


def test_start_rejects_bad_difficulty(client):
    resp = client.post("/api/interview/start", json={"user_id": "u1", "job_type": "pm", "difficulty": "extreme"})
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == "The request is malformed."
    assert "difficulty" in body["details"]


def test_start_generation_failure_is_500(client):
    def _boom(**_):
        raise RuntimeError("LLM down")

    bind_model(INTERVIEWER_KEY, _boom)
    resp = client.post("/api/interview/start", json={"user_id": "u1", "job_type": "pm"})
    assert resp.status_code == 500
    assert resp.json()["success"] is False


def test_message_round_trip(client):
    session_id = _start(client)["session"]["id"]
    resp = client.post("/api/interview/message", json={"session_id": session_id, "content": "I built a design system."})
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["user_message"]["content"] == "I built a design system."
    assert data["interviewer_response"]["content"] == "Tell me more about that project."
    assert data["interviewer"]["id"] in {"hiring_manager", "hr_manager", "senior_peer"}
    assert data["turn_count"] == 1
    assert data["should_end"] is False
    assert data["saved_only"] is False


def test_message_requires_content(client):
    session_id = _start(client)["session"]["id"]
    resp = client.post("/api/interview/message", json={"session_id": session_id, "content": "  "})
    assert resp.status_code == 400
    assert resp.json() == {
        "success": False,
        "error": "A session id and a message are required.",
        "details": "session_id and content are required",
    }


def test_message_unknown_session_is_404(client):
    resp = client.post("/api/interview/message", json={"session_id": "missing", "content": "hi"})
    assert resp.status_code == 404
    assert resp.json()["success"] is False


def test_timeout_save_only(client):
    session_id = _start(client)["session"]["id"]
    resp = client.post(
        "/api/interview/message",
        json={"session_id": session_id, "content": "Partial answer", "timeout_save_only": True},
    )
    data = resp.json()
    assert resp.status_code == 200
    assert data["saved_only"] is True
    assert data["interviewer_response"] is None
    assert data["turn_count"] == 0


def test_pause_resume_and_detail(client):
    session_id = _start(client)["session"]["id"]

    paused = client.post("/api/interview/pause", json={"session_id": session_id})
    assert paused.json()["session"]["status"] == "paused"

    blocked = client.post("/api/interview/message", json={"session_id": session_id, "content": "hi"})
    assert blocked.status_code == 400

    again = client.post("/api/interview/pause", json={"session_id": session_id})
    assert again.status_code == 400

    resumed = client.post("/api/interview/resume", json={"session_id": session_id})
    assert resumed.json()["session"]["status"] == "active"

    client.post("/api/interview/message", json={"session_id": session_id, "content": "Back again."})
    detail = client.get(f"/api/interview/{session_id}")
    assert detail.status_code == 200
    body = detail.json()
    assert body["session"]["turn_count"] == 1
    assert [m["role"] for m in body["messages"]] == ["interviewer", "user", "interviewer"]


def test_detail_unknown_session(client):
    resp = client.get("/api/interview/unknown")
    assert resp.status_code == 404


def _locked(*_args, **_kwargs):
    raise sqlite3.OperationalError("database is locked")


STORE_DOWN = "The interview store is unavailable. Please try again."


def test_start_store_failure_uses_error_envelope(client, monkeypatch):
    monkeypatch.setattr("services.sessions.insert_session", _locked)
    resp = client.post("/api/interview/start", json={"user_id": "u1", "job_type": "pm"})
    assert resp.status_code == 500
    assert resp.headers["content-type"].startswith("application/json")
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == STORE_DOWN
    assert "database is locked" in body["details"]


@pytest.mark.parametrize(
    "method, path, payload",
    [
        ("post", "/api/interview/message", {"content": "hello"}),
        ("post", "/api/interview/pause", {}),
        ("post", "/api/interview/resume", {}),
        ("get", "/api/interview/{sid}", None),
    ],
)
def test_session_read_failure_uses_error_envelope(client, monkeypatch, method, path, payload):
    session_id = _start(client)["session"]["id"]
    monkeypatch.setattr("services.sessions.get_session", _locked)

    url = path.format(sid=session_id)
    if payload is None:
        resp = client.get(url)
    else:
        resp = client.post(url, json={"session_id": session_id, **payload})

    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": STORE_DOWN, "details": "Failed to load session: database is locked"}


def test_status_write_failure_uses_error_envelope(client, monkeypatch):
    session_id = _start(client)["session"]["id"]
    monkeypatch.setattr("services.sessions.update_status", _locked)
    resp = client.post("/api/interview/pause", json={"session_id": session_id})
    assert resp.status_code == 500
    assert resp.json()["error"] == STORE_DOWN


def test_detail_message_read_failure_uses_error_envelope(client, monkeypatch):
    session_id = _start(client)["session"]["id"]
    monkeypatch.setattr("services.sessions.list_messages", _locked)
    resp = client.get(f"/api/interview/{session_id}")
    assert resp.status_code == 500
    assert resp.json()["success"] is False


def test_malformed_message_body_is_400(client):
    resp = client.post("/api/interview/message", json={"session_id": "s1", "content": {"nested": True}})
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert "content" in body["details"]


def test_transcribe_returns_text(client):
    resp = client.post("/api/transcribe", files={"audio": ("answer.webm", b"\x1aE\xdf\xa3webm", "audio/webm")})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["text"] == "I led the migration to Kubernetes."
    assert body["test_mode"] is False
    assert body["timestamp"]


def test_transcribe_without_audio_is_400(client):
    resp = client.post("/api/transcribe")
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == "No audio file was uploaded."


def test_transcribe_failure_is_500(client):
    def _boom(**_):
        raise RuntimeError("upstream 503")

    bind_model(TRANSCRIBER_KEY, _boom)
    resp = client.post("/api/transcribe", files={"audio": ("answer.webm", b"data", "audio/webm")})
    assert resp.status_code == 500
    assert resp.json()["error"] == "Failed to transcribe the audio."
