"""Tests for the handshake API routes."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from handshake.api.app import create_app
from handshake.api.routes import router
from handshake.availability.mask import PrivacyMask
from handshake.core.engine import HandshakeEngine
from handshake.enrichment.renderer import SuggestionService
from handshake.infra.directory import InMemoryParticipantDirectory
from handshake.infra.event_pusher import RecordingEventPusher


# ============ Test App Factory ============

def _create_test_app() -> FastAPI:
    """Create a FastAPI app with in-memory dependencies for testing."""
    app = FastAPI()
    app.include_router(router)

    app.state.directory = InMemoryParticipantDirectory()
    app.state.outcomes = {}
    app.state.event_pusher = RecordingEventPusher()
    app.state.engine = HandshakeEngine(
        directory=app.state.directory,
        event_pusher=app.state.event_pusher,
        privacy_mask=PrivacyMask(conceal_fraction=0.0, jitter_probability=0.0),
    )
    app.state.suggestions = SuggestionService()
    return app


@pytest.fixture
def app():
    return _create_test_app()


@pytest.fixture
def client(app):
    return TestClient(app)


def _register(client, participant_id: str, name: str, **extra):
    return client.post(
        "/api/participants",
        json={"participant_id": participant_id, "display_name": name, **extra},
    )


def _relationship(**extra):
    last = datetime.now(timezone.utc) - timedelta(days=10)
    body = {
        "initiator_id": "alice",
        "target_id": "bob",
        "tier": "friend",
        "interaction_mode": "irl_only",
        "last_interaction": last.isoformat(),
    }
    body.update(extra)
    return body


@pytest.fixture
def pair(client):
    assert _register(client, "alice", "Alice").status_code == 201
    assert _register(client, "bob", "Bob").status_code == 201
    return client


# ============ Participants ============

class TestParticipants:
    def test_register_scrubs_titles(self, client):
        start = datetime(2026, 10, 15, 15, 0, tzinfo=timezone.utc)
        resp = _register(
            client, "bob", "Bob",
            calendar_events=[{
                "summary": "URGENT: Client Fire Drill",
                "start": start.isoformat(),
                "end": (start + timedelta(hours=2)).isoformat(),
            }],
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["status"] == "open"
        assert len(data["energy_blocks"]) == 1
        assert "Client" not in str(data["energy_blocks"])

    def test_bad_waking_hours(self, client):
        resp = _register(client, "bob", "Bob", start_hour=22, end_hour=10)
        assert resp.status_code == 422

    def test_get_participant(self, pair):
        resp = pair.get("/api/participants/bob")
        assert resp.status_code == 200
        assert resp.json()["display_name"] == "Bob"

    def test_get_unknown_participant(self, client):
        assert client.get("/api/participants/zed").status_code == 404


# ============ Relationships ============

class TestRelationships:
    def test_put_relationship(self, pair, app):
        resp = pair.put("/api/relationships", json=_relationship())
        assert resp.status_code == 200
        assert app.state.directory.get_relationship("alice", "bob") is not None

    def test_unknown_target(self, pair):
        resp = pair.put("/api/relationships", json=_relationship(target_id="zed"))
        assert resp.status_code == 404


# ============ Handshakes ============

class TestHandshakes:
    def test_success_records_commitment(self, pair, app):
        pair.put("/api/relationships", json=_relationship())

        resp = pair.post("/api/handshakes", json={"initiator_id": "alice", "receiver_id": "bob"})

        assert resp.status_code == 201
        data = resp.json()
        assert data["success"] is True
        assert data["code"] == "success"
        assert data["signal"] == "green"
        assert [e["step"] for e in data["log"]] == [
            "intent_sent", "acknowledged", "proposal_sent", "commit",
        ]
        assert data["suggestion"]["source"] == "static"
        assert len(app.state.directory.commitments_for("bob")) == 1

    def test_inline_relationship(self, pair):
        resp = pair.post(
            "/api/handshakes",
            json={"initiator_id": "alice", "receiver_id": "bob", "relationship": _relationship()},
        )
        assert resp.json()["success"] is True

    def test_recharging_receiver(self, client):
        _register(client, "alice", "Alice")
        _register(client, "bob", "Bob", status="recharging")
        resp = client.post(
            "/api/handshakes",
            json={"initiator_id": "alice", "receiver_id": "bob", "relationship": _relationship()},
        )
        data = resp.json()
        assert data["code"] == "battery_reject"
        assert data["signal"] == "red"
        assert data["human_message"] == "Bob is taking some downtime. Try later."
        assert data["suggestion"] is None
        assert data["committed_slot"] is None

    def test_missing_relationship_fails_closed(self, pair):
        resp = pair.post("/api/handshakes", json={"initiator_id": "alice", "receiver_id": "bob"})
        assert resp.status_code == 201
        assert resp.json()["code"] == "hard_reject"

    def test_quota_enforced_across_requests(self, client):
        _register(client, "alice", "Alice")
        _register(client, "bob", "Bob", max_social_events_per_week=1)
        client.put("/api/relationships", json=_relationship())
        body = {"initiator_id": "alice", "receiver_id": "bob"}

        assert client.post("/api/handshakes", json=body).json()["code"] == "success"
        assert client.post("/api/handshakes", json=body).json()["code"] == "quota_reject"

    def test_get_handshake_and_events(self, pair):
        pair.put("/api/relationships", json=_relationship())
        created = pair.post(
            "/api/handshakes", json={"initiator_id": "alice", "receiver_id": "bob"},
        ).json()
        session_id = created["session_id"]

        fetched = pair.get(f"/api/handshakes/{session_id}")
        assert fetched.status_code == 200
        assert fetched.json() == created

        events = pair.get(f"/api/handshakes/{session_id}/events").json()
        assert events["session_id"] == session_id
        assert len(events["events"]) == len(created["log"]) + 1
        assert events["events"][-1]["event_type"] == "handshake.outcome_ready"

    def test_timestamps_without_offset_are_utc(self, client):
        _register(client, "alice", "Alice")
        resp = _register(
            client, "bob", "Bob",
            calendar_events=[{
                "summary": "Lunch",
                "start": "2026-01-01T12:00:00",
                "end": "2026-01-01T13:00:00",
            }],
        )
        assert resp.json()["energy_blocks"][0]["start"] == "2026-01-01T12:00:00+00:00"

        last = (datetime.now(timezone.utc) - timedelta(days=10)).replace(tzinfo=None)
        client.put("/api/relationships", json=_relationship(last_interaction=last.isoformat()))

        resp = client.post("/api/handshakes", json={"initiator_id": "alice", "receiver_id": "bob"})
        assert resp.json()["code"] == "success"

    def test_unknown_handshake(self, client):
        assert client.get("/api/handshakes/hs_missing").status_code == 404
        assert client.get("/api/handshakes/hs_missing/events").status_code == 404


# ============ App Factory ============

def test_create_app_lifespan(monkeypatch):
    monkeypatch.delenv("HANDSHAKE_ANTHROPIC_API_KEY", raising=False)
    with TestClient(create_app()) as client:
        assert _register(client, "alice", "Alice").status_code == 201
        assert client.app.state.config.lookahead_days == 3


def test_log_events_mirrors_to_log(monkeypatch, caplog):
    monkeypatch.delenv("HANDSHAKE_ANTHROPIC_API_KEY", raising=False)
    monkeypatch.setenv("HANDSHAKE_LOG_EVENTS", "true")
    with TestClient(create_app()) as client:
        _register(client, "alice", "Alice")
        _register(client, "bob", "Bob")
        with caplog.at_level(logging.INFO, logger="handshake.infra.event_pusher"):
            resp = client.post(
                "/api/handshakes",
                json={"initiator_id": "alice", "receiver_id": "bob", "relationship": _relationship()},
            )
    session_id = resp.json()["session_id"]
    assert f"Handshake {session_id} step intent_sent by initiator" in caplog.text
    assert f"Handshake {session_id} outcome success (green)" in caplog.text
