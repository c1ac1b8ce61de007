"""Unit tests for the IVR session and health endpoints."""
import pytest
from fastapi.testclient import TestClient

from app.main import app


class TestSessionAPI:
    """Test /api/session endpoints."""

    def test_get_session_snapshot(self, session_client):
        response = session_client.get("/api/session")

        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "idle"
        assert data["targetNumber"] == ""
        assert data["logEntries"] == []
        assert data["currentPrompt"] is None
        assert data["generation"] == 0

    def test_set_target_number(self, session_client, session_manager):
        response = session_client.put("/api/session/target", json={"targetNumber": "+15551234567"})

        assert response.status_code == 200
        assert response.json()["targetNumber"] == "+15551234567"
        assert session_manager.session.target_number == "+15551234567"

    def test_initiate_without_number_logs_error(self, session_client):
        response = session_client.post("/api/session/initiate")

        data = response.json()
        assert data["state"] == "idle"
        assert len(data["logEntries"]) == 1
        assert data["logEntries"][0]["kind"] == "error"
        assert data["logEntries"][0]["message"] == "No target number provided."

    def test_answer_when_not_ringing_is_ignored(self, session_client):
        response = session_client.post("/api/session/answer")

        assert response.json()["state"] == "idle"

    def test_hang_up(self, session_client, scheduler):
        response = session_client.post("/api/session/hangup")

        data = response.json()
        assert data["state"] == "ended"
        assert data["logEntries"][-1]["kind"] == "warning"
        assert scheduler.tokens() == ["idle-reset"]

    def test_send_digit(self, session_client):
        response = session_client.post("/api/session/digits", json={"digit": "#"})

        assert response.status_code == 200
        entry = response.json()["logEntries"][-1]
        assert entry["kind"] == "digit-input"
        assert entry["message"] == "DTMF Received: #"

    @pytest.mark.parametrize("digit", list("0123456789*#"))
    def test_every_keypad_key_accepted(self, session_client, digit):
        response = session_client.post("/api/session/digits", json={"digit": digit})

        assert response.status_code == 200
        assert response.json()["logEntries"][-1]["message"] == f"DTMF Received: {digit}"

    @pytest.mark.parametrize("digit", ["", "12", "a", "+"])
    def test_invalid_digit_rejected(self, session_client, digit):
        response = session_client.post("/api/session/digits", json={"digit": digit})

        assert response.status_code == 422

    def test_announcement_missing(self, session_client):
        response = session_client.get("/api/session/announcement")

        assert response.status_code == 404

    def test_announcement_returns_clip(self, session_client, voice):
        voice.last_clip = b"ID3-audio"

        response = session_client.get("/api/session/announcement")

        assert response.status_code == 200
        assert response.headers["content-type"] == "audio/mpeg"
        assert response.content == b"ID3-audio"

    def test_session_unavailable(self):
        app.state.ivr_session = None

        response = TestClient(app).get("/api/session")

        assert response.status_code == 503


class TestHealth:
    """Test health and root endpoints."""

    def test_health(self, session_client):
        response = session_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "telephony": "simulated",
            "callState": "idle",
        }

    def test_root(self, session_client):
        response = session_client.get("/")

        assert response.json()["session"] == "/api/session"
