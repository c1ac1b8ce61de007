"""Unit tests for Twilio voice webhooks."""
from app.services.persistence.calls import CallRecordService


class TestVoiceWebhooks:
    """Test answer and status callbacks."""

    async def test_answer_returns_language_prompt(self, api_client):
        response = await api_client.post("/webhooks/voice/answer")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/xml")
        assert "Welcome to IVR Demo." in response.text
        assert 'language="en-US"' in response.text
        assert "<Hangup/>" in response.text

    async def test_status_updates_call_record(self, api_client, test_db):
        await CallRecordService(test_db).create_call("CA100", "+15551234567", status="queued")

        response = await api_client.post(
            "/webhooks/voice/status",
            data={"CallSid": "CA100", "CallStatus": "completed"},
        )

        assert response.status_code == 200
        assert response.text == "OK"
        record = await api_client.get("/calls/CA100")
        assert record.json()["status"] == "completed"

    async def test_failed_status_records_error(self, api_client, test_db):
        await CallRecordService(test_db).create_call("CA101", "+15551234567", status="queued")

        await api_client.post(
            "/webhooks/voice/status",
            data={"CallSid": "CA101", "CallStatus": "busy"},
        )

        data = (await api_client.get("/calls/CA101")).json()
        assert data["status"] == "busy"
        assert data["error"] == "Call busy"

    async def test_status_for_unknown_call_still_ok(self, api_client):
        response = await api_client.post(
            "/webhooks/voice/status",
            data={"CallSid": "CA-unknown", "CallStatus": "ringing"},
        )

        assert response.status_code == 200
        assert response.text == "OK"

    async def test_status_requires_form_fields(self, api_client):
        response = await api_client.post("/webhooks/voice/status", data={"CallSid": "CA1"})

        assert response.status_code == 422
