"""Tests for the static call-flow documents."""

from fastapi.testclient import TestClient

from leadcall.telephony.call_log import CallEventLog


class TestExotelCallflow:
    def test_post_returns_xml_and_logs(self, client: TestClient, call_log: CallEventLog) -> None:
        response = client.post(
            "/callflow",
            data={"CallSid": "exo-1", "From": "+918000000000", "To": "+919876543210",
                  "CustomField": '{"leadId": "lead-1"}'},
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/xml")
        assert response.text.startswith('<?xml version="1.0" encoding="UTF-8"?>')
        assert "<Hangup/>" in response.text

        [entry] = call_log.read()
        assert entry["type"] == "callflow.request"
        assert entry["callSid"] == "exo-1"
        assert entry["from"] == "+918000000000"
        assert entry["leadId"] == "lead-1"

    def test_get_is_supported(self, client: TestClient, call_log: CallEventLog) -> None:
        response = client.get("/callflow", params={"CallSid": "exo-2"})

        assert response.status_code == 200
        assert call_log.read()[0]["method"] == "GET"


class TestTwiml:
    def test_twiml_points_gather_at_public_host(self, client: TestClient, call_log: CallEventLog) -> None:
        response = client.post(
            "/twiml?leadId=lead-7",
            data={"CallSid": "CA1"},
            headers={"x-forwarded-proto": "https", "x-forwarded-host": "voice.example.com"},
        )

        assert response.status_code == 200
        assert 'action="https://voice.example.com/twiml/gather"' in response.text
        assert "<Gather" in response.text
        assert call_log.read()[0]["leadId"] == "lead-7"

    def test_gather_escapes_speech(self, client: TestClient, call_log: CallEventLog) -> None:
        response = client.post(
            "/twiml/gather",
            data={"CallSid": "CA1", "SpeechResult": "<Hangup/> & more", "Confidence": "0.9"},
        )

        assert response.status_code == 200
        assert "I heard you say: &lt;Hangup/&gt; &amp; more." in response.text
        assert "<Hangup/> & more" not in response.text

        [entry] = call_log.read()
        assert entry["type"] == "twiml.gather"
        assert entry["speechResult"] == "<Hangup/> & more"

    def test_gather_without_speech(self, client: TestClient) -> None:
        response = client.post("/twiml/gather", data={"CallSid": "CA1"})

        assert "I heard you say: nothing." in response.text
