"""Tests for the Twilio call provider adapter."""

from pathlib import Path
from urllib.parse import parse_qs

import httpx
import pytest

from leadcall.shared.exceptions import ConfigurationError, ProviderTransportError
from leadcall.telephony.call_log import CallEventLog
from leadcall.telephony.config import ProviderType, TelephonyConfig
from leadcall.telephony.interface import CallContext, CallRequest, WebhookRequest
from leadcall.telephony.twilio_adapter import DEFAULT_TWIML, TwilioAdapter, compute_twilio_signature


@pytest.fixture
def twilio_config() -> TelephonyConfig:
    return TelephonyConfig(
        provider_type=ProviderType.TWILIO,
        twilio_account_sid="AC_TEST_ACCOUNT_SID",
        twilio_auth_token="test_auth_token_12345",
        twilio_phone_number="+14155550000",
    )


@pytest.fixture
def call_request() -> CallRequest:
    return CallRequest(
        to="+14155551234",
        context=CallContext(lead_id="lead-42", name="Sam"),
        webhook_url="https://hooks.example.com/webhook",
    )


class TestTwilioCreateCall:
    @pytest.mark.asyncio
    async def test_create_call_success(
        self, twilio_config: TelephonyConfig, call_log: CallEventLog, call_request: CallRequest
    ) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json={"sid": "CA_TEST_CALL_SID_123", "status": "queued"})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        adapter = TwilioAdapter(twilio_config, call_log, http_client=client)

        result = await adapter.create_call(call_request)

        assert result.call_id == "CA_TEST_CALL_SID_123"
        assert result.raw["status"] == "queued"

        [request] = seen
        assert "Accounts/AC_TEST_ACCOUNT_SID/Calls.json" in str(request.url)
        form = parse_qs(request.content.decode())
        assert form["To"] == ["+14155551234"]
        assert form["From"] == ["+14155550000"]
        assert form["StatusCallback"] == ["https://hooks.example.com/webhook?leadId=lead-42"]
        assert form["StatusCallbackEvent"] == ["initiated", "ringing", "answered", "completed"]
        assert form["StatusCallbackMethod"] == ["POST"]
        assert form["Twiml"] == [DEFAULT_TWIML]

    def test_recording_adds_callback(self, twilio_config: TelephonyConfig, call_log: CallEventLog, call_request: CallRequest) -> None:
        config = twilio_config.model_copy(
            update={"twilio_record_calls": True, "twilio_call_flow_url": "https://hooks.example.com/twiml"}
        )
        payload = TwilioAdapter(config, call_log).build_payload(call_request)

        assert payload["Url"] == "https://hooks.example.com/twiml"
        assert "Twiml" not in payload
        assert payload["Record"] == "true"
        assert payload["RecordingStatusCallback"] == "https://hooks.example.com/webhook?event=recording&leadId=lead-42"

    @pytest.mark.asyncio
    async def test_api_error(
        self, twilio_config: TelephonyConfig, call_log: CallEventLog, call_request: CallRequest
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"code": 21211, "message": "Invalid 'To' Phone Number"})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        adapter = TwilioAdapter(twilio_config, call_log, http_client=client)

        with pytest.raises(ProviderTransportError) as exc_info:
            await adapter.create_call(call_request)

        assert exc_info.value.error_code == "21211"
        assert "Invalid 'To' Phone Number" in str(exc_info.value)
        assert exc_info.value.provider_response["code"] == 21211

    @pytest.mark.asyncio
    async def test_missing_phone_number(
        self, twilio_config: TelephonyConfig, call_log: CallEventLog, call_request: CallRequest
    ) -> None:
        config = twilio_config.model_copy(update={"twilio_phone_number": ""})
        adapter = TwilioAdapter(config, call_log)

        with pytest.raises(ConfigurationError):
            await adapter.create_call(call_request)


class TestTwilioSignature:
    URL = "https://hooks.example.com/webhook?leadId=lead-42"
    PARAMS = {"CallSid": "CA1", "CallStatus": "completed", "leadId": "lead-42"}

    def _adapter(self, config: TelephonyConfig, tmp_path: Path) -> TwilioAdapter:
        return TwilioAdapter(config, CallEventLog(tmp_path / "c.log"))

    def _request(self, signature: str | None) -> WebhookRequest:
        headers = {"x-twilio-signature": signature} if signature is not None else {}
        return WebhookRequest(url=self.URL, headers=headers, body=b"", params=self.PARAMS)

    def test_valid_signature(self, twilio_config: TelephonyConfig, tmp_path: Path) -> None:
        signature = compute_twilio_signature("test_auth_token_12345", self.URL, self.PARAMS)

        assert self._adapter(twilio_config, tmp_path).verify_webhook_signature(self._request(signature))

    def test_signature_with_wrong_token(self, twilio_config: TelephonyConfig, tmp_path: Path) -> None:
        signature = compute_twilio_signature("wrong", self.URL, self.PARAMS)

        assert not self._adapter(twilio_config, tmp_path).verify_webhook_signature(self._request(signature))

    def test_malformed_signature(self, twilio_config: TelephonyConfig, tmp_path: Path) -> None:
        assert not self._adapter(twilio_config, tmp_path).verify_webhook_signature(self._request("***"))

    def test_missing_signature_rejected(self, twilio_config: TelephonyConfig, tmp_path: Path) -> None:
        assert not self._adapter(twilio_config, tmp_path).verify_webhook_signature(self._request(None))

    def test_no_token_accepts(self, twilio_config: TelephonyConfig, tmp_path: Path) -> None:
        config = twilio_config.model_copy(update={"twilio_auth_token": ""})

        assert self._adapter(config, tmp_path).verify_webhook_signature(self._request(None))
