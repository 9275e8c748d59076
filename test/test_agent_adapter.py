"""Tests for the voice-agent API adapter."""

import hashlib
import hmac
import json
from pathlib import Path

import httpx
import pytest

from leadcall.shared.exceptions import ConfigurationError, ProviderTransportError
from leadcall.telephony.agent_adapter import AgentApiAdapter
from leadcall.telephony.call_log import CallEventLog
from leadcall.telephony.config import ProviderType, TelephonyConfig
from leadcall.telephony.interface import CallContext, CallRequest, WebhookRequest


@pytest.fixture
def agent_config() -> TelephonyConfig:
    return TelephonyConfig(
        provider_type=ProviderType.AGENT,
        agent_api_url="https://agent.example.com/v1/calls",
        agent_api_key="key_123",
        agent_caller_id="+918000000001",
        agent_system_prompt="You are a friendly sales assistant.",
        agent_greeting="Hi there!",
        agent_webhook_secret="agent_secret",
        agent_voice_id="voice-7",
    )


@pytest.fixture
def call_request() -> CallRequest:
    return CallRequest(
        to="+919876543210",
        context=CallContext(lead_id="lead-9", name="Priya"),
        webhook_url="https://hooks.example.com/webhook",
    )


class TestAgentCreateCall:
    @pytest.mark.asyncio
    async def test_create_call_with_inline_prompt(
        self, agent_config: TelephonyConfig, call_log: CallEventLog, call_request: CallRequest
    ) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"id": "agent-call-1"})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        adapter = AgentApiAdapter(agent_config, call_log, http_client=client)

        result = await adapter.create_call(call_request)

        assert result.call_id == "agent-call-1"
        [request] = seen
        assert request.headers["authorization"] == "Bearer key_123"
        body = json.loads(request.content)
        assert body["to"] == "+919876543210"
        assert body["from"] == "+918000000001"
        assert body["context"] == {"leadId": "lead-9", "name": "Priya"}
        assert body["webhook_url"] == "https://hooks.example.com/webhook"
        assert body["messages"] == [
            {"role": "system", "content": "You are a friendly sales assistant."},
            {"role": "assistant", "content": "Hi there!"},
        ]
        assert body["voice_id"] == "voice-7"
        assert "flow_id" not in body

    def test_flow_id_payload(self, agent_config: TelephonyConfig, call_log: CallEventLog, call_request: CallRequest) -> None:
        config = agent_config.model_copy(update={"agent_use_prompt_inline": False, "agent_prompt_flow_id": "flow-1"})

        payload = AgentApiAdapter(config, call_log).build_payload(call_request)

        assert payload["flow_id"] == "flow-1"
        assert "messages" not in payload

    def test_prompt_read_from_file(
        self, call_log: CallEventLog, call_request: CallRequest, tmp_path: Path
    ) -> None:
        prompt_file = tmp_path / "prompt.txt"
        prompt_file.write_text("Prompt from file", encoding="utf-8")
        config = TelephonyConfig(
            provider_type=ProviderType.AGENT,
            agent_api_url="https://agent.example.com/v1/calls",
            agent_api_key="key_123",
            agent_caller_id="+918000000001",
            agent_system_prompt="",
            agent_system_prompt_file=str(prompt_file),
        )

        payload = AgentApiAdapter(config, call_log).build_payload(call_request)

        assert payload["messages"][0]["content"] == "Prompt from file"

    @pytest.mark.parametrize(
        "update",
        [
            {"agent_api_url": ""},
            {"agent_api_key": ""},
            {"agent_caller_id": ""},
            {"agent_system_prompt": ""},
            {"agent_use_prompt_inline": False, "agent_prompt_flow_id": ""},
        ],
    )
    def test_missing_configuration(
        self, agent_config: TelephonyConfig, call_log: CallEventLog, call_request: CallRequest, update: dict
    ) -> None:
        adapter = AgentApiAdapter(agent_config.model_copy(update=update), call_log)

        with pytest.raises(ConfigurationError):
            adapter.build_payload(call_request)

    @pytest.mark.asyncio
    async def test_server_error(
        self, agent_config: TelephonyConfig, call_log: CallEventLog, call_request: CallRequest
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, json={"error": "overloaded"})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        adapter = AgentApiAdapter(agent_config, call_log, http_client=client)

        with pytest.raises(ProviderTransportError) as exc_info:
            await adapter.create_call(call_request)

        assert "overloaded" in str(exc_info.value)
        assert exc_info.value.error_code == "503"


class TestAgentSignature:
    BODY = b'{"event":"call.completed","context":{"leadId":"lead-9"}}'

    def _request(self, headers: dict[str, str]) -> WebhookRequest:
        return WebhookRequest(url="https://hooks.example.com/webhook", headers=headers, body=self.BODY)

    def test_valid_signature(self, agent_config: TelephonyConfig, call_log: CallEventLog) -> None:
        signature = hmac.new(b"agent_secret", self.BODY, hashlib.sha256).hexdigest()
        adapter = AgentApiAdapter(agent_config, call_log)

        assert adapter.verify_webhook_signature(self._request({"x-vapi-signature": signature}))

    def test_tampered_body_rejected(self, agent_config: TelephonyConfig, call_log: CallEventLog) -> None:
        signature = hmac.new(b"agent_secret", b"other body", hashlib.sha256).hexdigest()
        adapter = AgentApiAdapter(agent_config, call_log)

        assert not adapter.verify_webhook_signature(self._request({"x-vapi-signature": signature}))

    def test_missing_header_rejected(self, agent_config: TelephonyConfig, call_log: CallEventLog) -> None:
        adapter = AgentApiAdapter(agent_config, call_log)

        assert not adapter.verify_webhook_signature(self._request({}))
