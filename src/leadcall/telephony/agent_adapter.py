"""
Voice-agent API adapter (VAPI-style JSON endpoint).

The agent platform receives the system prompt (or a pre-built flow id) with
the call request and posts JSON callbacks signed with HMAC-SHA256.
"""

from __future__ import annotations

from typing import Any

import httpx

from leadcall.shared.exceptions import ConfigurationError
from leadcall.shared.logging import get_logger
from leadcall.telephony.base import HttpCallProvider
from leadcall.telephony.interface import CallRequest, WebhookRequest, verify_hex_hmac_sha256

logger = get_logger(__name__)

SIGNATURE_HEADERS = ("x-vapi-signature", "x-wapi-signature", "x-hub-signature-256")


class AgentApiAdapter(HttpCallProvider):
    """JSON voice-agent provider adapter."""

    name = "agent"
    label = "voice agent"

    def build_payload(self, request: CallRequest) -> dict[str, Any]:
        cfg = self._config
        if not cfg.agent_api_url:
            raise ConfigurationError("VAPI_API_URL is not configured")
        if not cfg.agent_api_key:
            raise ConfigurationError("VAPI_API_KEY is not configured")

        caller = request.from_number or cfg.agent_caller_id
        if not caller:
            raise ConfigurationError("CALLER_ID is not configured")
        if not request.webhook_url:
            raise ConfigurationError("Webhook URL is not configured")

        payload: dict[str, Any] = {
            "to": request.to,
            "from": caller,
            "context": request.context.as_dict(),
            "webhook_url": request.webhook_url,
        }

        if cfg.agent_use_prompt_inline:
            system_prompt = cfg.resolve_system_prompt()
            if not system_prompt:
                raise ConfigurationError("System prompt is not configured")
            payload["messages"] = [
                {"role": "system", "content": system_prompt},
                {"role": "assistant", "content": cfg.agent_greeting},
            ]
        else:
            if not cfg.agent_prompt_flow_id:
                raise ConfigurationError("PROMPT_FLOW_ID must be set when USE_PROMPT_INLINE is false")
            payload["flow_id"] = cfg.agent_prompt_flow_id

        if cfg.agent_voice_id:
            payload["voice_id"] = cfg.agent_voice_id
        if cfg.agent_language_code:
            payload["language_code"] = cfg.agent_language_code

        return payload

    async def _send(self, client: httpx.AsyncClient, payload: dict[str, Any]) -> httpx.Response:
        return await client.post(
            self._config.agent_api_url,
            json=payload,
            headers={"Authorization": f"Bearer {self._config.agent_api_key}"},
        )

    def extract_call_id(self, data: dict[str, Any]) -> str | None:
        return data.get("id") or data.get("call_id") or data.get("callId")

    def verify_webhook_signature(self, request: WebhookRequest) -> bool:
        secret = self._config.agent_webhook_secret
        if not secret:
            logger.warning("No agent webhook secret configured, skipping signature validation")
            return True

        signature = request.header(*SIGNATURE_HEADERS)
        if not signature:
            return False

        return verify_hex_hmac_sha256(secret, request.body, signature)
