"""
Exotel call provider adapter.

Calls/connect takes form-encoded data with HTTP Basic auth (API key, API
token). The lead context travels in CustomField as JSON and comes back in
every status callback.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from leadcall.shared.exceptions import ConfigurationError
from leadcall.shared.logging import get_logger
from leadcall.telephony.base import HttpCallProvider
from leadcall.telephony.interface import CallRequest, WebhookRequest, verify_hex_hmac_sha256

logger = get_logger(__name__)

SIGNATURE_HEADERS = ("x-exotel-signature", "x-exotel-webhook-signature", "x-hub-signature-256")


class ExotelAdapter(HttpCallProvider):
    """Exotel telephony provider adapter."""

    name = "exotel"
    label = "Exotel"

    def _api_url(self) -> str:
        return f"https://{self._config.exotel_api_host}/v1/Accounts/{self._config.exotel_account_sid}/Calls/connect"

    def build_payload(self, request: CallRequest) -> dict[str, Any]:
        cfg = self._config
        if not cfg.exotel_account_sid:
            raise ConfigurationError("EXOTEL_ACCOUNT_SID is not configured")
        if not cfg.exotel_api_key:
            raise ConfigurationError("EXOTEL_API_KEY is not configured")
        if not cfg.exotel_api_token:
            raise ConfigurationError("EXOTEL_API_TOKEN is not configured")
        if not cfg.exotel_exophone_number:
            raise ConfigurationError("EXOTEL_EXOPHONE_NUMBER is not configured")
        if not request.webhook_url:
            raise ConfigurationError("Webhook URL is not configured")

        caller = request.from_number or cfg.exotel_exophone_number
        payload: dict[str, Any] = {
            "From": caller,
            "To": request.to,
            "CallerId": caller,
            "StatusCallback": request.webhook_url,
            "CustomField": json.dumps(request.context.as_dict()),
        }

        if cfg.exotel_call_flow_url:
            payload["Url"] = cfg.exotel_call_flow_url
        elif cfg.exotel_flow_id:
            payload["FlowId"] = cfg.exotel_flow_id

        return payload

    async def _send(self, client: httpx.AsyncClient, payload: dict[str, Any]) -> httpx.Response:
        return await client.post(
            self._api_url(),
            data=payload,
            auth=(self._config.exotel_api_key, self._config.exotel_api_token),
            headers={"Accept": "application/json"},
        )

    def extract_call_id(self, data: dict[str, Any]) -> str | None:
        call = data.get("Call") if isinstance(data.get("Call"), dict) else {}
        return call.get("Sid") or call.get("CallSid") or data.get("Sid") or data.get("CallSid")

    def verify_webhook_signature(self, request: WebhookRequest) -> bool:
        secret = self._config.exotel_webhook_secret
        if not secret:
            logger.warning("No Exotel webhook secret configured, skipping signature validation")
            return True

        signature = request.header(*SIGNATURE_HEADERS)
        if not signature:
            # Exotel only signs when signing is enabled on the account.
            return True

        return verify_hex_hmac_sha256(secret, request.body, signature)
