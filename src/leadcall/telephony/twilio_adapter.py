"""
Twilio call provider adapter.

Calls.json takes form-encoded data with HTTP Basic auth (account SID, auth
token). Twilio does not echo custom fields, so the lead id rides on the
StatusCallback query string.
"""

from __future__ import annotations

import binascii
import hashlib
import hmac
from base64 import b64decode, b64encode
from typing import Any
from urllib.parse import urlencode

import httpx

from leadcall.shared.exceptions import ConfigurationError
from leadcall.shared.logging import get_logger
from leadcall.telephony.base import HttpCallProvider
from leadcall.telephony.interface import CallRequest, WebhookRequest

logger = get_logger(__name__)

STATUS_CALLBACK_EVENTS = ["initiated", "ringing", "answered", "completed"]

DEFAULT_TWIML = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    "<Response><Say>Hello</Say><Hangup/></Response>"
)


def _with_query(url: str, params: dict[str, str]) -> str:
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{urlencode(params)}"


def twilio_signature_base(url: str, params: dict[str, Any]) -> str:
    """URL followed by the form-encoded parameters in key order."""
    return url + urlencode(sorted((k, str(v)) for k, v in params.items()))


def compute_twilio_signature(auth_token: str, url: str, params: dict[str, Any]) -> str:
    digest = hmac.new(
        auth_token.encode("utf-8"),
        twilio_signature_base(url, params).encode("utf-8"),
        hashlib.sha1,
    ).digest()
    return b64encode(digest).decode("utf-8")


class TwilioAdapter(HttpCallProvider):
    """Twilio telephony provider adapter."""

    name = "twilio"
    label = "Twilio"

    def _api_url(self) -> str:
        return f"https://api.twilio.com/2010-04-01/Accounts/{self._config.twilio_account_sid}/Calls.json"

    def build_payload(self, request: CallRequest) -> dict[str, Any]:
        cfg = self._config
        if not cfg.twilio_account_sid:
            raise ConfigurationError("TWILIO_ACCOUNT_SID is not configured")
        if not cfg.twilio_auth_token:
            raise ConfigurationError("TWILIO_AUTH_TOKEN is not configured")
        if not cfg.twilio_phone_number:
            raise ConfigurationError("TWILIO_PHONE_NUMBER is not configured")
        if not request.webhook_url:
            raise ConfigurationError("Webhook URL is not configured")

        lead_query = {"leadId": request.context.lead_id}
        payload: dict[str, Any] = {
            "From": request.from_number or cfg.twilio_phone_number,
            "To": request.to,
            "StatusCallback": _with_query(request.webhook_url, lead_query),
            "StatusCallbackEvent": STATUS_CALLBACK_EVENTS,
            "StatusCallbackMethod": "POST",
        }

        if cfg.twilio_call_flow_url:
            payload["Url"] = cfg.twilio_call_flow_url
        else:
            payload["Twiml"] = DEFAULT_TWIML

        if cfg.twilio_record_calls:
            payload["Record"] = "true"
            payload["RecordingStatusCallback"] = _with_query(
                request.webhook_url, {"event": "recording", **lead_query}
            )

        return payload

    async def _send(self, client: httpx.AsyncClient, payload: dict[str, Any]) -> httpx.Response:
        return await client.post(
            self._api_url(),
            data=payload,
            auth=(self._config.twilio_account_sid, self._config.twilio_auth_token),
            headers={"Accept": "application/json"},
        )

    def extract_call_id(self, data: dict[str, Any]) -> str | None:
        return data.get("sid") or data.get("CallSid")

    def verify_webhook_signature(self, request: WebhookRequest) -> bool:
        auth_token = self._config.twilio_auth_token
        if not auth_token:
            logger.warning("No auth token configured, skipping signature validation")
            return True

        signature = request.header("x-twilio-signature")
        if not signature:
            # Twilio signs every request; an unsigned one is not from Twilio.
            return False

        try:
            actual = b64decode(signature, validate=True)
        except (binascii.Error, ValueError):
            return False

        expected = hmac.new(
            auth_token.encode("utf-8"),
            twilio_signature_base(request.url, dict(request.params)).encode("utf-8"),
            hashlib.sha1,
        ).digest()
        return hmac.compare_digest(actual, expected)
