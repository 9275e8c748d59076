"""
Shared HTTP plumbing for call providers.

Subclasses describe their payload, endpoint and auth; this class performs the
single outbound request, normalizes failures into ProviderTransportError and
records every attempt in the call-event log.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Any

import httpx

from leadcall.shared.exceptions import ProviderTransportError
from leadcall.shared.logging import get_logger
from leadcall.telephony.call_log import CallEventLog
from leadcall.telephony.config import TelephonyConfig
from leadcall.telephony.interface import CallProvider, CallRequest, CallResult

logger = get_logger(__name__)


def _response_json(response: httpx.Response) -> dict[str, Any]:
    if not response.content:
        return {}
    try:
        data = response.json()
    except ValueError:
        return {"text": response.text}
    return data if isinstance(data, dict) else {"data": data}


def _error_message(data: dict[str, Any], default: str) -> str:
    rest = data.get("RestException")
    return (
        data.get("message")
        or (rest.get("Message") if isinstance(rest, dict) else None)
        or data.get("error")
        or default
    )


class HttpCallProvider(CallProvider):
    """Template for providers reached with one HTTP POST per call."""

    label: str = "provider"

    def __init__(
        self,
        config: TelephonyConfig,
        call_log: CallEventLog,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._call_log = call_log
        self._http_client = http_client
        self._owns_client = http_client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(timeout=httpx.Timeout(self._config.call_timeout_seconds))
        return self._http_client

    async def aclose(self) -> None:
        if self._owns_client and self._http_client is not None and not self._http_client.is_closed:
            await self._http_client.aclose()
            self._http_client = None

    @abstractmethod
    def build_payload(self, request: CallRequest) -> dict[str, Any]:
        """Validate configuration and build the provider payload.

        Raises:
            ConfigurationError: Before any network I/O when configuration is incomplete.
        """
        ...

    @abstractmethod
    async def _send(self, client: httpx.AsyncClient, payload: dict[str, Any]) -> httpx.Response:
        ...

    @abstractmethod
    def extract_call_id(self, data: dict[str, Any]) -> str | None:
        ...

    async def create_call(self, request: CallRequest) -> CallResult:
        payload = self.build_payload(request)
        lead_id = request.context.lead_id

        logger.info(
            "Creating outbound call",
            extra={"provider": self.name, "lead_id": lead_id, "to": request.to},
        )

        try:
            response = await self._send(self._get_client(), payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            data = _response_json(e.response)
            await self._call_log.record(
                "call.error", leadId=lead_id, request=payload, error=data or str(e), provider=self.name
            )
            logger.error(
                "Call creation rejected by provider",
                extra={"provider": self.name, "lead_id": lead_id, "status_code": e.response.status_code},
            )
            raise ProviderTransportError(
                f"Failed to create {self.label} call: {_error_message(data, str(e))}",
                error_code=str(data.get("code", e.response.status_code)),
                provider_response=data,
            ) from e
        except httpx.HTTPError as e:
            await self._call_log.record("call.error", leadId=lead_id, request=payload, error=str(e), provider=self.name)
            logger.error(
                "HTTP error during call creation",
                extra={"provider": self.name, "lead_id": lead_id, "error": str(e)},
            )
            raise ProviderTransportError(
                f"Failed to create {self.label} call: {e!s}",
                error_code="HTTP_ERROR",
            ) from e

        data = _response_json(response)
        call_id = self.extract_call_id(data)
        await self._call_log.record("call.create", leadId=lead_id, request=payload, response=data, provider=self.name)

        return CallResult(call_id=call_id, raw=data)
