"""
Call provider factory.

The active provider is chosen from TelephonyConfig and handed to the app
context once at startup.
"""

from __future__ import annotations

import httpx

from leadcall.shared.logging import get_logger
from leadcall.telephony.agent_adapter import AgentApiAdapter
from leadcall.telephony.call_log import CallEventLog
from leadcall.telephony.config import ProviderType, TelephonyConfig
from leadcall.telephony.exotel_adapter import ExotelAdapter
from leadcall.telephony.interface import CallProvider
from leadcall.telephony.twilio_adapter import TwilioAdapter

logger = get_logger(__name__)

_ADAPTERS: dict[ProviderType, type] = {
    ProviderType.EXOTEL: ExotelAdapter,
    ProviderType.TWILIO: TwilioAdapter,
    ProviderType.AGENT: AgentApiAdapter,
}


def _mask(s: str, keep: int = 6) -> str:
    if not s:
        return ""
    if len(s) <= keep:
        return "*" * len(s)
    return f"{s[:keep]}***"


def build_call_provider(
    config: TelephonyConfig,
    call_log: CallEventLog,
    http_client: httpx.AsyncClient | None = None,
) -> CallProvider:
    """Create the provider selected by configuration."""
    adapter_cls = _ADAPTERS.get(config.provider_type)
    if adapter_cls is None:
        raise ValueError(f"Unsupported call provider: {config.provider_type}")

    logger.info(
        "Call provider resolved",
        extra={
            "provider_type": config.provider_type.value,
            "exotel_account_sid": _mask(config.exotel_account_sid),
            "twilio_account_sid": _mask(config.twilio_account_sid),
            "webhook_base_url": config.webhook_base_url,
            "call_timeout_seconds": config.call_timeout_seconds,
        },
    )
    return adapter_cls(config, call_log, http_client=http_client)
