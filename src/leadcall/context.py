"""
Application context.

Everything a request handler needs is built once at startup and stored on
app.state; routes receive it through the get_app_context dependency. Tests
hand create_app() a context of their own.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

from leadcall.config import Settings, get_settings
from leadcall.intake.rate_limit import SlidingWindowRateLimiter
from leadcall.leads.repository import LeadStore, build_lead_store
from leadcall.shared.logging import get_logger
from leadcall.telephony.call_log import CallEventLog
from leadcall.telephony.config import TelephonyConfig, get_telephony_config
from leadcall.telephony.dispatcher import CallDispatcher
from leadcall.telephony.factory import build_call_provider
from leadcall.telephony.interface import CallProvider

logger = get_logger(__name__)


@dataclass
class AppContext:
    settings: Settings
    telephony: TelephonyConfig
    store: LeadStore
    provider: CallProvider
    dispatcher: CallDispatcher
    call_log: CallEventLog
    rate_limiter: SlidingWindowRateLimiter

    async def startup(self) -> None:
        await self.store.initialize()

    async def aclose(self) -> None:
        await self.provider.aclose()


def build_context(
    settings: Settings | None = None,
    telephony: TelephonyConfig | None = None,
) -> AppContext:
    """Wire the store, provider and dispatcher from configuration."""
    settings = settings or get_settings()
    telephony = telephony or get_telephony_config()

    call_log = CallEventLog(settings.log_file_path)
    provider = build_call_provider(telephony, call_log)

    return AppContext(
        settings=settings,
        telephony=telephony,
        store=build_lead_store(settings),
        provider=provider,
        dispatcher=CallDispatcher(provider),
        call_log=call_log,
        rate_limiter=SlidingWindowRateLimiter(
            max_requests=settings.rate_limit_max,
            window_seconds=settings.rate_limit_window_seconds,
        ),
    )


def get_app_context(request: Request) -> AppContext:
    return request.app.state.context
