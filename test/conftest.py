"""
Shared fixtures: temporary stores, a scripted call provider and an app
wired to them.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from leadcall.config import Settings
from leadcall.context import AppContext
from leadcall.intake.rate_limit import SlidingWindowRateLimiter
from leadcall.leads.file_store import JsonFileLeadStore
from leadcall.main import create_app
from leadcall.telephony.call_log import CallEventLog
from leadcall.telephony.config import ProviderType, TelephonyConfig
from leadcall.telephony.dispatcher import CallDispatcher
from leadcall.telephony.interface import CallProvider, CallRequest, CallResult, WebhookRequest

ADMIN_TOKEN = "admin-secret"


class ScriptedProvider(CallProvider):
    """CallProvider returning or raising pre-scripted outcomes in order."""

    name = "scripted"

    def __init__(self, outcomes: list[Any] | None = None, signature_ok: bool = True) -> None:
        self.outcomes = list(outcomes or [])
        self.signature_ok = signature_ok
        self.requests: list[CallRequest] = []
        self.verified: list[WebhookRequest] = []

    async def create_call(self, request: CallRequest) -> CallResult:
        self.requests.append(request)
        outcome = self.outcomes.pop(0) if self.outcomes else CallResult(call_id=f"call-{len(self.requests)}")
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def verify_webhook_signature(self, request: WebhookRequest) -> bool:
        self.verified.append(request)
        return self.signature_ok


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        admin_token=ADMIN_TOKEN,
        default_country_code="+91",
        rate_limit_max=100,
        rate_limit_window_seconds=60,
        use_dynamodb=False,
        leads_file_path=str(tmp_path / "data" / "leads.json"),
        log_file_path=str(tmp_path / "logs" / "calls.log"),
    )


@pytest.fixture
def telephony_config() -> TelephonyConfig:
    return TelephonyConfig(
        provider_type=ProviderType.EXOTEL,
        webhook_base_url="https://hooks.example.com",
        exotel_account_sid="acct_sid",
        exotel_api_key="api_key",
        exotel_api_token="api_token",
        exotel_exophone_number="+918000000000",
        exotel_webhook_secret="",
    )


@pytest.fixture
def call_log(tmp_path: Path) -> CallEventLog:
    return CallEventLog(tmp_path / "logs" / "calls.log")


@pytest.fixture
def store(tmp_path: Path) -> JsonFileLeadStore:
    return JsonFileLeadStore(tmp_path / "data" / "leads.json")


@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def app_context(
    settings: Settings,
    telephony_config: TelephonyConfig,
    store: JsonFileLeadStore,
    provider: ScriptedProvider,
    call_log: CallEventLog,
    sleep: RecordingSleep,
) -> AppContext:
    return AppContext(
        settings=settings,
        telephony=telephony_config,
        store=store,
        provider=provider,
        dispatcher=CallDispatcher(provider, sleep=sleep),
        call_log=call_log,
        rate_limiter=SlidingWindowRateLimiter(
            max_requests=settings.rate_limit_max,
            window_seconds=settings.rate_limit_window_seconds,
        ),
    )


@pytest.fixture
def client(app_context: AppContext) -> TestClient:
    return TestClient(create_app(app_context))


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}
