"""Tests for context wiring and application startup."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from leadcall.config import Settings
from leadcall.context import build_context
from leadcall.leads.file_store import JsonFileLeadStore
from leadcall.main import create_app
from leadcall.telephony.agent_adapter import AgentApiAdapter
from leadcall.telephony.call_log import CallEventLog
from leadcall.telephony.config import ProviderType, TelephonyConfig
from leadcall.telephony.exotel_adapter import ExotelAdapter
from leadcall.telephony.factory import build_call_provider
from leadcall.telephony.twilio_adapter import TwilioAdapter


@pytest.fixture
def file_settings(tmp_path: Path) -> Settings:
    return Settings(
        use_dynamodb=False,
        leads_file_path=str(tmp_path / "data" / "leads.json"),
        log_file_path=str(tmp_path / "logs" / "calls.log"),
        rate_limit_max=5,
    )


class TestFactory:
    @pytest.mark.parametrize(
        ("provider_type", "adapter_cls"),
        [
            (ProviderType.EXOTEL, ExotelAdapter),
            (ProviderType.TWILIO, TwilioAdapter),
            (ProviderType.AGENT, AgentApiAdapter),
        ],
    )
    def test_selects_adapter(self, provider_type: ProviderType, adapter_cls: type, tmp_path: Path) -> None:
        provider = build_call_provider(TelephonyConfig(provider_type=provider_type), CallEventLog(tmp_path / "c.log"))

        assert isinstance(provider, adapter_cls)


class TestBuildContext:
    def test_file_backend_selected(self, file_settings: Settings) -> None:
        ctx = build_context(file_settings, TelephonyConfig(provider_type=ProviderType.TWILIO))

        assert isinstance(ctx.store, JsonFileLeadStore)
        assert isinstance(ctx.provider, TwilioAdapter)
        assert ctx.dispatcher.provider is ctx.provider
        assert str(ctx.call_log.path).endswith("calls.log")

    def test_lifespan_initializes_store(self, file_settings: Settings) -> None:
        ctx = build_context(file_settings, TelephonyConfig())

        with TestClient(create_app(ctx)) as client:
            assert client.get("/health").json() == {"ok": True, "status": "healthy"}

        assert Path(file_settings.leads_file_path).exists()
