"""
Telephony provider configuration.

Variable names follow each provider's own vocabulary (EXOTEL_*, TWILIO_*,
VAPI_*). Missing credentials are tolerated here and reported by the adapter
as ConfigurationError at call time.
"""

from enum import Enum
from pathlib import Path

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProviderType(str, Enum):
    """Supported telephony provider types."""

    EXOTEL = "exotel"
    TWILIO = "twilio"
    AGENT = "agent"


class TelephonyConfig(BaseSettings):
    """Telephony provider configuration from environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Provider selection
    provider_type: ProviderType = Field(
        default=ProviderType.EXOTEL,
        validation_alias=AliasChoices("call_provider", "provider_type"),
    )

    # Public base URL providers call back into
    webhook_base_url: str = Field(
        default="http://localhost:3000",
        validation_alias=AliasChoices("webhook_public_base", "webhook_base_url"),
    )

    call_timeout_seconds: float = Field(default=15.0, gt=0, le=120)

    # Exotel
    exotel_account_sid: str = ""
    exotel_api_key: str = ""
    exotel_api_token: str = ""
    exotel_exophone_number: str = ""
    exotel_call_flow_url: str = ""
    exotel_flow_id: str = ""
    exotel_webhook_secret: str = ""
    exotel_api_host: str = "api.exotel.com"

    # Twilio
    twilio_account_sid: str = ""
    twilio_auth_token: str = ""
    twilio_phone_number: str = ""
    twilio_call_flow_url: str = ""
    twilio_record_calls: bool = False

    # Voice-agent API
    agent_api_url: str = Field(default="", validation_alias=AliasChoices("vapi_api_url", "agent_api_url"))
    agent_api_key: str = Field(default="", validation_alias=AliasChoices("vapi_api_key", "agent_api_key"))
    agent_caller_id: str = Field(default="", validation_alias=AliasChoices("caller_id", "agent_caller_id"))
    agent_webhook_secret: str = Field(
        default="",
        validation_alias=AliasChoices("vapi_webhook_secret", "agent_webhook_secret"),
    )
    agent_use_prompt_inline: bool = Field(
        default=True,
        validation_alias=AliasChoices("use_prompt_inline", "agent_use_prompt_inline"),
    )
    agent_prompt_flow_id: str = Field(
        default="",
        validation_alias=AliasChoices("prompt_flow_id", "agent_prompt_flow_id"),
    )
    agent_system_prompt: str = ""
    agent_system_prompt_file: str = ""
    agent_greeting: str = "Hello! Do you have a minute to talk about your enquiry?"
    agent_voice_id: str = Field(default="", validation_alias=AliasChoices("vapi_voice_id", "agent_voice_id"))
    agent_language_code: str = Field(
        default="",
        validation_alias=AliasChoices("vapi_language_code", "agent_language_code"),
    )

    def get_webhook_url(self, path: str = "/webhook") -> str:
        base = self.webhook_base_url.rstrip("/")
        return f"{base}{path}"

    @model_validator(mode="after")
    def _load_system_prompt_file(self) -> "TelephonyConfig":
        # Read once at load time; the inline prompt wins when both are set.
        if not self.agent_system_prompt and self.agent_system_prompt_file:
            path = Path(self.agent_system_prompt_file)
            if path.is_file():
                self.agent_system_prompt = path.read_text(encoding="utf-8")
        return self

    def resolve_system_prompt(self) -> str:
        """Inline prompt text, or the prompt file contents loaded at startup."""
        return self.agent_system_prompt


def get_telephony_config() -> TelephonyConfig:
    return TelephonyConfig()
