"""
Application configuration with environment-driven settings.
"""

from functools import lru_cache
import os
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "leadcall"
    app_env: Literal["dev", "qa", "uat", "prod"] = "dev"
    debug: bool = False
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000

    # Admin API
    admin_token: str = Field(
        default="",
        description="Bearer token for /admin routes. Empty disables the admin API.",
    )

    # Intake
    default_country_code: str = Field(
        default="+91",
        description="Prefix applied to bare 10-digit phone numbers",
    )
    rate_limit_max: int = Field(
        default=3,
        ge=1,
        description="Maximum /enquire requests per client per window",
    )
    rate_limit_window_seconds: int = Field(default=60, ge=1)

    # CORS
    frontend_url: str = Field(
        default="",
        description="Comma-separated list of allowed CORS origins",
    )

    # Storage
    use_dynamodb: bool = False
    dynamodb_table: str = ""
    aws_region: str = "ap-south-1"
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    dynamodb_endpoint_url: str = Field(
        default="",
        description="Override endpoint, e.g. DynamoDB Local",
    )
    leads_file_path: str = Field(
        default="data/leads.json",
        description="JSON file used when DynamoDB is not enabled",
    )

    # Call-event audit log (JSON lines)
    log_file_path: str = "logs/calls.log"

    @field_validator("default_country_code", mode="before")
    @classmethod
    def validate_country_code(cls, v: str) -> str:
        """Ensure the country code carries a leading '+'."""
        v = (v or "").strip()
        if v and not v.startswith("+"):
            v = f"+{v}"
        return v

    @property
    def dynamodb_enabled(self) -> bool:
        return self.use_dynamodb and bool(self.dynamodb_table)

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins into a list; any origin is allowed when none are configured."""
        origins = [origin.strip() for origin in self.frontend_url.split(",") if origin.strip()]
        return origins or ["*"]


@lru_cache
def _get_settings_cached() -> Settings:
    return Settings()


def get_settings() -> Settings:
    # Tests change env vars through monkeypatch; never hand them a frozen instance.
    if os.environ.get("PYTEST_CURRENT_TEST"):
        return Settings()
    return _get_settings_cached()
