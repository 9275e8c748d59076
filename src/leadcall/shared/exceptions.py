"""
Shared exception taxonomy.

Every AppError carries the HTTP status it maps to; main.py installs a single
handler rendering them as {"ok": false, "error": ...}.
"""

from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base application error."""

    status_code: int = 500

    def __init__(
        self,
        message: str = "Application error",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class ValidationError(AppError):
    """Malformed or missing input. Never retried."""

    status_code = 400


class AuthenticationError(AppError):
    status_code = 401


class RateLimitExceeded(AppError):
    status_code = 429


class ConfigurationError(AppError):
    """Required server-side configuration is missing."""

    status_code = 500


class ProviderTransportError(AppError):
    """Network or HTTP failure while calling a voice provider."""

    status_code = 502

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        provider_response: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.provider_response = provider_response or {}


class SignatureError(AppError):
    """Inbound webhook signature did not verify."""

    status_code = 401


class UnknownLeadReference(AppError):
    """Webhook references a lead that is not on file.

    Acknowledged with 200 so providers do not retry the delivery.
    """

    status_code = 200


class StorageError(AppError):
    """Persistence backend failure."""

    status_code = 500


class LeadNotFoundError(StorageError):
    status_code = 404


class DuplicateLeadError(StorageError):
    status_code = 409
