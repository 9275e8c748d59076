"""
Call provider interface definition.

A provider places an outbound call and authenticates the callbacks it sends
back. Each concrete variant differs in payload shape, auth and signature
scheme; callers only see this interface.
"""

from __future__ import annotations

import hashlib
import hmac
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Mapping


@dataclass(frozen=True)
class CallContext:
    """Lead context carried through the provider and back in callbacks."""

    lead_id: str
    name: str = ""

    def as_dict(self) -> dict[str, str]:
        return {"leadId": self.lead_id, "name": self.name}


@dataclass(frozen=True)
class CallRequest:
    """Request to place an outbound call."""

    to: str
    context: CallContext
    webhook_url: str
    from_number: str | None = None


@dataclass(frozen=True)
class CallResult:
    """Normalized result of a successful call creation."""

    call_id: str | None
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class WebhookRequest:
    """Inbound callback as seen by signature verification.

    Attributes:
        url: Full public URL the provider requested, including query string.
        headers: Header names lower-cased.
        body: Raw request body bytes.
        params: Decoded body parameters merged with query parameters.
    """

    url: str
    headers: Mapping[str, str]
    body: bytes
    params: Mapping[str, Any] = field(default_factory=dict)

    def header(self, *names: str) -> str | None:
        for name in names:
            value = self.headers.get(name.lower())
            if value:
                return value
        return None


class CallProvider(ABC):
    """Abstract interface for voice providers."""

    name: str = "provider"

    @abstractmethod
    async def create_call(self, request: CallRequest) -> CallResult:
        """Place one outbound call.

        Raises:
            ConfigurationError: Required configuration is missing.
            ProviderTransportError: The provider could not be reached or refused the call.
        """
        ...

    @abstractmethod
    def verify_webhook_signature(self, request: WebhookRequest) -> bool:
        """Return True when the callback is authentic."""
        ...

    async def aclose(self) -> None:
        """Release network resources."""


def verify_hex_hmac_sha256(secret: str, body: bytes, signature_header: str) -> bool:
    """Check a hex HMAC-SHA256 of the raw body, accepting an optional 'sha256=' prefix."""
    _, _, value = signature_header.rpartition("=")
    try:
        actual = bytes.fromhex(value.strip())
    except ValueError:
        return False
    expected = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    return hmac.compare_digest(actual, expected)
