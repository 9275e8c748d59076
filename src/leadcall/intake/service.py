"""
Lead intake and retry.

enquire() validates the request before touching the store: an invalid
enquiry never creates a lead and never reaches the provider.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from leadcall.leads.models import Lead, LeadStatus, LeadUpdate
from leadcall.leads.repository import LeadStore
from leadcall.shared.exceptions import (
    LeadNotFoundError,
    ProviderTransportError,
    StorageError,
    ValidationError,
)
from leadcall.shared.logging import get_logger
from leadcall.shared.phone import normalize_phone
from leadcall.telephony.dispatcher import CallDispatcher
from leadcall.telephony.interface import CallContext, CallRequest

logger = get_logger(__name__)

QUEUED_MESSAGE = "Call queued. We will try to reach you in a few minutes."
RETRIED_MESSAGE = "Call retried successfully"
DISPATCH_FAILED_MESSAGE = "We could not start the call. Please try again shortly."


@dataclass(frozen=True)
class IntakeResult:
    lead_id: str
    message: str


class LeadIntakeService:
    """Creates leads and places their calls."""

    def __init__(
        self,
        store: LeadStore,
        dispatcher: CallDispatcher,
        webhook_url: str,
        default_country_code: str = "+91",
    ) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self._webhook_url = webhook_url
        self._default_country_code = default_country_code

    async def enquire(self, name: str | None, phone: Any, consent: Any) -> IntakeResult:
        """Validate, persist and dispatch a new call-back request.

        Raises:
            ValidationError: Missing phone, missing consent or invalid number.
            StorageError: The lead could not be saved.
            ProviderTransportError: The call could not be started.
        """
        if phone is None or str(phone).strip() == "":
            raise ValidationError("Phone number is required.")
        if consent is not True:
            raise ValidationError("Consent must be provided to receive a call.")

        normalized = normalize_phone(str(phone), self._default_country_code)
        if normalized is None:
            raise ValidationError("Please provide a valid phone number.")

        lead = Lead.new(phone=normalized, name=name)
        try:
            await self._store.create(lead)
        except StorageError as e:
            logger.exception("Failed to persist lead", extra={"lead_id": lead.lead_id})
            raise StorageError("Unable to save lead at this time.") from e

        logger.info("Lead created", extra={"lead_id": lead.lead_id})

        try:
            await self._place_call(lead)
        except Exception as e:
            raise ProviderTransportError(DISPATCH_FAILED_MESSAGE) from e

        return IntakeResult(lead_id=lead.lead_id, message=QUEUED_MESSAGE)

    async def retry(self, lead_id: str) -> IntakeResult:
        """Dispatch a new call for an existing lead.

        Raises:
            LeadNotFoundError: No such lead.
            ValidationError: The lead withdrew consent.
            ProviderTransportError: The call could not be started.
        """
        lead = await self._store.get_by_id(lead_id)
        if lead is None:
            raise LeadNotFoundError("Lead not found")
        if not lead.consent:
            raise ValidationError("Lead has withdrawn consent; not calling again.")

        try:
            await self._place_call(lead)
        except ProviderTransportError:
            raise
        except Exception as e:
            raise ProviderTransportError(str(e) or DISPATCH_FAILED_MESSAGE) from e

        logger.info("Call retried", extra={"lead_id": lead_id})
        return IntakeResult(lead_id=lead_id, message=RETRIED_MESSAGE)

    async def _place_call(self, lead: Lead) -> None:
        request = CallRequest(
            to=lead.phone,
            context=CallContext(lead_id=lead.lead_id, name=lead.name),
            webhook_url=self._webhook_url,
        )
        try:
            result = await self._dispatcher.dispatch(request)
        except Exception as e:
            logger.exception("Unable to trigger call", extra={"lead_id": lead.lead_id})
            await self._safe_update(
                lead.lead_id,
                LeadUpdate(status=LeadStatus.CALL_FAILED, error_message=str(e) or type(e).__name__),
            )
            raise

        await self._safe_update(
            lead.lead_id,
            LeadUpdate(status=LeadStatus.CALL_QUEUED, provider_call_id=result.call_id),
        )
        logger.info(
            "Call queued",
            extra={"lead_id": lead.lead_id, "provider_call_id": result.call_id},
        )

    async def _safe_update(self, lead_id: str, changes: LeadUpdate) -> None:
        # The call outcome is already decided; a failed status write is logged, not surfaced.
        try:
            await self._store.update(lead_id, changes)
        except StorageError:
            logger.exception("Failed to update lead status", extra={"lead_id": lead_id})
