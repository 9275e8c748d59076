"""
Webhook event handler for provider callbacks.

Processing order:
1. verify the signature (SignatureError, nothing is written)
2. resolve the lead id (unknown → acknowledged, nothing is written)
3. normalize the raw status into an event type
4. append the event to the lead's history (always, even without a status change)
5. apply the derived field update; a dnc lead keeps its status

Deliveries carry no idempotency key: a provider redelivery appends the event
again and re-applies the update.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from leadcall.leads.models import LeadEvent, LeadStatus
from leadcall.leads.repository import LeadStore
from leadcall.shared.exceptions import LeadNotFoundError, SignatureError, StorageError, UnknownLeadReference
from leadcall.shared.logging import get_logger
from leadcall.telephony.call_log import CallEventLog
from leadcall.telephony.interface import CallProvider, WebhookRequest
from leadcall.webhooks.normalizer import (
    CONSENT_WITHDRAWN,
    derive_updates,
    extract_lead_id,
    extract_raw_status,
    normalize_event_type,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class WebhookOutcome:
    lead_id: str
    event_type: str
    status_changed: bool


class WebhookHandler:
    """Reconciles provider callbacks into lead records."""

    def __init__(self, provider: CallProvider, store: LeadStore, call_log: CallEventLog) -> None:
        self._provider = provider
        self._store = store
        self._call_log = call_log

    async def handle(self, request: WebhookRequest, payload: Mapping[str, Any]) -> WebhookOutcome:
        """Process one callback.

        Args:
            request: Raw request data used for signature verification.
            payload: Decoded callback parameters (body merged with query).

        Raises:
            SignatureError: The signature did not verify.
            UnknownLeadReference: The callback does not reference a lead on file.
            StorageError: The event could not be recorded.
        """
        if not self._provider.verify_webhook_signature(request):
            logger.warning("Rejected webhook with invalid signature", extra={"provider": self._provider.name})
            raise SignatureError("Invalid webhook signature.")

        payload = dict(payload)
        lead_id = extract_lead_id(payload)
        if not lead_id:
            await self._call_log.record("webhook.unknownLead", payload=payload)
            logger.info("Webhook without lead reference acknowledged", extra={"provider": self._provider.name})
            raise UnknownLeadReference("Webhook does not reference a lead")

        event_type = normalize_event_type(extract_raw_status(payload))

        try:
            await self._store.append_event(lead_id, LeadEvent(event_type=event_type, payload=payload))
        except LeadNotFoundError as e:
            await self._call_log.record("webhook.unknownLead", leadId=lead_id, payload=payload)
            logger.info("Webhook for unknown lead acknowledged", extra={"lead_id": lead_id})
            raise UnknownLeadReference(f"Lead {lead_id} not found") from e

        changes = derive_updates(event_type, payload)
        if changes.status is not None and event_type != CONSENT_WITHDRAWN:
            lead = await self._store.get_by_id(lead_id)
            if lead is not None and lead.status == LeadStatus.DNC:
                # dnc is terminal; later call events keep their details but not their status.
                logger.info(
                    "Status change skipped for do-not-call lead",
                    extra={"lead_id": lead_id, "event_type": event_type},
                )
                changes = changes.model_copy(update={"status": None})
        status_changed = changes.status is not None
        try:
            await self._store.update(lead_id, changes)
        except StorageError:
            # The event is already on file; acknowledge so the provider does not redeliver.
            logger.exception("Failed to update lead from webhook", extra={"lead_id": lead_id})
            status_changed = False

        await self._call_log.record("webhook.event", leadId=lead_id, eventType=event_type)
        logger.info(
            "Webhook processed",
            extra={"lead_id": lead_id, "event_type": event_type, "status": changes.status},
        )
        return WebhookOutcome(lead_id=lead_id, event_type=event_type, status_changed=status_changed)
