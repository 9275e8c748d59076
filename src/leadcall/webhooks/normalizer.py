"""
Provider callback normalization.

Maps each provider's status vocabulary onto internal event types, and
internal event types onto lead status changes. Unmapped raw values pass
through verbatim as the event type.
"""

from __future__ import annotations

import json
from typing import Any, Mapping

from leadcall.leads.models import LeadStatus, LeadUpdate

TRANSCRIPTION_MAX_CHARS = 2000

CONSENT_WITHDRAWN = "consent_withdrawn"

EVENT_TYPE_MAP: dict[str, str] = {
    "queued": "call.created",
    "initiated": "call.created",
    "ringing": "call.ringing",
    "in-progress": "call.answered",
    "completed": "call.completed",
    "failed": "call.failed",
    "busy": "call.busy",
    "no-answer": "call.no_answer",
    "canceled": "call.canceled",
}

STATUS_MAP: dict[str, LeadStatus] = {
    "created": LeadStatus.CALL_CREATED,
    "call.created": LeadStatus.CALL_CREATED,
    "call.ringing": LeadStatus.RINGING,
    "answered": LeadStatus.IN_PROGRESS,
    "call.answered": LeadStatus.IN_PROGRESS,
    "in-progress": LeadStatus.IN_PROGRESS,
    "completed": LeadStatus.COMPLETED,
    "call.completed": LeadStatus.COMPLETED,
    "failed": LeadStatus.FAILED,
    "call.failed": LeadStatus.FAILED,
    "call.busy": LeadStatus.BUSY,
    "call.no_answer": LeadStatus.NO_ANSWER,
    "call.canceled": LeadStatus.CANCELED,
    CONSENT_WITHDRAWN: LeadStatus.DNC,
}


def _as_dict(value: Any) -> dict[str, Any]:
    if isinstance(value, dict):
        return value
    if isinstance(value, str) and value.strip():
        try:
            parsed = json.loads(value)
        except ValueError:
            return {}
        return parsed if isinstance(parsed, dict) else {}
    return {}


def _first(*values: Any) -> Any:
    return next((v for v in values if v not in (None, "")), None)


def extract_lead_id(payload: Mapping[str, Any]) -> str | None:
    """Find the lead id: context.leadId, leadId, or the JSON CustomField."""
    lead_id = _first(
        _as_dict(payload.get("context")).get("leadId"),
        payload.get("leadId"),
        _as_dict(payload.get("CustomField")).get("leadId"),
    )
    return str(lead_id) if lead_id is not None else None


def extract_raw_status(payload: Mapping[str, Any]) -> str:
    value = _first(payload.get("CallStatus"), payload.get("Status"), payload.get("event"), payload.get("type"))
    return str(value) if value is not None else "unknown"


def normalize_event_type(raw_status: str) -> str:
    return EVENT_TYPE_MAP.get(raw_status.lower(), raw_status or "unknown")


def derive_updates(event_type: str, payload: Mapping[str, Any]) -> LeadUpdate:
    """Derive the partial lead update implied by one callback."""
    changes: dict[str, Any] = {}

    status = STATUS_MAP.get(event_type)
    if status is not None:
        changes["status"] = status

    transcription = payload.get("transcription")
    if isinstance(transcription, dict):
        transcription = transcription.get("text")
    transcription = _first(
        payload.get("Transcription"),
        transcription,
        payload.get("transcript"),
        payload.get("CallTranscript"),
        payload.get("summary"),
    )
    if transcription:
        changes["transcription"] = str(transcription)[:TRANSCRIPTION_MAX_CHARS]

    provider_call_id = _first(payload.get("CallSid"), payload.get("Sid"), payload.get("call_id"))
    if provider_call_id:
        changes["provider_call_id"] = str(provider_call_id)

    recording_url = _first(payload.get("RecordingUrl"), payload.get("Recording"), payload.get("recordingUrl"))
    if recording_url:
        changes["recording_url"] = str(recording_url)

    duration = _first(payload.get("Duration"), payload.get("CallDuration"))
    if duration is not None:
        changes["call_duration"] = str(duration)

    interested_contact = _first(
        _as_dict(payload.get("metadata")).get("interested_contact"),
        _as_dict(payload.get("context")).get("interested_contact"),
        _as_dict(payload.get("notes")).get("contact_details"),
    )
    if interested_contact:
        changes["interested_contact"] = interested_contact

    if event_type == CONSENT_WITHDRAWN:
        changes["consent"] = False
        changes["status"] = LeadStatus.DNC

    return LeadUpdate(**changes)
