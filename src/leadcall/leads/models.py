"""
Lead domain models.

Records are stored and served in camelCase (leadId, createdAt, ...); Python
code uses the snake_case attribute names.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LeadStatus(str, Enum):
    """Lead lifecycle status."""

    QUEUED = "queued"
    CALL_QUEUED = "call_queued"
    CALL_FAILED = "call_failed"
    CALL_CREATED = "call_created"
    RINGING = "ringing"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    BUSY = "busy"
    NO_ANSWER = "no_answer"
    CANCELED = "canceled"
    DNC = "dnc"


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_record(self) -> dict[str, Any]:
        """Serialize to the persisted/wire shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class LeadEvent(_CamelModel):
    """One provider callback as recorded in a lead's history."""

    received_at: datetime = Field(default_factory=utcnow)
    event_type: str
    payload: dict[str, Any] = Field(default_factory=dict)


class Lead(_CamelModel):
    """A customer's call request and its full lifecycle record."""

    lead_id: str = Field(default_factory=lambda: str(uuid4()))
    name: str = "Guest"
    phone: str
    consent: bool = False
    consent_timestamp: datetime | None = None
    status: LeadStatus = LeadStatus.QUEUED
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    events: list[LeadEvent] = Field(default_factory=list)

    provider_call_id: str | None = None
    transcription: str | None = None
    recording_url: str | None = None
    call_duration: str | None = None
    error_message: str | None = None
    interested_contact: Any = None

    @classmethod
    def new(cls, phone: str, name: str | None = None) -> "Lead":
        """Create a freshly consented lead in the queued state."""
        now = utcnow()
        return cls(
            name=(name or "").strip() or "Guest",
            phone=phone,
            consent=True,
            consent_timestamp=now,
            status=LeadStatus.QUEUED,
            created_at=now,
            updated_at=now,
        )


class LeadUpdate(_CamelModel):
    """Typed partial update. Only fields that are set get written."""

    status: LeadStatus | None = None
    consent: bool | None = None
    provider_call_id: str | None = None
    transcription: str | None = None
    recording_url: str | None = None
    call_duration: str | None = None
    error_message: str | None = None
    interested_contact: Any = None
    updated_at: datetime | None = None

    def fields(self) -> dict[str, Any]:
        """Return the supplied fields keyed by their stored (camelCase) names."""
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude_unset=True,
            exclude_none=True,
        )

    def stamped(self) -> "LeadUpdate":
        """Return a copy carrying updated_at, keeping an explicit value if given."""
        if self.updated_at is not None:
            return self
        return self.model_copy(update={"updated_at": utcnow()})

    def is_empty(self) -> bool:
        return not self.fields()
