"""Request/response schemas for the intake and admin endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class EnquiryRequest(BaseModel):
    """Public call-back request.

    consent stays untyped so that only a literal JSON true is accepted;
    "true", 1 and similar values are rejected by the service.
    """

    model_config = ConfigDict(extra="ignore")

    name: str | None = Field(default=None, max_length=200)
    phone: str | int | None = None
    consent: Any = None


class EnquiryResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    lead_id: str = Field(serialization_alias="leadId")
    message: str


class LeadListResponse(BaseModel):
    ok: bool = True
    leads: list[dict[str, Any]]
