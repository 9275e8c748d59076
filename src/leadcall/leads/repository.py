"""
Lead store contract and backend selection.

Both backends satisfy the same contract:
- create() is a conditional write and raises DuplicateLeadError instead of overwriting
- update() merges only the supplied fields and raises LeadNotFoundError when absent
- append_event() only ever grows the events list
"""

from __future__ import annotations

from typing import Protocol

from leadcall.config import Settings
from leadcall.leads.models import Lead, LeadEvent, LeadUpdate
from leadcall.shared.logging import get_logger

logger = get_logger(__name__)


class LeadStore(Protocol):
    """Persistence operations for leads."""

    async def initialize(self) -> None:
        """Prepare the backend (idempotent)."""
        ...

    async def create(self, lead: Lead) -> Lead:
        """Persist a new lead."""
        ...

    async def update(self, lead_id: str, changes: LeadUpdate) -> Lead:
        """Merge the supplied fields into an existing lead."""
        ...

    async def append_event(self, lead_id: str, event: LeadEvent) -> LeadEvent:
        """Append one event to the lead's history."""
        ...

    async def list_leads(self) -> list[Lead]:
        """All leads, newest first."""
        ...

    async def get_by_id(self, lead_id: str) -> Lead | None:
        """Get a lead by id."""
        ...


def sort_newest_first(leads: list[Lead]) -> list[Lead]:
    return sorted(leads, key=lambda lead: lead.created_at, reverse=True)


def build_lead_store(settings: Settings) -> LeadStore:
    """Create the store selected by configuration."""
    if settings.dynamodb_enabled:
        from leadcall.leads.dynamodb import DynamoLeadStore

        logger.info(
            "Using DynamoDB lead store",
            extra={"table": settings.dynamodb_table, "region": settings.aws_region},
        )
        return DynamoLeadStore.from_settings(settings)

    from leadcall.leads.file_store import JsonFileLeadStore

    logger.info("Using JSON file lead store", extra={"path": settings.leads_file_path})
    return JsonFileLeadStore(settings.leads_file_path)
