"""
Lead persistence.

Keep import side-effects to a minimum: backends are imported lazily by
repository.build_lead_store() so boto3 is only loaded when DynamoDB is enabled.
"""

from leadcall.leads.models import Lead, LeadEvent, LeadStatus, LeadUpdate

__all__ = ["Lead", "LeadEvent", "LeadStatus", "LeadUpdate"]
