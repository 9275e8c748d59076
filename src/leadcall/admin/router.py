"""
Admin API: list leads and retry failed calls.

Guarded by a static bearer token (ADMIN_TOKEN). Without a configured token
every admin request fails with 500 rather than running unauthenticated.
"""

from __future__ import annotations

import hmac
from typing import Annotated

from fastapi import APIRouter, Depends, Header

from leadcall.context import AppContext, get_app_context
from leadcall.intake.router import get_intake_service
from leadcall.intake.schemas import EnquiryResponse, LeadListResponse
from leadcall.intake.service import LeadIntakeService
from leadcall.shared.exceptions import AuthenticationError, ConfigurationError
from leadcall.shared.logging import get_logger

logger = get_logger(__name__)


def require_admin(
    ctx: Annotated[AppContext, Depends(get_app_context)],
    authorization: Annotated[str | None, Header()] = None,
) -> None:
    expected = ctx.settings.admin_token
    if not expected:
        raise ConfigurationError("ADMIN_TOKEN not set")

    scheme, _, token = (authorization or "").strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Unauthorized")
    if not hmac.compare_digest(token.strip().encode("utf-8"), expected.encode("utf-8")):
        logger.warning("Rejected admin request with invalid token")
        raise AuthenticationError("Unauthorized")


router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/leads", response_model=LeadListResponse)
async def list_leads(ctx: Annotated[AppContext, Depends(get_app_context)]) -> LeadListResponse:
    leads = await ctx.store.list_leads()
    return LeadListResponse(leads=[lead.to_record() for lead in leads])


@router.post("/retry/{lead_id}", response_model=EnquiryResponse, response_model_by_alias=True)
async def retry_call(
    lead_id: str,
    service: Annotated[LeadIntakeService, Depends(get_intake_service)],
) -> EnquiryResponse:
    result = await service.retry(lead_id)
    return EnquiryResponse(lead_id=result.lead_id, message=result.message)
