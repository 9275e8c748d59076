"""
FastAPI router for the public call-back form.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from leadcall.context import AppContext, get_app_context
from leadcall.intake.schemas import EnquiryRequest, EnquiryResponse
from leadcall.intake.service import LeadIntakeService
from leadcall.shared.exceptions import RateLimitExceeded

router = APIRouter(tags=["intake"])


def _client_key(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def get_intake_service(ctx: Annotated[AppContext, Depends(get_app_context)]) -> LeadIntakeService:
    return LeadIntakeService(
        store=ctx.store,
        dispatcher=ctx.dispatcher,
        webhook_url=ctx.telephony.get_webhook_url(),
        default_country_code=ctx.settings.default_country_code,
    )


async def enforce_rate_limit(
    request: Request,
    ctx: Annotated[AppContext, Depends(get_app_context)],
) -> None:
    if not await ctx.rate_limiter.check(_client_key(request)):
        raise RateLimitExceeded(
            "Too many requests. Please try again later.",
            details={
                "max_requests": ctx.settings.rate_limit_max,
                "window_seconds": ctx.settings.rate_limit_window_seconds,
            },
        )


@router.post(
    "/enquire",
    response_model=EnquiryResponse,
    response_model_by_alias=True,
    dependencies=[Depends(enforce_rate_limit)],
)
async def enquire(
    body: EnquiryRequest,
    service: Annotated[LeadIntakeService, Depends(get_intake_service)],
) -> EnquiryResponse:
    result = await service.enquire(name=body.name, phone=body.phone, consent=body.consent)
    return EnquiryResponse(lead_id=result.lead_id, message=result.message)
