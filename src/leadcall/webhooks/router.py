"""
FastAPI router for provider status callbacks.

Providers send either JSON (agent API) or form-encoded bodies (Exotel,
Twilio), sometimes with the lead id in the query string. The body is read
raw first so signature checks see exactly the bytes the provider signed. A
body that does not decode is treated as empty; the signature is still checked
before anything else, and an unsigned or unknown callback never reaches storage.
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request, status

from leadcall.context import AppContext, get_app_context
from leadcall.shared.exceptions import UnknownLeadReference, ValidationError
from leadcall.shared.http import decode_body, public_url
from leadcall.shared.logging import get_logger
from leadcall.telephony.interface import WebhookRequest
from leadcall.webhooks.handler import WebhookHandler

logger = get_logger(__name__)

router = APIRouter(tags=["webhooks"])


def get_webhook_handler(ctx: Annotated[AppContext, Depends(get_app_context)]) -> WebhookHandler:
    return WebhookHandler(provider=ctx.provider, store=ctx.store, call_log=ctx.call_log)


@router.post("/webhook", status_code=status.HTTP_200_OK)
async def receive_webhook(
    request: Request,
    handler: Annotated[WebhookHandler, Depends(get_webhook_handler)],
) -> dict[str, Any]:
    body = await request.body()
    try:
        payload = decode_body(body, request.headers.get("content-type", ""))
    except ValidationError:
        # Undecodable bodies still go through signature verification first.
        logger.info("Webhook body could not be decoded", extra={"content_length": len(body)})
        payload = {}
    payload.update(dict(request.query_params))

    webhook_request = WebhookRequest(
        url=public_url(request),
        headers={k.lower(): v for k, v in request.headers.items()},
        body=body,
        params=payload,
    )

    try:
        await handler.handle(webhook_request, payload)
    except UnknownLeadReference as e:
        logger.info("Webhook acknowledged without changes", extra={"reason": str(e)})

    return {"ok": True}
