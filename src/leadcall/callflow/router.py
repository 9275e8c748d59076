"""
Static call-flow documents served to the voice providers.

Exotel fetches /callflow and Twilio fetches /twiml when a call connects.
The bodies are fixed placeholders for a real voice flow; every hit is
recorded in the call-event log.
"""

from __future__ import annotations

import json
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request, Response

from leadcall.context import AppContext, get_app_context
from leadcall.shared.http import public_base_url, read_params
from leadcall.shared.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["callflow"])

XML_MEDIA_TYPE = "application/xml"
SAY_ATTRS = 'voice="alice" language="en-IN"'


def _xml(body: str) -> str:
    return '<?xml version="1.0" encoding="UTF-8"?>\n<Response>\n' + body + "\n</Response>"


def _xml_escape(text: str) -> str:
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&apos;")
    )


def _custom_field(value: Any) -> dict[str, Any]:
    if isinstance(value, dict):
        return value
    if isinstance(value, str) and value:
        try:
            parsed = json.loads(value)
        except ValueError:
            return {}
        return parsed if isinstance(parsed, dict) else {}
    return {}


def _gather(action: str, prompt: str) -> str:
    return (
        f'  <Gather input="speech" language="en-IN" speechTimeout="auto" action="{_xml_escape(action)}" method="POST">\n'
        f"    <Say {SAY_ATTRS}>{_xml_escape(prompt)}</Say>\n"
        "  </Gather>"
    )


@router.api_route("/callflow", methods=["GET", "POST"])
async def exotel_callflow(
    request: Request,
    ctx: Annotated[AppContext, Depends(get_app_context)],
) -> Response:
    params = await read_params(request)
    context = _custom_field(params.get("CustomField"))

    await ctx.call_log.record(
        "callflow.request",
        method=request.method,
        callSid=params.get("CallSid"),
        **{"from": params.get("From")},
        to=params.get("To"),
        status=params.get("CallStatus"),
        leadId=context.get("leadId"),
    )

    greeting = ctx.telephony.agent_greeting
    return Response(
        content=_xml(f"  <Say>{_xml_escape(greeting)}</Say>\n  <Hangup/>"),
        media_type=XML_MEDIA_TYPE,
    )


@router.api_route("/twiml", methods=["GET", "POST"])
async def twilio_twiml(
    request: Request,
    ctx: Annotated[AppContext, Depends(get_app_context)],
) -> Response:
    params = await read_params(request)

    await ctx.call_log.record(
        "twiml.request",
        method=request.method,
        callSid=params.get("CallSid"),
        **{"from": params.get("From")},
        to=params.get("To"),
        status=params.get("CallStatus"),
        leadId=params.get("leadId"),
    )

    action = f"{public_base_url(request)}/twiml/gather"
    body = "\n".join(
        [
            f"  <Say {SAY_ATTRS}>{_xml_escape(ctx.telephony.agent_greeting)}</Say>",
            '  <Pause length="2"/>',
            _gather(action, "Please speak your response."),
            f"  <Say {SAY_ATTRS}>I didn't hear your response. Thank you for your time. Goodbye!</Say>",
            "  <Hangup/>",
        ]
    )
    return Response(content=_xml(body), media_type=XML_MEDIA_TYPE)


@router.post("/twiml/gather")
async def twilio_gather(
    request: Request,
    ctx: Annotated[AppContext, Depends(get_app_context)],
) -> Response:
    params = await read_params(request)
    speech = str(params.get("SpeechResult") or "").strip()

    await ctx.call_log.record(
        "twiml.gather",
        callSid=params.get("CallSid"),
        **{"from": params.get("From")},
        to=params.get("To"),
        speechResult=speech or None,
        confidence=params.get("Confidence"),
    )
    logger.info("Speech gathered", extra={"call_sid": params.get("CallSid"), "chars": len(speech)})

    action = f"{public_base_url(request)}/twiml/gather"
    body = "\n".join(
        [
            f"  <Say {SAY_ATTRS}>I heard you say: {_xml_escape(speech or 'nothing')}. Thank you for your response.</Say>",
            _gather(action, "Is there anything else I can help you with?"),
            f"  <Say {SAY_ATTRS}>Thank you for your time. Goodbye!</Say>",
            "  <Hangup/>",
        ]
    )
    return Response(content=_xml(body), media_type=XML_MEDIA_TYPE)
