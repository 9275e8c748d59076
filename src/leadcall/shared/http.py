"""Helpers for reading provider requests."""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import parse_qsl

from fastapi import Request

from leadcall.shared.exceptions import ValidationError


def public_base_url(request: Request) -> str:
    """Scheme and host as the caller saw them, honouring proxy/tunnel forwarding headers."""
    proto = (request.headers.get("x-forwarded-proto") or request.url.scheme).strip()
    host = (request.headers.get("x-forwarded-host") or request.headers.get("host") or request.url.netloc).strip()
    return f"{proto}://{host}"


def public_url(request: Request) -> str:
    """Full public URL including the query string."""
    url = f"{public_base_url(request)}{request.url.path}"
    if request.url.query:
        url = f"{url}?{request.url.query}"
    return url


def decode_body(body: bytes, content_type: str) -> dict[str, Any]:
    """Decode a JSON or form-encoded body into a flat dict.

    Raises:
        ValidationError: The body claims to be JSON but does not parse.
    """
    if not body:
        return {}
    if "json" in content_type:
        try:
            data = json.loads(body)
        except ValueError as e:
            raise ValidationError("Invalid JSON body") from e
        return data if isinstance(data, dict) else {}
    return dict(parse_qsl(body.decode("utf-8", errors="replace"), keep_blank_values=True))


async def read_params(request: Request) -> dict[str, Any]:
    """Body parameters merged with query parameters (query wins)."""
    params = decode_body(await request.body(), request.headers.get("content-type", ""))
    params.update(dict(request.query_params))
    return params
