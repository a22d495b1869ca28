"""Shared dependencies and response helpers for moderation routes."""

import json
import logging
from typing import Any
from urllib.parse import parse_qs

from fastapi import Request
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from moderation_server.lib.codec import decode, encode_response
from moderation_server.lib.exceptions import DecodeError
from moderation_server.lib.models import ModerationRequest
from moderation_server.lib.store import ModerationStore

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class EnvelopeResponse(PlainTextResponse):
    """Encoded envelope body; always HTTP 200."""

    def __init__(self, data: Any, status_code: int = 200, **kwargs: Any):
        super().__init__(encode_response(data), status_code=status_code, **kwargs)


def get_store(request: Request) -> ModerationStore:
    """The store owned by the running application."""
    return request.app.state.store


async def _read_data_field(request: Request) -> Any:
    """Pull the ``data`` field from a JSON or form-encoded body."""
    body = await request.body()
    content_type = request.headers.get("content-type", "")

    if content_type.startswith(FORM_CONTENT_TYPE):
        values = parse_qs(body.decode("utf-8", errors="replace")).get("data")
        return values[0] if values else None

    try:
        parsed = json.loads(body) if body else None
    except (UnicodeDecodeError, ValueError):
        return None
    return parsed.get("data") if isinstance(parsed, dict) else None


async def get_moderation_request(request: Request) -> ModerationRequest:
    """
    Decode and validate the payload of a mutating request.

    Raises:
        DecodeError: If the body, the encoding or the payload shape is bad
    """
    payload = decode(await _read_data_field(request))
    if not isinstance(payload, dict):
        logger.warning(f"[{request.url.path}] Failed to decode data")
        raise DecodeError()

    try:
        return ModerationRequest.model_validate(payload)
    except ValidationError as e:
        logger.warning(f"[{request.url.path}] Invalid payload: {e.error_count()} errors")
        raise DecodeError(details={"errors": e.error_count()})
