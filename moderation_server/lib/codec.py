"""Envelope codec for the moderation wire format.

Payloads travel as base64 text wrapping UTF-8 JSON. Responses are always
wrapped in ``{"result": 1, "data": ...}`` before encoding.
"""

import base64
import binascii
import json
import logging
from typing import Any

logger = logging.getLogger(__name__)

ENVELOPE_RESULT = 1


def decode(blob: Any) -> Any | None:
    """
    Decode a base64 blob into a JSON value.

    Never raises. Any failure (not a string, bad base64, bad UTF-8, bad
    JSON) returns None, so callers cannot tell which stage failed.

    Args:
        blob: The encoded text received from the client

    Returns:
        The decoded value, or None on failure
    """
    if not isinstance(blob, str):
        logger.error(f"[DECODE ERROR] Expected a string, got {type(blob).__name__}")
        return None
    try:
        # Clients may drop trailing padding.
        raw = base64.b64decode(blob + "=" * (-len(blob) % 4))
        return json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        logger.error(f"[DECODE ERROR] {e}")
        return None


def encode(value: Any) -> str:
    """Serialize a value to compact JSON and base64 encode it."""
    text = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def wrap(data: Any) -> dict[str, Any]:
    """Wrap a payload in the response envelope."""
    return {"result": ENVELOPE_RESULT, "data": data}


def encode_response(data: Any) -> str:
    """Wrap a payload in the envelope and encode it."""
    return encode(wrap(data))
