"""Detection of scheduled warmup pings."""

from __future__ import annotations

import base64
import json
from typing import Any
from typing import Mapping

WARMUP_SOURCE = "warmup"


def is_warmup(event: Mapping[str, Any]) -> bool:
    """Return True when the invocation is a keep-warm ping.

    A ping is recognised from a direct invocation (``{"source": "warmup"}``),
    an API Gateway request to ``<uri>?source=warmup``, or a JSON object body
    containing ``"source": "warmup"``. Arrays and malformed bodies are not
    pings.
    """
    if event.get("source") == WARMUP_SOURCE:
        return True

    query_params = event.get("queryStringParameters") or {}
    if query_params.get("source") == WARMUP_SOURCE:
        return True

    raw = event.get("body")
    if not raw or not isinstance(raw, str):
        return False
    if event.get("isBase64Encoded"):
        try:
            raw = base64.b64decode(raw).decode("utf-8")
        except (ValueError, UnicodeDecodeError):
            return False
    try:
        body = json.loads(raw)
    except json.JSONDecodeError:
        return False
    return isinstance(body, dict) and body.get("source") == WARMUP_SOURCE
