"""Request parsing helpers for the API Gateway handlers."""

from __future__ import annotations

import base64
import json
from typing import Any, Mapping, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from onboarding.exceptions import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)

INVALID_BODY_MESSAGE = "request body invalid"


def parse_body(event: Mapping[str, Any]) -> Any:
    """Parse the JSON request body, or return None when it is empty."""
    raw = event.get("body") or ""
    if event.get("isBase64Encoded") and raw:
        try:
            raw = base64.b64decode(raw, validate=True).decode("utf-8")
        except (ValueError, UnicodeDecodeError) as exc:
            raise ValidationError(INVALID_BODY_MESSAGE) from exc
    if not raw:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValidationError(INVALID_BODY_MESSAGE) from exc


def parse_model(event: Mapping[str, Any], model: Type[ModelT]) -> ModelT:
    """Parse the request body into ``model``.

    Raises:
        ValidationError: If the body is missing, not an object, or does
            not satisfy the model.
    """
    body = parse_body(event)
    if not isinstance(body, dict) or not body:
        raise ValidationError(INVALID_BODY_MESSAGE)
    try:
        return model.model_validate(body)
    except PydanticValidationError as exc:
        field = ".".join(str(part) for part in exc.errors()[0]["loc"]) or None
        raise ValidationError(INVALID_BODY_MESSAGE, field=field) from exc


def parse_path(path: str) -> Tuple[str, Optional[str], Optional[str]]:
    """Split a request path into (resource, resource_id, sub_resource).

    An optional stage or version prefix such as ``/v1`` is ignored, so
    ``/v1/tenants/abc/database`` gives ``("tenants", "abc", "database")``.
    """
    parts = [segment for segment in path.split("/") if segment]
    parts = _strip_version_prefix(parts)

    if not parts:
        return "", None, None

    resource = parts[0]
    resource_id = parts[1] if len(parts) > 1 else None
    sub_resource = parts[2] if len(parts) > 2 else None
    return resource, resource_id, sub_resource


def _strip_version_prefix(parts: list[str]) -> list[str]:
    if parts and _is_version_segment(parts[0]):
        return parts[1:]
    return parts


def _is_version_segment(segment: str) -> bool:
    return segment.startswith("v") and segment[1:].isdigit()
