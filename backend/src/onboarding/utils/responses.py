"""Shared API Gateway response utilities for Lambda handlers."""

from __future__ import annotations

import json
import os
from typing import Any
from typing import Mapping
from typing import Optional

from pydantic import BaseModel

from onboarding.exceptions import AppError


def get_security_headers() -> dict[str, str]:
    """Get security headers for all responses."""
    return {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Cache-Control": "no-store, no-cache, must-revalidate",
        "Pragma": "no-cache",
    }


def get_cors_headers(
    event: Optional[Mapping[str, Any]] = None,
) -> dict[str, str]:
    """Get CORS headers for the response.

    The onboarding web client is served from a different origin than the
    API, so any origin is allowed unless CORS_ALLOWED_ORIGINS narrows it.
    """
    allowed_origins_env = os.getenv("CORS_ALLOWED_ORIGINS", "")
    allowed_origins = [
        origin.strip() for origin in allowed_origins_env.split(",") if origin.strip()
    ]

    allow_origin = "*"
    if allowed_origins:
        request_origin = None
        if event:
            headers = event.get("headers") or {}
            request_origin = headers.get("origin") or headers.get("Origin")
        if request_origin and request_origin in allowed_origins:
            allow_origin = request_origin
        else:
            allow_origin = allowed_origins[0]

    return {"Access-Control-Allow-Origin": allow_origin}


def json_response(
    status_code: int,
    body: Any,
    headers: Optional[dict[str, str]] = None,
    event: Optional[Mapping[str, Any]] = None,
) -> dict[str, Any]:
    """Create a JSON API Gateway proxy response.

    Args:
        status_code: HTTP status code.
        body: Response body (dict, list or Pydantic model).
        headers: Optional additional headers to include.
        event: Optional Lambda event for CORS origin detection.
    """
    response_headers = {
        "Content-Type": "application/json",
    }
    response_headers.update(get_security_headers())
    response_headers.update(get_cors_headers(event))
    if headers:
        response_headers.update(headers)

    return {
        "statusCode": status_code,
        "headers": response_headers,
        "body": json.dumps(_serialize_body(body), default=str),
    }


def empty_response(
    status_code: int = 200,
    event: Optional[Mapping[str, Any]] = None,
) -> dict[str, Any]:
    """Create a bodiless response, used to answer warmup pings."""
    response_headers = get_security_headers()
    response_headers.update(get_cors_headers(event))
    return {
        "statusCode": status_code,
        "headers": response_headers,
        "body": "",
    }


def error_response(
    status_code: int,
    message: str,
    detail: Optional[str] = None,
    event: Optional[Mapping[str, Any]] = None,
) -> dict[str, Any]:
    """Create an error response with a ``message`` body."""
    body: dict[str, Any] = {"message": message}
    if detail:
        body["detail"] = detail
    return json_response(status_code, body, event=event)


def app_error_response(
    exc: AppError,
    event: Optional[Mapping[str, Any]] = None,
) -> dict[str, Any]:
    """Convert an application error into its API response."""
    return json_response(exc.status_code, exc.to_dict(), event=event)


def _serialize_body(body: Any) -> Any:
    if isinstance(body, BaseModel):
        return body.model_dump(by_alias=True, exclude_none=True)
    if isinstance(body, list):
        return [_serialize_body(item) for item in body]
    return body
