"""Reporting custom resource outcomes back to CloudFormation.

CloudFormation hands every custom resource request a pre-signed S3 URL
and waits for a JSON document to be PUT there. Only HTTPS URLs on
amazonaws.com hosts are accepted.
"""

from __future__ import annotations

import json
import ssl
import urllib.error
import urllib.request
from typing import Any
from typing import Mapping
from urllib.parse import urlparse

from onboarding.utils.logging import get_logger

logger = get_logger(__name__)

SUCCESS = "SUCCESS"
FAILED = "FAILED"

MAX_REASON_LENGTH = 256
DEFAULT_PHYSICAL_ID = "custom-resource"
TRUSTED_HOST_SUFFIXES = (".amazonaws.com", ".amazonaws.com.cn")


def send_cfn_response(
    event: Mapping[str, Any],
    context: Any,
    status: str,
    data: Mapping[str, Any] | None = None,
    physical_resource_id: str | None = None,
    reason: str | None = None,
) -> None:
    """PUT the custom resource result to the event's ResponseURL.

    Raises:
        ValueError: If the status is unknown or the URL is missing or
            untrusted.
        urllib.error.URLError: If the upload fails.
    """
    if status not in (SUCCESS, FAILED):
        raise ValueError(f"Unknown custom resource status {status}")
    response_url = _trusted_response_url(event)

    document = build_response_body(
        event, context, status, data, physical_resource_id, reason
    )
    payload = json.dumps(document).encode("utf-8")
    log_extra = {
        "status": status,
        "logical_resource_id": document["LogicalResourceId"],
        "physical_resource_id": document["PhysicalResourceId"],
    }

    # S3 pre-signed URLs are signed without a content type
    request = urllib.request.Request(
        response_url,
        data=payload,
        method="PUT",
        headers={"Content-Type": "", "Content-Length": str(len(payload))},
    )
    try:
        with urllib.request.urlopen(
            request, context=ssl.create_default_context()
        ) as response:
            response.read()
            log_extra["http_status"] = response.status
    except urllib.error.URLError:
        logger.error(
            "Failed to send CloudFormation response",
            extra=log_extra,
            exc_info=True,
        )
        raise
    logger.info("Sent CloudFormation response", extra=log_extra)


def build_response_body(
    event: Mapping[str, Any],
    context: Any,
    status: str,
    data: Mapping[str, Any] | None = None,
    physical_resource_id: str | None = None,
    reason: str | None = None,
) -> dict[str, Any]:
    """Build the JSON document CloudFormation expects at the ResponseURL.

    A missing physical id falls back to the Lambda log stream, and a
    missing reason points at it, so failures can be traced from the
    stack events.
    """
    log_stream = _log_stream(context)
    if not reason:
        reason = f"See CloudWatch Logs: {log_stream}" if log_stream else "See logs"
    return {
        "Status": status,
        "Reason": reason[:MAX_REASON_LENGTH],
        "PhysicalResourceId": physical_resource_id or log_stream or DEFAULT_PHYSICAL_ID,
        "StackId": event.get("StackId", ""),
        "RequestId": event.get("RequestId", ""),
        "LogicalResourceId": event.get("LogicalResourceId", ""),
        "Data": dict(data or {}),
    }


def _log_stream(context: Any) -> str:
    if context is None:
        return ""
    return str(getattr(context, "log_stream_name", "") or "")


def _trusted_response_url(event: Mapping[str, Any]) -> str:
    url = str(event.get("ResponseURL") or "").strip()
    if not url:
        raise ValueError("Missing ResponseURL in CloudFormation event")
    parsed = urlparse(url)
    if parsed.scheme != "https":
        raise ValueError("CloudFormation ResponseURL must use https")
    hostname = parsed.hostname or ""
    if not hostname.endswith(TRUSTED_HOST_SUFFIXES):
        raise ValueError(f"CloudFormation ResponseURL host is not trusted: {hostname!r}")
    return url
