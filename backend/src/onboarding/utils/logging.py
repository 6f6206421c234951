"""Structured logging utilities for the onboarding Lambdas.

Every record is written to stdout as a single JSON object so it can be
queried with CloudWatch Logs Insights.

SECURITY NOTES:
- Use mask_email() when logging email addresses
- Never log passwords, tokens, temporary passwords or secret values
- Custom resource events are logged without their pre-signed ResponseURL
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import sys
import traceback
from contextvars import ContextVar
from datetime import datetime
from datetime import timezone
from typing import Any
from typing import Mapping
from typing import MutableMapping
from typing import Optional


def mask_email(email: str) -> str:
    """Mask an email address for safe logging.

    Examples:
        >>> mask_email("john.doe@example.com")
        'jo***@***.com'
        >>> mask_email("a@b.co")
        'a***@***.co'
    """
    if not email or "@" not in email:
        return "***"

    local, domain = email.rsplit("@", 1)
    domain_parts = domain.rsplit(".", 1)

    visible_local = local[:2] if len(local) > 2 else local[:1]
    tld = domain_parts[-1] if len(domain_parts) > 1 else ""

    return f"{visible_local}***@***.{tld}" if tld else f"{visible_local}***@***"


def hash_for_correlation(value: str) -> str:
    """Generate a short hash for log correlation without exposing PII."""
    return hashlib.sha256(value.encode()).hexdigest()[:12]


request_id: ContextVar[str] = ContextVar("request_id", default="")
tenant_id: ContextVar[str] = ContextVar("tenant_id", default="")


class StructuredLogFormatter(logging.Formatter):
    """JSON formatter producing CloudWatch Logs Insights friendly entries."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        req_id = request_id.get()
        if req_id:
            log_data["request_id"] = req_id

        current_tenant = tenant_id.get()
        if current_tenant:
            log_data["tenant_id"] = current_tenant

        if record.levelno >= logging.WARNING:
            log_data["source"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info),
            }

        if hasattr(record, "extra") and isinstance(record.extra, dict):
            log_data["extra"] = record.extra

        return json.dumps(log_data, default=str)


class ContextLogger(logging.LoggerAdapter):
    """Logger adapter that nests keyword context under ``extra``."""

    def process(
        self,
        msg: str,
        kwargs: MutableMapping[str, Any],
    ) -> tuple[str, MutableMapping[str, Any]]:
        extra = dict(self.extra or {})
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = {"extra": extra} if extra else {}
        return msg, kwargs


def configure_logging(level: Optional[str] = None) -> None:
    """Configure structured logging for Lambda execution.

    Args:
        level: Log level name. Defaults to LOG_LEVEL or INFO.
    """
    log_level: str = level or os.getenv("LOG_LEVEL") or "INFO"

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredLogFormatter())
    root_logger.addHandler(handler)

    logging.getLogger("boto3").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("psycopg").setLevel(logging.WARNING)


def get_logger(name: str, **extra: Any) -> ContextLogger:
    """Get a context-aware logger.

    Args:
        name: Logger name (typically __name__).
        **extra: Additional context to include in all log messages.
    """
    logger = logging.getLogger(name)
    return ContextLogger(logger, extra)


def set_request_context(
    event: Optional[Mapping[str, Any]] = None,
    context: Any = None,
) -> None:
    """Record the request id for the current invocation.

    API Gateway events carry ``requestContext.requestId``; custom resource
    events carry ``RequestId``. The Lambda context id is the fallback.
    """
    req_id = ""
    if event:
        req_id = str(
            (event.get("requestContext") or {}).get("requestId")
            or event.get("RequestId")
            or ""
        )
    if not req_id and context is not None:
        req_id = str(getattr(context, "aws_request_id", "") or "")
    request_id.set(req_id)
    tenant_id.set("")


def set_tenant_context(value: str) -> None:
    """Tag subsequent log records with the tenant being handled."""
    tenant_id.set(value)


def clear_request_context() -> None:
    """Clear request context after an invocation."""
    request_id.set("")
    tenant_id.set("")


def log_custom_resource_event(
    logger: ContextLogger,
    event: Mapping[str, Any],
) -> None:
    """Log a CloudFormation custom resource event without its ResponseURL."""
    properties = event.get("ResourceProperties") or {}
    logger.info(
        "Custom resource event received",
        extra={
            "request_type": event.get("RequestType"),
            "logical_resource_id": event.get("LogicalResourceId"),
            "stack_id": event.get("StackId"),
            "properties": sorted(
                key for key in properties.keys() if key != "ServiceToken"
            ),
        },
    )


def log_response(
    logger: ContextLogger,
    operation: str,
    status_code: int,
    duration_ms: Optional[float] = None,
) -> None:
    """Log the outcome and execution time of an API operation."""
    log_data: dict[str, Any] = {
        "operation": operation,
        "status_code": status_code,
    }
    if duration_ms is not None:
        log_data["duration_ms"] = round(duration_ms, 2)

    level = logging.INFO if status_code < 400 else logging.WARNING
    logger.log(level, f"{operation} exec", extra=log_data)
