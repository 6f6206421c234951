"""CloudFormation custom resource runtime.

A custom resource handler parses the event, runs its operation on a
worker thread bounded by the Lambda's remaining time, and reports the
outcome to the pre-signed ``ResponseURL``. CloudFormation waits up to
an hour for that response, so it is sent even when the operation fails
or runs out of time.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from dataclasses import field
from typing import Any, Callable, Mapping, Optional

from onboarding.utils.cfn_response import FAILED
from onboarding.utils.cfn_response import SUCCESS
from onboarding.utils.cfn_response import send_cfn_response
from onboarding.utils.logging import get_logger
from onboarding.utils.logging import log_custom_resource_event
from onboarding.utils.logging import set_request_context

logger = get_logger(__name__)

REQUEST_TYPES = ("Create", "Update", "Delete")

# Time reserved for sending the response after the operation times out
RESPONSE_MARGIN_SECONDS = 1.0


@dataclass
class CustomResourceRequest:
    """The parts of a custom resource event the operations act on."""

    request_type: str
    properties: dict[str, Any] = field(default_factory=dict)
    physical_resource_id: Optional[str] = None
    logical_resource_id: Optional[str] = None

    @classmethod
    def from_event(cls, event: Mapping[str, Any]) -> "CustomResourceRequest":
        return cls(
            request_type=str(event.get("RequestType") or ""),
            properties=dict(event.get("ResourceProperties") or {}),
            physical_resource_id=event.get("PhysicalResourceId"),
            logical_resource_id=event.get("LogicalResourceId"),
        )

    def property(self, name: str) -> Optional[str]:
        value = self.properties.get(name)
        if value is None or value == "":
            return None
        return str(value)

    def require(self, name: str) -> str:
        value = self.property(name)
        if value is None:
            raise ValueError(f"Missing required property {name}")
        return value


@dataclass
class CustomResourceResult:
    data: dict[str, Any] = field(default_factory=dict)
    physical_resource_id: Optional[str] = None


Operation = Callable[[CustomResourceRequest], Optional[CustomResourceResult]]


def remaining_seconds(context: Any) -> Optional[float]:
    """Seconds the operation may run, or None when there is no deadline."""
    get_remaining = getattr(context, "get_remaining_time_in_millis", None)
    if get_remaining is None:
        return None
    return max(get_remaining() / 1000.0 - RESPONSE_MARGIN_SECONDS, 0.0)


def handle_custom_resource(
    event: Mapping[str, Any],
    context: Any,
    operation: Operation,
) -> dict[str, Any]:
    """Run ``operation`` for a custom resource event and report the outcome.

    Returns the ``PhysicalResourceId`` and ``Data`` sent to CloudFormation,
    plus ``Status``.
    """
    set_request_context(event, context)
    log_custom_resource_event(logger, event)
    request = CustomResourceRequest.from_event(event)
    physical_id = request.physical_resource_id or request.logical_resource_id

    if request.request_type not in REQUEST_TYPES:
        reason = f"Unknown RequestType {request.request_type}"
        logger.error(reason)
        return _respond(event, context, FAILED, {}, physical_id, reason)

    executor = ThreadPoolExecutor(max_workers=1)
    try:
        future = executor.submit(operation, request)
        result = future.result(timeout=remaining_seconds(context))
    except FutureTimeoutError:
        reason = "Request timed out"
        logger.error(f"{request.request_type} {reason.lower()}")
        return _respond(event, context, FAILED, {}, physical_id, reason)
    except Exception as exc:
        error_type = type(exc).__name__
        reason = f"{error_type}: {str(exc)[:200]}"
        logger.error(
            f"{request.request_type} failed",
            extra={"error_type": error_type, "error_message": str(exc)},
            exc_info=True,
        )
        return _respond(event, context, FAILED, {}, physical_id, reason)
    finally:
        # Do not wait for a timed-out worker; the response must go out now
        executor.shutdown(wait=False)

    result = result or CustomResourceResult()
    logger.info(f"{request.request_type} succeeded")
    return _respond(
        event,
        context,
        SUCCESS,
        result.data,
        result.physical_resource_id or physical_id,
    )


def _respond(
    event: Mapping[str, Any],
    context: Any,
    status: str,
    data: dict[str, Any],
    physical_id: Optional[str],
    reason: Optional[str] = None,
) -> dict[str, Any]:
    try:
        send_cfn_response(event, context, status, data, physical_id, reason)
    except ValueError as exc:
        # Nowhere to report to; CloudFormation will time the resource out
        logger.error(f"Cannot send CloudFormation response: {exc}")
    return {"Status": status, "PhysicalResourceId": physical_id, "Data": data}
