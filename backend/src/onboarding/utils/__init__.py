"""Utility modules for the onboarding services."""

from onboarding.utils.logging import (
    clear_request_context,
    configure_logging,
    get_logger,
    hash_for_correlation,
    mask_email,
    set_request_context,
    set_tenant_context,
)
from onboarding.utils.passwords import generate_password
from onboarding.utils.responses import (
    empty_response,
    error_response,
    json_response,
)
from onboarding.utils.warmup import is_warmup

__all__ = [
    "clear_request_context",
    "configure_logging",
    "empty_response",
    "error_response",
    "generate_password",
    "get_logger",
    "hash_for_correlation",
    "is_warmup",
    "json_response",
    "mask_email",
    "set_request_context",
    "set_tenant_context",
]
