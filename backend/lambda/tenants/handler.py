"""Lambda entrypoint for the tenant service API."""

from __future__ import annotations

from typing import Any
from typing import Mapping

from onboarding.api.tenants import lambda_handler as _handler


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Delegate to tenant service routing."""
    return _handler(dict(event), context)
