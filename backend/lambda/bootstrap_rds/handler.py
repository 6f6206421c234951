"""Lambda entrypoint for the RDS bootstrap custom resource."""

from __future__ import annotations

from typing import Any
from typing import Mapping

from onboarding.custom_resources.bootstrap_rds import lambda_handler as _handler


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Delegate to the bootstrap custom resource."""
    return _handler(dict(event), context)
