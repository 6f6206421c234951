"""Lambda entrypoint for the sign-in endpoint."""

from __future__ import annotations

from typing import Any
from typing import Mapping

from onboarding.api.auth import lambda_handler as _handler


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Delegate to the sign-in handler."""
    return _handler(dict(event), context)
