"""Lambda entrypoint for the CodeDeploy deployment group custom resource."""

from __future__ import annotations

from typing import Any
from typing import Mapping

from onboarding.custom_resources.deployment_group import lambda_handler as _handler


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Delegate to the deployment group custom resource."""
    return _handler(dict(event), context)
