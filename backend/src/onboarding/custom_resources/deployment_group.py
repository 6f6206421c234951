"""Custom resource that adds a tenant's Auto Scaling group to CodeDeploy.

UpdateDeploymentGroup replaces the group's Auto Scaling group list, so
the current list is read first and the tenant's group added to or
removed from it.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from onboarding.custom_resources.base import CustomResourceRequest
from onboarding.custom_resources.base import CustomResourceResult
from onboarding.custom_resources.base import handle_custom_resource
from onboarding.services.aws_clients import get_codedeploy_client
from onboarding.utils.logging import configure_logging
from onboarding.utils.logging import get_logger

configure_logging()
logger = get_logger(__name__)


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    return handle_custom_resource(event, context, update_deployment_group)


def update_deployment_group(
    request: CustomResourceRequest,
    client: Any = None,
) -> Optional[CustomResourceResult]:
    codedeploy = client or get_codedeploy_client()
    application = request.require("ApplicationName")
    group = request.require("DeploymentGroup")
    auto_scaling_group = request.require("AutoScalingGroup")

    current = codedeploy.get_deployment_group(
        applicationName=application,
        deploymentGroupName=group,
    )
    existing = [
        asg["name"]
        for asg in current.get("deploymentGroupInfo", {}).get("autoScalingGroups", [])
    ]

    groups = merge_auto_scaling_groups(
        existing,
        auto_scaling_group,
        remove=request.request_type == "Delete",
    )
    logger.info(
        f"Setting deployment group {group} Auto Scaling groups",
        extra={"application": application, "auto_scaling_groups": groups},
    )
    codedeploy.update_deployment_group(
        applicationName=application,
        currentDeploymentGroupName=group,
        autoScalingGroups=groups,
    )
    return CustomResourceResult(physical_resource_id=f"{group}-{auto_scaling_group}")


def merge_auto_scaling_groups(
    existing: list[str],
    auto_scaling_group: str,
    remove: bool = False,
) -> list[str]:
    """Compute the new group list, requested group first when adding."""
    if remove:
        return [name for name in existing if name != auto_scaling_group]
    merged = [auto_scaling_group]
    for name in existing:
        if name not in merged:
            merged.append(name)
    return merged
