"""Per-tenant infrastructure: database parameters and the onboarding stack."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from botocore.exceptions import BotoCoreError
from botocore.exceptions import ClientError

from onboarding.config import RegistrationSettings
from onboarding.models import Tenant
from onboarding.services.aws_clients import get_cloudformation_client
from onboarding.services.aws_clients import get_elbv2_client
from onboarding.services.aws_clients import get_ssm_client
from onboarding.services.cognito import delete_user_pool
from onboarding.utils.logging import get_logger
from onboarding.utils.passwords import generate_password

logger = get_logger(__name__)

DATABASE_NAME = "saas_factory_srvls_wrkshp"
DATABASE_USER = "application"
DATABASE_PASSWORD_LENGTH = 18
STACK_TEMPLATE = "onboard-tenant.template"

_PARAMETER_SUFFIXES = ("_DB_NAME", "_DB_USER", "_DB_PASS", "_DB_HOST")


@dataclass(frozen=True)
class DatabaseParameters:
    """Connection settings the tenant stack reads from Parameter Store."""

    name: str
    user: str
    password: str
    host: str


def stack_name(tenant: Tenant) -> str:
    return f"Tenant-{tenant.short_id}"


def parameter_names(tenant_id: str) -> list[str]:
    return [f"{tenant_id}{suffix}" for suffix in _PARAMETER_SUFFIXES]


def store_database_parameters(
    tenant: Tenant,
    host: str,
    ssm_client: Any = None,
) -> DatabaseParameters:
    """Write the tenant's database settings to Parameter Store.

    A fresh application password is generated on every call; existing
    parameters are overwritten.
    """
    client = ssm_client or get_ssm_client()
    params = DatabaseParameters(
        name=DATABASE_NAME,
        user=DATABASE_USER,
        password=generate_password(DATABASE_PASSWORD_LENGTH),
        host=host,
    )
    values = (
        (f"{tenant.id}_DB_NAME", params.name, "String"),
        (f"{tenant.id}_DB_USER", params.user, "String"),
        (f"{tenant.id}_DB_PASS", params.password, "SecureString"),
        (f"{tenant.id}_DB_HOST", params.host, "String"),
    )
    for name, value, parameter_type in values:
        client.put_parameter(
            Name=name,
            Value=value,
            Type=parameter_type,
            Overwrite=True,
        )
    logger.info("Stored database parameters", extra={"tenant": tenant.id})
    return params


def next_listener_rule_priority(listener_arn: str, elbv2_client: Any = None) -> int:
    """Return one more than the number of rules on the ALB listener."""
    client = elbv2_client or get_elbv2_client()
    request: dict[str, Any] = {"ListenerArn": listener_arn}
    count = 0
    while True:
        response = client.describe_rules(**request)
        count += len(response.get("Rules", []))
        marker = response.get("NextMarker")
        if not marker:
            return count + 1
        request["Marker"] = marker


def create_tenant_stack(
    tenant: Tenant,
    settings: RegistrationSettings,
    cfn_client: Any = None,
    elbv2_client: Any = None,
) -> str:
    """Launch the onboarding stack for a tenant and return its id."""
    client = cfn_client or get_cloudformation_client()
    priority = next_listener_rule_priority(settings.alb_listener_arn, elbv2_client)
    template_url = (
        f"https://{settings.workshop_bucket}.s3.amazonaws.com/{STACK_TEMPLATE}"
    )
    parameters = {
        "TenantId": tenant.id,
        "TenantRouteALBPriority": str(priority),
        "KeyPair": settings.key_pair_name,
        "VPC": settings.vpc_id,
        "PrivateSubnets": settings.private_subnet_ids,
        "AppServerSecurityGroup": settings.app_server_security_group,
        "CodePipelineBucket": settings.code_pipeline_bucket,
        "CodeDeployApplication": settings.code_deploy_application,
        "DeploymentGroup": settings.deployment_group,
        "LambdaUpdateDeploymentGroupArn": settings.update_deployment_group_lambda_arn,
        "ALBListener": settings.alb_listener_arn,
        "LambdaAddDatabaseUserArn": settings.add_database_user_lambda_arn,
    }
    name = stack_name(tenant)
    response = client.create_stack(
        StackName=name,
        TemplateURL=template_url,
        OnFailure="DO_NOTHING",
        Capabilities=["CAPABILITY_NAMED_IAM"],
        Parameters=[
            {"ParameterKey": key, "ParameterValue": value}
            for key, value in parameters.items()
        ],
    )
    stack_id = response["StackId"]
    logger.info(
        f"Creating stack {name}",
        extra={"stack_id": stack_id, "priority": priority},
    )
    return stack_id


def teardown_tenant(
    tenant: Tenant,
    cognito_client: Any = None,
    ssm_client: Any = None,
    cfn_client: Any = None,
) -> list[str]:
    """Remove a deleted tenant's user pool, parameters and stack.

    Each step is attempted independently. Returns the names of the
    steps that failed; failures are logged rather than raised.
    """
    failures: list[str] = []

    if tenant.user_pool:
        try:
            delete_user_pool(tenant.user_pool, client=cognito_client)
        except (ClientError, BotoCoreError) as exc:
            logger.warning(
                f"Could not delete user pool {tenant.user_pool}: {exc}",
                extra={"tenant": tenant.id},
            )
            failures.append("user_pool")

    try:
        (ssm_client or get_ssm_client()).delete_parameters(
            Names=parameter_names(tenant.id)
        )
    except (ClientError, BotoCoreError) as exc:
        logger.warning(
            f"Could not delete database parameters: {exc}",
            extra={"tenant": tenant.id},
        )
        failures.append("parameters")

    try:
        (cfn_client or get_cloudformation_client()).delete_stack(
            StackName=stack_name(tenant)
        )
    except (ClientError, BotoCoreError) as exc:
        logger.warning(
            f"Could not delete stack {stack_name(tenant)}: {exc}",
            extra={"tenant": tenant.id},
        )
        failures.append("stack")

    return failures
