"""Runtime configuration from the environment and Parameter Store.

Table names and connection options come from Lambda environment
variables. The registration service additionally reads the shared
workshop infrastructure identifiers (VPC, ALB listener, CodeDeploy
application, ...) from SSM Parameter Store once per execution
environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Optional

from onboarding.exceptions import ConfigurationError
from onboarding.services.aws_clients import get_ssm_client
from onboarding.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_RDS_CLUSTER_TABLE = "saas-factory-srvls-wrkshp-rds-clusters"
DEFAULT_DATABASE_PORT = 5432

# GetParameters accepts at most 10 names per call
SSM_BATCH_SIZE = 10

# Parameter Store name -> RegistrationSettings field
REGISTRATION_PARAMETERS: dict[str, str] = {
    "WORKSHOP_BUCKET": "workshop_bucket",
    "KEY_PAIR": "key_pair_name",
    "VPC": "vpc_id",
    "APP_SG": "app_server_security_group",
    "PRIVATE_SUBNETS": "private_subnet_ids",
    "PIPELINE_BUCKET": "code_pipeline_bucket",
    "CODE_DEPLOY": "code_deploy_application",
    "DEPLOYMENT_GROUP": "deployment_group",
    "CODE_DEPLOY_LAMBDA": "update_deployment_group_lambda_arn",
    "ALB_LISTENER": "alb_listener_arn",
    "RDS_ADD_USER_LAMBDA": "add_database_user_lambda_arn",
}


@dataclass(frozen=True)
class RegistrationSettings:
    """Shared infrastructure every tenant stack is wired into."""

    workshop_bucket: str
    key_pair_name: str
    vpc_id: str
    app_server_security_group: str
    private_subnet_ids: str
    code_pipeline_bucket: str
    code_deploy_application: str
    deployment_group: str
    update_deployment_group_lambda_arn: str
    alb_listener_arn: str
    add_database_user_lambda_arn: str


_SETTINGS_CACHE: dict[str, RegistrationSettings] = {}


def require_env(name: str) -> str:
    """Return a required environment variable value."""
    value = os.getenv(name)
    if not value:
        raise ConfigurationError(name)
    return value


def tenant_table_name() -> str:
    return require_env("TENANT_TABLE")


def rds_cluster_table_name() -> str:
    return os.getenv("RDS_CLUSTER_TABLE") or DEFAULT_RDS_CLUSTER_TABLE


def rds_hot_pool_table_name() -> str:
    return require_env("RDS_HOT_POOL_TABLE")


def database_port() -> int:
    raw = os.getenv("DATABASE_PORT")
    return int(raw) if raw else DEFAULT_DATABASE_PORT


def database_sslmode() -> Optional[str]:
    return os.getenv("DATABASE_SSLMODE") or None


def load_registration_settings(
    ssm_client: Any = None,
    use_cache: bool = True,
) -> RegistrationSettings:
    """Read the registration settings from Parameter Store.

    Raises:
        ConfigurationError: If any parameter is missing or empty.
    """
    if use_cache and "default" in _SETTINGS_CACHE:
        return _SETTINGS_CACHE["default"]

    client = ssm_client or get_ssm_client()
    names = list(REGISTRATION_PARAMETERS)
    values: dict[str, str] = {}
    for start in range(0, len(names), SSM_BATCH_SIZE):
        batch = names[start : start + SSM_BATCH_SIZE]
        response = client.get_parameters(Names=batch)
        for parameter in response.get("Parameters", []):
            name = parameter.get("Name")
            if name in REGISTRATION_PARAMETERS:
                values[name] = parameter.get("Value") or ""
                logger.info(f"Setting env {name} = {values[name]}")

    missing = [name for name in names if not values.get(name)]
    if missing:
        logger.error(
            "Failed to get all required settings from Parameter Store",
            extra={"missing": missing},
        )
        raise ConfigurationError(", ".join(missing))

    settings = RegistrationSettings(
        **{field: values[name] for name, field in REGISTRATION_PARAMETERS.items()}
    )
    if use_cache:
        _SETTINGS_CACHE["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Forget cached Parameter Store settings (useful in tests)."""
    _SETTINGS_CACHE.clear()
