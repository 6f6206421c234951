"""Custom resource that bootstraps a PostgreSQL database.

Actions (``Action`` property):
    BOOTSTRAP       schema, sample data for the monolith, application
                    user, then record the instance in the hot pool table
    BOOTSTRAP_POOL  schema for a pooled tenant database and its
                    application user
    ADD_USER        application user only

Only Create touches the database; Update and Delete succeed as no-ops.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Optional

from onboarding.custom_resources.base import CustomResourceRequest
from onboarding.custom_resources.base import CustomResourceResult
from onboarding.custom_resources.base import handle_custom_resource
from onboarding.db.connection import connect
from onboarding.db.database_pool import HotPoolRegistry
from onboarding.db.scripts import StatementBatch
from onboarding.db.scripts import run_script
from onboarding.db.scripts import run_user_script
from onboarding.services.secrets import get_credential
from onboarding.utils.logging import configure_logging
from onboarding.utils.logging import get_logger

configure_logging()
logger = get_logger(__name__)

BOOTSTRAP = "BOOTSTRAP"
BOOTSTRAP_POOL = "BOOTSTRAP_POOL"
ADD_USER = "ADD_USER"

MONOLITH_TENANT = "MONOLITH"


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    return handle_custom_resource(event, context, bootstrap_database)


def bootstrap_database(request: CustomResourceRequest) -> Optional[CustomResourceResult]:
    action = request.property("Action")
    if request.request_type == "Delete":
        # Stack deletion must not block on the database or on bad properties
        logger.info(f"Delete {action}: nothing to do")
        return None

    handler = _ACTIONS.get(action or "")
    if handler is None:
        raise ValueError(f"Unknown Action {action}")

    if request.request_type != "Create":
        logger.info(f"{request.request_type} {action}: nothing to do")
        return None

    logger.info(
        f"Running {action}",
        extra={
            "host": request.property("Host"),
            "database": request.property("Database"),
            "tenant": request.property("TenantId"),
        },
    )
    handler(request)
    return None


def _bootstrap(request: CustomResourceRequest) -> None:
    host = request.require("Host")
    tenant_id = request.property("TenantId")

    with _super_user_connection(request) as connection:
        batch = StatementBatch(connection)
        run_script(batch, "bootstrap.sql")
        if tenant_id and tenant_id.upper() == MONOLITH_TENANT:
            run_script(batch, "data.sql")
        _add_app_user(request, batch, connection)

    HotPoolRegistry().register(request.require("InstanceId"), host, tenant_id)


def _bootstrap_pool(request: CustomResourceRequest) -> None:
    with _super_user_connection(request) as connection:
        batch = StatementBatch(connection)
        run_script(batch, "bootstrap_pool.sql")
        _add_app_user(request, batch, connection)


def _add_user(request: CustomResourceRequest) -> None:
    request.require("AppUserCredentials")
    with _super_user_connection(request) as connection:
        _add_app_user(request, StatementBatch(connection), connection)


def _add_app_user(
    request: CustomResourceRequest,
    batch: StatementBatch,
    connection: Any,
) -> None:
    secret_id = request.property("AppUserCredentials")
    if not secret_id:
        return
    credential = get_credential(secret_id)
    run_user_script(batch, connection, credential.username, credential.password)


def _super_user_connection(request: CustomResourceRequest) -> Any:
    credential = get_credential(request.require("SuperUserCredentials"))
    return connect(request.require("Host"), request.require("Database"), credential)


_ACTIONS: dict[str, Callable[[CustomResourceRequest], None]] = {
    BOOTSTRAP: _bootstrap,
    BOOTSTRAP_POOL: _bootstrap_pool,
    ADD_USER: _add_user,
}
