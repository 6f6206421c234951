"""Tenant service API handlers.

Routes handled:
    GET    /tenants                   - List tenants
    POST   /tenants                   - Create a tenant
    GET    /tenants/pool/database     - Next unclaimed database cluster
    GET    /tenants/{id}              - Get a tenant
    PUT    /tenants/{id}              - Update name, plan and active flag
    DELETE /tenants/{id}              - Delete a tenant and its resources
    PUT    /tenants/{id}/database     - Set the tenant's database host
    PUT    /tenants/{id}/userpool     - Set the tenant's user pool
"""

from __future__ import annotations

import time
from typing import Any, Callable, Mapping, Optional

from onboarding.api.request import INVALID_BODY_MESSAGE
from onboarding.api.request import parse_model
from onboarding.api.request import parse_path
from onboarding.db.database_pool import DatabasePoolRepository
from onboarding.db.tenants import TenantRepository
from onboarding.exceptions import AppError
from onboarding.exceptions import NotFoundError
from onboarding.exceptions import ValidationError
from onboarding.models import Tenant
from onboarding.services.provisioning import teardown_tenant
from onboarding.utils.logging import configure_logging
from onboarding.utils.logging import get_logger
from onboarding.utils.logging import log_response
from onboarding.utils.logging import set_request_context
from onboarding.utils.logging import set_tenant_context
from onboarding.utils.responses import app_error_response
from onboarding.utils.responses import empty_response
from onboarding.utils.responses import error_response
from onboarding.utils.responses import json_response
from onboarding.utils.warmup import is_warmup

configure_logging()
logger = get_logger(__name__)

POOL_SEGMENT = "pool"

Handler = Callable[[Mapping[str, Any], Optional[str]], dict[str, Any]]


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Route tenant service requests."""
    set_request_context(event, context)
    if is_warmup(event):
        logger.info("Warming up")
        return empty_response(200, event=event)

    method = event.get("httpMethod", "")
    path = event.get("path", "")
    resource, resource_id, sub_resource = parse_path(path)
    logger.info(
        f"Tenant request: {method} {path}",
        extra={"resource": resource, "resource_id": resource_id},
    )

    handler, operation = _route(method, resource, resource_id, sub_resource)
    if handler is None:
        return error_response(404, "Not found", event=event)

    if resource_id and resource_id != POOL_SEGMENT:
        set_tenant_context(resource_id)

    start = time.perf_counter()
    response = _safe(lambda: handler(event, resource_id), event)
    log_response(
        logger,
        f"TenantService::{operation}",
        response["statusCode"],
        (time.perf_counter() - start) * 1000,
    )
    return response


def _route(
    method: str,
    resource: str,
    resource_id: Optional[str],
    sub_resource: Optional[str],
) -> tuple[Optional[Handler], str]:
    if resource != "tenants":
        return None, ""

    if resource_id == POOL_SEGMENT and sub_resource == "database" and method == "GET":
        return _handle_next_available_database, "nextAvailableDatabase"

    if resource_id is None:
        if method == "GET":
            return _handle_list, "getTenants"
        if method == "POST":
            return _handle_insert, "insertTenant"
        return None, ""

    if sub_resource is None:
        if method == "GET":
            return _handle_get, "getTenant"
        if method == "PUT":
            return _handle_update, "updateTenant"
        if method == "DELETE":
            return _handle_delete, "deleteTenant"
        return None, ""

    if method == "PUT" and sub_resource == "database":
        return _handle_update_database, "updateDatabase"
    if method == "PUT" and sub_resource == "userpool":
        return _handle_update_user_pool, "updateUserPool"
    return None, ""


# ---------------------------------------------------------------------------
# Error handling
# ---------------------------------------------------------------------------


def _safe(
    handler: Callable[[], dict[str, Any]],
    event: Mapping[str, Any],
) -> dict[str, Any]:
    """Execute *handler* with common error handling."""
    try:
        return handler()
    except ValidationError as exc:
        logger.warning(f"Validation error: {exc.message}")
        return app_error_response(exc, event=event)
    except NotFoundError as exc:
        return app_error_response(exc, event=event)
    except AppError as exc:
        logger.error(f"Tenant service error: {exc.message}")
        return app_error_response(exc, event=event)
    except Exception as exc:
        logger.exception("Unexpected error in tenant handler")
        return error_response(500, "Internal server error", str(exc), event=event)


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def _repository() -> TenantRepository:
    return TenantRepository()


def _handle_list(event: Mapping[str, Any], _tenant_id: Optional[str]) -> dict[str, Any]:
    tenants = _repository().get_all()
    return json_response(200, tenants, event=event)


def _handle_get(event: Mapping[str, Any], tenant_id: Optional[str]) -> dict[str, Any]:
    tenant = _repository().get_by_id(_valid_id(tenant_id))
    if tenant is None:
        raise NotFoundError("Tenant", str(tenant_id))
    return json_response(200, tenant, event=event)


def _handle_insert(event: Mapping[str, Any], _tenant_id: Optional[str]) -> dict[str, Any]:
    tenant = parse_model(event, Tenant)
    stored = _repository().insert(tenant)
    logger.info("Created tenant", extra={"tenant": stored.id})
    return json_response(200, stored, event=event)


def _handle_update(event: Mapping[str, Any], tenant_id: Optional[str]) -> dict[str, Any]:
    tenant = _tenant_matching_path(event, tenant_id)
    updated = _repository().update(tenant)
    return json_response(200, updated, event=event)


def _handle_delete(event: Mapping[str, Any], tenant_id: Optional[str]) -> dict[str, Any]:
    requested = _tenant_matching_path(event, tenant_id)
    repository = _repository()
    # The stored record knows the user pool; the request body may not.
    existing = repository.get_by_id(requested.id)
    if existing is None:
        raise NotFoundError("Tenant", str(requested.id))

    repository.delete(existing.id)
    failures = teardown_tenant(existing)
    if failures:
        logger.warning(
            "Tenant deleted with leftover resources",
            extra={"failed_steps": failures},
        )
    return json_response(200, existing, event=event)


def _handle_next_available_database(
    event: Mapping[str, Any],
    _tenant_id: Optional[str],
) -> dict[str, Any]:
    cluster = DatabasePoolRepository().next_available()
    if cluster is None:
        return json_response(200, {}, event=event)
    return json_response(200, cluster, event=event)


def _handle_update_database(
    event: Mapping[str, Any],
    tenant_id: Optional[str],
) -> dict[str, Any]:
    tenant = _tenant_matching_path(event, tenant_id)
    if not tenant.database:
        raise ValidationError(INVALID_BODY_MESSAGE, field="database")
    updated = _repository().update_database(tenant)
    return json_response(200, updated, event=event)


def _handle_update_user_pool(
    event: Mapping[str, Any],
    tenant_id: Optional[str],
) -> dict[str, Any]:
    tenant = _tenant_matching_path(event, tenant_id)
    if not tenant.user_pool:
        raise ValidationError(INVALID_BODY_MESSAGE, field="userPool")
    updated = _repository().update_user_pool(tenant)
    return json_response(200, updated, event=event)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _valid_id(tenant_id: Optional[str]) -> str:
    """Normalize a path id, rejecting values that are not UUIDs."""
    try:
        normalized = Tenant(id=tenant_id).id
    except ValueError as exc:
        raise ValidationError("Invalid tenant id", field="id") from exc
    if not normalized:
        raise ValidationError("Invalid tenant id", field="id")
    return normalized


def _tenant_matching_path(
    event: Mapping[str, Any],
    tenant_id: Optional[str],
) -> Tenant:
    """Parse the tenant body and check its id against the path."""
    path_id = _valid_id(tenant_id)
    tenant = parse_model(event, Tenant)
    if tenant.id != path_id:
        raise ValidationError(INVALID_BODY_MESSAGE, field="id")
    return tenant
