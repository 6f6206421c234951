"""DynamoDB repository for tenant records.

Items are keyed by ``id`` and stored with snake_case attribute names;
the camelCase JSON shape is handled by :class:`onboarding.models.Tenant`.
"""

from __future__ import annotations

from typing import Any
from typing import Optional
from uuid import uuid4

from botocore.exceptions import ClientError

from onboarding.config import tenant_table_name
from onboarding.exceptions import NotFoundError
from onboarding.models import Tenant
from onboarding.services.aws_clients import get_dynamodb_resource

_ATTRIBUTES = ("id", "active", "company_name", "plan", "user_pool", "database")


class TenantRepository:
    """CRUD operations for tenants in the tenant table."""

    def __init__(self, table: Any = None):
        """Initialize the repository.

        Args:
            table: A boto3 DynamoDB ``Table``. Defaults to the table named
                by the TENANT_TABLE environment variable.
        """
        self._table = table or get_dynamodb_resource().Table(tenant_table_name())

    @property
    def table(self) -> Any:
        return self._table

    def get_all(self) -> list[Tenant]:
        """Return every tenant, following scan pagination."""
        tenants: list[Tenant] = []
        scan_kwargs: dict[str, Any] = {}
        while True:
            response = self._table.scan(**scan_kwargs)
            tenants.extend(_from_item(item) for item in response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return tenants
            scan_kwargs["ExclusiveStartKey"] = last_key

    def get_by_id(self, tenant_id: str) -> Optional[Tenant]:
        """Get a tenant by id, or None when it does not exist."""
        response = self._table.get_item(Key={"id": tenant_id})
        item = response.get("Item")
        return _from_item(item) if item else None

    def insert(self, tenant: Tenant) -> Tenant:
        """Store a new tenant, assigning a fresh UUID when it has none."""
        stored = tenant.model_copy(update={"id": tenant.id or str(uuid4())})
        self._table.put_item(Item=_to_item(stored))
        return stored

    def update(self, tenant: Tenant) -> Tenant:
        """Update the company name, plan and active flag of a tenant."""
        return self._update_fields(
            _require_id(tenant),
            {
                "company_name": tenant.company_name,
                "plan": tenant.plan,
                "active": tenant.active,
            },
        )

    def update_database(self, tenant: Tenant) -> Tenant:
        """Point a tenant at the database host it was provisioned with."""
        return self._update_fields(_require_id(tenant), {"database": tenant.database})

    def update_user_pool(self, tenant: Tenant) -> Tenant:
        """Record the Cognito user pool that holds a tenant's users."""
        return self._update_fields(_require_id(tenant), {"user_pool": tenant.user_pool})

    def delete(self, tenant_id: str) -> None:
        """Delete a tenant record.

        Raises:
            NotFoundError: If no tenant has this id.
        """
        try:
            self._table.delete_item(
                Key={"id": tenant_id},
                ConditionExpression="attribute_exists(id)",
            )
        except ClientError as exc:
            if _is_conditional_check_failure(exc):
                raise NotFoundError("Tenant", tenant_id) from exc
            raise

    def _update_fields(self, tenant_id: str, fields: dict[str, Any]) -> Tenant:
        set_parts = []
        remove_parts = []
        names: dict[str, str] = {}
        values: dict[str, Any] = {}
        for index, (attribute, value) in enumerate(fields.items()):
            names[f"#a{index}"] = attribute
            if value is None:
                remove_parts.append(f"#a{index}")
            else:
                set_parts.append(f"#a{index} = :v{index}")
                values[f":v{index}"] = value

        expression = ""
        if set_parts:
            expression += "SET " + ", ".join(set_parts)
        if remove_parts:
            expression += " REMOVE " + ", ".join(remove_parts)

        update_kwargs: dict[str, Any] = {
            "Key": {"id": tenant_id},
            "UpdateExpression": expression.strip(),
            "ConditionExpression": "attribute_exists(id)",
            "ExpressionAttributeNames": names,
            "ReturnValues": "ALL_NEW",
        }
        if values:
            update_kwargs["ExpressionAttributeValues"] = values

        try:
            response = self._table.update_item(**update_kwargs)
        except ClientError as exc:
            if _is_conditional_check_failure(exc):
                raise NotFoundError("Tenant", tenant_id) from exc
            raise
        return _from_item(response["Attributes"])


def _require_id(tenant: Tenant) -> str:
    if not tenant.id:
        raise ValueError("Tenant id is required")
    return tenant.id


def _to_item(tenant: Tenant) -> dict[str, Any]:
    data = tenant.model_dump(by_alias=False)
    return {key: data[key] for key in _ATTRIBUTES if data.get(key) is not None}


def _from_item(item: dict[str, Any]) -> Tenant:
    return Tenant.model_validate(
        {key: item[key] for key in _ATTRIBUTES if key in item}
    )


def _is_conditional_check_failure(exc: ClientError) -> bool:
    code = exc.response.get("Error", {}).get("Code")
    return code == "ConditionalCheckFailedException"
