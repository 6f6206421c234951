"""Hot pool of pre-provisioned RDS clusters.

Provisioning an RDS cluster takes far longer than a sign-up request may
wait, so clusters are created ahead of time and handed out to tenants
as they register. A cluster is available while its item has no
``TenantId`` attribute.

The hot pool table written by the bootstrap custom resource records
each bootstrapped instance (``instance``, ``host``, ``tenant_id``).
"""

from __future__ import annotations

from typing import Any
from typing import Optional

from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError

from onboarding.config import rds_cluster_table_name
from onboarding.config import rds_hot_pool_table_name
from onboarding.exceptions import ProvisioningError
from onboarding.models import DatabaseCluster
from onboarding.services.aws_clients import get_dynamodb_resource
from onboarding.utils.logging import get_logger

logger = get_logger(__name__)


class DatabasePoolRepository:
    """Lookup and claiming of unassigned database clusters."""

    def __init__(self, table: Any = None):
        self._table = table or get_dynamodb_resource().Table(rds_cluster_table_name())

    def next_available(self) -> Optional[DatabaseCluster]:
        """Return the first cluster not yet assigned to a tenant.

        The filter is applied per scanned page, so an empty page does not
        mean the pool is empty; pagination continues until a match is
        found or the table is exhausted.
        """
        scan_kwargs: dict[str, Any] = {
            "FilterExpression": Attr("TenantId").not_exists(),
        }
        while True:
            response = self._table.scan(**scan_kwargs)
            items = response.get("Items", [])
            if items:
                item = items[0]
                return DatabaseCluster(
                    DBClusterIdentifier=item["DBClusterIdentifier"],
                    Endpoint=item["Endpoint"],
                )
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return None
            scan_kwargs["ExclusiveStartKey"] = last_key

    def claim(self, cluster: DatabaseCluster, tenant_id: str) -> None:
        """Assign a cluster to a tenant.

        Raises:
            ProvisioningError: If another registration claimed it first or the
                cluster is no longer in the pool.
        """
        try:
            self._table.update_item(
                Key={"DBClusterIdentifier": cluster.cluster_identifier},
                UpdateExpression="SET TenantId = :tenant_id",
                ConditionExpression=(
                    "attribute_exists(DBClusterIdentifier)"
                    " AND attribute_not_exists(TenantId)"
                ),
                ExpressionAttributeValues={":tenant_id": tenant_id},
            )
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code")
            if code == "ConditionalCheckFailedException":
                raise ProvisioningError(
                    "Database cluster is no longer available",
                    detail=cluster.cluster_identifier,
                ) from exc
            raise
        logger.info(
            "Claimed database cluster",
            extra={"cluster": cluster.cluster_identifier, "tenant": tenant_id},
        )


class HotPoolRegistry:
    """Records bootstrapped database instances for later hand-out."""

    def __init__(self, table: Any = None):
        self._table = table or get_dynamodb_resource().Table(rds_hot_pool_table_name())

    def register(
        self,
        instance_id: str,
        host: str,
        tenant_id: Optional[str] = None,
    ) -> None:
        item = {"instance": instance_id, "host": host}
        if tenant_id:
            item["tenant_id"] = tenant_id
        logger.info(f"Adding database instance {instance_id} to warm pool")
        self._table.put_item(Item=item)
