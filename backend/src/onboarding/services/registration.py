"""Tenant onboarding workflow.

Registration runs a fixed sequence of steps and stops at the first
failure. Nothing is rolled back; a half-onboarded tenant is removed by
deleting it through the tenant service.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import uuid4

from onboarding.config import RegistrationSettings
from onboarding.config import load_registration_settings
from onboarding.db.database_pool import DatabasePoolRepository
from onboarding.db.tenants import TenantRepository
from onboarding.exceptions import PoolDepletedError
from onboarding.models import Registration
from onboarding.models import Tenant
from onboarding.services import cognito
from onboarding.services import provisioning
from onboarding.utils.logging import get_logger
from onboarding.utils.logging import set_tenant_context

logger = get_logger(__name__)


@dataclass(frozen=True)
class RegistrationResult:
    tenant_id: str
    stack_name: str

    def to_dict(self) -> dict[str, str]:
        return {"TenantId": self.tenant_id, "StackName": self.stack_name}


class RegistrationService:
    """Onboards a new tenant and its first user."""

    def __init__(
        self,
        tenants: Optional[TenantRepository] = None,
        database_pool: Optional[DatabasePoolRepository] = None,
        settings: Optional[RegistrationSettings] = None,
    ):
        self._tenants = tenants or TenantRepository()
        self._database_pool = database_pool or DatabasePoolRepository()
        self._settings = settings

    @property
    def settings(self) -> RegistrationSettings:
        if self._settings is None:
            self._settings = load_registration_settings()
        return self._settings

    def register(self, registration: Registration) -> RegistrationResult:
        settings = self.settings

        cluster = self._database_pool.next_available()
        if cluster is None:
            raise PoolDepletedError()

        tenant_id = str(uuid4())
        set_tenant_context(tenant_id)
        self._database_pool.claim(cluster, tenant_id)

        tenant = self._tenants.insert(
            Tenant(
                id=tenant_id,
                active=True,
                company_name=registration.company,
                plan=registration.plan,
                database=cluster.endpoint,
            )
        )
        logger.info(
            "Created tenant",
            extra={"cluster": cluster.cluster_identifier, "plan": tenant.plan},
        )

        user_pool_id = cognito.create_user_pool(tenant)
        cognito.create_app_client(tenant, user_pool_id)
        tenant = self._tenants.update_user_pool(
            tenant.model_copy(update={"user_pool": user_pool_id})
        )
        cognito.create_tenant_user(tenant, user_pool_id, registration)

        provisioning.store_database_parameters(tenant, cluster.endpoint)
        provisioning.create_tenant_stack(tenant, settings)

        return RegistrationResult(
            tenant_id=tenant.id,
            stack_name=provisioning.stack_name(tenant),
        )
