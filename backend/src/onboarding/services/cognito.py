"""Cognito user pool operations for sign-in and tenant onboarding.

Every tenant gets its own user pool and app client. Sign-in therefore
has to locate the pool holding a username before it can authenticate.
"""

from __future__ import annotations

from typing import Any, Optional

from onboarding.models import Registration
from onboarding.models import Tenant
from onboarding.services.aws_clients import get_cognito_idp_client
from onboarding.utils.logging import get_logger
from onboarding.utils.logging import mask_email
from onboarding.utils.passwords import generate_password

logger = get_logger(__name__)

ADMIN_AUTH_FLOW = "ADMIN_USER_PASSWORD_AUTH"
APP_CLIENT_AUTH_FLOWS = ["ALLOW_ADMIN_USER_PASSWORD_AUTH", "ALLOW_REFRESH_TOKEN_AUTH"]
TEMPORARY_PASSWORD_LENGTH = 12
TEMPORARY_PASSWORD_VALIDITY_DAYS = 7


def _client(client: Any = None) -> Any:
    return client or get_cognito_idp_client()


def find_user_pools(username: str, client: Any = None) -> list[str]:
    """Return the ids of every user pool that has a user named ``username``."""
    cognito = _client(client)
    user_filter = 'username = "{}"'.format(
        username.replace("\\", "\\\\").replace('"', '\\"')
    )
    pool_ids: list[str] = []
    for page in cognito.get_paginator("list_user_pools").paginate(MaxResults=60):
        for pool in page.get("UserPools", []):
            users_pages = cognito.get_paginator("list_users").paginate(
                UserPoolId=pool["Id"],
                Filter=user_filter,
            )
            for users_page in users_pages:
                if any(
                    user.get("Username") == username
                    for user in users_page.get("Users", [])
                ):
                    pool_ids.append(pool["Id"])
                    break

    for pool_id in pool_ids:
        logger.info(f"Username found in pool {pool_id}")
    return pool_ids


def first_app_client(user_pool_id: str, client: Any = None) -> Optional[str]:
    """Return the id of the first app client in a pool, if any."""
    response = _client(client).list_user_pool_clients(
        UserPoolId=user_pool_id,
        MaxResults=60,
    )
    clients = response.get("UserPoolClients", [])
    if not clients:
        return None
    return clients[0]["ClientId"]


def admin_authenticate(
    user_pool_id: str,
    client_id: str,
    username: str,
    password: str,
    client: Any = None,
) -> dict[str, Any]:
    """Run AdminInitiateAuth with the username and password.

    Returns the raw Cognito response; callers inspect ``ChallengeName`` and
    ``AuthenticationResult``.
    """
    return _client(client).admin_initiate_auth(
        UserPoolId=user_pool_id,
        ClientId=client_id,
        AuthFlow=ADMIN_AUTH_FLOW,
        AuthParameters={"USERNAME": username, "PASSWORD": password},
    )


def create_user_pool(tenant: Tenant, client: Any = None) -> str:
    """Create the user pool for a tenant and return its id."""
    response = _client(client).create_user_pool(
        PoolName=f"{tenant.short_id}_UserPool",
        AdminCreateUserConfig={"AllowAdminCreateUserOnly": True},
        Policies={
            "PasswordPolicy": {
                "MinimumLength": 8,
                "RequireUppercase": True,
                "RequireLowercase": True,
                "RequireNumbers": True,
                "TemporaryPasswordValidityDays": TEMPORARY_PASSWORD_VALIDITY_DAYS,
            }
        },
        Schema=[
            {"Name": "email", "AttributeDataType": "String", "Required": True, "Mutable": True},
            {"Name": "given_name", "AttributeDataType": "String", "Required": True, "Mutable": True},
            {"Name": "family_name", "AttributeDataType": "String", "Required": True, "Mutable": True},
            {"Name": "tenant_id", "AttributeDataType": "String", "Required": False, "Mutable": False},
            {"Name": "company", "AttributeDataType": "String", "Required": False, "Mutable": True},
            {"Name": "plan", "AttributeDataType": "String", "Required": False, "Mutable": True},
        ],
    )
    user_pool_id = response["UserPool"]["Id"]
    logger.info(f"Created user pool {user_pool_id}", extra={"tenant": tenant.id})
    return user_pool_id


def create_app_client(tenant: Tenant, user_pool_id: str, client: Any = None) -> str:
    """Create a secretless app client allowing admin password sign-in."""
    response = _client(client).create_user_pool_client(
        UserPoolId=user_pool_id,
        ClientName=f"{tenant.short_id}_AppClient",
        GenerateSecret=False,
        ExplicitAuthFlows=APP_CLIENT_AUTH_FLOWS,
    )
    client_id = response["UserPoolClient"]["ClientId"]
    logger.info(f"Created app client {client_id}", extra={"user_pool": user_pool_id})
    return client_id


def create_tenant_user(
    tenant: Tenant,
    user_pool_id: str,
    registration: Registration,
    client: Any = None,
) -> str:
    """Create the tenant's first user and make its password permanent.

    The user is created with a throwaway temporary password and no
    invitation message, then the password from the sign-up form is set
    as permanent so the user can sign in straight away.
    """
    cognito = _client(client)
    response = cognito.admin_create_user(
        UserPoolId=user_pool_id,
        Username=registration.email,
        TemporaryPassword=generate_password(TEMPORARY_PASSWORD_LENGTH),
        MessageAction="SUPPRESS",
        DesiredDeliveryMediums=["EMAIL"],
        UserAttributes=[
            {"Name": "email", "Value": registration.email},
            {"Name": "family_name", "Value": registration.last_name},
            {"Name": "given_name", "Value": registration.first_name},
            {"Name": "custom:tenant_id", "Value": tenant.id},
            {"Name": "custom:company", "Value": registration.company},
            {"Name": "custom:plan", "Value": registration.plan},
        ],
    )
    username = response["User"]["Username"]
    cognito.admin_set_user_password(
        UserPoolId=user_pool_id,
        Username=username,
        Password=registration.password,
        Permanent=True,
    )
    logger.info(
        "Created tenant user",
        extra={"email": mask_email(registration.email), "user_pool": user_pool_id},
    )
    return username


def delete_user_pool(user_pool_id: str, client: Any = None) -> None:
    _client(client).delete_user_pool(UserPoolId=user_pool_id)
    logger.info(f"Deleted user pool {user_pool_id}")
