"""Pydantic models for request and response payloads.

JSON payloads use camelCase keys (``companyName``, ``userPool``); the
Python attributes are snake_case.
"""

from __future__ import annotations

from typing import Any
from typing import Optional
from uuid import UUID

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Tenant(CamelModel):
    """A tenant record as stored by the tenant service."""

    id: Optional[str] = None
    active: bool = True
    company_name: Optional[str] = None
    plan: Optional[str] = None
    user_pool: Optional[str] = None
    database: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _normalize_id(cls, value: Any) -> Optional[str]:
        if value is None or value == "":
            return None
        return str(UUID(str(value)))

    @property
    def short_id(self) -> str:
        """First eight characters of the id, used in resource names."""
        if not self.id:
            raise ValueError("Tenant has no id")
        return self.id[:8]


class Registration(CamelModel):
    """Sign-up form submitted by a new tenant's first user."""

    company: str
    plan: str
    first_name: str
    last_name: str
    email: str
    password: str

    @field_validator("*")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.strip()


class SignInRequest(BaseModel):
    """Username and password posted to the auth service."""

    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class AuthenticationResult(CamelModel):
    """Tokens returned to the client after a successful sign-in."""

    access_token: Optional[str] = None
    id_token: Optional[str] = None
    expires_in: Optional[int] = None
    refresh_token: Optional[str] = None
    token_type: Optional[str] = None

    @classmethod
    def from_cognito(cls, result: dict[str, Any]) -> "AuthenticationResult":
        return cls(
            access_token=result.get("AccessToken"),
            id_token=result.get("IdToken"),
            expires_in=result.get("ExpiresIn"),
            refresh_token=result.get("RefreshToken"),
            token_type=result.get("TokenType"),
        )


class DatabaseCluster(BaseModel):
    """An unclaimed RDS cluster from the hot pool table."""

    model_config = ConfigDict(populate_by_name=True)

    cluster_identifier: str = Field(alias="DBClusterIdentifier")
    endpoint: str = Field(alias="Endpoint")
