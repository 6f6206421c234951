"""Secrets Manager helpers with caching."""

from __future__ import annotations

import base64
import json
from dataclasses import dataclass
from typing import Any

from onboarding.services.aws_clients import get_secretsmanager_client

_SECRET_CACHE: dict[str, dict[str, Any]] = {}


@dataclass(frozen=True)
class Credential:
    """A database login read from Secrets Manager."""

    username: str
    password: str

    def __repr__(self) -> str:
        return f"Credential(username={self.username!r}, password='***')"


def get_secret_json(secret_id: str) -> dict[str, Any]:
    """Fetch a secret from AWS Secrets Manager and parse JSON."""
    if secret_id in _SECRET_CACHE:
        return _SECRET_CACHE[secret_id]

    client = get_secretsmanager_client()
    response = client.get_secret_value(SecretId=secret_id)
    secret_str = response.get("SecretString")
    if not secret_str and response.get("SecretBinary"):
        secret_str = base64.b64decode(response["SecretBinary"]).decode("utf-8")
    if not secret_str:
        raise RuntimeError("Secret value is empty")

    secret_payload = json.loads(secret_str)
    _SECRET_CACHE[secret_id] = secret_payload
    return secret_payload


def get_credential(secret_id: str) -> Credential:
    """Load a ``{"username", "password"}`` secret as a Credential."""
    payload = get_secret_json(secret_id)
    username = payload.get("username") or payload.get("user")
    password = payload.get("password")
    if not username or not password:
        raise RuntimeError("Secret is missing database username or password")
    return Credential(str(username), str(password))


def clear_secret_cache() -> None:
    """Clear cached secrets (useful in tests)."""
    _SECRET_CACHE.clear()
