"""PostgreSQL connections for the bootstrap custom resource."""

from __future__ import annotations

from typing import Any

import psycopg

from onboarding.config import database_port
from onboarding.config import database_sslmode
from onboarding.services.secrets import Credential
from onboarding.utils.logging import get_logger

logger = get_logger(__name__)


def connect(host: str, database: str, credential: Credential) -> psycopg.Connection:
    """Open a connection using keyword args to avoid DSN parsing issues.

    Autocommit stays off: callers commit at batch boundaries.
    """
    connect_kwargs: dict[str, Any] = {
        "host": host,
        "port": database_port(),
        "dbname": database,
        "user": credential.username,
        "password": credential.password,
    }
    sslmode = database_sslmode()
    if sslmode:
        connect_kwargs["sslmode"] = sslmode

    # Credentials are never logged
    logger.info(
        f"Connecting to database: host={host}, port={connect_kwargs['port']}, "
        f"database={database}"
    )
    return psycopg.connect(**connect_kwargs)
