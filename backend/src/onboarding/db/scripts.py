"""Execution of the bundled SQL scripts.

Plain scripts hold one statement per ``;``-terminated line group.
``user.sql`` contains ``DO $$ ... $$;`` blocks whose bodies include
semicolons, so it is split on the closing ``$$;`` instead.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any
from typing import Iterable

import psycopg
from psycopg import sql

from onboarding.exceptions import DatabaseError
from onboarding.utils.logging import get_logger

logger = get_logger(__name__)

SQL_DIR = Path(__file__).parent / "sql"

MAX_SQL_BATCH_SIZE = 25

STATEMENT_DELIMITER = re.compile(r";\r?\n")
DOLLAR_QUOTED_DELIMITER = re.compile(r"(\$\$;)\r?\n")

APP_USER_PLACEHOLDER = "{{DB_APP_USER}}"
APP_PASS_PLACEHOLDER = "{{DB_APP_PASS}}"

# Unquoted role names fold to lower case, so only lower-case names are accepted
_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")


def load_script(name: str) -> str:
    """Read a bundled SQL script by file name."""
    return (SQL_DIR / name).read_text(encoding="utf-8")


def split_statements(script: str) -> list[str]:
    """Split a plain script on ``;`` + newline, dropping blank chunks."""
    statements = []
    for chunk in STATEMENT_DELIMITER.split(script):
        statement = chunk.strip()
        if statement:
            statements.append(statement)
    return statements


def split_dollar_quoted(script: str) -> list[str]:
    """Split a script of dollar-quoted blocks, keeping each ``$$;`` terminator."""
    parts = DOLLAR_QUOTED_DELIMITER.split(script)
    statements = []
    # re.split with a capture group alternates chunk, delimiter, chunk, ...
    for index in range(0, len(parts), 2):
        chunk = parts[index]
        terminator = parts[index + 1] if index + 1 < len(parts) else ""
        statement = (chunk + terminator).strip()
        if statement:
            statements.append(statement)
    return statements


def validate_identifier(name: str) -> str:
    """Validate a role name before it is placed into SQL text."""
    if not name or not _IDENTIFIER.match(name) or len(name) > 63:
        raise ValueError(f"Invalid database identifier: {name!r}")
    return name


def render_user_script(
    script: str,
    username: str,
    password: str,
    context: Any,
) -> str:
    """Substitute the application user placeholders in ``user.sql``.

    The password becomes a quoted SQL literal rendered against
    ``context`` (a connection or cursor) so it is escaped with the
    server's quoting rules.
    """
    validate_identifier(username)
    password_literal = sql.Literal(password).as_string(context)
    return script.replace(APP_USER_PLACEHOLDER, username).replace(
        APP_PASS_PLACEHOLDER, password_literal
    )


class StatementBatch:
    """Executes statements and commits every ``batch_size`` statements.

    The statement count spans every script run on the same connection, so
    commit points follow the running total rather than restarting per
    script. :meth:`flush` commits whatever is pending at the end of a
    script.
    """

    def __init__(
        self,
        connection: psycopg.Connection,
        batch_size: int = MAX_SQL_BATCH_SIZE,
    ):
        self._connection = connection
        self._batch_size = batch_size
        self._pending: list[str] = []
        self.count = 0

    def add(self, statement: str) -> None:
        self._pending.append(statement)
        self.count += 1
        if self.count % self._batch_size == 0:
            self.flush()

    def flush(self) -> None:
        pending, self._pending = self._pending, []
        try:
            with self._connection.cursor() as cursor:
                for statement in pending:
                    cursor.execute(statement)
            self._connection.commit()
        except psycopg.Error as exc:
            self._connection.rollback()
            raise DatabaseError("SQL execution failed", detail=str(exc)) from exc


def run_statements(batch: StatementBatch, statements: Iterable[str]) -> None:
    """Run statements through ``batch`` and commit the remainder."""
    for statement in statements:
        batch.add(statement)
    batch.flush()


def run_script(batch: StatementBatch, name: str) -> None:
    """Run a bundled plain SQL script."""
    statements = split_statements(load_script(name))
    logger.info(f"Running {name}", extra={"statements": len(statements)})
    run_statements(batch, statements)


def run_user_script(
    batch: StatementBatch,
    connection: psycopg.Connection,
    username: str,
    password: str,
) -> None:
    """Create or update the application role and its grants."""
    rendered = render_user_script(load_script("user.sql"), username, password, connection)
    statements = split_dollar_quoted(rendered)
    logger.info("Running user.sql", extra={"db_user": username})
    run_statements(batch, statements)
