"""Server-level management of division databases.

CREATE DATABASE and DROP DATABASE cannot run inside a transaction block, so
every statement here goes through an autocommit connection on the platform
pool.
"""

from __future__ import annotations

import psycopg2
from psycopg2 import errors as pg_errors
from psycopg2 import sql

from divisions.domain.value_objects import DivisionCode
from divisions.infrastructure.observability import (
    DatabaseAdministrationProbe,
    DefaultDatabaseAdministrationProbe,
)
from divisions.ports.exceptions import DivisionAlreadyExistsError
from divisions.ports.repositories import IConnectionPool
from infrastructure.database.exceptions import QueryError

SYSTEM_DATABASES = ("postgres", "template0", "template1")

_TERMINATE_SESSIONS = """
    SELECT pg_terminate_backend(pid)
    FROM pg_stat_activity
    WHERE datname = %s AND pid <> pg_backend_pid()
"""

_DATABASE_EXISTS = "SELECT 1 FROM pg_database WHERE datname = %s"

_LIST_DATABASES = """
    SELECT datname
    FROM pg_database
    WHERE datname LIKE %s
      AND NOT datname = ANY(%s)
    ORDER BY datname
"""


class PostgresDatabaseAdministrator:
    """Creates, drops and lists databases on the PostgreSQL server."""

    def __init__(
        self,
        platform_pool: IConnectionPool,
        probe: DatabaseAdministrationProbe | None = None,
    ):
        self._pool = platform_pool
        self._probe = probe or DefaultDatabaseAdministrationProbe()

    def create_database(self, database_name: str) -> None:
        """Create an empty UTF8 database.

        Raises:
            DivisionAlreadyExistsError: If the database already exists
        """
        statement = sql.SQL("CREATE DATABASE {} WITH ENCODING 'UTF8'").format(
            sql.Identifier(database_name)
        )
        with self._pool.autocommit_connection() as conn:
            with conn.cursor() as cursor:
                try:
                    cursor.execute(statement)
                except pg_errors.DuplicateDatabase as e:
                    code = DivisionCode.from_database_name(database_name)
                    raise DivisionAlreadyExistsError(
                        str(code) if code else database_name
                    ) from e
                except psycopg2.Error as e:
                    raise QueryError(
                        f"Failed to create database {database_name}: {e}",
                        query="CREATE DATABASE",
                    ) from e
        self._probe.database_created(database=database_name)

    def drop_database(self, database_name: str) -> None:
        """Terminate other sessions on the database, then drop it if present."""
        with self._pool.autocommit_connection() as conn:
            with conn.cursor() as cursor:
                cursor.execute(_TERMINATE_SESSIONS, (database_name,))
                terminated = cursor.rowcount
                try:
                    cursor.execute(
                        sql.SQL("DROP DATABASE IF EXISTS {}").format(
                            sql.Identifier(database_name)
                        )
                    )
                except psycopg2.Error as e:
                    raise QueryError(
                        f"Failed to drop database {database_name}: {e}",
                        query="DROP DATABASE",
                    ) from e
        if terminated > 0:
            self._probe.sessions_terminated(database=database_name, count=terminated)
        self._probe.database_dropped(database=database_name)

    def database_exists(self, database_name: str) -> bool:
        with self._pool.cursor() as cursor:
            cursor.execute(_DATABASE_EXISTS, (database_name,))
            return cursor.fetchone() is not None

    def list_databases(self, suffix: str) -> list[str]:
        """Non-system databases whose names end with suffix."""
        pattern = "%" + suffix.replace("_", r"\_")
        with self._pool.cursor() as cursor:
            cursor.execute(_LIST_DATABASES, (pattern, list(SYSTEM_DATABASES)))
            return [row[0] for row in cursor.fetchall()]
