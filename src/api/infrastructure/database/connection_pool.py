"""Connection pool for a single PostgreSQL database.

This module provides connection pooling using psycopg2.pool.ThreadedConnectionPool.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterator

import psycopg2
from psycopg2 import pool as psycopg2_pool

from infrastructure.database.exceptions import DatabaseConnectionError
from infrastructure.observability.probes import (
    ConnectionProbe,
    DefaultConnectionProbe,
)

if TYPE_CHECKING:
    from psycopg2.extensions import connection as PsycopgConnection
    from psycopg2.extensions import cursor as PsycopgCursor

    from infrastructure.settings import DatabaseSettings


class ConnectionPool:
    """Thread-safe connection pool for one database.

    Wraps psycopg2.pool.ThreadedConnectionPool. The underlying pool is opened
    lazily on the first connection request, so a pool can be handed out for a
    database that does not exist yet; the failure surfaces as a
    DatabaseConnectionError on first use.

    Attributes:
        _settings: Database server settings
        _database: Name of the database this pool connects to
        _pool: The underlying ThreadedConnectionPool instance
        _probe: Observability probe for monitoring
    """

    def __init__(
        self,
        settings: DatabaseSettings,
        database: str,
        probe: ConnectionProbe | None = None,
    ):
        """Initialize the connection pool.

        Args:
            settings: Database server settings
            database: Database name
            probe: Optional observability probe
        """
        self._settings = settings
        self._database = database
        self._probe = probe or DefaultConnectionProbe()
        self._pool: psycopg2_pool.ThreadedConnectionPool | None = None
        self._lock = threading.Lock()

    @property
    def database(self) -> str:
        """The database this pool connects to."""
        return self._database

    @property
    def is_initialized(self) -> bool:
        """Whether the underlying pool has been opened."""
        return self._pool is not None

    def _initialize_pool(self) -> psycopg2_pool.ThreadedConnectionPool:
        """Open the ThreadedConnectionPool."""
        try:
            pool = psycopg2_pool.ThreadedConnectionPool(
                minconn=self._settings.pool_min_connections,
                maxconn=self._settings.pool_max_connections,
                host=self._settings.host,
                port=self._settings.port,
                dbname=self._database,
                user=self._settings.username,
                password=self._settings.password.get_secret_value(),
            )
        except psycopg2.Error as e:
            self._probe.pool_initialization_failed(database=self._database, error=e)
            raise DatabaseConnectionError(
                f"Failed to open connection pool for {self._database}: {e}"
            ) from e

        self._probe.pool_initialized(
            database=self._database,
            min_conn=self._settings.pool_min_connections,
            max_conn=self._settings.pool_max_connections,
        )
        return pool

    def get_connection(self) -> PsycopgConnection:
        """Get a connection from the pool, opening the pool if needed.

        Returns:
            A psycopg2 connection.

        Raises:
            DatabaseConnectionError: If the pool cannot be opened, is exhausted,
                or the server refuses the connection.
        """
        if self._pool is None:
            with self._lock:
                # Double-check after acquiring lock
                if self._pool is None:
                    self._pool = self._initialize_pool()

        try:
            conn = self._pool.getconn()
        except psycopg2_pool.PoolError as e:
            self._probe.pool_exhausted(database=self._database)
            raise DatabaseConnectionError(
                f"Pool exhausted, cannot get connection: {e}"
            ) from e
        except psycopg2.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to {self._database}: {e}"
            ) from e

        self._probe.connection_acquired_from_pool(database=self._database)
        return conn

    def return_connection(self, conn: PsycopgConnection) -> None:
        """Return a connection to the pool.

        Args:
            conn: The connection to return.
        """
        if self._pool is None:
            return

        try:
            self._pool.putconn(conn)
            self._probe.connection_returned_to_pool(database=self._database)
        except Exception as e:
            self._probe.connection_return_failed(database=self._database, error=e)
            # Don't raise - connection will be discarded

    @contextmanager
    def connection(self) -> Iterator[PsycopgConnection]:
        """Borrow a connection for one unit of work.

        Commits when the block exits normally, rolls back on exception, and
        always returns the connection to the pool.
        """
        conn = self.get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            self.return_connection(conn)

    @contextmanager
    def autocommit_connection(self) -> Iterator[PsycopgConnection]:
        """Borrow a connection in autocommit mode.

        Required for statements that cannot run inside a transaction block,
        such as CREATE DATABASE and DROP DATABASE.
        """
        conn = self.get_connection()
        conn.autocommit = True
        try:
            yield conn
        finally:
            conn.autocommit = False
            self.return_connection(conn)

    @contextmanager
    def cursor(self, cursor_factory: Any = None) -> Iterator[PsycopgCursor]:
        """Open a cursor inside a single committed unit of work."""
        with self.connection() as conn:
            with conn.cursor(cursor_factory=cursor_factory) as cursor:
                yield cursor

    def close_all(self) -> None:
        """Close all connections in the pool."""
        with self._lock:
            if self._pool is not None:
                self._pool.closeall()
                self._pool = None
        self._probe.pool_closed(database=self._database)
