"""Unit test fixtures with mocked dependencies."""

from contextlib import contextmanager
from unittest.mock import MagicMock

import pytest


@pytest.fixture
def mock_db_settings():
    """Provide test database settings."""
    from infrastructure.settings import DatabaseSettings

    return DatabaseSettings(
        host="testhost",
        port=5432,
        username="testuser",
        password="testpass",
        platform_database="platform_db",
        pool_min_connections=1,
        pool_max_connections=4,
    )


@pytest.fixture
def mock_psycopg2_connection():
    """Provide a mocked psycopg2 connection."""
    conn = MagicMock()
    conn.closed = False

    cursor = MagicMock()
    cursor.fetchall.return_value = []
    cursor.fetchone.return_value = (1,)

    # Set up context manager
    cursor.__enter__ = MagicMock(return_value=cursor)
    cursor.__exit__ = MagicMock(return_value=False)
    conn.cursor.return_value = cursor

    return conn, cursor


def make_pool(database: str, conn: MagicMock) -> MagicMock:
    """Mock IConnectionPool whose connections and cursors all share conn."""
    pool = MagicMock()
    pool.database = database

    @contextmanager
    def connection():
        yield conn

    @contextmanager
    def cursor(cursor_factory=None):
        yield conn.cursor(cursor_factory=cursor_factory)

    pool.connection.side_effect = connection
    pool.autocommit_connection.side_effect = connection
    pool.cursor.side_effect = cursor
    return pool


@pytest.fixture
def mock_pool(mock_psycopg2_connection):
    """Provide a mocked connection pool and the cursor it hands out."""
    conn, cursor = mock_psycopg2_connection
    return make_pool("fp_database", conn), cursor


@pytest.fixture
def pool_factory():
    """Build mocked pools that hand out cursors of the given connection."""
    return make_pool
