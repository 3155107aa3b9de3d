"""Unit tests for ConnectionPool."""

from unittest.mock import MagicMock, create_autospec, patch

import psycopg2
import pytest
from psycopg2 import pool as psycopg2_pool
from pydantic import SecretStr

from infrastructure.database.connection_pool import ConnectionPool
from infrastructure.database.exceptions import DatabaseConnectionError
from infrastructure.observability.probes import ConnectionProbe
from infrastructure.settings import DatabaseSettings

POOL_CLASS = "infrastructure.database.connection_pool.psycopg2_pool.ThreadedConnectionPool"


@pytest.fixture
def mock_db_settings():
    """Create mock database settings."""
    return DatabaseSettings(
        host="localhost",
        port=5432,
        username="test_user",
        password=SecretStr("test_pass"),
        pool_min_connections=2,
        pool_max_connections=5,
    )


@pytest.fixture
def probe():
    return create_autospec(ConnectionProbe, instance=True)


class TestConnectionPoolInit:
    """Tests for ConnectionPool initialization."""

    def test_pool_is_opened_lazily(self, mock_db_settings):
        """Should not connect until the first connection is requested."""
        with patch(POOL_CLASS) as mock_pool_class:
            pool = ConnectionPool(mock_db_settings, "hc_database")

            mock_pool_class.assert_not_called()
            assert not pool.is_initialized
            assert pool.database == "hc_database"

    def test_first_connection_opens_pool_with_settings(self, mock_db_settings):
        """Should create ThreadedConnectionPool for the pool's database."""
        with patch(POOL_CLASS) as mock_pool_class:
            pool = ConnectionPool(mock_db_settings, "hc_database")
            pool.get_connection()

            mock_pool_class.assert_called_once_with(
                minconn=2,
                maxconn=5,
                host="localhost",
                port=5432,
                dbname="hc_database",
                user="test_user",
                password="test_pass",
            )
            assert pool.is_initialized

    def test_pool_opened_once(self, mock_db_settings):
        with patch(POOL_CLASS) as mock_pool_class:
            pool = ConnectionPool(mock_db_settings, "hc_database")
            pool.get_connection()
            pool.get_connection()

            assert mock_pool_class.call_count == 1


class TestGetConnection:
    """Tests for get_connection method."""

    def test_gets_connection_from_pool(self, mock_db_settings, probe):
        """Should get connection from pool."""
        with patch(POOL_CLASS) as mock_pool_class:
            mock_pool_instance = MagicMock()
            mock_conn = MagicMock()
            mock_pool_instance.getconn.return_value = mock_conn
            mock_pool_class.return_value = mock_pool_instance

            pool = ConnectionPool(mock_db_settings, "hc_database", probe=probe)
            conn = pool.get_connection()

            mock_pool_instance.getconn.assert_called_once()
            assert conn == mock_conn
            probe.connection_acquired_from_pool.assert_called_once_with(
                database="hc_database"
            )

    def test_missing_database_raises_connection_error(self, mock_db_settings, probe):
        """Should surface server refusal as DatabaseConnectionError."""
        with patch(POOL_CLASS) as mock_pool_class:
            mock_pool_class.side_effect = psycopg2.OperationalError(
                'database "zz_database" does not exist'
            )

            pool = ConnectionPool(mock_db_settings, "zz_database", probe=probe)
            with pytest.raises(DatabaseConnectionError) as exc_info:
                pool.get_connection()

            assert "zz_database" in str(exc_info.value)
            assert not pool.is_initialized
            probe.pool_initialization_failed.assert_called_once()

    def test_exhausted_pool_raises(self, mock_db_settings, probe):
        with patch(POOL_CLASS) as mock_pool_class:
            mock_pool_class.return_value.getconn.side_effect = psycopg2_pool.PoolError(
                "connection pool exhausted"
            )

            pool = ConnectionPool(mock_db_settings, "hc_database", probe=probe)
            with pytest.raises(DatabaseConnectionError):
                pool.get_connection()

            probe.pool_exhausted.assert_called_once_with(database="hc_database")


class TestUnitOfWork:
    """Tests for the connection, autocommit and cursor context managers."""

    def test_connection_commits_and_returns(self, mock_db_settings):
        with patch(POOL_CLASS) as mock_pool_class:
            mock_conn = MagicMock()
            mock_pool_class.return_value.getconn.return_value = mock_conn

            pool = ConnectionPool(mock_db_settings, "hc_database")
            with pool.connection() as conn:
                assert conn is mock_conn

            mock_conn.commit.assert_called_once()
            mock_pool_class.return_value.putconn.assert_called_once_with(mock_conn)

    def test_connection_rolls_back_on_error(self, mock_db_settings):
        with patch(POOL_CLASS) as mock_pool_class:
            mock_conn = MagicMock()
            mock_pool_class.return_value.getconn.return_value = mock_conn

            pool = ConnectionPool(mock_db_settings, "hc_database")
            with pytest.raises(RuntimeError):
                with pool.connection():
                    raise RuntimeError("boom")

            mock_conn.rollback.assert_called_once()
            mock_conn.commit.assert_not_called()
            mock_pool_class.return_value.putconn.assert_called_once_with(mock_conn)

    def test_autocommit_connection_restores_mode(self, mock_db_settings):
        with patch(POOL_CLASS) as mock_pool_class:
            mock_conn = MagicMock()
            mock_pool_class.return_value.getconn.return_value = mock_conn

            pool = ConnectionPool(mock_db_settings, "hc_database")
            with pool.autocommit_connection() as conn:
                assert conn.autocommit is True

            assert mock_conn.autocommit is False
            mock_pool_class.return_value.putconn.assert_called_once_with(mock_conn)

    def test_cursor_passes_factory(self, mock_db_settings):
        with patch(POOL_CLASS) as mock_pool_class:
            mock_conn = MagicMock()
            mock_pool_class.return_value.getconn.return_value = mock_conn
            factory = object()

            pool = ConnectionPool(mock_db_settings, "hc_database")
            with pool.cursor(cursor_factory=factory):
                pass

            mock_conn.cursor.assert_called_once_with(cursor_factory=factory)
            mock_conn.commit.assert_called_once()


class TestReturnConnection:
    """Tests for return_connection method."""

    def test_handles_return_when_pool_not_initialized(self, mock_db_settings):
        """Should not raise when returning to uninitialized pool."""
        pool = ConnectionPool(mock_db_settings, "hc_database")

        # Should not raise
        pool.return_connection(MagicMock())

    def test_return_failure_is_reported(self, mock_db_settings, probe):
        with patch(POOL_CLASS) as mock_pool_class:
            mock_pool_class.return_value.putconn.side_effect = psycopg2_pool.PoolError(
                "trying to put unkeyed connection"
            )

            pool = ConnectionPool(mock_db_settings, "hc_database", probe=probe)
            pool.get_connection()
            pool.return_connection(MagicMock())

            probe.connection_return_failed.assert_called_once()


class TestCloseAll:
    """Tests for close_all method."""

    def test_closes_all_connections(self, mock_db_settings):
        """Should close all connections in pool."""
        with patch(POOL_CLASS) as mock_pool_class:
            mock_pool_instance = MagicMock()
            mock_pool_class.return_value = mock_pool_instance

            pool = ConnectionPool(mock_db_settings, "hc_database")
            pool.get_connection()
            pool.close_all()

            mock_pool_instance.closeall.assert_called_once()
            assert pool._pool is None

    def test_close_before_open_is_safe(self, mock_db_settings, probe):
        pool = ConnectionPool(mock_db_settings, "hc_database", probe=probe)

        pool.close_all()

        probe.pool_closed.assert_called_once_with(database="hc_database")
