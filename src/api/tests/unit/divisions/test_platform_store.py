"""Unit tests for the platform database stores."""

from psycopg2.extras import RealDictCursor

from divisions.domain.value_objects import DivisionCode
from divisions.infrastructure.platform_store import (
    PostgresAccessControlStore,
    PostgresCompanySettingsStore,
)

HC = DivisionCode("HC")


class TestAccessControlStore:
    """Tests for grant reads and writes."""

    def test_fetch_user_divisions_filters_by_code(self, mock_pool):
        pool, cursor = mock_pool
        cursor.fetchall.return_value = [{"user_id": 7, "division": "HC", "username": "ann"}]

        records = PostgresAccessControlStore(pool).fetch_user_divisions(HC)

        assert records == [{"user_id": 7, "division": "HC", "username": "ann"}]
        pool.cursor.assert_called_once_with(cursor_factory=RealDictCursor)
        sql, params = cursor.execute.call_args[0]
        assert "FROM user_divisions" in sql
        assert params == ("HC",)

    def test_fetch_sales_rep_access(self, mock_pool):
        pool, cursor = mock_pool

        PostgresAccessControlStore(pool).fetch_sales_rep_access(HC)

        assert "FROM user_sales_rep_access" in cursor.execute.call_args[0][0]

    def test_fetch_user_preferences_matches_default_division(self, mock_pool):
        pool, cursor = mock_pool

        PostgresAccessControlStore(pool).fetch_user_preferences(HC)

        assert "default_division = %s" in cursor.execute.call_args[0][0]

    def test_grant_user_division_is_idempotent_insert(self, mock_pool):
        pool, cursor = mock_pool

        PostgresAccessControlStore(pool).grant_user_division(7, HC)

        sql, params = cursor.execute.call_args[0]
        assert "ON CONFLICT (user_id, division) DO NOTHING" in sql
        assert params == (7, "HC")

    def test_grant_sales_rep_access(self, mock_pool):
        pool, cursor = mock_pool

        PostgresAccessControlStore(pool).grant_sales_rep_access(7, HC, "Pat", 1)

        sql, params = cursor.execute.call_args[0]
        assert "INSERT INTO user_sales_rep_access" in sql
        assert params == (7, "HC", "Pat", 1)


class TestCompanySettingsStore:
    """Tests for the divisions company setting."""

    def test_returns_decoded_value(self, mock_pool):
        pool, cursor = mock_pool
        cursor.fetchone.return_value = ([{"code": "HC", "name": "Health"}],)

        assert PostgresCompanySettingsStore(pool).fetch_divisions() == [
            {"code": "HC", "name": "Health"}
        ]

    def test_parses_text_value(self, mock_pool):
        pool, cursor = mock_pool
        cursor.fetchone.return_value = ('[{"code": "HC"}]',)

        assert PostgresCompanySettingsStore(pool).fetch_divisions() == [{"code": "HC"}]

    def test_none_when_setting_absent(self, mock_pool):
        pool, cursor = mock_pool
        cursor.fetchone.return_value = None

        assert PostgresCompanySettingsStore(pool).fetch_divisions() is None
