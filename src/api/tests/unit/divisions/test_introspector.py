"""Unit tests for PostgresSchemaIntrospector."""

from psycopg2.extras import RealDictCursor

from divisions.infrastructure.introspector import PostgresSchemaIntrospector


class TestListTables:
    """Tests for table enumeration."""

    def test_returns_table_names_in_catalog_order(self, mock_pool):
        pool, cursor = mock_pool
        cursor.fetchall.return_value = [("fp_orders",), ("fp_widgets",)]

        tables = PostgresSchemaIntrospector().list_tables(pool)

        assert tables == ["fp_orders", "fp_widgets"]
        sql, params = cursor.execute.call_args[0]
        assert "BASE TABLE" in sql
        assert "ORDER BY table_name" in sql
        assert params == ("public",)

    def test_uses_configured_schema(self, mock_pool):
        pool, cursor = mock_pool

        PostgresSchemaIntrospector(schema="finance").list_tables(pool)

        assert cursor.execute.call_args[0][1] == ("finance",)


class TestTableExists:
    def test_true_when_row_returned(self, mock_pool):
        pool, cursor = mock_pool
        cursor.fetchone.return_value = (1,)

        assert PostgresSchemaIntrospector().table_exists(pool, "fp_widgets")
        assert cursor.execute.call_args[0][1] == ("public", "fp_widgets")

    def test_false_when_no_row(self, mock_pool):
        pool, cursor = mock_pool
        cursor.fetchone.return_value = None

        assert not PostgresSchemaIntrospector().table_exists(pool, "fp_gone")


class TestDescribeColumns:
    """Tests for column description."""

    def test_builds_column_definitions(self, mock_pool):
        pool, cursor = mock_pool
        cursor.fetchall.return_value = [
            {
                "column_name": "id",
                "data_type": "integer",
                "character_maximum_length": None,
                "numeric_precision": 32,
                "numeric_scale": 0,
                "is_nullable": "NO",
                "column_default": "nextval('fp_widgets_id_seq'::regclass)",
                "udt_name": "int4",
            },
            {
                "column_name": "name",
                "data_type": "text",
                "character_maximum_length": None,
                "numeric_precision": None,
                "numeric_scale": None,
                "is_nullable": "YES",
                "column_default": None,
                "udt_name": "text",
            },
        ]

        columns = PostgresSchemaIntrospector().describe_columns(pool, "fp_widgets")

        pool.cursor.assert_called_once_with(cursor_factory=RealDictCursor)
        assert [c.name for c in columns] == ["id", "name"]
        assert columns[0].is_nullable is False
        assert columns[0].column_default.startswith("nextval")
        assert "ORDER BY ordinal_position" in cursor.execute.call_args[0][0]

    def test_empty_when_table_not_found(self, mock_pool):
        pool, cursor = mock_pool
        cursor.fetchall.return_value = []

        assert PostgresSchemaIntrospector().describe_columns(pool, "fp_gone") == []


class TestSequencesAndIndexes:
    """Tests for owned sequences, indexes and primary key lookup."""

    def test_list_owned_sequences(self, mock_pool):
        pool, cursor = mock_pool
        cursor.fetchall.return_value = [("fp_widgets_id_seq",)]

        assert PostgresSchemaIntrospector().list_owned_sequences(
            pool, "fp_widgets"
        ) == ["fp_widgets_id_seq"]
        assert "relkind = 'S'" in cursor.execute.call_args[0][0]

    def test_list_non_primary_indexes(self, mock_pool):
        pool, cursor = mock_pool
        cursor.fetchall.return_value = [
            ("fp_widgets_name_idx", "CREATE INDEX fp_widgets_name_idx ON ...")
        ]

        indexes = PostgresSchemaIntrospector().list_non_primary_indexes(
            pool, "fp_widgets"
        )

        assert indexes[0].name == "fp_widgets_name_idx"
        assert "NOT x.indisprimary" in cursor.execute.call_args[0][0]

    def test_list_primary_key_columns(self, mock_pool):
        pool, cursor = mock_pool
        cursor.fetchall.return_value = [("division",), ("id",)]

        assert PostgresSchemaIntrospector().list_primary_key_columns(
            pool, "fp_widgets"
        ) == ["division", "id"]


class TestDescribeTable:
    def test_missing_table_has_no_detail(self, mock_pool):
        pool, cursor = mock_pool
        cursor.fetchall.return_value = []

        table = PostgresSchemaIntrospector().describe_table(pool, "fp_gone")

        assert not table.exists
        assert cursor.execute.call_count == 1
