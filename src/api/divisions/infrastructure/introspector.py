"""PostgreSQL catalog introspection for division databases.

All queries read catalog metadata only; nothing here writes to the database.
"""

from __future__ import annotations

from psycopg2.extras import RealDictCursor

from divisions.domain.value_objects import (
    ColumnDefinition,
    IndexDefinition,
    TableDefinition,
)
from divisions.ports.repositories import IConnectionPool

_LIST_TABLES = """
    SELECT table_name
    FROM information_schema.tables
    WHERE table_schema = %s
      AND table_type = 'BASE TABLE'
    ORDER BY table_name
"""

_TABLE_EXISTS = """
    SELECT 1
    FROM information_schema.tables
    WHERE table_schema = %s AND table_name = %s
"""

_DESCRIBE_COLUMNS = """
    SELECT
        column_name,
        data_type,
        character_maximum_length,
        numeric_precision,
        numeric_scale,
        is_nullable,
        column_default,
        udt_name
    FROM information_schema.columns
    WHERE table_schema = %s AND table_name = %s
    ORDER BY ordinal_position
"""

_OWNED_SEQUENCES = """
    SELECT DISTINCT c.relname AS sequence_name
    FROM pg_class c
    JOIN pg_depend d ON d.objid = c.oid
    JOIN pg_class t ON d.refobjid = t.oid
    JOIN pg_namespace n ON n.oid = t.relnamespace
    WHERE c.relkind = 'S'
      AND n.nspname = %s
      AND t.relname = %s
    ORDER BY c.relname
"""

_NON_PRIMARY_INDEXES = """
    SELECT i.indexname, i.indexdef
    FROM pg_indexes i
    JOIN pg_namespace n ON n.nspname = i.schemaname
    JOIN pg_class c ON c.relname = i.indexname AND c.relnamespace = n.oid
    JOIN pg_index x ON x.indexrelid = c.oid
    WHERE i.schemaname = %s
      AND i.tablename = %s
      AND NOT x.indisprimary
    ORDER BY i.indexname
"""

_PRIMARY_KEY_COLUMNS = """
    SELECT a.attname
    FROM pg_index x
    JOIN pg_class t ON t.oid = x.indrelid
    JOIN pg_namespace n ON n.oid = t.relnamespace
    JOIN pg_attribute a ON a.attrelid = t.oid AND a.attnum = ANY(x.indkey)
    WHERE x.indisprimary
      AND n.nspname = %s
      AND t.relname = %s
    ORDER BY array_position(x.indkey::int2[], a.attnum)
"""


class PostgresSchemaIntrospector:
    """Reads table structure from information_schema and pg_catalog."""

    def __init__(self, schema: str = "public"):
        self._schema = schema

    @property
    def schema(self) -> str:
        return self._schema

    def list_tables(self, pool: IConnectionPool) -> list[str]:
        with pool.cursor() as cursor:
            cursor.execute(_LIST_TABLES, (self._schema,))
            return [row[0] for row in cursor.fetchall()]

    def table_exists(self, pool: IConnectionPool, table_name: str) -> bool:
        with pool.cursor() as cursor:
            cursor.execute(_TABLE_EXISTS, (self._schema, table_name))
            return cursor.fetchone() is not None

    def describe_columns(
        self, pool: IConnectionPool, table_name: str
    ) -> list[ColumnDefinition]:
        """Columns in physical order.

        An empty list means the table was not found, which can happen when
        the catalog read races with concurrent DDL.
        """
        with pool.cursor(cursor_factory=RealDictCursor) as cursor:
            cursor.execute(_DESCRIBE_COLUMNS, (self._schema, table_name))
            return [ColumnDefinition.from_catalog_row(row) for row in cursor.fetchall()]

    def list_owned_sequences(self, pool: IConnectionPool, table_name: str) -> list[str]:
        with pool.cursor() as cursor:
            cursor.execute(_OWNED_SEQUENCES, (self._schema, table_name))
            return [row[0] for row in cursor.fetchall()]

    def list_non_primary_indexes(
        self, pool: IConnectionPool, table_name: str
    ) -> list[IndexDefinition]:
        with pool.cursor() as cursor:
            cursor.execute(_NON_PRIMARY_INDEXES, (self._schema, table_name))
            return [
                IndexDefinition(name=name, definition=definition)
                for name, definition in cursor.fetchall()
            ]

    def list_primary_key_columns(
        self, pool: IConnectionPool, table_name: str
    ) -> list[str]:
        with pool.cursor() as cursor:
            cursor.execute(_PRIMARY_KEY_COLUMNS, (self._schema, table_name))
            return [row[0] for row in cursor.fetchall()]

    def describe_table(self, pool: IConnectionPool, table_name: str) -> TableDefinition:
        """Collect columns, sequences, indexes and primary key of one table."""
        columns = self.describe_columns(pool, table_name)
        if not columns:
            return TableDefinition(name=table_name)
        return TableDefinition(
            name=table_name,
            columns=tuple(columns),
            sequences=tuple(self.list_owned_sequences(pool, table_name)),
            indexes=tuple(self.list_non_primary_indexes(pool, table_name)),
            primary_key=tuple(self.list_primary_key_columns(pool, table_name)),
        )
