"""Row-level reads and writes against division tables.

Backup reads whole tables; restore replays rows in batches. Each batch is a
single transaction and each row runs under its own savepoint, so a rejected
row (constraint violation, stale reference) is rolled back alone while the
rest of the batch commits.
"""

from __future__ import annotations

from typing import Any

import psycopg2
from psycopg2 import sql
from psycopg2.extras import Json, RealDictCursor

from divisions.domain.value_objects import ColumnDefinition, InsertOutcome
from divisions.infrastructure.ddl import DdlDialect, PostgresDialect
from divisions.ports.repositories import IConnectionPool, Row

_DESCRIBE_STRUCTURE = """
    SELECT column_name, data_type, udt_name, is_nullable, column_default
    FROM information_schema.columns
    WHERE table_schema = %s AND table_name = %s
    ORDER BY ordinal_position
"""

# Sequences referenced by column defaults, owned or not. Replicated tables
# carry nextval() defaults without OWNED BY.
_DEFAULT_SEQUENCES = """
    SELECT a.attname, s.relname
    FROM pg_attrdef ad
    JOIN pg_class t ON t.oid = ad.adrelid
    JOIN pg_namespace n ON n.oid = t.relnamespace
    JOIN pg_attribute a ON a.attrelid = ad.adrelid AND a.attnum = ad.adnum
    JOIN pg_depend d ON d.classid = 'pg_attrdef'::regclass
        AND d.objid = ad.oid
        AND d.refclassid = 'pg_class'::regclass
    JOIN pg_class s ON s.oid = d.refobjid AND s.relkind = 'S'
    WHERE n.nspname = %s AND t.relname = %s
    ORDER BY a.attnum
"""


class PostgresTableDataStore:
    """Reads and replays table rows with psycopg2."""

    def __init__(self, schema: str = "public", dialect: DdlDialect | None = None):
        self._schema = schema
        self._dialect = dialect or PostgresDialect()

    def fetch_rows(self, pool: IConnectionPool, table_name: str) -> list[Row]:
        query = sql.SQL("SELECT * FROM {}").format(sql.Identifier(table_name))
        with pool.cursor(cursor_factory=RealDictCursor) as cursor:
            cursor.execute(query)
            return [dict(row) for row in cursor.fetchall()]

    def describe_structure(self, pool: IConnectionPool, table_name: str) -> list[Row]:
        with pool.cursor(cursor_factory=RealDictCursor) as cursor:
            cursor.execute(_DESCRIBE_STRUCTURE, (self._schema, table_name))
            return [dict(row) for row in cursor.fetchall()]

    def clear_table(self, pool: IConnectionPool, table_name: str) -> None:
        with pool.cursor() as cursor:
            cursor.execute(
                sql.SQL("DELETE FROM {}").format(sql.Identifier(table_name))
            )

    def insert_rows(
        self,
        pool: IConnectionPool,
        table_name: str,
        rows: list[Row],
        json_columns: frozenset[str] = frozenset(),
        batch_size: int = 100,
    ) -> InsertOutcome:
        """Insert rows with ON CONFLICT DO NOTHING.

        A row counts as inserted only when the statement affected a row, so
        rows skipped by a conflict are not counted. Values bound for array
        and user-defined columns are cast to the target column's type, since
        snapshots hold their elements as plain strings.

        Returns:
            Counts of inserted and rejected rows, with the first error seen
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if not rows:
            return InsertOutcome()

        casts = self._column_casts(pool, table_name)
        outcome = InsertOutcome()
        for start in range(0, len(rows), batch_size):
            batch = rows[start : start + batch_size]
            outcome = outcome.merge(
                self._insert_batch(pool, table_name, batch, json_columns, casts)
            )
        return outcome

    def reset_sequences(self, pool: IConnectionPool, table_name: str) -> list[str]:
        """Move each default-feeding sequence past the column's highest value.

        Rows replayed with explicit ids leave their sequences untouched;
        without this the next ordinary insert would collide.

        Returns:
            Names of the sequences that were reset
        """
        with pool.cursor() as cursor:
            cursor.execute(_DEFAULT_SEQUENCES, (self._schema, table_name))
            pairs = cursor.fetchall()
            for column, sequence in pairs:
                cursor.execute(
                    _setval_statement(self._schema, table_name, column, sequence)
                )
        return [sequence for _, sequence in pairs]

    def _column_casts(self, pool: IConnectionPool, table_name: str) -> dict[str, str]:
        """Target type of every array or user-defined column, by name."""
        casts = {}
        for row in self.describe_structure(pool, table_name):
            column = ColumnDefinition.from_catalog_row(row)
            if column.is_array or column.is_user_defined:
                casts[column.name] = self._dialect.render_column_type(column)
        return casts

    def _insert_batch(
        self,
        pool: IConnectionPool,
        table_name: str,
        batch: list[Row],
        json_columns: frozenset[str],
        casts: dict[str, str],
    ) -> InsertOutcome:
        inserted = 0
        failed = 0
        first_error: str | None = None

        with pool.connection() as conn:
            with conn.cursor() as cursor:
                for row in batch:
                    columns = list(row)
                    values = [
                        _adapt_value(row[column], column in json_columns)
                        for column in columns
                    ]
                    cursor.execute("SAVEPOINT restore_row")
                    try:
                        cursor.execute(
                            _insert_statement(table_name, columns, casts), values
                        )
                    except psycopg2.Error as e:
                        cursor.execute("ROLLBACK TO SAVEPOINT restore_row")
                        failed += 1
                        if first_error is None:
                            first_error = str(e).strip()
                        continue
                    affected = cursor.rowcount
                    cursor.execute("RELEASE SAVEPOINT restore_row")
                    if affected > 0:
                        inserted += 1

        return InsertOutcome(inserted=inserted, failed=failed, first_error=first_error)


def _placeholder(column: str, casts: dict[str, str]) -> sql.Composable:
    if column in casts:
        return sql.SQL("CAST({} AS {})").format(sql.Placeholder(), sql.SQL(casts[column]))
    return sql.Placeholder()


def _insert_statement(
    table_name: str, columns: list[str], casts: dict[str, str] | None = None
) -> sql.Composed:
    casts = casts or {}
    return sql.SQL("INSERT INTO {} ({}) VALUES ({}) ON CONFLICT DO NOTHING").format(
        sql.Identifier(table_name),
        sql.SQL(", ").join(sql.Identifier(column) for column in columns),
        sql.SQL(", ").join(_placeholder(column, casts) for column in columns),
    )


def _setval_statement(
    schema: str, table_name: str, column: str, sequence: str
) -> sql.Composed:
    # is_called=false: the next nextval() returns exactly max + 1
    qualified = ".".join(
        '"' + part.replace('"', '""') + '"' for part in (schema, sequence)
    )
    return sql.SQL(
        "SELECT setval({}::regclass, COALESCE((SELECT max({}) FROM {}), 0) + 1, false)"
    ).format(
        sql.Literal(qualified),
        sql.Identifier(column),
        sql.Identifier(schema, table_name),
    )


def _adapt_value(value: Any, is_json: bool) -> Any:
    if is_json and value is not None:
        return Json(value)
    return value
