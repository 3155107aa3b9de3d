"""Recreates template tables inside other division databases.

Object creation is dependency ordered: owned sequences first (column
defaults reference them), then the table, then its secondary indexes.
Every statement runs in its own transaction so that a tolerated sequence or
index failure does not poison the statements that follow it.
"""

from __future__ import annotations

import psycopg2
from psycopg2 import errors as pg_errors

from divisions.domain.value_objects import NameMapping
from divisions.infrastructure.ddl import DdlDialect, PostgresDialect
from divisions.infrastructure.introspector import PostgresSchemaIntrospector
from divisions.infrastructure.observability import (
    DefaultSchemaReplicationProbe,
    SchemaReplicationProbe,
)
from divisions.ports.exceptions import (
    TableReplicationError,
    TemplateTableNotFoundError,
)
from divisions.ports.repositories import IConnectionPool, ISchemaIntrospector

_ALREADY_EXISTS_ERRORS = (pg_errors.DuplicateTable, pg_errors.DuplicateObject)


def is_already_exists_error(error: Exception) -> bool:
    """Whether a driver error reports a name collision."""
    return isinstance(error, _ALREADY_EXISTS_ERRORS) or "already exists" in str(
        error
    )


class SchemaReplicator:
    """Copies one table's structure from a source to a target division.

    Example:
        replicator = SchemaReplicator()
        created = replicator.replicate_table(
            fp_pool, "fp_widgets", xy_pool, source_prefix="fp", target_prefix="xy"
        )
    """

    def __init__(
        self,
        introspector: ISchemaIntrospector | None = None,
        dialect: DdlDialect | None = None,
        probe: SchemaReplicationProbe | None = None,
    ):
        self._introspector = introspector or PostgresSchemaIntrospector()
        self._dialect = dialect or PostgresDialect()
        self._probe = probe or DefaultSchemaReplicationProbe()

    def replicate_table(
        self,
        source_pool: IConnectionPool,
        source_table: str,
        target_pool: IConnectionPool,
        source_prefix: str,
        target_prefix: str,
    ) -> bool:
        """Create the translated copy of source_table in the target database.

        Returns:
            True if the table was created, False if it already existed

        Raises:
            TemplateTableNotFoundError: If the source reports no columns
            TableReplicationError: If the CREATE TABLE statement fails
        """
        mapping = NameMapping(source_prefix=source_prefix, target_prefix=target_prefix)
        target_table = mapping.translate(source_table)
        database = target_pool.database

        if self._introspector.table_exists(target_pool, target_table):
            self._probe.table_already_present(database=database, table_name=target_table)
            return False

        definition = self._introspector.describe_table(source_pool, source_table)
        if not definition.exists:
            raise TemplateTableNotFoundError(source_table)

        for sequence in definition.sequences:
            self._create_sequence(target_pool, mapping.translate(sequence))

        statement = self._dialect.render_create_table(
            target_table, definition.columns, mapping, definition.primary_key
        )
        try:
            self._execute(target_pool, statement)
        except psycopg2.Error as e:
            self._probe.table_creation_failed(
                database=database, table_name=target_table, error=e
            )
            raise TableReplicationError(target_table, str(e)) from e
        self._probe.table_created(
            database=database,
            table_name=target_table,
            column_count=len(definition.columns),
        )

        for index in definition.indexes:
            target_index, index_statement = self._dialect.render_index(
                index, source_table, target_table, mapping
            )
            self._create_index(target_pool, target_index, index_statement)

        return True

    def _create_sequence(self, pool: IConnectionPool, sequence_name: str) -> None:
        statement = self._dialect.render_create_sequence(sequence_name)
        try:
            self._execute(pool, statement)
        except psycopg2.Error as e:
            self._probe.sequence_creation_failed(
                database=pool.database, sequence_name=sequence_name, error=e
            )
            return
        self._probe.sequence_created(database=pool.database, sequence_name=sequence_name)

    def _create_index(
        self, pool: IConnectionPool, index_name: str, statement: str
    ) -> None:
        try:
            self._execute(pool, statement)
        except psycopg2.Error as e:
            if is_already_exists_error(e):
                self._probe.index_already_present(
                    database=pool.database, index_name=index_name
                )
            else:
                self._probe.index_creation_failed(
                    database=pool.database, index_name=index_name, error=e
                )
            return
        self._probe.index_created(database=pool.database, index_name=index_name)

    @staticmethod
    def _execute(pool: IConnectionPool, statement: str) -> None:
        with pool.cursor() as cursor:
            cursor.execute(statement)
