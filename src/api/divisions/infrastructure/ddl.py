"""DDL rendering over the abstract column model.

The replicator builds statements through a dialect instead of concatenating
strings inline, so the column model stays independent of PostgreSQL syntax.
"""

from __future__ import annotations

import re
from typing import Protocol, Sequence

from divisions.domain.value_objects import (
    ColumnDefinition,
    IndexDefinition,
    NameMapping,
)


class DdlDialect(Protocol):
    """Renders DDL statements for one database implementation."""

    def quote_identifier(self, name: str) -> str: ...

    def render_column_type(self, column: ColumnDefinition) -> str: ...

    def render_column(self, column: ColumnDefinition, mapping: NameMapping) -> str: ...

    def render_create_table(
        self,
        table_name: str,
        columns: Sequence[ColumnDefinition],
        mapping: NameMapping,
        primary_key: Sequence[str] = (),
    ) -> str: ...

    def render_create_sequence(self, sequence_name: str) -> str: ...

    def render_index(
        self,
        index: IndexDefinition,
        source_table: str,
        target_table: str,
        mapping: NameMapping,
    ) -> tuple[str, str]: ...


class PostgresDialect:
    """PostgreSQL rendering rules.

    Column types are rendered in priority order: arrays by element type,
    user-defined types by their native name, length-bound types with their
    length, numerics with precision and scale, anything else bare.
    """

    def quote_identifier(self, name: str) -> str:
        return '"' + name.replace('"', '""') + '"'

    def render_column_type(self, column: ColumnDefinition) -> str:
        if column.is_array and column.udt_name:
            element = column.udt_name
            # information_schema reports array udts as _<element>
            if element.startswith("_"):
                element = element[1:]
            return f"{element}[]"
        if column.is_user_defined and column.udt_name:
            return column.udt_name
        if column.character_maximum_length:
            return f"{column.data_type}({column.character_maximum_length})"
        if (
            column.data_type == "numeric"
            and column.numeric_precision
            and column.numeric_scale is not None
        ):
            return (
                f"{column.data_type}({column.numeric_precision},{column.numeric_scale})"
            )
        return column.data_type

    def render_column(self, column: ColumnDefinition, mapping: NameMapping) -> str:
        clause = f"{self.quote_identifier(column.name)} {self.render_column_type(column)}"
        if not column.is_nullable:
            clause += " NOT NULL"
        if column.column_default:
            clause += f" DEFAULT {mapping.translate_expression(column.column_default)}"
        return clause

    def render_create_table(
        self,
        table_name: str,
        columns: Sequence[ColumnDefinition],
        mapping: NameMapping,
        primary_key: Sequence[str] = (),
    ) -> str:
        if not columns:
            raise ValueError(f"Cannot render CREATE TABLE {table_name} without columns")

        clauses = [self.render_column(column, mapping) for column in columns]
        if primary_key:
            key_columns = ", ".join(self.quote_identifier(c) for c in primary_key)
            clauses.append(f"PRIMARY KEY ({key_columns})")

        body = ",\n  ".join(clauses)
        return f"CREATE TABLE {self.quote_identifier(table_name)} (\n  {body}\n)"

    def render_create_sequence(self, sequence_name: str) -> str:
        return f"CREATE SEQUENCE IF NOT EXISTS {self.quote_identifier(sequence_name)}"

    def render_index(
        self,
        index: IndexDefinition,
        source_table: str,
        target_table: str,
        mapping: NameMapping,
    ) -> tuple[str, str]:
        """Rewrite an index definition for the target table.

        Returns:
            Tuple of (translated index name, statement to execute)
        """
        target_index = mapping.translate(index.name)
        statement = _replace_word(index.definition, source_table, target_table)
        statement = _replace_word(statement, index.name, target_index)
        return target_index, statement


def _replace_word(text: str, old: str, new: str) -> str:
    if old == new:
        return text
    return re.sub(rf"\b{re.escape(old)}\b", new, text)
