"""Unit tests for PostgreSQL DDL rendering."""

import pytest

from divisions.domain.value_objects import ColumnDefinition, IndexDefinition, NameMapping
from divisions.infrastructure.ddl import PostgresDialect


@pytest.fixture
def dialect():
    return PostgresDialect()


@pytest.fixture
def mapping():
    return NameMapping(source_prefix="fp", target_prefix="xy")


class TestRenderColumnType:
    """Tests for column type rendering rules."""

    def test_array_uses_element_type(self, dialect):
        column = ColumnDefinition(name="tags", data_type="ARRAY", udt_name="_text")

        assert dialect.render_column_type(column) == "text[]"

    def test_integer_array(self, dialect):
        column = ColumnDefinition(name="ids", data_type="ARRAY", udt_name="_int4")

        assert dialect.render_column_type(column) == "int4[]"

    def test_user_defined_uses_native_name(self, dialect):
        column = ColumnDefinition(
            name="status", data_type="USER-DEFINED", udt_name="order_status"
        )

        assert dialect.render_column_type(column) == "order_status"

    def test_length_bound_type(self, dialect):
        column = ColumnDefinition(
            name="name", data_type="character varying", character_maximum_length=100
        )

        assert dialect.render_column_type(column) == "character varying(100)"

    def test_numeric_with_precision_and_scale(self, dialect):
        column = ColumnDefinition(
            name="amount", data_type="numeric", numeric_precision=12, numeric_scale=2
        )

        assert dialect.render_column_type(column) == "numeric(12,2)"

    def test_numeric_with_zero_scale(self, dialect):
        column = ColumnDefinition(
            name="qty", data_type="numeric", numeric_precision=10, numeric_scale=0
        )

        assert dialect.render_column_type(column) == "numeric(10,0)"

    def test_unconstrained_numeric_is_bare(self, dialect):
        column = ColumnDefinition(name="ratio", data_type="numeric")

        assert dialect.render_column_type(column) == "numeric"

    def test_integer_ignores_reported_precision(self, dialect):
        column = ColumnDefinition(
            name="id", data_type="integer", numeric_precision=32, numeric_scale=0
        )

        assert dialect.render_column_type(column) == "integer"


class TestRenderColumn:
    """Tests for column clause rendering."""

    def test_not_null_and_translated_default(self, dialect, mapping):
        column = ColumnDefinition(
            name="id",
            data_type="integer",
            is_nullable=False,
            column_default="nextval('fp_widgets_id_seq'::regclass)",
        )

        assert (
            dialect.render_column(column, mapping)
            == "\"id\" integer NOT NULL DEFAULT nextval('xy_widgets_id_seq'::regclass)"
        )

    def test_nullable_without_default(self, dialect, mapping):
        column = ColumnDefinition(name="note", data_type="text")

        assert dialect.render_column(column, mapping) == '"note" text'

    def test_quotes_identifiers(self, dialect):
        assert dialect.quote_identifier('we"ird') == '"we""ird"'


class TestRenderCreateTable:
    """Tests for CREATE TABLE rendering."""

    def test_renders_columns_in_order_with_primary_key(self, dialect, mapping):
        columns = [
            ColumnDefinition(name="id", data_type="integer", is_nullable=False),
            ColumnDefinition(name="name", data_type="text"),
        ]

        statement = dialect.render_create_table("xy_widgets", columns, mapping, ["id"])

        assert statement == (
            'CREATE TABLE "xy_widgets" (\n'
            '  "id" integer NOT NULL,\n'
            '  "name" text,\n'
            '  PRIMARY KEY ("id")\n'
            ")"
        )

    def test_without_primary_key(self, dialect, mapping):
        columns = [ColumnDefinition(name="code", data_type="text")]

        statement = dialect.render_create_table("shared_lookup", columns, mapping)

        assert "PRIMARY KEY" not in statement

    def test_rejects_empty_column_list(self, dialect, mapping):
        with pytest.raises(ValueError):
            dialect.render_create_table("xy_widgets", [], mapping)


def test_render_create_sequence(dialect):
    assert (
        dialect.render_create_sequence("xy_widgets_id_seq")
        == 'CREATE SEQUENCE IF NOT EXISTS "xy_widgets_id_seq"'
    )


class TestRenderIndex:
    """Tests for index definition rewriting."""

    def test_rewrites_table_and_index_names(self, dialect, mapping):
        index = IndexDefinition(
            name="fp_widgets_name_idx",
            definition=(
                "CREATE INDEX fp_widgets_name_idx ON public.fp_widgets "
                "USING btree (name)"
            ),
        )

        name, statement = dialect.render_index(
            index, "fp_widgets", "xy_widgets", mapping
        )

        assert name == "xy_widgets_name_idx"
        assert statement == (
            "CREATE INDEX xy_widgets_name_idx ON public.xy_widgets USING btree (name)"
        )

    def test_index_on_unprefixed_table_keeps_names(self, dialect, mapping):
        index = IndexDefinition(
            name="shared_lookup_code_key",
            definition=(
                "CREATE UNIQUE INDEX shared_lookup_code_key ON public.shared_lookup "
                "USING btree (code)"
            ),
        )

        name, statement = dialect.render_index(
            index, "shared_lookup", "shared_lookup", mapping
        )

        assert name == "shared_lookup_code_key"
        assert statement == index.definition
