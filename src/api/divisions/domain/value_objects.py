"""Value objects for the Divisions domain.

Value objects are immutable descriptors that provide type safety and
domain semantics for division identifiers, name translation and the
abstract table model the replicator works from.
"""

from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from divisions.domain.exceptions import InvalidDivisionCodeError

DATABASE_SUFFIX = "_database"

_CODE_PATTERN = re.compile(r"^[A-Z][A-Z0-9]{0,9}$")


@dataclass(frozen=True)
class DivisionCode:
    """Identifier for a division.

    Codes are short upper-case tokens (e.g. "FP", "HC"). The lower-case form
    is the prefix of every division-owned object name, and the backing
    database name is derived from it deterministically.
    """

    value: str

    def __post_init__(self) -> None:
        if not _CODE_PATTERN.match(self.value):
            raise InvalidDivisionCodeError(
                f"Invalid division code '{self.value}': must be a letter "
                "followed by up to 9 letters or digits"
            )

    def __str__(self) -> str:
        """Return string representation."""
        return self.value

    @classmethod
    def from_string(cls, value: str) -> DivisionCode:
        """Create a DivisionCode from user input, normalizing case.

        Raises:
            InvalidDivisionCodeError: If the value is not a valid code
        """
        if not isinstance(value, str):
            raise InvalidDivisionCodeError(f"Invalid division code: {value!r}")
        return cls(value=value.strip().upper())

    @classmethod
    def from_database_name(cls, database_name: str) -> DivisionCode | None:
        """Recover the code from a backing database name.

        Returns None for databases that do not follow the naming rule.
        """
        if not database_name.endswith(DATABASE_SUFFIX):
            return None
        stem = database_name[: -len(DATABASE_SUFFIX)]
        try:
            return cls.from_string(stem)
        except InvalidDivisionCodeError:
            return None

    @property
    def prefix(self) -> str:
        """Lower-case object name prefix, without the trailing underscore."""
        return self.value.lower()

    @property
    def database_name(self) -> str:
        """Name of the backing database."""
        return f"{self.prefix}{DATABASE_SUFFIX}"


@dataclass(frozen=True)
class NameMapping:
    """Translation of object names from one division's prefix to another's.

    A name beginning with "<source>_" has that prefix replaced by
    "<target>_"; any other name passes through unchanged.
    """

    source_prefix: str
    target_prefix: str

    @classmethod
    def between(cls, source: DivisionCode, target: DivisionCode) -> NameMapping:
        """Mapping from the source division's names to the target's."""
        return cls(source_prefix=source.prefix, target_prefix=target.prefix)

    @property
    def is_identity(self) -> bool:
        return self.source_prefix == self.target_prefix

    def translate(self, name: str) -> str:
        """Translate a single object name."""
        source = f"{self.source_prefix}_"
        if name.startswith(source):
            return f"{self.target_prefix}_{name[len(source):]}"
        return name

    def translate_expression(self, expression: str) -> str:
        """Translate every prefixed identifier inside a SQL expression.

        Used for column defaults such as nextval('fp_orders_id_seq'::regclass),
        so that the default points at the target's own sequence.
        """
        if self.is_identity:
            return expression
        pattern = re.compile(rf"\b{re.escape(self.source_prefix)}_")
        return pattern.sub(f"{self.target_prefix}_", expression)


@dataclass(frozen=True)
class ColumnDefinition:
    """Catalog description of one table column."""

    name: str
    data_type: str
    udt_name: str | None = None
    character_maximum_length: int | None = None
    numeric_precision: int | None = None
    numeric_scale: int | None = None
    is_nullable: bool = True
    column_default: str | None = None

    @classmethod
    def from_catalog_row(cls, row: Mapping[str, Any]) -> ColumnDefinition:
        """Build from an information_schema.columns row."""
        nullable = row.get("is_nullable", "YES")
        if isinstance(nullable, str):
            nullable = nullable.upper() != "NO"
        return cls(
            name=row["column_name"],
            data_type=row["data_type"],
            udt_name=row.get("udt_name"),
            character_maximum_length=row.get("character_maximum_length"),
            numeric_precision=row.get("numeric_precision"),
            numeric_scale=row.get("numeric_scale"),
            is_nullable=bool(nullable),
            column_default=row.get("column_default"),
        )

    @property
    def is_array(self) -> bool:
        return self.data_type == "ARRAY"

    @property
    def is_user_defined(self) -> bool:
        return self.data_type == "USER-DEFINED"


@dataclass(frozen=True)
class IndexDefinition:
    """A non-primary-key index and the statement that defines it."""

    name: str
    definition: str


@dataclass(frozen=True)
class TableDefinition:
    """Everything needed to recreate a table in another division."""

    name: str
    columns: tuple[ColumnDefinition, ...] = field(default_factory=tuple)
    sequences: tuple[str, ...] = field(default_factory=tuple)
    indexes: tuple[IndexDefinition, ...] = field(default_factory=tuple)
    primary_key: tuple[str, ...] = field(default_factory=tuple)

    @property
    def exists(self) -> bool:
        """A table with no columns is treated as not found."""
        return len(self.columns) > 0


@dataclass(frozen=True)
class InsertOutcome:
    """Rows inserted versus rows rejected by a bulk insert."""

    inserted: int = 0
    failed: int = 0
    first_error: str | None = None

    def merge(self, other: InsertOutcome) -> InsertOutcome:
        return InsertOutcome(
            inserted=self.inserted + other.inserted,
            failed=self.failed + other.failed,
            first_error=self.first_error or other.first_error,
        )


JSON_TYPES = frozenset({"json", "jsonb"})


def json_columns_of(structure: Sequence[Mapping[str, Any]]) -> frozenset[str]:
    """Names of json/jsonb columns in a stored table structure."""
    return frozenset(
        column["column_name"]
        for column in structure
        if str(column.get("data_type", "")).lower() in JSON_TYPES
    )


SNAPSHOT_FOLDER_PREFIX = "division-"


def snapshot_timestamp(moment: dt.datetime) -> str:
    """UTC timestamp to the second, safe for use in a folder name.

    Example:
        2025-01-31T10:15:42.123Z -> 2025-01-31T10-15-42
    """
    return moment.astimezone(dt.timezone.utc).strftime("%Y-%m-%dT%H-%M-%S")


def parse_snapshot_timestamp(value: str) -> dt.datetime:
    """Inverse of snapshot_timestamp.

    Raises:
        ValueError: If value is not in snapshot timestamp format
    """
    return dt.datetime.strptime(value, "%Y-%m-%dT%H-%M-%S").replace(
        tzinfo=dt.timezone.utc
    )


def snapshot_folder_name(code: DivisionCode, timestamp: str) -> str:
    """Folder name of a backup taken at timestamp."""
    return f"{SNAPSHOT_FOLDER_PREFIX}{code.prefix}-{timestamp}"
