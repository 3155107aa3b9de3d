"""Repository interfaces (ports) for the Divisions bounded context.

These protocols define the contracts that the lifecycle services depend on.
The infrastructure layer provides PostgreSQL and filesystem implementations.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from pathlib import Path
from typing import Any, Iterator, Protocol, runtime_checkable

from divisions.domain.results import BackupManifest
from divisions.domain.value_objects import (
    ColumnDefinition,
    DivisionCode,
    IndexDefinition,
    InsertOutcome,
    TableDefinition,
)

Row = dict[str, Any]


@runtime_checkable
class IConnectionPool(Protocol):
    """A pool of connections to one database."""

    @property
    def database(self) -> str: ...

    def connection(self) -> AbstractContextManager[Any]:
        """Borrow a connection for one committed unit of work."""
        ...

    def autocommit_connection(self) -> AbstractContextManager[Any]:
        """Borrow a connection outside any transaction block."""
        ...

    def cursor(self, cursor_factory: Any = None) -> AbstractContextManager[Any]:
        """Open a cursor inside one committed unit of work."""
        ...

    def close_all(self) -> None: ...


class IPoolRegistry(Protocol):
    """Process-wide cache of one pool per division database."""

    def get_pool(self, code: DivisionCode) -> IConnectionPool: ...

    def close_pool(self, code: DivisionCode) -> None: ...

    def get_platform_pool(self) -> IConnectionPool: ...


class ISchemaIntrospector(Protocol):
    """Read-only access to a division database's catalog."""

    def list_tables(self, pool: IConnectionPool) -> list[str]:
        """List base tables, sorted by name."""
        ...

    def table_exists(self, pool: IConnectionPool, table_name: str) -> bool: ...

    def describe_columns(
        self, pool: IConnectionPool, table_name: str
    ) -> list[ColumnDefinition]:
        """Columns in physical order; empty when the table is not found."""
        ...

    def list_owned_sequences(self, pool: IConnectionPool, table_name: str) -> list[str]:
        ...

    def list_non_primary_indexes(
        self, pool: IConnectionPool, table_name: str
    ) -> list[IndexDefinition]: ...

    def list_primary_key_columns(
        self, pool: IConnectionPool, table_name: str
    ) -> list[str]: ...

    def describe_table(self, pool: IConnectionPool, table_name: str) -> TableDefinition:
        ...


class ISchemaReplicator(Protocol):
    """Recreates one template table inside another division."""

    def replicate_table(
        self,
        source_pool: IConnectionPool,
        source_table: str,
        target_pool: IConnectionPool,
        source_prefix: str,
        target_prefix: str,
    ) -> bool:
        """Create the translated table; False if it already exists."""
        ...


class ITableDataStore(Protocol):
    """Row-level access to division tables, used by backup and restore."""

    def fetch_rows(self, pool: IConnectionPool, table_name: str) -> list[Row]: ...

    def describe_structure(self, pool: IConnectionPool, table_name: str) -> list[Row]:
        """Column name, type, nullability and default, in physical order."""
        ...

    def clear_table(self, pool: IConnectionPool, table_name: str) -> None: ...

    def insert_rows(
        self,
        pool: IConnectionPool,
        table_name: str,
        rows: list[Row],
        json_columns: frozenset[str] = frozenset(),
        batch_size: int = 100,
    ) -> InsertOutcome:
        """Insert rows individually, skipping rows the database rejects."""
        ...

    def reset_sequences(self, pool: IConnectionPool, table_name: str) -> list[str]:
        """Advance sequences feeding column defaults past the stored values."""
        ...


class IDatabaseAdministrator(Protocol):
    """Server-level database management."""

    def create_database(self, database_name: str) -> None: ...

    def drop_database(self, database_name: str) -> None:
        """Terminate other sessions and drop the database if it exists."""
        ...

    def database_exists(self, database_name: str) -> bool: ...

    def list_databases(self, suffix: str) -> list[str]: ...


class IAccessControlStore(Protocol):
    """Cross-division grants kept in the shared platform database."""

    def fetch_user_divisions(self, code: DivisionCode) -> list[Row]: ...

    def fetch_sales_rep_access(self, code: DivisionCode) -> list[Row]: ...

    def fetch_user_preferences(self, code: DivisionCode) -> list[Row]: ...

    def grant_user_division(self, user_id: Any, code: DivisionCode) -> None: ...

    def grant_sales_rep_access(
        self,
        user_id: Any,
        code: DivisionCode,
        sales_rep_name: str | None,
        created_by: Any,
    ) -> None: ...


class ICompanySettingsStore(Protocol):
    """Company-wide settings kept in the shared platform database."""

    def fetch_divisions(self) -> Any | None:
        """Metadata for every division, or None if the setting is absent."""
        ...


class IWorkbookStore(Protocol):
    """Per-division financials workbooks kept next to the application."""

    def file_name_for(self, code: DivisionCode) -> str: ...

    def path_for(self, code: DivisionCode) -> Path: ...

    def exists(self, code: DivisionCode) -> bool: ...

    def create_for_division(self, code: DivisionCode, name: str) -> Path: ...

    def delete_for_division(self, code: DivisionCode) -> bool: ...


class ISnapshotFolder(Protocol):
    """One backup folder on disk."""

    @property
    def path(self) -> Path: ...

    @property
    def name(self) -> str: ...

    def has_file(self, file_name: str) -> bool: ...

    def write_json(self, file_name: str, payload: Any) -> None: ...

    def read_json(self, file_name: str) -> Any: ...

    def write_text(self, file_name: str, text: str) -> None: ...

    def copy_in(self, source: Path, file_name: str) -> None: ...

    def copy_out(self, file_name: str, destination: Path) -> None: ...

    def write_manifest(self, manifest: BackupManifest) -> None: ...

    def read_manifest(self) -> BackupManifest: ...


class ISnapshotRepository(Protocol):
    """Directory holding every backup folder."""

    def create(self, code: DivisionCode, timestamp: str) -> ISnapshotFolder: ...

    def open(self, folder_name: str) -> ISnapshotFolder: ...

    def iter_folders(self) -> Iterator[ISnapshotFolder]: ...
