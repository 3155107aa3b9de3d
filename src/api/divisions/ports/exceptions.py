"""Exceptions raised across the Divisions ports.

These represent the fatal failures of the lifecycle engine. They propagate
to the caller; non-fatal failures are recorded in result objects instead.
"""

from __future__ import annotations

from divisions.domain.exceptions import DivisionError


class DivisionAlreadyExistsError(DivisionError):
    """Raised when creating a division whose database already exists.

    Also raised by restore when the effective division code is taken; the
    existing division must be deleted first or a different code used.
    """

    def __init__(self, division_code: str, message: str | None = None):
        super().__init__(message or f"Division {division_code} already exists")
        self.division_code = division_code


class DivisionNotFoundError(DivisionError):
    """Raised when an operation requires a division that is not provisioned."""

    def __init__(self, division_code: str):
        super().__init__(f"Division {division_code} does not exist")
        self.division_code = division_code


class TemplateDivisionError(DivisionError):
    """Raised when an operation would destroy or overwrite the template."""

    pass


class TemplateTableNotFoundError(DivisionError):
    """Raised when the template catalog reports no columns for a table.

    Catalog lookups can race with concurrent DDL, so provisioning treats this
    as a skip rather than a failure.
    """

    def __init__(self, table_name: str):
        super().__init__(f"Table {table_name} not found in template database")
        self.table_name = table_name


class TableReplicationError(DivisionError):
    """Raised when the CREATE TABLE statement for a replicated table fails."""

    def __init__(self, table_name: str, message: str):
        super().__init__(f"Failed to create table {table_name}: {message}")
        self.table_name = table_name


class DivisionProvisioningError(DivisionError):
    """Raised when provisioning stops part-way through the template tables.

    The division database exists and holds created_tables. Re-running
    provisioning with resume skips the tables already present.
    """

    def __init__(
        self,
        division_code: str,
        failed_table: str,
        created_tables: list[str],
        message: str,
    ):
        super().__init__(
            f"Division {division_code} partially provisioned: "
            f"{len(created_tables)} tables created before {failed_table} failed: "
            f"{message}"
        )
        self.division_code = division_code
        self.failed_table = failed_table
        self.created_tables = created_tables


class BackupNotFoundError(DivisionError):
    """Raised when a backup folder has no BACKUP-SUMMARY.json."""

    def __init__(self, folder_name: str):
        super().__init__(
            f"Backup summary not found in {folder_name}. Invalid backup folder."
        )
        self.folder_name = folder_name


class WorkbookTemplateError(DivisionError):
    """Raised when the template financials workbook is missing or empty."""

    pass
