"""Division backup application service.

Serializes a division's complete state into a snapshot folder: every table
(rows and structure), the access grants and preferences that reference the
division in the platform database, the division's metadata, and its
financials workbook. Backup is best-effort: a failing phase is recorded
and the remaining phases still run.
"""

from __future__ import annotations

import datetime as dt
from pathlib import PurePath
from typing import Any, Callable

from divisions.application.observability import (
    BackupServiceProbe,
    DefaultBackupServiceProbe,
)
from divisions.domain.results import (
    BackupManifest,
    BackupResult,
    BackupSummary,
    BackupTableEntry,
    RecordCount,
)
from divisions.domain.value_objects import (
    DivisionCode,
    parse_snapshot_timestamp,
    snapshot_timestamp,
)
from divisions.ports.exceptions import BackupNotFoundError
from divisions.ports.repositories import (
    IAccessControlStore,
    ICompanySettingsStore,
    IPoolRegistry,
    ISchemaIntrospector,
    ISnapshotFolder,
    ISnapshotRepository,
    ITableDataStore,
    IWorkbookStore,
)

USER_DIVISIONS_FILE = "user-divisions.json"
SALES_REP_ACCESS_FILE = "sales-rep-access.json"
USER_PREFERENCES_FILE = "user-preferences.json"
METADATA_FILE = "division-metadata.json"
README_FILE = "README.md"


def table_file_name(table_name: str) -> str:
    return f"table-{table_name}.json"


def _utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _iso(moment: dt.datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a Z suffix."""
    text = moment.astimezone(dt.timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


class DivisionBackupService:
    """Application service for division backups."""

    def __init__(
        self,
        pool_registry: IPoolRegistry,
        introspector: ISchemaIntrospector,
        table_data: ITableDataStore,
        access_store: IAccessControlStore,
        settings_store: ICompanySettingsStore,
        workbook_store: IWorkbookStore,
        snapshots: ISnapshotRepository,
        probe: BackupServiceProbe | None = None,
        clock: Callable[[], dt.datetime] = _utc_now,
    ):
        """Initialize DivisionBackupService with dependencies.

        Args:
            pool_registry: Per-division connection pools
            introspector: Catalog reader used to enumerate tables
            table_data: Row-level table access
            access_store: Access grants in the platform database
            settings_store: Company settings in the platform database
            workbook_store: Financials workbook storage
            snapshots: Backup folder storage
            probe: Optional domain probe for observability
            clock: Source of the current time, in UTC
        """
        self._pool_registry = pool_registry
        self._introspector = introspector
        self._table_data = table_data
        self._access_store = access_store
        self._settings_store = settings_store
        self._workbook_store = workbook_store
        self._snapshots = snapshots
        self._probe = probe or DefaultBackupServiceProbe()
        self._clock = clock

    def backup_division(self, code: DivisionCode) -> BackupResult:
        """Back up a division into a new timestamped snapshot folder.

        Returns:
            BackupResult; success is False only if an unexpected error
            interrupted the backup, in which case the partial summary is
            still written
        """
        started_at = self._clock()
        timestamp = snapshot_timestamp(started_at)
        folder = self._snapshots.create(code, timestamp)
        result = BackupResult(
            division_code=code.value,
            timestamp=timestamp,
            backup_path=str(folder.path),
        )
        self._probe.backup_started(division_code=code.value, backup_path=str(folder.path))

        try:
            self._backup_tables(code, folder, result)
            self._backup_access_records(code, folder, result)
            self._backup_metadata(code, folder, result)
            self._backup_workbook(code, folder, result)

            completed_at = _iso(self._clock())
            manifest = BackupManifest.from_result(result, completed_at=completed_at)
            folder.write_text(README_FILE, render_backup_readme(manifest, completed_at))
            folder.write_manifest(manifest)
        except Exception as e:
            self._probe.backup_failed(division_code=code.value, error=e)
            result.success = False
            result.record_error(str(e), phase="general")
            folder.write_manifest(BackupManifest.from_result(result, completed_at=None))
            return result

        self._probe.backup_completed(
            division_code=code.value,
            total_tables=result.total_tables,
            total_rows=result.total_rows,
            error_count=len(result.errors),
        )
        return result

    def list_backups(self) -> list[BackupSummary]:
        """Summaries of every readable snapshot, newest first.

        Folders without a summary are ignored; unreadable summaries are
        logged and skipped.
        """
        summaries = []
        for folder in self._snapshots.iter_folders():
            try:
                manifest = folder.read_manifest()
            except BackupNotFoundError:
                continue
            except (ValueError, OSError) as e:
                self._probe.backup_summary_unreadable(folder_name=folder.name, error=e)
                continue
            summaries.append(
                BackupSummary(
                    folder_name=folder.name,
                    division_code=manifest.division_code,
                    timestamp=manifest.timestamp,
                    completed_at=manifest.completed_at,
                    total_tables=manifest.total_tables or len(manifest.tables),
                    total_rows=manifest.total_rows,
                    user_access=manifest.user_access.count,
                    sales_rep_access=manifest.sales_rep_access.count,
                    success=manifest.success,
                    path=str(folder.path),
                )
            )
        summaries.sort(key=_summary_sort_key, reverse=True)
        return summaries

    def _backup_tables(
        self, code: DivisionCode, folder: ISnapshotFolder, result: BackupResult
    ) -> None:
        pool = self._pool_registry.get_pool(code)
        try:
            tables = self._introspector.list_tables(pool)
        except Exception as e:
            self._record_failure(code, result, e, phase="database")
            return

        for table_name in tables:
            try:
                rows = self._table_data.fetch_rows(pool, table_name)
                structure = self._table_data.describe_structure(pool, table_name)
                file_name = table_file_name(table_name)
                folder.write_json(
                    file_name,
                    {
                        "tableName": table_name,
                        "rowCount": len(rows),
                        "structure": structure,
                        "data": rows,
                    },
                )
            except Exception as e:
                self._record_failure(code, result, e, table=table_name)
                continue
            result.tables.append(
                BackupTableEntry(name=table_name, rows=len(rows), file=file_name)
            )
            self._probe.table_backed_up(
                division_code=code.value, table_name=table_name, rows=len(rows)
            )

    def _backup_access_records(
        self, code: DivisionCode, folder: ISnapshotFolder, result: BackupResult
    ) -> None:
        try:
            records = self._access_store.fetch_user_divisions(code)
            folder.write_json(
                USER_DIVISIONS_FILE,
                {"division": code.value, "userDivisions": records},
            )
            result.user_access = RecordCount(count=len(records))
        except Exception as e:
            self._record_failure(code, result, e, phase="user_divisions")

        try:
            records = self._access_store.fetch_sales_rep_access(code)
            folder.write_json(
                SALES_REP_ACCESS_FILE, {"division": code.value, "records": records}
            )
            result.sales_rep_access = RecordCount(count=len(records))
        except Exception as e:
            self._record_failure(code, result, e, phase="sales_rep_access")

        try:
            records = self._access_store.fetch_user_preferences(code)
            folder.write_json(
                USER_PREFERENCES_FILE, {"division": code.value, "records": records}
            )
            result.user_preferences = RecordCount(count=len(records))
        except Exception as e:
            self._record_failure(code, result, e, phase="user_preferences")

    def _backup_metadata(
        self, code: DivisionCode, folder: ISnapshotFolder, result: BackupResult
    ) -> None:
        try:
            all_divisions = self._settings_store.fetch_divisions()
            if all_divisions is None:
                return
            result.metadata = _find_division(all_divisions, code)
            folder.write_json(
                METADATA_FILE,
                {
                    "division": code.value,
                    "metadata": result.metadata,
                    "allDivisionsAtBackupTime": all_divisions,
                },
            )
        except Exception as e:
            self._record_failure(code, result, e, phase="metadata")

    def _backup_workbook(
        self, code: DivisionCode, folder: ISnapshotFolder, result: BackupResult
    ) -> None:
        file_name = self._workbook_store.file_name_for(code)
        try:
            if not self._workbook_store.exists(code):
                self._probe.workbook_not_found(
                    division_code=code.value, file_name=file_name
                )
                return
            folder.copy_in(self._workbook_store.path_for(code), file_name)
        except OSError as e:
            self._record_failure(code, result, e, phase="excel_template")

    def _record_failure(
        self,
        code: DivisionCode,
        result: BackupResult,
        error: Exception,
        *,
        phase: str | None = None,
        table: str | None = None,
    ) -> None:
        result.record_error(str(error), phase=phase, table=table)
        self._probe.backup_step_failed(
            division_code=code.value, location=phase or table or "unknown", error=error
        )


def _find_division(all_divisions: Any, code: DivisionCode) -> dict[str, Any] | None:
    if not isinstance(all_divisions, list):
        return None
    for entry in all_divisions:
        if isinstance(entry, dict) and entry.get("code") == code.value:
            return entry
    return None


def _summary_sort_key(summary: BackupSummary) -> dt.datetime:
    if summary.completed_at:
        try:
            return dt.datetime.fromisoformat(summary.completed_at.replace("Z", "+00:00"))
        except ValueError:
            pass
    try:
        return parse_snapshot_timestamp(summary.timestamp)
    except ValueError:
        return dt.datetime.min.replace(tzinfo=dt.timezone.utc)


def render_backup_readme(manifest: BackupManifest, created_at: str) -> str:
    """Human-readable description of a snapshot folder."""
    code = manifest.division_code
    prefix = code.lower()
    table_lines = "\n".join(
        f"- {table.name}: {table.rows} rows" for table in manifest.tables
    )
    if manifest.errors:
        error_lines = "\n".join(
            f"- {error.location}: {error.error}" for error in manifest.errors
        )
    else:
        error_lines = "None"

    return f"""# Division Backup: {code}

Created: {created_at}

## Contents

### Database Tables ({manifest.total_tables} tables, {manifest.total_rows} total rows)
{table_lines}

### User Access
- User Divisions: {manifest.user_access.count} users had access
- Sales Rep Access: {manifest.sales_rep_access.count} permissions
- User Preferences: {manifest.user_preferences.count} users had this as default

### Files
- table-*.json: Individual table data with structure
- {USER_DIVISIONS_FILE}: User access permissions
- {SALES_REP_ACCESS_FILE}: Sales rep permissions
- {USER_PREFERENCES_FILE}: User preference settings
- {METADATA_FILE}: Division configuration
- financials-{prefix}.xlsx: Excel template (if existed)
- BACKUP-SUMMARY.json: Complete backup metadata

### Errors During Backup
{error_lines}

## Restore Instructions

Restore this division with the restore command, optionally under a new code:

    python scripts/manage_divisions.py restore {PurePath(manifest.backup_path).name}

Access grants are only replayed when the division keeps its original code.
Contact your system administrator for assistance.
"""
