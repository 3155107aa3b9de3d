"""Division restore application service.

Rebuilds a division from a snapshot folder: the database is provisioned
empty from the template, then each table's rows are replayed. A snapshot
can be restored under a new code, in which case table names are translated
and access grants are not replayed.
"""

from __future__ import annotations

from divisions.application.observability import (
    DefaultRestoreServiceProbe,
    RestoreServiceProbe,
)
from divisions.application.services.backup_service import (
    METADATA_FILE,
    SALES_REP_ACCESS_FILE,
    USER_DIVISIONS_FILE,
)
from divisions.application.services.provisioning_service import (
    DivisionProvisioningService,
)
from divisions.domain.results import (
    BackupTableEntry,
    RestoreResult,
    TableRestoreOutcome,
)
from divisions.domain.value_objects import DivisionCode, NameMapping, json_columns_of
from divisions.ports.exceptions import DivisionAlreadyExistsError
from divisions.ports.repositories import (
    IAccessControlStore,
    IConnectionPool,
    IPoolRegistry,
    ISnapshotFolder,
    ISnapshotRepository,
    ITableDataStore,
    IWorkbookStore,
)


class DivisionRestoreService:
    """Application service for restoring divisions from snapshots."""

    def __init__(
        self,
        pool_registry: IPoolRegistry,
        provisioning_service: DivisionProvisioningService,
        table_data: ITableDataStore,
        access_store: IAccessControlStore,
        workbook_store: IWorkbookStore,
        snapshots: ISnapshotRepository,
        batch_size: int = 100,
        probe: RestoreServiceProbe | None = None,
    ):
        """Initialize DivisionRestoreService with dependencies.

        Args:
            pool_registry: Per-division connection pools
            provisioning_service: Used to recreate the empty division
            table_data: Row-level table access
            access_store: Access grants in the platform database
            workbook_store: Financials workbook storage
            snapshots: Backup folder storage
            batch_size: Rows per insert transaction
            probe: Optional domain probe for observability
        """
        self._pool_registry = pool_registry
        self._provisioning_service = provisioning_service
        self._table_data = table_data
        self._access_store = access_store
        self._workbook_store = workbook_store
        self._snapshots = snapshots
        self._batch_size = batch_size
        self._probe = probe or DefaultRestoreServiceProbe()

    def restore_division(
        self,
        folder_name: str,
        new_code: DivisionCode | None = None,
        new_name: str | None = None,
    ) -> RestoreResult:
        """Restore a division from a snapshot folder.

        Args:
            folder_name: Name of the folder inside the backups directory
            new_code: Restore under this code instead of the original
            new_name: Display name; defaults to the stored name, then the code

        Returns:
            RestoreResult. success is False only when the restore failed
            before any table was touched (missing summary, division already
            exists); the reason is the "general" entry in errors. A failure
            after table replay began is recorded the same way but leaves
            success True, since the division now holds restored data.
        """
        result = RestoreResult()
        replay_started = False
        try:
            folder = self._snapshots.open(folder_name)
            manifest = folder.read_manifest()
            original_code = DivisionCode.from_string(manifest.division_code)
            code = new_code or original_code
            name = new_name or _stored_division_name(folder) or code.value
            result.division_code = code.value
            result.division_name = name
            self._probe.restore_started(
                folder_name=folder_name,
                original_code=original_code.value,
                division_code=code.value,
            )

            try:
                self._provisioning_service.create_division(code, name)
            except DivisionAlreadyExistsError as e:
                raise DivisionAlreadyExistsError(
                    code.value,
                    f"Division {code} already exists. "
                    "Delete it first or use a different code.",
                ) from e

            pool = self._pool_registry.get_pool(code)
            mapping = NameMapping.between(original_code, code)
            replay_started = True
            for entry in manifest.tables:
                self._restore_table(folder, pool, entry, mapping, code, result)

            if code == original_code:
                self._restore_access(folder, code, result)
            else:
                self._probe.access_replay_skipped(
                    original_code=original_code.value, division_code=code.value
                )

            self._restore_workbook(folder, original_code, code, result)
        except Exception as e:
            self._probe.restore_failed(folder_name=folder_name, error=e)
            result.record_error(str(e), phase="general")
            result.success = replay_started
            return result

        result.success = True
        self._probe.restore_completed(
            division_code=code.value,
            tables_restored=result.tables_restored,
            rows_restored=result.rows_restored,
        )
        return result

    def _restore_table(
        self,
        folder: ISnapshotFolder,
        pool: IConnectionPool,
        entry: BackupTableEntry,
        mapping: NameMapping,
        code: DivisionCode,
        result: RestoreResult,
    ) -> None:
        table_name = mapping.translate(entry.name)
        if not folder.has_file(entry.file):
            self._probe.table_restore_failed(
                division_code=code.value,
                table_name=table_name,
                error="Backup file not found",
            )
            result.record_error("Backup file not found", table=table_name)
            return

        try:
            snapshot = folder.read_json(entry.file)
            rows = snapshot.get("data") or []
            if not rows:
                self._probe.table_skipped_empty(
                    division_code=code.value, table_name=table_name
                )
                return
            json_columns = json_columns_of(snapshot.get("structure") or [])
            self._table_data.clear_table(pool, table_name)
            outcome = self._table_data.insert_rows(
                pool,
                table_name,
                rows,
                json_columns=json_columns,
                batch_size=self._batch_size,
            )
        except Exception as e:
            self._probe.table_restore_failed(
                division_code=code.value, table_name=table_name, error=e
            )
            result.record_error(str(e), table=table_name)
            return

        result.tables_restored += 1
        result.rows_restored += outcome.inserted
        result.tables.append(
            TableRestoreOutcome(
                name=table_name,
                rows_restored=outcome.inserted,
                rows_in_backup=len(rows),
            )
        )
        if outcome.failed:
            result.record_error(
                f"{outcome.failed} of {len(rows)} rows rejected: {outcome.first_error}",
                table=table_name,
            )
        if outcome.inserted:
            self._reset_sequences(pool, table_name, code, result)
        self._probe.table_restored(
            division_code=code.value,
            table_name=table_name,
            rows_restored=outcome.inserted,
            rows_in_backup=len(rows),
            first_error=outcome.first_error,
        )

    def _reset_sequences(
        self,
        pool: IConnectionPool,
        table_name: str,
        code: DivisionCode,
        result: RestoreResult,
    ) -> None:
        try:
            self._table_data.reset_sequences(pool, table_name)
        except Exception as e:
            self._probe.sequence_reset_failed(
                division_code=code.value, table_name=table_name, error=e
            )
            result.record_error(f"Sequence reset failed: {e}", table=table_name)

    def _restore_access(
        self, folder: ISnapshotFolder, code: DivisionCode, result: RestoreResult
    ) -> None:
        """Replay access grants; a grant whose user is gone is skipped."""
        rejected = 0

        for record in self._read_records(
            folder, USER_DIVISIONS_FILE, "userDivisions", result
        ):
            try:
                self._access_store.grant_user_division(record.get("user_id"), code)
            except Exception:
                rejected += 1
                continue
            result.user_access_restored += 1

        for record in self._read_records(folder, SALES_REP_ACCESS_FILE, "records", result):
            try:
                self._access_store.grant_sales_rep_access(
                    record.get("user_id"),
                    code,
                    record.get("sales_rep_name"),
                    record.get("created_by"),
                )
            except Exception:
                rejected += 1
                continue
            result.sales_rep_access_restored += 1

        self._probe.access_restored(
            division_code=code.value,
            user_access=result.user_access_restored,
            sales_rep_access=result.sales_rep_access_restored,
            rejected=rejected,
        )

    def _read_records(
        self, folder: ISnapshotFolder, file_name: str, key: str, result: RestoreResult
    ) -> list[dict]:
        if not folder.has_file(file_name):
            return []
        try:
            payload = folder.read_json(file_name)
        except (ValueError, OSError) as e:
            result.record_error(str(e), phase=file_name.removesuffix(".json"))
            return []
        records = payload.get(key) if isinstance(payload, dict) else None
        return [r for r in records or [] if isinstance(r, dict)]

    def _restore_workbook(
        self,
        folder: ISnapshotFolder,
        original_code: DivisionCode,
        code: DivisionCode,
        result: RestoreResult,
    ) -> None:
        file_name = self._workbook_store.file_name_for(original_code)
        if not folder.has_file(file_name):
            return
        try:
            folder.copy_out(file_name, self._workbook_store.path_for(code))
        except OSError as e:
            result.record_error(str(e), phase="excel_template")


def _stored_division_name(folder: ISnapshotFolder) -> str | None:
    if not folder.has_file(METADATA_FILE):
        return None
    try:
        payload = folder.read_json(METADATA_FILE)
    except (ValueError, OSError):
        return None
    metadata = payload.get("metadata") if isinstance(payload, dict) else None
    if isinstance(metadata, dict) and metadata.get("name"):
        return str(metadata["name"])
    return None
