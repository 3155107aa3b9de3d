"""Result models for division lifecycle operations.

Orchestrator-level operations return these models so that callers can tell
"succeeded with warnings" apart from "failed outright": each carries a
broad success flag plus an itemized error list. Backup models are written
to disk with camelCase keys, matching the snapshot file format.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_serializer
from pydantic.alias_generators import to_camel


class _SnapshotModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_json_dict(self) -> dict[str, Any]:
        """Dump using the on-disk key names."""
        return self.model_dump(mode="json", by_alias=True)


class OperationError(_SnapshotModel):
    """One non-fatal failure recorded during an operation.

    Exactly one of phase or table identifies where the failure happened.
    """

    phase: str | None = None
    table: str | None = None
    error: str

    @model_serializer(mode="wrap")
    def _omit_unset_location(self, handler: Any) -> dict[str, Any]:
        data = handler(self)
        return {key: value for key, value in data.items() if value is not None}

    @property
    def location(self) -> str:
        return self.phase or self.table or "unknown"


class RecordCount(_SnapshotModel):
    """Number of cross-division records captured for one category."""

    count: int = 0


class BackupTableEntry(_SnapshotModel):
    """Manifest line for one backed up table."""

    name: str
    rows: int
    file: str


class _BackupFields(_SnapshotModel):
    division_code: str
    timestamp: str
    backup_path: str
    tables: list[BackupTableEntry] = Field(default_factory=list)
    user_access: RecordCount = Field(default_factory=RecordCount)
    sales_rep_access: RecordCount = Field(default_factory=RecordCount)
    user_preferences: RecordCount = Field(default_factory=RecordCount)
    metadata: dict[str, Any] | None = None
    success: bool = True
    errors: list[OperationError] = Field(default_factory=list)


class BackupResult(_BackupFields):
    """Outcome of backing up a division.

    success is False only when an unexpected top-level exception occurred;
    individual phase failures are listed in errors.
    """

    @property
    def total_tables(self) -> int:
        return len(self.tables)

    @property
    def total_rows(self) -> int:
        return sum(table.rows for table in self.tables)

    def record_error(
        self, error: str, *, phase: str | None = None, table: str | None = None
    ) -> None:
        self.errors.append(OperationError(phase=phase, table=table, error=error))


class BackupManifest(_BackupFields):
    """Contents of BACKUP-SUMMARY.json: the result plus completion totals."""

    completed_at: str | None = None
    total_tables: int = 0
    total_rows: int = 0

    @classmethod
    def from_result(
        cls, result: BackupResult, completed_at: str | None
    ) -> BackupManifest:
        return cls(
            **result.model_dump(),
            completed_at=completed_at,
            total_tables=result.total_tables,
            total_rows=result.total_rows,
        )


class BackupSummary(_SnapshotModel):
    """Listing entry for one backup folder."""

    folder_name: str
    division_code: str
    timestamp: str
    completed_at: str | None = None
    total_tables: int = 0
    total_rows: int = 0
    user_access: int = 0
    sales_rep_access: int = 0
    success: bool = False
    path: str


class TableRestoreOutcome(_SnapshotModel):
    """Rows restored versus rows present in the snapshot for one table."""

    name: str
    rows_restored: int
    rows_in_backup: int


class RestoreResult(_SnapshotModel):
    """Transient report of a restore operation."""

    success: bool = False
    division_code: str | None = None
    division_name: str | None = None
    tables_restored: int = 0
    rows_restored: int = 0
    user_access_restored: int = 0
    sales_rep_access_restored: int = 0
    tables: list[TableRestoreOutcome] = Field(default_factory=list)
    errors: list[OperationError] = Field(default_factory=list)

    @property
    def access_records_restored(self) -> int:
        return self.user_access_restored + self.sales_rep_access_restored

    def record_error(
        self, error: str, *, phase: str | None = None, table: str | None = None
    ) -> None:
        self.errors.append(OperationError(phase=phase, table=table, error=error))


class AuxiliaryStepResult(_SnapshotModel):
    """Outcome of a best-effort side step (e.g. creating the workbook).

    Failures here never fail the core operation.
    """

    step: str
    success: bool
    file_name: str | None = None
    error: str | None = None


class ProvisioningResult(_SnapshotModel):
    """Outcome of creating (or resuming) a division database."""

    division_code: str
    division_name: str
    database_name: str
    tables_created: list[str] = Field(default_factory=list)
    tables_skipped: list[str] = Field(default_factory=list)
    auxiliary: AuxiliaryStepResult | None = None


class SyncStatus(StrEnum):
    """Per-division outcome of synchronizing one table."""

    CREATED = "created"
    SKIPPED = "skipped"
    ERROR = "error"


class DivisionSyncOutcome(_SnapshotModel):
    division_code: str
    status: SyncStatus
    error: str | None = None


class TableSyncReport(_SnapshotModel):
    """Outcome of synchronizing one template table to every division."""

    table_name: str
    outcomes: list[DivisionSyncOutcome] = Field(default_factory=list)

    @property
    def created(self) -> int:
        return sum(1 for o in self.outcomes if o.status == SyncStatus.CREATED)


class DivisionSyncCounts(_SnapshotModel):
    synced: int = 0
    skipped: int = 0
    errors: int = 0


class SyncReport(_SnapshotModel):
    """Outcome of synchronizing every template table to every division."""

    synced: int = 0
    divisions: list[str] = Field(default_factory=list)
    results: dict[str, DivisionSyncCounts] = Field(default_factory=dict)
