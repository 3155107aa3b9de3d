"""Protocol for division backup service observability.

Defines the interface for domain probes that capture application-level
domain events while a division is serialized to a snapshot folder.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class BackupServiceProbe(Protocol):
    """Domain probe for division backup operations."""

    def backup_started(self, division_code: str, backup_path: str) -> None:
        """Record that a backup began."""
        ...

    def table_backed_up(self, division_code: str, table_name: str, rows: int) -> None:
        """Record that one table was written to the snapshot."""
        ...

    def backup_step_failed(
        self, division_code: str, location: str, error: Exception
    ) -> None:
        """Record a non-fatal failure of one backup phase or table."""
        ...

    def workbook_not_found(self, division_code: str, file_name: str) -> None:
        """Record that the division has no workbook to copy."""
        ...

    def backup_completed(
        self, division_code: str, total_tables: int, total_rows: int, error_count: int
    ) -> None:
        """Record that a backup finished and its summary was written."""
        ...

    def backup_failed(self, division_code: str, error: Exception) -> None:
        """Record that an unexpected error interrupted a backup."""
        ...

    def backup_summary_unreadable(self, folder_name: str, error: Exception) -> None:
        """Record that a snapshot summary could not be parsed while listing."""
        ...

    def with_context(self, context: ObservationContext) -> BackupServiceProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultBackupServiceProbe:
    """Default implementation of BackupServiceProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultBackupServiceProbe:
        """Create a new probe with observation context bound."""
        return DefaultBackupServiceProbe(logger=self._logger, context=context)

    def backup_started(self, division_code: str, backup_path: str) -> None:
        self._logger.info(
            "division_backup_started",
            division_code=division_code,
            backup_path=backup_path,
            **self._get_context_kwargs(),
        )

    def table_backed_up(self, division_code: str, table_name: str, rows: int) -> None:
        self._logger.debug(
            "division_table_backed_up",
            division_code=division_code,
            table_name=table_name,
            rows=rows,
            **self._get_context_kwargs(),
        )

    def backup_step_failed(
        self, division_code: str, location: str, error: Exception
    ) -> None:
        self._logger.warning(
            "division_backup_step_failed",
            division_code=division_code,
            location=location,
            error=str(error),
            **self._get_context_kwargs(),
        )

    def workbook_not_found(self, division_code: str, file_name: str) -> None:
        self._logger.info(
            "division_workbook_not_found",
            division_code=division_code,
            file_name=file_name,
            **self._get_context_kwargs(),
        )

    def backup_completed(
        self, division_code: str, total_tables: int, total_rows: int, error_count: int
    ) -> None:
        self._logger.info(
            "division_backup_completed",
            division_code=division_code,
            total_tables=total_tables,
            total_rows=total_rows,
            error_count=error_count,
            **self._get_context_kwargs(),
        )

    def backup_failed(self, division_code: str, error: Exception) -> None:
        self._logger.error(
            "division_backup_failed",
            division_code=division_code,
            error=str(error),
            **self._get_context_kwargs(),
        )

    def backup_summary_unreadable(self, folder_name: str, error: Exception) -> None:
        self._logger.warning(
            "backup_summary_unreadable",
            folder_name=folder_name,
            error=str(error),
            **self._get_context_kwargs(),
        )
