"""Protocol for division restore service observability."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class RestoreServiceProbe(Protocol):
    """Domain probe for division restore operations."""

    def restore_started(
        self, folder_name: str, original_code: str, division_code: str
    ) -> None:
        """Record that a restore began and which code it restores as."""
        ...

    def table_skipped_empty(self, division_code: str, table_name: str) -> None:
        """Record that a table had no rows in the snapshot."""
        ...

    def table_restored(
        self,
        division_code: str,
        table_name: str,
        rows_restored: int,
        rows_in_backup: int,
        first_error: str | None,
    ) -> None:
        """Record the outcome of replaying one table."""
        ...

    def table_restore_failed(
        self, division_code: str, table_name: str, error: Exception | str
    ) -> None:
        """Record that a table could not be replayed."""
        ...

    def sequence_reset_failed(
        self, division_code: str, table_name: str, error: Exception
    ) -> None:
        """Record that a table's sequences could not be advanced after replay."""
        ...

    def access_replay_skipped(self, original_code: str, division_code: str) -> None:
        """Record that access grants were not replayed because the code changed."""
        ...

    def access_restored(
        self,
        division_code: str,
        user_access: int,
        sales_rep_access: int,
        rejected: int,
    ) -> None:
        """Record how many access grants were replayed and rejected."""
        ...

    def restore_completed(
        self, division_code: str, tables_restored: int, rows_restored: int
    ) -> None:
        """Record that a restore finished."""
        ...

    def restore_failed(self, folder_name: str, error: Exception) -> None:
        """Record that a restore was aborted."""
        ...

    def with_context(self, context: ObservationContext) -> RestoreServiceProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultRestoreServiceProbe:
    """Default implementation of RestoreServiceProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultRestoreServiceProbe:
        """Create a new probe with observation context bound."""
        return DefaultRestoreServiceProbe(logger=self._logger, context=context)

    def restore_started(
        self, folder_name: str, original_code: str, division_code: str
    ) -> None:
        self._logger.info(
            "division_restore_started",
            folder_name=folder_name,
            original_code=original_code,
            division_code=division_code,
            **self._get_context_kwargs(),
        )

    def table_skipped_empty(self, division_code: str, table_name: str) -> None:
        self._logger.debug(
            "division_table_restore_skipped",
            division_code=division_code,
            table_name=table_name,
            reason="empty",
            **self._get_context_kwargs(),
        )

    def table_restored(
        self,
        division_code: str,
        table_name: str,
        rows_restored: int,
        rows_in_backup: int,
        first_error: str | None,
    ) -> None:
        self._logger.info(
            "division_table_restored",
            division_code=division_code,
            table_name=table_name,
            rows_restored=rows_restored,
            rows_in_backup=rows_in_backup,
            first_error=first_error,
            **self._get_context_kwargs(),
        )

    def table_restore_failed(
        self, division_code: str, table_name: str, error: Exception | str
    ) -> None:
        self._logger.warning(
            "division_table_restore_failed",
            division_code=division_code,
            table_name=table_name,
            error=str(error),
            **self._get_context_kwargs(),
        )

    def sequence_reset_failed(
        self, division_code: str, table_name: str, error: Exception
    ) -> None:
        self._logger.warning(
            "division_sequence_reset_failed",
            division_code=division_code,
            table_name=table_name,
            error=str(error),
            **self._get_context_kwargs(),
        )

    def access_replay_skipped(self, original_code: str, division_code: str) -> None:
        self._logger.info(
            "division_access_replay_skipped",
            original_code=original_code,
            division_code=division_code,
            **self._get_context_kwargs(),
        )

    def access_restored(
        self,
        division_code: str,
        user_access: int,
        sales_rep_access: int,
        rejected: int,
    ) -> None:
        self._logger.info(
            "division_access_restored",
            division_code=division_code,
            user_access=user_access,
            sales_rep_access=sales_rep_access,
            rejected=rejected,
            **self._get_context_kwargs(),
        )

    def restore_completed(
        self, division_code: str, tables_restored: int, rows_restored: int
    ) -> None:
        self._logger.info(
            "division_restore_completed",
            division_code=division_code,
            tables_restored=tables_restored,
            rows_restored=rows_restored,
            **self._get_context_kwargs(),
        )

    def restore_failed(self, folder_name: str, error: Exception) -> None:
        self._logger.error(
            "division_restore_failed",
            folder_name=folder_name,
            error=str(error),
            **self._get_context_kwargs(),
        )
