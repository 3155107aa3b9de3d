"""Protocol for schema sync service observability."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class SyncServiceProbe(Protocol):
    """Domain probe for template-to-division schema sync."""

    def table_synced(self, division_code: str, table_name: str, created: bool) -> None:
        """Record the outcome of syncing one table into one division."""
        ...

    def table_sync_failed(
        self, division_code: str, table_name: str, error: Exception
    ) -> None:
        """Record that syncing one table into one division failed."""
        ...

    def sync_completed(self, table_count: int, division_count: int, created: int) -> None:
        """Record the totals of a sync run."""
        ...

    def with_context(self, context: ObservationContext) -> SyncServiceProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultSyncServiceProbe:
    """Default implementation of SyncServiceProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultSyncServiceProbe:
        """Create a new probe with observation context bound."""
        return DefaultSyncServiceProbe(logger=self._logger, context=context)

    def table_synced(self, division_code: str, table_name: str, created: bool) -> None:
        self._logger.info(
            "division_table_synced",
            division_code=division_code,
            table_name=table_name,
            created=created,
            **self._get_context_kwargs(),
        )

    def table_sync_failed(
        self, division_code: str, table_name: str, error: Exception
    ) -> None:
        self._logger.error(
            "division_table_sync_failed",
            division_code=division_code,
            table_name=table_name,
            error=str(error),
            **self._get_context_kwargs(),
        )

    def sync_completed(self, table_count: int, division_count: int, created: int) -> None:
        self._logger.info(
            "division_sync_completed",
            table_count=table_count,
            division_count=division_count,
            created=created,
            **self._get_context_kwargs(),
        )
