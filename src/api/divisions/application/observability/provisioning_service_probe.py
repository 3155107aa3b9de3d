"""Protocol for division provisioning service observability.

Defines the interface for domain probes that capture application-level
domain events for creating, resuming and deleting division databases.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class ProvisioningServiceProbe(Protocol):
    """Domain probe for division provisioning operations."""

    def division_creation_started(self, division_code: str, name: str) -> None:
        """Record that provisioning of a division began."""
        ...

    def template_table_skipped(self, division_code: str, table_name: str) -> None:
        """Record that a template table reported no columns and was skipped."""
        ...

    def provisioning_failed(
        self,
        division_code: str,
        table_name: str,
        created_tables: list[str],
        error: Exception,
    ) -> None:
        """Record that provisioning stopped part-way through."""
        ...

    def division_created(
        self, division_code: str, tables_created: int, tables_skipped: int
    ) -> None:
        """Record that a division database was provisioned."""
        ...

    def auxiliary_step_completed(
        self, division_code: str, step: str, file_name: str | None
    ) -> None:
        """Record that a best-effort side step succeeded."""
        ...

    def auxiliary_step_failed(
        self, division_code: str, step: str, error: Exception
    ) -> None:
        """Record that a best-effort side step failed."""
        ...

    def division_deleted(self, division_code: str) -> None:
        """Record that a division database was dropped."""
        ...

    def template_deletion_refused(self, division_code: str) -> None:
        """Record an attempt to delete the template division."""
        ...

    def with_context(self, context: ObservationContext) -> ProvisioningServiceProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultProvisioningServiceProbe:
    """Default implementation of ProvisioningServiceProbe using structlog."""

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

    def with_context(
        self, context: ObservationContext
    ) -> DefaultProvisioningServiceProbe:
        """Create a new probe with observation context bound."""
        return DefaultProvisioningServiceProbe(logger=self._logger, context=context)

    def division_creation_started(self, division_code: str, name: str) -> None:
        self._logger.info(
            "division_creation_started",
            division_code=division_code,
            name=name,
            **self._get_context_kwargs(),
        )

    def template_table_skipped(self, division_code: str, table_name: str) -> None:
        self._logger.warning(
            "template_table_skipped",
            division_code=division_code,
            table_name=table_name,
            reason="no columns reported",
            **self._get_context_kwargs(),
        )

    def provisioning_failed(
        self,
        division_code: str,
        table_name: str,
        created_tables: list[str],
        error: Exception,
    ) -> None:
        self._logger.error(
            "division_provisioning_failed",
            division_code=division_code,
            table_name=table_name,
            created_count=len(created_tables),
            error=str(error),
            **self._get_context_kwargs(),
        )

    def division_created(
        self, division_code: str, tables_created: int, tables_skipped: int
    ) -> None:
        self._logger.info(
            "division_created",
            division_code=division_code,
            tables_created=tables_created,
            tables_skipped=tables_skipped,
            **self._get_context_kwargs(),
        )

    def auxiliary_step_completed(
        self, division_code: str, step: str, file_name: str | None
    ) -> None:
        self._logger.info(
            "division_auxiliary_step_completed",
            division_code=division_code,
            step=step,
            file_name=file_name,
            **self._get_context_kwargs(),
        )

    def auxiliary_step_failed(
        self, division_code: str, step: str, error: Exception
    ) -> None:
        self._logger.warning(
            "division_auxiliary_step_failed",
            division_code=division_code,
            step=step,
            error=str(error),
            **self._get_context_kwargs(),
        )

    def division_deleted(self, division_code: str) -> None:
        self._logger.info(
            "division_deleted",
            division_code=division_code,
            **self._get_context_kwargs(),
        )

    def template_deletion_refused(self, division_code: str) -> None:
        self._logger.warning(
            "template_deletion_refused",
            division_code=division_code,
            **self._get_context_kwargs(),
        )
