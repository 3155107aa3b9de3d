"""Domain probes for Divisions infrastructure observability.

These probes capture domain-significant events related to schema
replication and server-level database management, following the Domain
Oriented Observability pattern.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class SchemaReplicationProbe(Protocol):
    """Domain probe for schema replication observability."""

    def table_already_present(self, database: str, table_name: str) -> None:
        """Record that replication was skipped because the table exists."""
        ...

    def sequence_created(self, database: str, sequence_name: str) -> None:
        """Record that an owned sequence was created in the target."""
        ...

    def sequence_creation_failed(
        self, database: str, sequence_name: str, error: Exception
    ) -> None:
        """Record that an owned sequence could not be created."""
        ...

    def table_created(self, database: str, table_name: str, column_count: int) -> None:
        """Record that a table was created in the target."""
        ...

    def table_creation_failed(
        self, database: str, table_name: str, error: Exception
    ) -> None:
        """Record that the CREATE TABLE statement failed."""
        ...

    def index_created(self, database: str, index_name: str) -> None:
        """Record that a non-primary index was recreated."""
        ...

    def index_already_present(self, database: str, index_name: str) -> None:
        """Record that an index already existed in the target."""
        ...

    def index_creation_failed(
        self, database: str, index_name: str, error: Exception
    ) -> None:
        """Record that an index could not be recreated."""
        ...

    def with_context(self, context: ObservationContext) -> SchemaReplicationProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultSchemaReplicationProbe:
    """Default implementation of SchemaReplicationProbe using structlog."""

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
    ) -> DefaultSchemaReplicationProbe:
        """Create a new probe with observation context bound."""
        return DefaultSchemaReplicationProbe(logger=self._logger, context=context)

    def table_already_present(self, database: str, table_name: str) -> None:
        self._logger.debug(
            "replication_table_already_present",
            database=database,
            table_name=table_name,
            **self._get_context_kwargs(),
        )

    def sequence_created(self, database: str, sequence_name: str) -> None:
        self._logger.debug(
            "replication_sequence_created",
            database=database,
            sequence_name=sequence_name,
            **self._get_context_kwargs(),
        )

    def sequence_creation_failed(
        self, database: str, sequence_name: str, error: Exception
    ) -> None:
        self._logger.warning(
            "replication_sequence_creation_failed",
            database=database,
            sequence_name=sequence_name,
            error=str(error),
            **self._get_context_kwargs(),
        )

    def table_created(self, database: str, table_name: str, column_count: int) -> None:
        self._logger.info(
            "replication_table_created",
            database=database,
            table_name=table_name,
            column_count=column_count,
            **self._get_context_kwargs(),
        )

    def table_creation_failed(
        self, database: str, table_name: str, error: Exception
    ) -> None:
        self._logger.error(
            "replication_table_creation_failed",
            database=database,
            table_name=table_name,
            error=str(error),
            **self._get_context_kwargs(),
        )

    def index_created(self, database: str, index_name: str) -> None:
        self._logger.debug(
            "replication_index_created",
            database=database,
            index_name=index_name,
            **self._get_context_kwargs(),
        )

    def index_already_present(self, database: str, index_name: str) -> None:
        self._logger.warning(
            "replication_index_already_present",
            database=database,
            index_name=index_name,
            **self._get_context_kwargs(),
        )

    def index_creation_failed(
        self, database: str, index_name: str, error: Exception
    ) -> None:
        self._logger.warning(
            "replication_index_creation_failed",
            database=database,
            index_name=index_name,
            error=str(error),
            **self._get_context_kwargs(),
        )


class DatabaseAdministrationProbe(Protocol):
    """Domain probe for server-level database management."""

    def database_created(self, database: str) -> None:
        """Record that a division database was created."""
        ...

    def sessions_terminated(self, database: str, count: int) -> None:
        """Record that other sessions were terminated before a drop."""
        ...

    def database_dropped(self, database: str) -> None:
        """Record that a division database was dropped."""
        ...

    def with_context(self, context: ObservationContext) -> DatabaseAdministrationProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultDatabaseAdministrationProbe:
    """Default implementation of DatabaseAdministrationProbe using structlog."""

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

    def with_context(
        self, context: ObservationContext
    ) -> DefaultDatabaseAdministrationProbe:
        """Create a new probe with observation context bound."""
        return DefaultDatabaseAdministrationProbe(logger=self._logger, context=context)

    def database_created(self, database: str) -> None:
        self._logger.info(
            "database_created",
            database=database,
            **self._get_context_kwargs(),
        )

    def sessions_terminated(self, database: str, count: int) -> None:
        self._logger.info(
            "database_sessions_terminated",
            database=database,
            count=count,
            **self._get_context_kwargs(),
        )

    def database_dropped(self, database: str) -> None:
        self._logger.info(
            "database_dropped",
            database=database,
            **self._get_context_kwargs(),
        )
