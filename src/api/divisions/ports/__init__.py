"""Divisions ports (interfaces) module.

Ports define the contracts between the application layer and infrastructure.
They allow for dependency inversion, enabling the lifecycle services to
remain independent of PostgreSQL and filesystem specifics.
"""

from divisions.ports.repositories import (
    IAccessControlStore,
    ICompanySettingsStore,
    IConnectionPool,
    IDatabaseAdministrator,
    IPoolRegistry,
    ISchemaIntrospector,
    ISchemaReplicator,
    ISnapshotRepository,
    ITableDataStore,
    IWorkbookStore,
)

__all__ = [
    "IAccessControlStore",
    "ICompanySettingsStore",
    "IConnectionPool",
    "IDatabaseAdministrator",
    "IPoolRegistry",
    "ISchemaIntrospector",
    "ISchemaReplicator",
    "ISnapshotRepository",
    "ITableDataStore",
    "IWorkbookStore",
]
