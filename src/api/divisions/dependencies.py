"""Dependency wiring for the Divisions bounded context.

Composes infrastructure resources (pool registry, catalog access, file
stores) with the lifecycle services. Every getter is cached, so the whole
process shares one registry and one instance of each service.
"""

from functools import lru_cache

from divisions.application.services import (
    DivisionBackupService,
    DivisionProvisioningService,
    DivisionRestoreService,
    SchemaSyncService,
)
from divisions.domain.value_objects import DivisionCode
from divisions.infrastructure.database_admin import PostgresDatabaseAdministrator
from divisions.infrastructure.ddl import PostgresDialect
from divisions.infrastructure.introspector import PostgresSchemaIntrospector
from divisions.infrastructure.platform_store import (
    PostgresAccessControlStore,
    PostgresCompanySettingsStore,
)
from divisions.infrastructure.pool_registry import ConnectionPoolRegistry
from divisions.infrastructure.replicator import SchemaReplicator
from divisions.infrastructure.snapshot_repository import FilesystemSnapshotRepository
from divisions.infrastructure.table_data import PostgresTableDataStore
from divisions.infrastructure.workbook_store import OpenpyxlWorkbookStore
from infrastructure.settings import get_database_settings, get_division_settings


@lru_cache
def get_pool_registry() -> ConnectionPoolRegistry:
    """Get the process-scoped pool registry (singleton)."""
    return ConnectionPoolRegistry(get_database_settings())


@lru_cache
def get_template_code() -> DivisionCode:
    return DivisionCode.from_string(get_division_settings().template_code)


@lru_cache
def get_schema_introspector() -> PostgresSchemaIntrospector:
    return PostgresSchemaIntrospector(schema=get_division_settings().schema_name)


@lru_cache
def get_schema_replicator() -> SchemaReplicator:
    return SchemaReplicator(
        introspector=get_schema_introspector(),
        dialect=PostgresDialect(),
    )


@lru_cache
def get_database_administrator() -> PostgresDatabaseAdministrator:
    return PostgresDatabaseAdministrator(get_pool_registry().get_platform_pool())


@lru_cache
def get_table_data_store() -> PostgresTableDataStore:
    return PostgresTableDataStore(schema=get_division_settings().schema_name)


@lru_cache
def get_access_control_store() -> PostgresAccessControlStore:
    return PostgresAccessControlStore(get_pool_registry().get_platform_pool())


@lru_cache
def get_company_settings_store() -> PostgresCompanySettingsStore:
    return PostgresCompanySettingsStore(get_pool_registry().get_platform_pool())


@lru_cache
def get_workbook_store() -> OpenpyxlWorkbookStore:
    settings = get_division_settings()
    return OpenpyxlWorkbookStore(settings.assets_dir, settings.template_workbook)


@lru_cache
def get_snapshot_repository() -> FilesystemSnapshotRepository:
    return FilesystemSnapshotRepository(get_division_settings().backups_dir)


@lru_cache
def get_provisioning_service() -> DivisionProvisioningService:
    """Get DivisionProvisioningService wired to the template division.

    Returns:
        DivisionProvisioningService instance
    """
    return DivisionProvisioningService(
        pool_registry=get_pool_registry(),
        administrator=get_database_administrator(),
        introspector=get_schema_introspector(),
        replicator=get_schema_replicator(),
        workbook_store=get_workbook_store(),
        template_code=get_template_code(),
    )


@lru_cache
def get_sync_service() -> SchemaSyncService:
    return SchemaSyncService(
        pool_registry=get_pool_registry(),
        introspector=get_schema_introspector(),
        replicator=get_schema_replicator(),
        provisioning_service=get_provisioning_service(),
    )


@lru_cache
def get_backup_service() -> DivisionBackupService:
    return DivisionBackupService(
        pool_registry=get_pool_registry(),
        introspector=get_schema_introspector(),
        table_data=get_table_data_store(),
        access_store=get_access_control_store(),
        settings_store=get_company_settings_store(),
        workbook_store=get_workbook_store(),
        snapshots=get_snapshot_repository(),
    )


@lru_cache
def get_restore_service() -> DivisionRestoreService:
    return DivisionRestoreService(
        pool_registry=get_pool_registry(),
        provisioning_service=get_provisioning_service(),
        table_data=get_table_data_store(),
        access_store=get_access_control_store(),
        workbook_store=get_workbook_store(),
        snapshots=get_snapshot_repository(),
        batch_size=get_division_settings().restore_batch_size,
    )


def close_connections() -> None:
    """Drain every pool held by the registry, e.g. at process shutdown."""
    get_pool_registry().close_all()
