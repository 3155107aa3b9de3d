"""Integration test fixtures for division lifecycle tests.

These fixtures require a running PostgreSQL server and a user allowed to
create databases. Each session builds a throwaway template division (TT)
and a throwaway platform database (TP) and drops them afterwards.

Override connection details with environment variables:
    DIVISIONS_DB_HOST, DIVISIONS_DB_PORT, DIVISIONS_DB_USERNAME,
    DIVISIONS_DB_PASSWORD, DIVISIONS_TEST_ADMIN_DATABASE (default: postgres)
"""

from collections.abc import Generator
import os

import pytest

from divisions.application.services import (
    DivisionBackupService,
    DivisionProvisioningService,
    DivisionRestoreService,
    SchemaSyncService,
)
from divisions.domain.value_objects import DivisionCode
from divisions.infrastructure.database_admin import PostgresDatabaseAdministrator
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
from infrastructure.database.exceptions import DatabaseConnectionError
from infrastructure.settings import DatabaseSettings

TEMPLATE = DivisionCode("TT")
PLATFORM = DivisionCode("TP")
TEST_DIVISIONS = [DivisionCode(code) for code in ("TX", "TY", "TZ")]

TEMPLATE_SCHEMA = """
CREATE TABLE tt_widgets (
    id serial PRIMARY KEY,
    name varchar(50) NOT NULL,
    price numeric(10,2) NOT NULL DEFAULT 0,
    tags text[],
    payload jsonb,
    created_on date,
    days date[],
    amounts numeric(10,2)[],
    ids uuid[],
    seen_at timestamptz[]
);
CREATE INDEX tt_widgets_name_idx ON tt_widgets (name);
CREATE TABLE tt_codes (
    id integer NOT NULL,
    code text NOT NULL
);
CREATE UNIQUE INDEX tt_codes_code_key ON tt_codes (code);
CREATE TABLE shared_lookup (
    code text PRIMARY KEY,
    label text
);
"""

PLATFORM_SCHEMA = """
CREATE TABLE users (
    id serial PRIMARY KEY,
    username text NOT NULL,
    email text,
    full_name text
);
CREATE TABLE user_divisions (
    user_id integer NOT NULL REFERENCES users (id),
    division text NOT NULL,
    PRIMARY KEY (user_id, division)
);
CREATE TABLE user_sales_rep_access (
    id serial PRIMARY KEY,
    user_id integer NOT NULL REFERENCES users (id),
    division text NOT NULL,
    sales_rep_name text NOT NULL,
    created_by integer,
    UNIQUE (user_id, division, sales_rep_name)
);
CREATE TABLE user_preferences (
    user_id integer PRIMARY KEY REFERENCES users (id),
    default_division text
);
CREATE TABLE company_settings (
    setting_key text PRIMARY KEY,
    setting_value jsonb
);
"""


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires database)",
    )


@pytest.fixture(scope="session")
def integration_db_settings() -> DatabaseSettings:
    """Database settings for integration tests."""
    return DatabaseSettings(
        platform_database=os.getenv("DIVISIONS_TEST_ADMIN_DATABASE", "postgres"),
        pool_min_connections=1,
        pool_max_connections=4,
    )


@pytest.fixture(scope="session")
def registry(
    integration_db_settings: DatabaseSettings,
) -> Generator[ConnectionPoolRegistry, None, None]:
    registry = ConnectionPoolRegistry(integration_db_settings)
    yield registry
    registry.close_all()


@pytest.fixture(scope="session")
def administrator(registry: ConnectionPoolRegistry) -> PostgresDatabaseAdministrator:
    administrator = PostgresDatabaseAdministrator(registry.get_platform_pool())
    try:
        administrator.database_exists(TEMPLATE.database_name)
    except DatabaseConnectionError as e:
        pytest.skip(f"PostgreSQL not reachable: {e}")
    return administrator


def _recreate(registry, administrator, code: DivisionCode, schema: str) -> None:
    registry.close_pool(code)
    administrator.drop_database(code.database_name)
    administrator.create_database(code.database_name)
    with registry.get_pool(code).cursor() as cursor:
        cursor.execute(schema)


def _drop(registry, administrator, code: DivisionCode) -> None:
    registry.close_pool(code)
    administrator.drop_database(code.database_name)


@pytest.fixture(scope="session")
def template_division(registry, administrator) -> Generator[DivisionCode, None, None]:
    """The TT template division with widgets, codes and a shared lookup."""
    _recreate(registry, administrator, TEMPLATE, TEMPLATE_SCHEMA)
    yield TEMPLATE
    _drop(registry, administrator, TEMPLATE)


@pytest.fixture(scope="session")
def platform_pool(registry, administrator):
    """Pool on a throwaway database holding users and division grants."""
    _recreate(registry, administrator, PLATFORM, PLATFORM_SCHEMA)
    yield registry.get_pool(PLATFORM)
    _drop(registry, administrator, PLATFORM)


@pytest.fixture(scope="session")
def introspector() -> PostgresSchemaIntrospector:
    return PostgresSchemaIntrospector()


@pytest.fixture(scope="session")
def table_data() -> PostgresTableDataStore:
    return PostgresTableDataStore()


@pytest.fixture(scope="session")
def workbook_store(tmp_path_factory) -> OpenpyxlWorkbookStore:
    return OpenpyxlWorkbookStore(tmp_path_factory.mktemp("assets"), "financials-tt.xlsx")


@pytest.fixture(scope="session")
def provisioning_service(
    registry, administrator, introspector, workbook_store, template_division
) -> DivisionProvisioningService:
    return DivisionProvisioningService(
        pool_registry=registry,
        administrator=administrator,
        introspector=introspector,
        replicator=SchemaReplicator(introspector=introspector),
        workbook_store=workbook_store,
        template_code=template_division,
    )


@pytest.fixture(scope="session")
def sync_service(registry, introspector, provisioning_service) -> SchemaSyncService:
    return SchemaSyncService(
        pool_registry=registry,
        introspector=introspector,
        replicator=SchemaReplicator(introspector=introspector),
        provisioning_service=provisioning_service,
    )


@pytest.fixture
def snapshots(tmp_path) -> FilesystemSnapshotRepository:
    return FilesystemSnapshotRepository(tmp_path / "backups")


@pytest.fixture
def backup_service(
    registry, introspector, table_data, platform_pool, workbook_store, snapshots
) -> DivisionBackupService:
    return DivisionBackupService(
        pool_registry=registry,
        introspector=introspector,
        table_data=table_data,
        access_store=PostgresAccessControlStore(platform_pool),
        settings_store=PostgresCompanySettingsStore(platform_pool),
        workbook_store=workbook_store,
        snapshots=snapshots,
    )


@pytest.fixture
def restore_service(
    registry, provisioning_service, table_data, platform_pool, workbook_store, snapshots
) -> DivisionRestoreService:
    return DivisionRestoreService(
        pool_registry=registry,
        provisioning_service=provisioning_service,
        table_data=table_data,
        access_store=PostgresAccessControlStore(platform_pool),
        workbook_store=workbook_store,
        snapshots=snapshots,
    )


@pytest.fixture
def clean_divisions(
    provisioning_service: DivisionProvisioningService,
) -> Generator[list[DivisionCode], None, None]:
    """Ensure the TX/TY/TZ divisions are absent before and after each test."""
    for code in TEST_DIVISIONS:
        provisioning_service.delete_division(code)
    yield TEST_DIVISIONS
    for code in TEST_DIVISIONS:
        provisioning_service.delete_division(code)
