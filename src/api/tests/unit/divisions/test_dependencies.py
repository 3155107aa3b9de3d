"""Unit tests for Divisions dependency wiring."""

import pytest

from divisions import dependencies
from divisions.domain.value_objects import DivisionCode
from infrastructure import settings as settings_module

_GETTERS = [
    dependencies.get_pool_registry,
    dependencies.get_template_code,
    dependencies.get_schema_introspector,
    dependencies.get_schema_replicator,
    dependencies.get_database_administrator,
    dependencies.get_table_data_store,
    dependencies.get_access_control_store,
    dependencies.get_company_settings_store,
    dependencies.get_workbook_store,
    dependencies.get_snapshot_repository,
    dependencies.get_provisioning_service,
    dependencies.get_sync_service,
    dependencies.get_backup_service,
    dependencies.get_restore_service,
    settings_module.get_database_settings,
    settings_module.get_division_settings,
]


@pytest.fixture(autouse=True)
def clear_caches(monkeypatch, tmp_path):
    monkeypatch.setenv("DIVISIONS_TEMPLATE_CODE", "hc")
    monkeypatch.setenv("DIVISIONS_BACKUPS_DIR", str(tmp_path / "backups"))
    monkeypatch.setenv("DIVISIONS_ASSETS_DIR", str(tmp_path / "data"))
    for getter in _GETTERS:
        getter.cache_clear()
    yield
    for getter in _GETTERS:
        getter.cache_clear()


class TestDivisionDependencies:
    """Tests for cached service wiring."""

    def test_template_code_comes_from_settings(self):
        assert dependencies.get_template_code() == DivisionCode("HC")

    def test_services_share_one_registry(self):
        provisioning = dependencies.get_provisioning_service()
        restore = dependencies.get_restore_service()

        assert provisioning is dependencies.get_provisioning_service()
        assert provisioning._pool_registry is restore._pool_registry
        assert restore._provisioning_service is provisioning
        assert provisioning.template_code == DivisionCode("HC")

    def test_stores_use_configured_directories(self, tmp_path):
        snapshots = dependencies.get_snapshot_repository()

        assert snapshots.backups_dir == tmp_path / "backups"
        assert dependencies.get_backup_service()._snapshots is snapshots

    def test_restore_batch_size_from_settings(self, monkeypatch):
        monkeypatch.setenv("DIVISIONS_RESTORE_BATCH_SIZE", "25")

        assert dependencies.get_restore_service()._batch_size == 25

    def test_close_connections_drains_registry(self):
        registry = dependencies.get_pool_registry()
        pool = registry.get_pool(DivisionCode("XY"))

        dependencies.close_connections()

        assert registry.get_pool(DivisionCode("XY")) is not pool
