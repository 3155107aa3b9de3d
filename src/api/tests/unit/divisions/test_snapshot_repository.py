"""Unit tests for the filesystem snapshot repository."""

import datetime as dt
import json
import uuid
from decimal import Decimal

import pytest

from divisions.domain.results import BackupManifest
from divisions.domain.value_objects import DivisionCode
from divisions.infrastructure.snapshot_repository import (
    MANIFEST_FILE,
    FilesystemSnapshotRepository,
    json_default,
)
from divisions.ports.exceptions import BackupNotFoundError

HC = DivisionCode("HC")


@pytest.fixture
def repository(tmp_path):
    return FilesystemSnapshotRepository(tmp_path / "backups")


class TestJsonDefault:
    """Tests for driver value conversion."""

    def test_temporal_values_use_iso_format(self):
        assert json_default(dt.date(2025, 1, 31)) == "2025-01-31"
        assert json_default(dt.datetime(2025, 1, 31, 10, 15)) == "2025-01-31T10:15:00"
        assert json_default(dt.time(9, 30)) == "09:30:00"

    def test_interval(self):
        assert json_default(dt.timedelta(minutes=2)) == "120.0 seconds"

    def test_decimal_and_uuid_as_text(self):
        value = uuid.UUID("12345678-1234-5678-1234-567812345678")

        assert json_default(Decimal("12.50")) == "12.50"
        assert json_default(value) == str(value)

    def test_bytes_as_hex_literal(self):
        assert json_default(b"\x01\xff") == "\\x01ff"

    def test_unknown_type_raises(self):
        with pytest.raises(TypeError):
            json_default(object())


class TestSnapshotFolder:
    """Tests for file operations inside one snapshot folder."""

    def test_create_uses_folder_naming(self, repository):
        folder = repository.create(HC, "2025-01-31T10-15-42")

        assert folder.name == "division-hc-2025-01-31T10-15-42"
        assert folder.path.is_dir()

    def test_create_within_same_second_gets_suffix(self, repository):
        first = repository.create(HC, "2025-01-31T10-15-42")
        first.write_text("README.md", "first")

        second = repository.create(HC, "2025-01-31T10-15-42")
        third = repository.create(HC, "2025-01-31T10-15-42")

        assert second.name == "division-hc-2025-01-31T10-15-42-2"
        assert third.name == "division-hc-2025-01-31T10-15-42-3"
        assert not second.has_file("README.md")
        assert (first.path / "README.md").read_text(encoding="utf-8") == "first"

    def test_json_round_trip_preserves_unicode(self, repository):
        folder = repository.create(HC, "2025-01-31T10-15-42")

        folder.write_json("table-hc_orders.json", {"data": [{"name": "Müller"}]})

        raw = (folder.path / "table-hc_orders.json").read_text(encoding="utf-8")
        assert "Müller" in raw
        assert folder.read_json("table-hc_orders.json") == {"data": [{"name": "Müller"}]}

    def test_copy_in_and_out(self, repository, tmp_path):
        folder = repository.create(HC, "2025-01-31T10-15-42")
        source = tmp_path / "financials-hc.xlsx"
        source.write_bytes(b"PK\x03\x04")

        folder.copy_in(source, "financials-hc.xlsx")
        destination = tmp_path / "restored" / "financials-hc.xlsx"
        folder.copy_out("financials-hc.xlsx", destination)

        assert destination.read_bytes() == b"PK\x03\x04"

    def test_manifest_round_trip(self, repository):
        folder = repository.create(HC, "2025-01-31T10-15-42")
        manifest = BackupManifest(
            division_code="HC",
            timestamp="2025-01-31T10-15-42",
            backup_path=str(folder.path),
            total_rows=3,
        )

        folder.write_manifest(manifest)

        stored = json.loads((folder.path / MANIFEST_FILE).read_text(encoding="utf-8"))
        assert stored["divisionCode"] == "HC"
        assert folder.read_manifest().model_dump() == manifest.model_dump()

    def test_missing_manifest_raises(self, repository):
        folder = repository.create(HC, "2025-01-31T10-15-42")

        with pytest.raises(BackupNotFoundError):
            folder.read_manifest()


class TestOpen:
    """Tests for opening snapshot folders by name."""

    def test_opens_existing_folder(self, repository):
        created = repository.create(HC, "2025-01-31T10-15-42")

        assert repository.open(created.name).path == created.path

    def test_missing_folder_raises(self, repository):
        with pytest.raises(BackupNotFoundError):
            repository.open("division-hc-2000-01-01T00-00-00")

    @pytest.mark.parametrize("name", ["", ".", "..", "../etc", "a/b"])
    def test_rejects_paths(self, repository, name):
        with pytest.raises(BackupNotFoundError):
            repository.open(name)


class TestIterFolders:
    def test_lists_only_snapshot_folders(self, repository):
        repository.create(HC, "2025-01-31T10-15-42")
        repository.create(DivisionCode("XY"), "2025-01-30T08-00-00")
        (repository.backups_dir / "notes").mkdir()
        (repository.backups_dir / "division-stray.txt").write_text("x")

        names = [folder.name for folder in repository.iter_folders()]

        assert names == [
            "division-hc-2025-01-31T10-15-42",
            "division-xy-2025-01-30T08-00-00",
        ]

    def test_missing_directory_yields_nothing(self, tmp_path):
        repository = FilesystemSnapshotRepository(tmp_path / "absent")

        assert list(repository.iter_folders()) == []
