"""Filesystem storage for division backup snapshots.

Each snapshot is a folder named division-<code>-<timestamp> under the
backups directory. Files are written incrementally and BACKUP-SUMMARY.json
is written last, so its presence marks a completed (or at least settled)
backup.
"""

from __future__ import annotations

import datetime as dt
import json
import shutil
import uuid
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterator

from divisions.domain.results import BackupManifest
from divisions.domain.value_objects import (
    SNAPSHOT_FOLDER_PREFIX,
    DivisionCode,
    snapshot_folder_name,
)
from divisions.ports.exceptions import BackupNotFoundError

MANIFEST_FILE = "BACKUP-SUMMARY.json"


def json_default(value: Any) -> Any:
    """Convert driver values that json cannot encode natively.

    Strings produced here are accepted back by PostgreSQL's input functions
    for the original column type, which is what makes restore possible.
    """
    if isinstance(value, (dt.datetime, dt.date, dt.time)):
        return value.isoformat()
    if isinstance(value, dt.timedelta):
        return f"{value.total_seconds()} seconds"
    if isinstance(value, (Decimal, uuid.UUID)):
        return str(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return "\\x" + bytes(value).hex()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class SnapshotFolder:
    """One backup folder on disk."""

    def __init__(self, path: Path):
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    @property
    def name(self) -> str:
        return self._path.name

    def _file(self, file_name: str) -> Path:
        return self._path / file_name

    def has_file(self, file_name: str) -> bool:
        return self._file(file_name).is_file()

    def write_json(self, file_name: str, payload: Any) -> None:
        text = json.dumps(payload, indent=2, default=json_default, ensure_ascii=False)
        self._file(file_name).write_text(text, encoding="utf-8")

    def read_json(self, file_name: str) -> Any:
        return json.loads(self._file(file_name).read_text(encoding="utf-8"))

    def write_text(self, file_name: str, text: str) -> None:
        self._file(file_name).write_text(text, encoding="utf-8")

    def copy_in(self, source: Path, file_name: str) -> None:
        """Copy an external file into the folder verbatim."""
        shutil.copyfile(source, self._file(file_name))

    def copy_out(self, file_name: str, destination: Path) -> None:
        """Copy a file from the folder to destination verbatim."""
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(self._file(file_name), destination)

    def write_manifest(self, manifest: BackupManifest) -> None:
        self.write_json(MANIFEST_FILE, manifest.to_json_dict())

    def read_manifest(self) -> BackupManifest:
        """Load BACKUP-SUMMARY.json.

        Raises:
            BackupNotFoundError: If the folder has no summary
        """
        if not self.has_file(MANIFEST_FILE):
            raise BackupNotFoundError(self.name)
        return BackupManifest.model_validate(self.read_json(MANIFEST_FILE))


class FilesystemSnapshotRepository:
    """The backups directory and the snapshot folders inside it."""

    def __init__(self, backups_dir: Path):
        self._backups_dir = Path(backups_dir)

    @property
    def backups_dir(self) -> Path:
        return self._backups_dir

    def create(self, code: DivisionCode, timestamp: str) -> SnapshotFolder:
        """Create a new, empty snapshot folder.

        Existing folders are never reused. A second snapshot taken within
        the same second gets a numeric suffix: division-hc-<timestamp>-2.
        """
        self._backups_dir.mkdir(parents=True, exist_ok=True)
        base_name = snapshot_folder_name(code, timestamp)
        name = base_name
        attempt = 1
        while True:
            path = self._backups_dir / name
            try:
                path.mkdir()
            except FileExistsError:
                attempt += 1
                name = f"{base_name}-{attempt}"
                continue
            return SnapshotFolder(path)

    def open(self, folder_name: str) -> SnapshotFolder:
        """Open an existing snapshot folder by name.

        Raises:
            BackupNotFoundError: If the name is not a plain folder name or the
                folder does not exist
        """
        if folder_name in ("", ".", "..") or Path(folder_name).name != folder_name:
            raise BackupNotFoundError(folder_name)
        path = self._backups_dir / folder_name
        if not path.is_dir():
            raise BackupNotFoundError(folder_name)
        return SnapshotFolder(path)

    def iter_folders(self) -> Iterator[SnapshotFolder]:
        """Snapshot folders in name order; missing directory yields nothing."""
        if not self._backups_dir.is_dir():
            return
        for entry in sorted(self._backups_dir.iterdir()):
            if entry.is_dir() and entry.name.startswith(SNAPSHOT_FOLDER_PREFIX):
                yield SnapshotFolder(entry)
