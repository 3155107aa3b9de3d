"""Divisions domain module.

Contains value objects and result models for the Divisions bounded context.
"""

from divisions.domain.results import (
    BackupResult,
    BackupSummary,
    ProvisioningResult,
    RestoreResult,
    SyncReport,
    TableSyncReport,
)
from divisions.domain.value_objects import (
    DivisionCode,
    NameMapping,
)

__all__ = [
    "BackupResult",
    "BackupSummary",
    "DivisionCode",
    "NameMapping",
    "ProvisioningResult",
    "RestoreResult",
    "SyncReport",
    "TableSyncReport",
]
