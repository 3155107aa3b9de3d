"""Application services for the Divisions bounded context."""

from divisions.application.services.backup_service import DivisionBackupService
from divisions.application.services.provisioning_service import (
    DivisionProvisioningService,
)
from divisions.application.services.restore_service import DivisionRestoreService
from divisions.application.services.sync_service import SchemaSyncService

__all__ = [
    "DivisionBackupService",
    "DivisionProvisioningService",
    "DivisionRestoreService",
    "SchemaSyncService",
]
