"""Divisions application layer.

Contains application services that orchestrate the division database
lifecycle and provide the public API for the Divisions bounded context.
"""

from divisions.application.services import (
    DivisionBackupService,
    DivisionProvisioningService,
    DivisionRestoreService,
    SchemaSyncService,
)

__all__ = [
    "DivisionBackupService",
    "DivisionProvisioningService",
    "DivisionRestoreService",
    "SchemaSyncService",
]
