"""Domain-Oriented Observability for the Divisions application layer.

Probes for lifecycle service operations following Domain-Oriented Observability patterns.
"""

from divisions.application.observability.backup_service_probe import (
    BackupServiceProbe,
    DefaultBackupServiceProbe,
)
from divisions.application.observability.provisioning_service_probe import (
    DefaultProvisioningServiceProbe,
    ProvisioningServiceProbe,
)
from divisions.application.observability.restore_service_probe import (
    DefaultRestoreServiceProbe,
    RestoreServiceProbe,
)
from divisions.application.observability.sync_service_probe import (
    DefaultSyncServiceProbe,
    SyncServiceProbe,
)

__all__ = [
    "BackupServiceProbe",
    "DefaultBackupServiceProbe",
    "ProvisioningServiceProbe",
    "DefaultProvisioningServiceProbe",
    "RestoreServiceProbe",
    "DefaultRestoreServiceProbe",
    "SyncServiceProbe",
    "DefaultSyncServiceProbe",
]
