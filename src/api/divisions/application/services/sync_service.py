"""Schema sync application service.

Propagates tables added to the template division into every provisioned
division. Sync is additive: missing tables are created, existing tables are
left untouched even when their columns differ from the template.
"""

from __future__ import annotations

from divisions.application.observability import (
    DefaultSyncServiceProbe,
    SyncServiceProbe,
)
from divisions.application.services.provisioning_service import (
    DivisionProvisioningService,
)
from divisions.domain.results import (
    DivisionSyncCounts,
    DivisionSyncOutcome,
    SyncReport,
    SyncStatus,
    TableSyncReport,
)
from divisions.domain.value_objects import DivisionCode
from divisions.ports.repositories import (
    IPoolRegistry,
    ISchemaIntrospector,
    ISchemaReplicator,
)


class SchemaSyncService:
    """Application service for template-to-division schema sync.

    Divisions are processed one at a time; a failure in one division is
    recorded in the report and does not stop the others.
    """

    def __init__(
        self,
        pool_registry: IPoolRegistry,
        introspector: ISchemaIntrospector,
        replicator: ISchemaReplicator,
        provisioning_service: DivisionProvisioningService,
        probe: SyncServiceProbe | None = None,
    ):
        self._pool_registry = pool_registry
        self._introspector = introspector
        self._replicator = replicator
        self._provisioning_service = provisioning_service
        self._probe = probe or DefaultSyncServiceProbe()

    @property
    def _template_code(self) -> DivisionCode:
        return self._provisioning_service.template_code

    def sync_table(self, table_name: str, code: DivisionCode) -> bool:
        """Create one template table in one division if it is missing.

        Returns:
            True if the table was created, False if it was already present

        Raises:
            TemplateTableNotFoundError: If the template reports no columns
            TableReplicationError: If the CREATE TABLE statement fails
        """
        template = self._template_code
        created = self._replicator.replicate_table(
            self._pool_registry.get_pool(template),
            table_name,
            self._pool_registry.get_pool(code),
            template.prefix,
            code.prefix,
        )
        self._probe.table_synced(
            division_code=code.value, table_name=table_name, created=created
        )
        return created

    def sync_table_to_all_divisions(self, table_name: str) -> TableSyncReport:
        """Sync one template table into every provisioned division."""
        report = TableSyncReport(table_name=table_name)
        for code in self._provisioning_service.list_provisioned_divisions():
            try:
                created = self.sync_table(table_name, code)
            except Exception as e:
                self._probe.table_sync_failed(
                    division_code=code.value, table_name=table_name, error=e
                )
                report.outcomes.append(
                    DivisionSyncOutcome(
                        division_code=code.value, status=SyncStatus.ERROR, error=str(e)
                    )
                )
                continue
            status = SyncStatus.CREATED if created else SyncStatus.SKIPPED
            report.outcomes.append(
                DivisionSyncOutcome(division_code=code.value, status=status)
            )

        self._probe.sync_completed(
            table_count=1, division_count=len(report.outcomes), created=report.created
        )
        return report

    def sync_all_tables_to_all_divisions(self) -> SyncReport:
        """Sync every template table into every provisioned division.

        Returns:
            SyncReport with per-division counts of created, skipped and failed
            tables, and the total number of tables created
        """
        template_pool = self._pool_registry.get_pool(self._template_code)
        tables = self._introspector.list_tables(template_pool)
        divisions = self._provisioning_service.list_provisioned_divisions()

        report = SyncReport(divisions=[code.value for code in divisions])
        for code in divisions:
            counts = DivisionSyncCounts()
            for table_name in tables:
                try:
                    created = self.sync_table(table_name, code)
                except Exception as e:
                    self._probe.table_sync_failed(
                        division_code=code.value, table_name=table_name, error=e
                    )
                    counts.errors += 1
                    continue
                if created:
                    counts.synced += 1
                else:
                    counts.skipped += 1
            report.results[code.value] = counts
            report.synced += counts.synced

        self._probe.sync_completed(
            table_count=len(tables), division_count=len(divisions), created=report.synced
        )
        return report
