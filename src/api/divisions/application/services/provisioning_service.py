"""Division provisioning application service.

Creates division databases by cloning the template division's tables,
resumes half-built divisions, and deletes divisions.
"""

from __future__ import annotations

from divisions.application.observability import (
    DefaultProvisioningServiceProbe,
    ProvisioningServiceProbe,
)
from divisions.domain.results import AuxiliaryStepResult, ProvisioningResult
from divisions.domain.value_objects import DATABASE_SUFFIX, DivisionCode, NameMapping
from divisions.ports.exceptions import (
    DivisionNotFoundError,
    DivisionProvisioningError,
    TableReplicationError,
    TemplateDivisionError,
    TemplateTableNotFoundError,
)
from divisions.ports.repositories import (
    IDatabaseAdministrator,
    IPoolRegistry,
    ISchemaIntrospector,
    ISchemaReplicator,
    IWorkbookStore,
)

WORKBOOK_CREATION_STEP = "workbook_creation"
WORKBOOK_REMOVAL_STEP = "workbook_removal"


class DivisionProvisioningService:
    """Application service for the division database lifecycle.

    Provisioning is not transactional: a table that fails to replicate
    leaves the database holding the tables created before it. The failure
    is raised as DivisionProvisioningError listing those tables, and
    resume_division finishes the job by skipping tables already present.
    """

    def __init__(
        self,
        pool_registry: IPoolRegistry,
        administrator: IDatabaseAdministrator,
        introspector: ISchemaIntrospector,
        replicator: ISchemaReplicator,
        workbook_store: IWorkbookStore,
        template_code: DivisionCode,
        probe: ProvisioningServiceProbe | None = None,
    ):
        """Initialize DivisionProvisioningService with dependencies.

        Args:
            pool_registry: Per-division connection pools
            administrator: Server-level database management
            introspector: Catalog reader for the template division
            replicator: Table replicator
            workbook_store: Financials workbook storage
            template_code: Division every other division is cloned from
            probe: Optional domain probe for observability
        """
        self._pool_registry = pool_registry
        self._administrator = administrator
        self._introspector = introspector
        self._replicator = replicator
        self._workbook_store = workbook_store
        self._template_code = template_code
        self._probe = probe or DefaultProvisioningServiceProbe()

    @property
    def template_code(self) -> DivisionCode:
        return self._template_code

    def create_division(self, code: DivisionCode, name: str) -> ProvisioningResult:
        """Create a division database with every template table.

        Args:
            code: Code of the new division
            name: Display name, used for the financials workbook

        Returns:
            ProvisioningResult listing created and skipped tables and the
            outcome of the workbook step

        Raises:
            DivisionAlreadyExistsError: If the database already exists
            DivisionProvisioningError: If a table fails to replicate
        """
        self._probe.division_creation_started(division_code=code.value, name=name)
        self._administrator.create_database(code.database_name)

        result = ProvisioningResult(
            division_code=code.value,
            division_name=name,
            database_name=code.database_name,
        )
        self._replicate_template_tables(code, result)
        result.auxiliary = self._create_workbook(code, name)

        self._probe.division_created(
            division_code=code.value,
            tables_created=len(result.tables_created),
            tables_skipped=len(result.tables_skipped),
        )
        return result

    def resume_division(
        self, code: DivisionCode, name: str | None = None
    ) -> ProvisioningResult:
        """Finish provisioning a division whose database already exists.

        Tables already present are skipped, so this is safe to repeat. The
        workbook is only created if the division has none.

        Raises:
            DivisionNotFoundError: If the division database does not exist
            DivisionProvisioningError: If a table fails to replicate
        """
        if not self._administrator.database_exists(code.database_name):
            raise DivisionNotFoundError(code.value)

        display_name = name or code.value
        result = ProvisioningResult(
            division_code=code.value,
            division_name=display_name,
            database_name=code.database_name,
        )
        self._replicate_template_tables(code, result)
        if not self._workbook_store.exists(code):
            result.auxiliary = self._create_workbook(code, display_name)

        self._probe.division_created(
            division_code=code.value,
            tables_created=len(result.tables_created),
            tables_skipped=len(result.tables_skipped),
        )
        return result

    def delete_division(self, code: DivisionCode) -> AuxiliaryStepResult:
        """Drop a division database and remove its workbook.

        The cached pool is closed and other sessions are terminated before
        the drop. Workbook removal is best-effort.

        Returns:
            Outcome of the workbook removal step

        Raises:
            TemplateDivisionError: If code is the template division
        """
        if code == self._template_code:
            self._probe.template_deletion_refused(division_code=code.value)
            raise TemplateDivisionError(
                f"Division {code} is the template and cannot be deleted"
            )

        self._pool_registry.close_pool(code)
        self._administrator.drop_database(code.database_name)
        self._probe.division_deleted(division_code=code.value)

        file_name = self._workbook_store.file_name_for(code)
        try:
            self._workbook_store.delete_for_division(code)
        except OSError as e:
            self._probe.auxiliary_step_failed(
                division_code=code.value, step=WORKBOOK_REMOVAL_STEP, error=e
            )
            return AuxiliaryStepResult(
                step=WORKBOOK_REMOVAL_STEP,
                success=False,
                file_name=file_name,
                error=str(e),
            )
        self._probe.auxiliary_step_completed(
            division_code=code.value, step=WORKBOOK_REMOVAL_STEP, file_name=file_name
        )
        return AuxiliaryStepResult(
            step=WORKBOOK_REMOVAL_STEP, success=True, file_name=file_name
        )

    def division_exists(self, code: DivisionCode) -> bool:
        return self._administrator.database_exists(code.database_name)

    def list_provisioned_divisions(self) -> list[DivisionCode]:
        """Divisions whose database exists, excluding the template.

        Databases that follow the naming rule but do not yield a valid code
        are ignored.
        """
        codes = []
        for database_name in self._administrator.list_databases(DATABASE_SUFFIX):
            code = DivisionCode.from_database_name(database_name)
            if code is None or code == self._template_code:
                continue
            codes.append(code)
        return sorted(codes, key=lambda c: c.value)

    def _replicate_template_tables(
        self, code: DivisionCode, result: ProvisioningResult
    ) -> None:
        template_pool = self._pool_registry.get_pool(self._template_code)
        target_pool = self._pool_registry.get_pool(code)
        mapping = NameMapping.between(self._template_code, code)

        for table_name in self._introspector.list_tables(template_pool):
            target_table = mapping.translate(table_name)
            try:
                created = self._replicator.replicate_table(
                    template_pool,
                    table_name,
                    target_pool,
                    mapping.source_prefix,
                    mapping.target_prefix,
                )
            except TemplateTableNotFoundError:
                self._probe.template_table_skipped(
                    division_code=code.value, table_name=table_name
                )
                result.tables_skipped.append(target_table)
                continue
            except TableReplicationError as e:
                self._probe.provisioning_failed(
                    division_code=code.value,
                    table_name=target_table,
                    created_tables=result.tables_created,
                    error=e,
                )
                raise DivisionProvisioningError(
                    division_code=code.value,
                    failed_table=target_table,
                    created_tables=list(result.tables_created),
                    message=str(e),
                ) from e

            if created:
                result.tables_created.append(target_table)
            else:
                result.tables_skipped.append(target_table)

    def _create_workbook(self, code: DivisionCode, name: str) -> AuxiliaryStepResult:
        """Best-effort workbook creation; failures are reported, not raised."""
        file_name = self._workbook_store.file_name_for(code)
        try:
            self._workbook_store.create_for_division(code, name)
        except Exception as e:
            self._probe.auxiliary_step_failed(
                division_code=code.value, step=WORKBOOK_CREATION_STEP, error=e
            )
            return AuxiliaryStepResult(
                step=WORKBOOK_CREATION_STEP,
                success=False,
                file_name=file_name,
                error=str(e),
            )
        self._probe.auxiliary_step_completed(
            division_code=code.value, step=WORKBOOK_CREATION_STEP, file_name=file_name
        )
        return AuxiliaryStepResult(
            step=WORKBOOK_CREATION_STEP, success=True, file_name=file_name
        )
