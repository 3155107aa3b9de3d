#!/usr/bin/env python3
"""Manage division databases from the command line.

This script:
- Creates a division database from the template division, or resumes one
  whose provisioning stopped part-way
- Deletes a division, optionally taking a backup first
- Backs up and restores divisions, and lists existing backups
- Propagates template tables to every provisioned division

Usage:
    ./scripts/manage_divisions.py create XY "Example Division"
    ./scripts/manage_divisions.py delete XY --backup
    ./scripts/manage_divisions.py backup XY
    ./scripts/manage_divisions.py backups
    ./scripts/manage_divisions.py restore division-xy-2025-01-31T10-15-42 --code XZ
    ./scripts/manage_divisions.py sync-table fp_widgets

Environment Variables:
    DIVISIONS_DB_HOST: Database host (default: localhost)
    DIVISIONS_DB_PORT: Database port (default: 5432)
    DIVISIONS_DB_USERNAME: Database user (default: postgres)
    DIVISIONS_DB_PASSWORD: Database password
    DIVISIONS_TEMPLATE_CODE: Template division code (default: FP)
    DIVISIONS_BACKUPS_DIR: Backup directory (default: backups)
"""

import argparse
import sys

from rich import box
from rich.console import Console
from rich.table import Table

from divisions.dependencies import (
    close_connections,
    get_backup_service,
    get_provisioning_service,
    get_restore_service,
    get_sync_service,
)
from divisions.domain.exceptions import DivisionError
from divisions.domain.results import (
    AuxiliaryStepResult,
    BackupResult,
    OperationError,
    ProvisioningResult,
)
from divisions.domain.value_objects import DivisionCode
from infrastructure.database.exceptions import DatabaseError
from infrastructure.logging import configure_logging
from infrastructure.settings import get_settings

console = Console()


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Manage division databases: provisioning, sync, backup and restore",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s create XY "Example Division"
  %(prog)s create XY --resume
  %(prog)s delete XY --backup
  %(prog)s restore division-xy-2025-01-31T10-15-42 --code XZ --name "Copy of XY"
  %(prog)s sync-all
        """,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    create = subparsers.add_parser("create", help="Create a division from the template")
    create.add_argument("code", help="Division code, e.g. XY")
    create.add_argument("name", nargs="?", help="Display name (default: the code)")
    create.add_argument(
        "--resume",
        action="store_true",
        help="Finish provisioning an existing, partially created division",
    )

    delete = subparsers.add_parser("delete", help="Drop a division database")
    delete.add_argument("code", help="Division code")
    delete.add_argument(
        "--backup", action="store_true", help="Back up the division before dropping it"
    )
    delete.add_argument(
        "--yes", action="store_true", help="Do not ask for confirmation"
    )

    backup = subparsers.add_parser("backup", help="Back up a division")
    backup.add_argument("code", help="Division code")

    subparsers.add_parser("backups", help="List backups, newest first")

    restore = subparsers.add_parser("restore", help="Restore a division from a backup")
    restore.add_argument("folder", help="Backup folder name")
    restore.add_argument("--code", help="Restore under a different division code")
    restore.add_argument("--name", help="Display name for the restored division")

    exists = subparsers.add_parser("exists", help="Check whether a division exists")
    exists.add_argument("code", help="Division code")

    subparsers.add_parser("list", help="List provisioned divisions")

    sync_table = subparsers.add_parser(
        "sync-table", help="Create one template table in every division"
    )
    sync_table.add_argument("table", help="Template table name, e.g. fp_widgets")

    subparsers.add_parser(
        "sync-all", help="Create every template table in every division"
    )

    return parser.parse_args(argv)


def print_errors(errors: list[OperationError]) -> None:
    if not errors:
        return
    table = Table(title="Errors", box=box.SIMPLE, title_style="bold red")
    table.add_column("Location", style="yellow")
    table.add_column("Error")
    for error in errors:
        table.add_row(error.location, error.error)
    console.print(table)


def print_auxiliary(step: AuxiliaryStepResult | None) -> None:
    if step is None:
        return
    if step.success:
        console.print(f"[green]✓[/green] {step.step}: {step.file_name}")
    else:
        console.print(
            f"[yellow]![/yellow] {step.step} failed for {step.file_name}: {step.error}"
        )


def print_provisioning(result: ProvisioningResult) -> None:
    console.print(
        f"[green]✓[/green] Division [bold]{result.division_code}[/bold] "
        f"({result.division_name}) ready in {result.database_name}"
    )
    console.print(
        f"  Tables created: {len(result.tables_created)}, "
        f"skipped: {len(result.tables_skipped)}"
    )
    print_auxiliary(result.auxiliary)


def print_backup(result: BackupResult) -> None:
    style = "green" if result.success else "red"
    console.print(
        f"[{style}]Backup of {result.division_code}[/{style}] "
        f"written to [bold]{result.backup_path}[/bold]"
    )
    console.print(
        f"  {result.total_tables} tables, {result.total_rows:,} rows, "
        f"{result.user_access.count} user grants, "
        f"{result.sales_rep_access.count} sales rep grants"
    )
    print_errors(result.errors)


def cmd_create(args) -> int:
    code = DivisionCode.from_string(args.code)
    service = get_provisioning_service()
    if args.resume:
        result = service.resume_division(code, args.name)
    else:
        result = service.create_division(code, args.name or code.value)
    print_provisioning(result)
    return 0


def cmd_delete(args) -> int:
    code = DivisionCode.from_string(args.code)
    if not args.yes:
        answer = console.input(
            f"[bold red]Drop division {code} and all its data?[/bold red] [y/N] "
        )
        if answer.strip().lower() not in ("y", "yes"):
            console.print("[yellow]Aborted[/yellow]")
            return 1

    if args.backup:
        backup = get_backup_service().backup_division(code)
        print_backup(backup)
        if not backup.success:
            console.print("[bold red]Error:[/bold red] Backup failed, not deleting")
            return 1

    step = get_provisioning_service().delete_division(code)
    console.print(f"[green]✓[/green] Division {code} deleted")
    print_auxiliary(step)
    return 0


def cmd_backup(args) -> int:
    result = get_backup_service().backup_division(DivisionCode.from_string(args.code))
    print_backup(result)
    return 0 if result.success else 1


def cmd_backups(args) -> int:
    summaries = get_backup_service().list_backups()
    if not summaries:
        console.print("[dim]No backups found[/dim]")
        return 0

    table = Table(title="Backups", box=box.ROUNDED)
    table.add_column("Folder", style="cyan")
    table.add_column("Division", style="bold")
    table.add_column("Completed")
    table.add_column("Tables", justify="right")
    table.add_column("Rows", justify="right")
    table.add_column("Grants", justify="right")
    table.add_column("Status")
    for summary in summaries:
        table.add_row(
            summary.folder_name,
            summary.division_code,
            summary.completed_at or "[red]incomplete[/red]",
            str(summary.total_tables),
            f"{summary.total_rows:,}",
            str(summary.user_access + summary.sales_rep_access),
            "[green]ok[/green]" if summary.success else "[red]failed[/red]",
        )
    console.print(table)
    return 0


def cmd_restore(args) -> int:
    new_code = DivisionCode.from_string(args.code) if args.code else None
    result = get_restore_service().restore_division(
        args.folder, new_code=new_code, new_name=args.name
    )
    if result.success:
        console.print(
            f"[green]✓[/green] Restored [bold]{result.division_code}[/bold] "
            f"({result.division_name})"
        )
    else:
        console.print(f"[bold red]Restore of {args.folder} failed[/bold red]")

    if result.tables:
        table = Table(box=box.SIMPLE)
        table.add_column("Table", style="cyan")
        table.add_column("Restored", justify="right")
        table.add_column("In backup", justify="right")
        for outcome in result.tables:
            style = "green" if outcome.rows_restored == outcome.rows_in_backup else "yellow"
            table.add_row(
                outcome.name,
                f"[{style}]{outcome.rows_restored:,}[/{style}]",
                f"{outcome.rows_in_backup:,}",
            )
        console.print(table)
    console.print(
        f"  {result.tables_restored} tables, {result.rows_restored:,} rows, "
        f"{result.access_records_restored} access records"
    )
    print_errors(result.errors)
    return 0 if result.success else 1


def cmd_exists(args) -> int:
    code = DivisionCode.from_string(args.code)
    if get_provisioning_service().division_exists(code):
        console.print(f"[green]Division {code} exists[/green]")
        return 0
    console.print(f"[yellow]Division {code} does not exist[/yellow]")
    return 1


def cmd_list(args) -> int:
    service = get_provisioning_service()
    console.print(f"[dim]Template: {service.template_code}[/dim]")
    codes = service.list_provisioned_divisions()
    if not codes:
        console.print("[dim]No divisions provisioned[/dim]")
    for code in codes:
        console.print(f"  {code.value:<10} [dim]{code.database_name}[/dim]")
    return 0


def cmd_sync_table(args) -> int:
    report = get_sync_service().sync_table_to_all_divisions(args.table)
    table = Table(title=f"Sync {report.table_name}", box=box.SIMPLE)
    table.add_column("Division", style="bold")
    table.add_column("Status")
    table.add_column("Error")
    failed = False
    for outcome in report.outcomes:
        failed = failed or outcome.error is not None
        table.add_row(outcome.division_code, outcome.status.value, outcome.error or "")
    console.print(table)
    console.print(f"  Created in {report.created} divisions")
    return 1 if failed else 0


def cmd_sync_all(args) -> int:
    report = get_sync_service().sync_all_tables_to_all_divisions()
    table = Table(title="Schema sync", box=box.SIMPLE)
    table.add_column("Division", style="bold")
    table.add_column("Created", justify="right", style="green")
    table.add_column("Skipped", justify="right", style="dim")
    table.add_column("Errors", justify="right", style="red")
    for code, counts in report.results.items():
        table.add_row(code, str(counts.synced), str(counts.skipped), str(counts.errors))
    console.print(table)
    console.print(f"  {report.synced} tables created")
    errors = sum(counts.errors for counts in report.results.values())
    return 1 if errors else 0


COMMANDS = {
    "create": cmd_create,
    "delete": cmd_delete,
    "backup": cmd_backup,
    "backups": cmd_backups,
    "restore": cmd_restore,
    "exists": cmd_exists,
    "list": cmd_list,
    "sync-table": cmd_sync_table,
    "sync-all": cmd_sync_all,
}


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(debug=get_settings().debug)

    try:
        return COMMANDS[args.command](args)
    except (DivisionError, DatabaseError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        return 1
    finally:
        close_connections()


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        console.print("\n\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)  # Standard exit code for Ctrl+C
