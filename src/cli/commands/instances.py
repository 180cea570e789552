"""Instance listing commands."""

from typing import Annotated

import typer
from rich.table import Table

from src.cli.context import get_cli_context
from src.cli.shared.console import with_error_handling

instances_app = typer.Typer(help="Configured LLNG instances")


@instances_app.command("list")
@with_error_handling
def list_instances(
    ctx: typer.Context,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print as JSON"),
    ] = False,
) -> None:
    """List configured instances and their transport mode.

    Examples:
        llng instances list
        llng instances list --json
    """
    cli = get_cli_context(ctx)
    instances = cli.registry.list_instances()

    if as_json:
        cli.console.print_json(instances)
        return

    table = Table(title="LLNG Instances")
    table.add_column("Name", style="cyan")
    table.add_column("Mode")
    table.add_column("Default")
    table.add_column("Manager override")
    for item in instances:
        table.add_row(
            item["name"],
            item["mode"],
            "✓" if item["isDefault"] else "",
            "✓" if item["hasManager"] else "",
        )
    cli.console.print(table)
