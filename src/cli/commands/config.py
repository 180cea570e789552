"""LLNG configuration commands.

Read and modify the LemonLDAP::NG configuration of the selected instance,
whatever transport it uses.
"""

from pathlib import Path
from typing import Annotated

import typer

from src.cli.context import get_cli_context
from src.cli.shared.console import with_error_handling

from .shared import parse_pairs, read_payload

config_app = typer.Typer(help="LLNG configuration commands")


@config_app.command()
@with_error_handling
def info(ctx: typer.Context) -> None:
    """Show number, author, date and log of the current configuration."""
    cli = get_cli_context(ctx)
    cli.console.print_json(cli.transport().config_info().as_dict())


@config_app.command()
@with_error_handling
def get(
    ctx: typer.Context,
    keys: Annotated[list[str], typer.Argument(help="Configuration keys")],
) -> None:
    """Get configuration values.

    Examples:
        llng config get portal domain
    """
    cli = get_cli_context(ctx)
    cli.console.print_json(cli.transport().config_get(keys))


@config_app.command("set")
@with_error_handling
def set_values(
    ctx: typer.Context,
    pairs: Annotated[list[str], typer.Argument(help="key=value pairs")],
    log: Annotated[
        str | None,
        typer.Option("--log", "-l", help="Log message stored with the new configuration"),
    ] = None,
) -> None:
    """Set configuration values.

    Examples:
        llng config set domain=example.com --log "Change domain"
    """
    cli = get_cli_context(ctx)
    values = parse_pairs(pairs)
    cli.transport().config_set(values, log)
    cli.console.ok(f"Updated {len(values)} key(s)")


@config_app.command("add-key")
@with_error_handling
def add_key(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Hash-valued configuration key")],
    subkey: Annotated[str, typer.Argument(help="Subkey to add")],
    value: Annotated[str, typer.Argument(help="Subkey value")],
) -> None:
    """Add a subkey to a hash-valued key (e.g. locationRules)."""
    cli = get_cli_context(ctx)
    cli.transport().config_add_key(key, subkey, value)
    cli.console.ok(f"Added {key}/{subkey}")


@config_app.command("del-key")
@with_error_handling
def del_key(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Hash-valued configuration key")],
    subkey: Annotated[str, typer.Argument(help="Subkey to remove")],
) -> None:
    """Remove a subkey from a hash-valued key."""
    cli = get_cli_context(ctx)
    cli.transport().config_del_key(key, subkey)
    cli.console.ok(f"Removed {key}/{subkey}")


@config_app.command()
@with_error_handling
def save(
    ctx: typer.Context,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the export to this file"),
    ] = None,
) -> None:
    """Export the full configuration as JSON."""
    cli = get_cli_context(ctx)
    exported = cli.transport().config_save()
    if output is None:
        cli.console.print_raw(exported)
        return
    output.write_text(exported, encoding="utf-8")
    cli.console.ok(f"Configuration saved to {output}")


@config_app.command()
@with_error_handling
def dump(ctx: typer.Context) -> None:
    """Print the configuration as shown by lmConfigEditor (CLI transports only)."""
    cli = get_cli_context(ctx)
    cli.console.print_raw(cli.transport().config_dump())


@config_app.command()
@with_error_handling
def restore(
    ctx: typer.Context,
    source: Annotated[str, typer.Argument(help="JSON export file, or '-' for stdin")],
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt"),
    ] = False,
) -> None:
    """Replace the configuration with a full JSON export."""
    cli = get_cli_context(ctx)
    payload = read_payload(source)
    if not cli.console.confirm_action(
        "Restore configuration",
        "The current configuration will be replaced by the export.",
        force=yes or source == "-",
    ):
        cli.console.print("[dim]Operation cancelled[/dim]")
        raise typer.Exit(0)
    cli.transport().config_restore(payload)
    cli.console.ok("Configuration restored")


@config_app.command()
@with_error_handling
def merge(
    ctx: typer.Context,
    source: Annotated[str, typer.Argument(help="JSON snippet file, or '-' for stdin")],
) -> None:
    """Deep-merge a JSON snippet into the configuration."""
    cli = get_cli_context(ctx)
    cli.transport().config_merge(read_payload(source))
    cli.console.ok("Configuration merged")


@config_app.command()
@with_error_handling
def rollback(
    ctx: typer.Context,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt"),
    ] = False,
) -> None:
    """Restore the previous configuration."""
    cli = get_cli_context(ctx)
    if not cli.console.confirm_action("Roll back to the previous configuration", force=yes):
        cli.console.print("[dim]Operation cancelled[/dim]")
        raise typer.Exit(0)
    cli.transport().config_rollback()
    cli.console.ok("Configuration rolled back")


@config_app.command("update-cache")
@with_error_handling
def update_cache(ctx: typer.Context) -> None:
    """Force the configuration cache to reload."""
    cli = get_cli_context(ctx)
    cli.transport().config_update_cache()
    cli.console.ok("Configuration cache updated")


@config_app.command("test-email")
@with_error_handling
def test_email(
    ctx: typer.Context,
    destination: Annotated[str, typer.Argument(help="Recipient address")],
) -> None:
    """Send a test email with the configured SMTP settings."""
    cli = get_cli_context(ctx)
    cli.transport().config_test_email(destination)
    cli.console.ok(f"Test email sent to {destination}")
