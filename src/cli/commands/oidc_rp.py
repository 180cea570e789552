"""OIDC relying party commands."""

import json
from typing import Annotated

import typer

from src.app.core.services.oidc_rp import OidcRpService
from src.cli.context import get_cli_context
from src.cli.shared.console import with_error_handling

from .shared import parse_pairs

oidc_rp_app = typer.Typer(help="OIDC relying party commands (manager role)")


def _service(ctx: typer.Context) -> OidcRpService:
    cli = get_cli_context(ctx)
    return OidcRpService(cli.registry, cli.instance)


@oidc_rp_app.command("list")
@with_error_handling
def list_rps(ctx: typer.Context) -> None:
    """List relying parties with their client ID and display name."""
    cli = get_cli_context(ctx)
    cli.console.print_json([rp.as_dict() for rp in _service(ctx).list_rps()])


@oidc_rp_app.command("get")
@with_error_handling
def get_rp(
    ctx: typer.Context,
    conf_key: Annotated[str, typer.Argument(help="RP configuration key")],
) -> None:
    """Show every configuration section of one relying party."""
    cli = get_cli_context(ctx)
    cli.console.print_json(_service(ctx).get_rp(conf_key))


@oidc_rp_app.command("add")
@with_error_handling
def add_rp(
    ctx: typer.Context,
    conf_key: Annotated[str, typer.Argument(help="RP configuration key")],
    client_id: Annotated[str, typer.Option("--client-id", help="OAuth2 client ID")],
    redirect_uris: Annotated[
        str,
        typer.Option("--redirect-uris", help="Redirect URIs, space separated"),
    ],
    client_secret: Annotated[
        str | None, typer.Option("--client-secret", help="OAuth2 client secret")
    ] = None,
    display_name: Annotated[
        str | None, typer.Option("--display-name", help="Display name")
    ] = None,
    exported_var: Annotated[
        list[str] | None,
        typer.Option("--exported-var", help="claim=attribute mapping (repeatable)"),
    ] = None,
    extra_claim: Annotated[
        list[str] | None,
        typer.Option("--extra-claim", help="scope=claims mapping (repeatable)"),
    ] = None,
    options: Annotated[
        str | None,
        typer.Option("--options", help="Extra oidcRPMetaDataOptions* values as JSON"),
    ] = None,
) -> None:
    """Add a relying party.

    Examples:
        llng oidc-rp add app1 --client-id app1 --redirect-uris https://app1/cb
    """
    cli = get_cli_context(ctx)
    extra_options = json.loads(options) if options else None
    if extra_options is not None and not isinstance(extra_options, dict):
        raise typer.BadParameter("Expected a JSON object", param_hint="--options")

    _service(ctx).add_rp(
        conf_key,
        client_id=client_id,
        redirect_uris=redirect_uris,
        client_secret=client_secret,
        display_name=display_name,
        exported_vars=parse_pairs(exported_var, param="--exported-var") or None,
        extra_claims=parse_pairs(extra_claim, param="--extra-claim") or None,
        options=extra_options,
    )
    cli.console.ok(f"OIDC RP '{conf_key}' added with clientId '{client_id}'")


@oidc_rp_app.command("delete")
@with_error_handling
def delete_rp(
    ctx: typer.Context,
    conf_key: Annotated[str, typer.Argument(help="RP configuration key")],
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt"),
    ] = False,
) -> None:
    """Delete a relying party."""
    cli = get_cli_context(ctx)
    if not cli.console.confirm_action(f"Delete OIDC RP '{conf_key}'", force=yes):
        cli.console.print("[dim]Operation cancelled[/dim]")
        raise typer.Exit(0)
    _service(ctx).delete_rp(conf_key)
    cli.console.ok(f"OIDC RP '{conf_key}' deleted")
