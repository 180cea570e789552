"""Second factor and consent commands (REST API instances only)."""

from typing import Annotated

import typer

from src.cli.context import get_cli_context
from src.cli.shared.console import with_error_handling

second_factors_app = typer.Typer(help="Second factor (2FA) device commands")
consents_app = typer.Typer(help="OIDC consent commands")

UserArgument = Annotated[str, typer.Argument(help="User login")]


# ---------------------------------------------------------------------------
# Second factors
# ---------------------------------------------------------------------------


@second_factors_app.command("list")
@with_error_handling
def list_second_factors(ctx: typer.Context, user: UserArgument) -> None:
    """List a user's registered second factors."""
    cli = get_cli_context(ctx)
    cli.console.print_json(cli.transport().second_factors_get(user))


@second_factors_app.command("delete")
@with_error_handling
def delete_second_factors(
    ctx: typer.Context,
    user: UserArgument,
    ids: Annotated[list[str], typer.Argument(help="Device IDs")],
) -> None:
    """Delete second factors by ID."""
    cli = get_cli_context(ctx)
    cli.transport().second_factors_delete(user, ids)
    cli.console.ok(f"Deleted {len(ids)} device(s) of {user}")


@second_factors_app.command("del-type")
@with_error_handling
def delete_second_factor_type(
    ctx: typer.Context,
    user: UserArgument,
    device_type: Annotated[str, typer.Argument(help="Device type (TOTP, U2F, WebAuthn, ...)")],
) -> None:
    """Delete all second factors of one type."""
    cli = get_cli_context(ctx)
    cli.transport().second_factors_del_type(user, device_type)
    cli.console.ok(f"Deleted {device_type} devices of {user}")


# ---------------------------------------------------------------------------
# Consents
# ---------------------------------------------------------------------------


@consents_app.command("list")
@with_error_handling
def list_consents(ctx: typer.Context, user: UserArgument) -> None:
    """List a user's OIDC consents."""
    cli = get_cli_context(ctx)
    cli.console.print_json(cli.transport().consents_get(user))


@consents_app.command("delete")
@with_error_handling
def delete_consents(
    ctx: typer.Context,
    user: UserArgument,
    ids: Annotated[list[str], typer.Argument(help="Consent IDs")],
) -> None:
    """Delete OIDC consents by ID."""
    cli = get_cli_context(ctx)
    cli.transport().consents_delete(user, ids)
    cli.console.ok(f"Deleted {len(ids)} consent(s) of {user}")
