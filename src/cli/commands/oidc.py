"""OIDC client commands for exercising an instance's OpenID provider."""

from typing import Annotated

import typer

from src.app.core.services.oidc_client import OidcClientService
from src.cli.context import get_cli_context
from src.cli.shared.console import with_error_handling

oidc_app = typer.Typer(help="OIDC authorization-code client (uses the instance's oidc settings)")


def _service(ctx: typer.Context) -> OidcClientService:
    cli = get_cli_context(ctx)
    return OidcClientService(cli.registry, cli.instance)


@oidc_app.command()
@with_error_handling
def metadata(ctx: typer.Context) -> None:
    """Show the provider's discovery document."""
    get_cli_context(ctx).console.print_json(_service(ctx).metadata())


@oidc_app.command()
@with_error_handling
def authorize(
    ctx: typer.Context,
    scope: Annotated[
        str | None, typer.Option("--scope", help="Override the configured scope")
    ] = None,
) -> None:
    """Build an authorization URL with PKCE.

    Keep the printed code_verifier for the ``tokens`` command.
    """
    get_cli_context(ctx).console.print_json(_service(ctx).authorize_url(scope).as_dict())


@oidc_app.command()
@with_error_handling
def tokens(
    ctx: typer.Context,
    code: Annotated[str, typer.Argument(help="Authorization code from the redirect")],
    code_verifier: Annotated[
        str, typer.Option("--code-verifier", help="Verifier printed by 'authorize'")
    ],
) -> None:
    """Exchange an authorization code for tokens."""
    get_cli_context(ctx).console.print_json(_service(ctx).exchange_code(code, code_verifier))


@oidc_app.command()
@with_error_handling
def refresh(
    ctx: typer.Context,
    refresh_token: Annotated[str, typer.Argument(help="Refresh token")],
) -> None:
    """Refresh tokens."""
    get_cli_context(ctx).console.print_json(_service(ctx).refresh(refresh_token))


@oidc_app.command()
@with_error_handling
def userinfo(
    ctx: typer.Context,
    access_token: Annotated[str, typer.Argument(help="Access token")],
) -> None:
    """Call the userinfo endpoint."""
    get_cli_context(ctx).console.print_json(_service(ctx).userinfo(access_token))


@oidc_app.command()
@with_error_handling
def introspect(
    ctx: typer.Context,
    token: Annotated[str, typer.Argument(help="Access or refresh token")],
) -> None:
    """Introspect a token."""
    get_cli_context(ctx).console.print_json(_service(ctx).introspect(token))


@oidc_app.command()
@with_error_handling
def whoami(
    ctx: typer.Context,
    id_token: Annotated[str, typer.Argument(help="ID token")],
) -> None:
    """Decode the claims of an ID token without verifying it."""
    get_cli_context(ctx).console.print_json(OidcClientService.whoami(id_token))


@oidc_app.command("check-auth")
@with_error_handling
def check_auth(
    ctx: typer.Context,
    url: Annotated[str, typer.Argument(help="Protected URL")],
    access_token: Annotated[
        str, typer.Option("--access-token", help="Bearer token to send")
    ],
) -> None:
    """Request a protected URL with a bearer token and show the response status."""
    get_cli_context(ctx).console.print_json(_service(ctx).check_auth(url, access_token))
