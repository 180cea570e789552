"""Commands running the helper scripts shipped with LLNG."""

from typing import Annotated

import typer

from src.cli.context import get_cli_context
from src.cli.shared.console import with_error_handling
from src.infra.constants import DEFAULT_CONSTANTS

script_app = typer.Typer(help="Run LLNG helper scripts (shell and Kubernetes instances)")


def _run_script(ctx: typer.Context, name: str, args: list[str]) -> None:
    cli = get_cli_context(ctx)
    cli.console.print_raw(cli.transport().exec_script(name, args))


def _switches(**enabled: bool) -> list[str]:
    """Render boolean options as ``--flag`` switches in keyword order."""
    return [f"--{name.replace('_', '-')}" for name, on in enabled.items() if on]


DebugOption = Annotated[bool, typer.Option("--debug", help="Enable script debug output")]
NoCheckOption = Annotated[
    bool, typer.Option("--no-check", help="Skip TLS certificate verification")
]
VerboseOption = Annotated[bool, typer.Option("--verbose", help="Verbose script output")]


@script_app.command(
    "run",
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
)
@with_error_handling
def run(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Script name inside the bin directory")],
) -> None:
    """Run a named script and print its output.

    Arguments after the name are passed to the script unchanged.

    Examples:
        llng script run purgeCentralCache
        llng script run rotateOidcKeys
        llng script run downloadSamlMetadata --url https://idp/md --output-file /tmp/md.xml
    """
    _run_script(ctx, name, list(ctx.args))


@script_app.command("download-saml-metadata")
@with_error_handling
def download_saml_metadata(
    ctx: typer.Context,
    url: Annotated[str, typer.Option("--url", help="Metadata URL to download")],
    output_file: Annotated[
        str | None,
        typer.Option("--output-file", help="File to write on the target host"),
    ] = None,
    no_check: NoCheckOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Download SAML metadata from a URL (downloadSamlMetadata)."""
    args = ["--url", url]
    if output_file:
        args.extend(["--output-file", output_file])
    args.extend(_switches(no_check=no_check, verbose=verbose))
    _run_script(ctx, "downloadSamlMetadata", args)


@script_app.command("import-metadata")
@with_error_handling
def import_metadata(
    ctx: typer.Context,
    url: Annotated[str, typer.Option("--url", help="Federation metadata URL")],
    sp_prefix: Annotated[
        str | None, typer.Option("--sp-prefix", help="Prefix for imported SP names")
    ] = None,
    idp_prefix: Annotated[
        str | None, typer.Option("--idp-prefix", help="Prefix for imported IdP names")
    ] = None,
    ignore_sp: Annotated[
        list[str] | None,
        typer.Option("--ignore-sp", help="Entity ID of an SP to skip (repeatable)"),
    ] = None,
    ignore_idp: Annotated[
        list[str] | None,
        typer.Option("--ignore-idp", help="Entity ID of an IdP to skip (repeatable)"),
    ] = None,
    remove: Annotated[
        bool, typer.Option("--remove", help="Remove providers missing from the metadata")
    ] = False,
    no_check: NoCheckOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Import SAML federation metadata into the configuration (importMetadata)."""
    args = ["--url", url]
    if sp_prefix:
        args.extend(["--sp-prefix", sp_prefix])
    if idp_prefix:
        args.extend(["--idp-prefix", idp_prefix])
    for entity in ignore_sp or []:
        args.extend(["--ignore-sp", entity])
    for entity in ignore_idp or []:
        args.extend(["--ignore-idp", entity])
    args.extend(_switches(remove=remove, no_check=no_check, verbose=verbose))
    _run_script(ctx, "importMetadata", args)


@script_app.command("delete-user-sessions")
@with_error_handling
def delete_user_sessions(
    ctx: typer.Context,
    uid: Annotated[str, typer.Option("--uid", help="User whose sessions are deleted")],
    force: Annotated[
        bool, typer.Option("--force", help="Do not ask the script to confirm")
    ] = False,
    debug: DebugOption = False,
) -> None:
    """Delete every session of a user (llngDeleteSession)."""
    args = ["--uid", uid, *_switches(force=force, debug=debug)]
    _run_script(ctx, DEFAULT_CONSTANTS.DELETE_SESSION_SCRIPT, args)


@script_app.command("user-attributes")
@with_error_handling
def user_attributes(
    ctx: typer.Context,
    username: Annotated[str, typer.Option("--username", help="User to look up")],
    field: Annotated[
        str | None, typer.Option("--field", help="Only print this attribute")
    ] = None,
) -> None:
    """Show the attributes the portal collects for a user (llngUserAttributes)."""
    args = ["--username", username]
    if field:
        args.extend(["--field", field])
    _run_script(ctx, "llngUserAttributes", args)


@script_app.command("purge-central-cache")
@with_error_handling
def purge_central_cache(
    ctx: typer.Context,
    debug: DebugOption = False,
    force: Annotated[bool, typer.Option("--force", help="Purge even unexpired entries")] = False,
    json_output: Annotated[bool, typer.Option("--json", help="JSON report")] = False,
) -> None:
    """Purge expired sessions from the central cache (purgeCentralCache)."""
    _run_script(ctx, "purgeCentralCache", _switches(debug=debug, force=force, json=json_output))


@script_app.command("purge-local-cache")
@with_error_handling
def purge_local_cache(ctx: typer.Context, debug: DebugOption = False) -> None:
    """Purge the local configuration and session cache (purgeLocalCache)."""
    _run_script(ctx, "purgeLocalCache", _switches(debug=debug))


@script_app.command("rotate-oidc-keys")
@with_error_handling
def rotate_oidc_keys(ctx: typer.Context, debug: DebugOption = False) -> None:
    """Generate a new OIDC signing key pair (rotateOidcKeys)."""
    _run_script(ctx, "rotateOidcKeys", _switches(debug=debug))
