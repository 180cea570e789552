"""LLNG session commands."""

from pathlib import Path
from typing import Annotated

import typer

from src.cli.context import get_cli_context
from src.cli.shared.console import with_error_handling
from src.infra.transport import SessionDeleteOptions, SessionFilter

from .shared import parse_pairs, session_options

session_app = typer.Typer(help="LLNG session commands")

# Options shared by every session command
BackendOption = Annotated[
    str | None,
    typer.Option("--backend", "-b", help="Session backend (persistent, oidc, saml, cas)"),
]
RefreshTokensOption = Annotated[
    bool,
    typer.Option("--refresh-tokens", help="Target OIDC refresh token sessions"),
]
PersistentOption = Annotated[
    bool,
    typer.Option("--persistent", help="Target persistent sessions"),
]
HashOption = Annotated[
    bool,
    typer.Option("--hash", help="The session ID is the original cookie value"),
]
WhereOption = Annotated[
    list[str] | None,
    typer.Option("--where", "-w", help="field=value filter (repeatable)"),
]
KindOption = Annotated[
    str | None,
    typer.Option("--kind", help="Session kind (SSO, SAML, CAS, OIDC, ...)"),
]


@session_app.command()
@with_error_handling
def get(
    ctx: typer.Context,
    session_id: Annotated[str, typer.Argument(help="Session ID")],
    backend: BackendOption = None,
    refresh_tokens: RefreshTokensOption = False,
    persistent: PersistentOption = False,
    hash_id: HashOption = False,
) -> None:
    """Show one session."""
    cli = get_cli_context(ctx)
    options = session_options(backend, refresh_tokens, persistent, hash_id)
    cli.console.print_json(cli.transport().session_get(session_id, options))


@session_app.command()
@with_error_handling
def search(
    ctx: typer.Context,
    where: WhereOption = None,
    select: Annotated[
        list[str] | None,
        typer.Option("--select", "-s", help="Field to return (repeatable)"),
    ] = None,
    backend: BackendOption = None,
    count: Annotated[bool, typer.Option("--count", help="Only count matches")] = False,
    refresh_tokens: RefreshTokensOption = False,
    persistent: PersistentOption = False,
    hash_id: HashOption = False,
    id_only: Annotated[bool, typer.Option("--id-only", help="Only return IDs")] = False,
    kind: KindOption = None,
) -> None:
    """Search sessions.

    Examples:
        llng session search --where uid=dwho
        llng session search --kind SSO --count
        llng session search --refresh-tokens --id-only
    """
    cli = get_cli_context(ctx)
    filters = SessionFilter(
        where=parse_pairs(where, param="--where") or None,
        select=list(select or []),
        backend=backend,
        count=count,
        refresh_tokens=refresh_tokens,
        persistent=persistent,
        hash=hash_id,
        id_only=id_only,
        kind=kind,
    )
    cli.console.print_json(cli.transport().session_search(filters))


@session_app.command()
@with_error_handling
def delete(
    ctx: typer.Context,
    session_ids: Annotated[
        list[str] | None, typer.Argument(help="Session IDs to delete")
    ] = None,
    where: WhereOption = None,
    kind: KindOption = None,
    backend: BackendOption = None,
    refresh_tokens: RefreshTokensOption = False,
    persistent: PersistentOption = False,
    hash_id: HashOption = False,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt for filter deletion"),
    ] = False,
) -> None:
    """Delete sessions by ID, or every session matching a filter.

    Examples:
        llng session delete 0123abcd 4567ef01
        llng session delete --where uid=dwho --yes
    """
    cli = get_cli_context(ctx)
    options = SessionDeleteOptions(
        backend=backend,
        refresh_tokens=refresh_tokens,
        persistent=persistent,
        hash=hash_id,
        where=parse_pairs(where, param="--where") or None,
        kind=kind,
    )
    filtered = bool(options.where or options.kind)

    if not filtered and not session_ids:
        raise typer.BadParameter("Give session IDs or a --where/--kind filter")
    if filtered and not cli.console.confirm_action(
        "Delete every matching session", force=yes
    ):
        cli.console.print("[dim]Operation cancelled[/dim]")
        raise typer.Exit(0)

    cli.transport().session_delete(list(session_ids or []), options)
    cli.console.ok("Sessions deleted")


@session_app.command("set-key")
@with_error_handling
def set_key(
    ctx: typer.Context,
    session_id: Annotated[str, typer.Argument(help="Session ID")],
    pairs: Annotated[list[str], typer.Argument(help="key=value pairs")],
    backend: BackendOption = None,
    refresh_tokens: RefreshTokensOption = False,
    persistent: PersistentOption = False,
    hash_id: HashOption = False,
) -> None:
    """Set attributes in a session."""
    cli = get_cli_context(ctx)
    options = session_options(backend, refresh_tokens, persistent, hash_id)
    cli.transport().session_set_key(session_id, parse_pairs(pairs), options)
    cli.console.ok(f"Session {session_id} updated")


@session_app.command("del-key")
@with_error_handling
def del_key(
    ctx: typer.Context,
    session_id: Annotated[str, typer.Argument(help="Session ID")],
    keys: Annotated[list[str], typer.Argument(help="Attributes to remove")],
    backend: BackendOption = None,
    refresh_tokens: RefreshTokensOption = False,
    persistent: PersistentOption = False,
    hash_id: HashOption = False,
) -> None:
    """Remove attributes from a session."""
    cli = get_cli_context(ctx)
    options = session_options(backend, refresh_tokens, persistent, hash_id)
    cli.transport().session_del_key(session_id, keys, options)
    cli.console.ok(f"Session {session_id} updated")


@session_app.command()
@with_error_handling
def backup(
    ctx: typer.Context,
    backend: BackendOption = None,
    refresh_tokens: RefreshTokensOption = False,
    persistent: PersistentOption = False,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the dump to this file"),
    ] = None,
) -> None:
    """Dump all sessions of a backend as JSON."""
    cli = get_cli_context(ctx)
    dump = cli.transport().session_backup(backend, refresh_tokens, persistent)
    if output is None:
        cli.console.print_raw(dump)
        return
    output.write_text(dump, encoding="utf-8")
    cli.console.ok(f"Sessions saved to {output}")
