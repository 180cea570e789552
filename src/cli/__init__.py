"""Main CLI application module.

This module provides the main entry point for the LLNG administration CLI.
Every command runs against one configured instance (``--instance``, default
from the configuration file) through that instance's transport.

Command Groups:
- instances: Configured instances
- config: Configuration read/write, save/restore, rollback
- session: Session search, inspection and deletion
- 2fa: Second factor devices (API mode)
- consent: OIDC consents (API mode)
- script: LLNG helper scripts (shell and Kubernetes modes)
- oidc-rp: OIDC relying party management
- oidc: OIDC authorization-code client against the instance provider
"""

import sys
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger

from .commands import (
    config_app,
    consents_app,
    instances_app,
    oidc_app,
    oidc_rp_app,
    script_app,
    second_factors_app,
    session_app,
)
from .context import build_cli_context
from .shared.console import with_error_handling

# Create the main CLI application
app = typer.Typer(
    help="LemonLDAP::NG administration CLI (shell, Kubernetes and REST API)",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def configure_logging(verbose: bool) -> None:
    """Send loguru output to stderr: DEBUG when verbose, WARNING otherwise."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


@app.callback()
@with_error_handling
def main_callback(
    ctx: typer.Context,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Configuration file (default: $LLNG_CONFIG or ~/.llng-mcp.json)",
        ),
    ] = None,
    instance: Annotated[
        str | None,
        typer.Option("--instance", "-i", help="Instance name (default from config)"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    configure_logging(verbose)
    ctx.obj = build_cli_context(config, instance)


app.add_typer(instances_app, name="instances")
app.add_typer(config_app, name="config")
app.add_typer(session_app, name="session")
app.add_typer(second_factors_app, name="2fa")
app.add_typer(consents_app, name="consent")
app.add_typer(script_app, name="script")
app.add_typer(oidc_rp_app, name="oidc-rp")
app.add_typer(oidc_app, name="oidc")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
