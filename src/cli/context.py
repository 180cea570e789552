"""CLI context and dependency container."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import click
import typer

from src.app.runtime.config.config_loader import load_config
from src.cli.shared.console import CLIConsole, console
from src.infra.transport import LlngTransport, TransportRegistry
from src.infra.transport.registry import Role


@dataclass(frozen=True)
class CLIContext:
    """Runtime dependencies for CLI commands."""

    console: CLIConsole
    registry: TransportRegistry
    instance: str | None = None

    def transport(self, role: Role = "portal") -> LlngTransport:
        """Return the transport of the selected instance."""
        return self.registry.get_transport(self.instance, role=role)


def build_cli_context(
    config_path: Path | None = None, instance: str | None = None
) -> CLIContext:
    """Build a fresh CLIContext from the configuration file."""
    return CLIContext(
        console=console,
        registry=TransportRegistry(load_config(config_path)),
        instance=instance,
    )


def get_cli_context(ctx: typer.Context | None = None) -> CLIContext:
    """Return the CLIContext from Typer, falling back to a new instance."""
    context = ctx or click.get_current_context(silent=True)
    if context and isinstance(context.obj, CLIContext):
        return context.obj
    return build_cli_context()
