"""Shared helpers for CLI command modules."""

import sys
from pathlib import Path

import typer

from src.infra.transport import SessionOptions


def parse_pairs(values: list[str] | None, *, param: str = "PAIRS") -> dict[str, str]:
    """Parse ``key=value`` arguments into a dict, preserving order.

    Raises:
        typer.BadParameter: If an item has no ``=`` or an empty key
    """
    pairs: dict[str, str] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected key=value, got '{item}'", param_hint=param)
        pairs[key] = value
    return pairs


def read_payload(source: str) -> str:
    """Read a JSON payload from a file, or from stdin when ``source`` is ``-``."""
    if source == "-":
        return sys.stdin.read()
    path = Path(source)
    if not path.is_file():
        raise typer.BadParameter(f"File not found: {source}", param_hint="FILE")
    return path.read_text(encoding="utf-8")


def session_options(
    backend: str | None,
    refresh_tokens: bool,
    persistent: bool,
    hash_id: bool = False,
) -> SessionOptions:
    return SessionOptions(
        backend=backend,
        refresh_tokens=refresh_tokens,
        persistent=persistent,
        hash=hash_id,
    )
