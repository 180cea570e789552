"""Resolution of vendor binary locations."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath

from src.infra.constants import DEFAULT_CONSTANTS


@dataclass(frozen=True)
class ResolvedPaths:
    """Absolute locations of the LLNG binaries on the target host.

    Attributes:
        bin_prefix: Directory holding the vendor binaries and scripts
        cli_path: lemonldap-ng-cli
        sessions_path: lemonldap-ng-sessions
        config_editor_path: lmConfigEditor
    """

    bin_prefix: str
    cli_path: str
    sessions_path: str
    config_editor_path: str

    def script(self, name: str) -> str:
        """Return the path of a named helper script inside ``bin_prefix``."""
        return str(PurePosixPath(self.bin_prefix) / name)

    def sibling_of_cli(self, name: str) -> str:
        """Return the path of ``name`` in the directory holding the CLI binary."""
        return str(PurePosixPath(self.cli_path).parent / name)


def resolve_paths(
    bin_prefix: str | None = None,
    cli_path: str | None = None,
    sessions_path: str | None = None,
    config_editor_path: str | None = None,
) -> ResolvedPaths:
    """Derive binary paths from a prefix; explicit paths always win."""
    prefix = (bin_prefix or DEFAULT_CONSTANTS.DEFAULT_BIN_PREFIX).rstrip("/") or "/"
    base = PurePosixPath(prefix)
    return ResolvedPaths(
        bin_prefix=prefix,
        cli_path=cli_path or str(base / DEFAULT_CONSTANTS.CLI_NAME),
        sessions_path=sessions_path or str(base / DEFAULT_CONSTANTS.SESSIONS_NAME),
        config_editor_path=config_editor_path
        or str(base / DEFAULT_CONSTANTS.CONFIG_EDITOR_NAME),
    )
