"""Local and SSH execution of the vendor binaries."""

from __future__ import annotations

from collections.abc import Mapping

from src.app.runtime.config.config_data import ShellParams

from .cli_transport import CliTransport
from .composer import CommandComposer
from .paths import resolve_paths
from .runner import CommandRunner


class ShellTransport(CliTransport):
    """Runs the LLNG binaries locally, or on a remote host through ``ssh``.

    Example:
        transport = ShellTransport(ShellParams(host="sso.example.com", sudo="www-data"))
        info = transport.config_info()
    """

    mode = "ssh"

    def __init__(self, params: ShellParams, runner: CommandRunner | None = None):
        super().__init__(
            resolve_paths(
                params.bin_prefix,
                params.cli_path,
                params.sessions_path,
                params.config_editor_path,
            ),
            delete_session_path=params.delete_session_path,
        )
        self.params = params
        self.runner = runner or CommandRunner()
        self.composer = CommandComposer(
            host=params.host,
            user=params.user,
            port=params.port,
            sudo=params.sudo,
            wrapper=params.remote_command,
        )

    def _exec(self, argv: list[str], env: Mapping[str, str] | None = None) -> str:
        command = self.composer.compose(argv, env)
        return self.runner.run_checked(command.argv, env=command.env)

    def _exec_with_stdin(self, argv: list[str], payload: str) -> str:
        command = self.composer.compose(argv)
        return self.runner.run_checked(command.argv, input_data=payload)
