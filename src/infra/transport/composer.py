"""Command composition for shell-family transports.

The final invocation is built by an ordered pipeline of small pure functions,
each usable on its own:

    [binary, *args]  ->  wrapper  ->  sudo  ->  ssh

Locally every stage works on an argv list. Once a remote host is involved the
sequence is flattened into one shell string (every vendor token single-quoted)
and handed to ``ssh`` as its command argument.
"""

from __future__ import annotations

import shlex
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from src.infra.constants import DEFAULT_CONSTANTS


def shell_quote(arg: str) -> str:
    """Single-quote ``arg`` for a POSIX shell.

    Embedded single quotes become ``'\\''`` (close, escaped quote, reopen), so
    ``shlex.split(shell_quote(s)) == [s]`` holds for every string, including
    the empty string.
    """
    return "'" + arg.replace("'", "'\\''") + "'"


def quote_argv(argv: Sequence[str]) -> str:
    """Quote each token and join them with single spaces."""
    return " ".join(shell_quote(arg) for arg in argv)


def splice_wrapper(argv: Sequence[str], wrapper: str | None) -> list[str]:
    """Insert the wrapper command tokens immediately before the binary."""
    if not wrapper:
        return list(argv)
    return [*shlex.split(wrapper), *argv]


def wrap_sudo(argv: Sequence[str], user: str | None) -> list[str]:
    """Run ``argv`` as ``user`` through sudo."""
    if not user:
        return list(argv)
    return [DEFAULT_CONSTANTS.SUDO_BINARY, "-u", user, *argv]


def build_remote_command(
    argv: Sequence[str],
    *,
    env: Mapping[str, str] | None = None,
    wrapper: str | None = None,
    sudo: str | None = None,
) -> str:
    """Flatten a command into the single string executed by the remote shell.

    Vendor tokens and env values are quoted. The wrapper is an operator
    supplied shell fragment and is kept verbatim.
    """
    command = quote_argv(argv)
    if env:
        assignments = " ".join(f"{key}={shell_quote(value)}" for key, value in env.items())
        command = f"env {assignments} {command}"
    if wrapper:
        command = f"{wrapper} {command}"
    if sudo:
        command = f"{DEFAULT_CONSTANTS.SUDO_BINARY} -u {shell_quote(sudo)} {command}"
    return command


def wrap_ssh(
    remote_command: str,
    host: str,
    *,
    user: str | None = None,
    port: int | None = None,
) -> list[str]:
    """Build the ``ssh [-p port] [user@]host <command>`` argv."""
    argv = [DEFAULT_CONSTANTS.SSH_BINARY]
    if port:
        argv.extend(["-p", str(port)])
    argv.append(f"{user}@{host}" if user else host)
    argv.append(remote_command)
    return argv


@dataclass(frozen=True)
class ComposedCommand:
    """A fully composed invocation ready for the command runner.

    Attributes:
        argv: Executable followed by its arguments
        env: Extra environment for the local child process, if any
    """

    argv: list[str]
    env: dict[str, str] | None = None


@dataclass(frozen=True)
class CommandComposer:
    """Layers SSH, sudo and a wrapper command around vendor invocations.

    Attributes:
        host: Remote host; None executes locally
        user: SSH login user
        port: SSH port
        sudo: Account to run the binaries as
        wrapper: Command placed in front of the binary (e.g. ``docker exec c``)
    """

    host: str | None = None
    user: str | None = None
    port: int | None = None
    sudo: str | None = None
    wrapper: str | None = None

    @property
    def is_remote(self) -> bool:
        return bool(self.host)

    def compose(
        self,
        argv: Sequence[str],
        env: Mapping[str, str] | None = None,
    ) -> ComposedCommand:
        """Compose the invocation of ``argv`` on the configured target.

        Args:
            argv: Binary path followed by operation arguments
            env: Environment variables for the vendor binary

        Returns:
            ComposedCommand for the local command runner
        """
        if self.host:
            remote = build_remote_command(
                argv, env=env, wrapper=self.wrapper, sudo=self.sudo
            )
            return ComposedCommand(
                argv=wrap_ssh(remote, self.host, user=self.user, port=self.port)
            )

        local = wrap_sudo(splice_wrapper(argv, self.wrapper), self.sudo)
        return ComposedCommand(argv=local, env=dict(env) if env else None)
