"""Command runner for executing composed commands.

This module provides the blocking process execution used by the shell and
Kubernetes transports.
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from loguru import logger

from .errors import ExecutionError


@dataclass
class CommandResult:
    """Result of a command execution."""

    success: bool
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0


class CommandRunner:
    """Low-level command executor with consistent result handling.

    stderr is always captured so that it never leaks to the caller's
    terminal; ``run_checked`` discards it entirely and reports only the exit
    code.
    """

    def run(
        self,
        cmd: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        input_data: str | None = None,
    ) -> CommandResult:
        """Execute a command and return a structured result.

        Args:
            cmd: Command and arguments as a sequence
            env: Extra environment variables merged over the current one
            input_data: Optional text written to the child's stdin

        Returns:
            CommandResult with success status, output, and return code

        Raises:
            ExecutionError: If the process cannot be started
        """
        child_env = {**os.environ, **env} if env else None
        logger.debug(f"Running {cmd[0]} with {len(cmd) - 1} argument(s)")
        try:
            result = subprocess.run(
                list(cmd),
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                input=input_data,
                env=child_env,
                check=False,
            )
        except OSError as e:
            logger.debug(f"Unable to start {cmd[0]}: {e.__class__.__name__}")
            raise ExecutionError("Command execution failed", spawn_error=True) from e

        return CommandResult(
            success=result.returncode == 0,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
            returncode=result.returncode,
        )

    def run_checked(
        self,
        cmd: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        input_data: str | None = None,
        label: str = "Command",
    ) -> str:
        """Execute a command and return stdout, raising on failure.

        Args:
            cmd: Command and arguments
            env: Extra environment variables for the child
            input_data: Optional text written to the child's stdin
            label: Prefix used in the error message (e.g. "kubectl command")

        Returns:
            Standard output from the command

        Raises:
            ExecutionError: If the command cannot start or exits non-zero
        """
        result = self.run(cmd, env=env, input_data=input_data)
        if not result.success:
            raise ExecutionError(
                f"{label} failed with exit code {result.returncode}",
                exit_code=result.returncode,
            )
        return result.stdout
