"""Configuration template substitution and overlay utilities."""

import os
import re
from collections.abc import Mapping, Sequence
from typing import Any

from loguru import logger

# ${VAR}, ${VAR:-default}, ${VAR:?message}
_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")


def substitute_env_vars(text: str) -> str:
    """
    Substitute environment variable placeholders in text.

    Supports formats:
    - ${VAR_NAME} - required variable (raises error if missing)
    - ${VAR_NAME:-default} - optional with default value
    - ${VAR_NAME:?error_message} - required with custom error message
    """

    def replacer(match: re.Match[str]) -> str:
        var_expr = match.group(1)

        if ":-" in var_expr:
            var_name, default = var_expr.split(":-", 1)
            return os.getenv(var_name, default)

        if ":?" in var_expr:
            var_name, error_msg = var_expr.split(":?", 1)
            value = os.getenv(var_name)
            if value is None:
                raise ValueError(f"Required environment variable {var_name}: {error_msg}")
            return value

        value = os.getenv(var_expr)
        if value is None:
            raise ValueError(f"Required environment variable {var_expr} not set")
        return value

    return _PLACEHOLDER.sub(replacer, text)


def set_nested(target: dict[str, Any], path: Sequence[str], value: Any) -> None:
    """Set ``target[path[0]][path[1]]... = value``, creating dicts on the way."""
    node = target
    for key in path[:-1]:
        child = node.get(key)
        if not isinstance(child, dict):
            child = {}
            node[key] = child
        node = child
    node[path[-1]] = value


def apply_env_overlay(
    target: dict[str, Any],
    mapping: Mapping[str, Sequence[str]],
    environ: Mapping[str, str] | None = None,
) -> int:
    """Copy set environment variables into ``target`` at the mapped key paths.

    Returns:
        Number of variables applied
    """
    environ = os.environ if environ is None else environ
    applied = 0
    for var_name, path in mapping.items():
        value = environ.get(var_name)
        if not value:
            continue
        set_nested(target, path, value)
        logger.debug(f"Applied {var_name} to {'.'.join(path)}")  # Log keys only
        applied += 1
    return applied
