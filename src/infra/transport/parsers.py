"""Parsers for the textual output of the LLNG command line tools."""

from __future__ import annotations

import json
import re
from typing import Any

from .errors import OutputParseError

# "Num      : 42"
_INFO_LINE = re.compile(r"^(\S+?)\s*:\s*(.*)$")
# "portal = http://auth.example.com/"
_GET_LINE = re.compile(r"^([^\s=]+)\s*=\s*(.*)$")


def _split_lines(output: str) -> list[str]:
    return [line.strip() for line in output.strip().splitlines() if line.strip()]


def parse_info(output: str) -> dict[str, str]:
    """Parse ``Key : Value`` lines from ``lemonldap-ng-cli info``."""
    data: dict[str, str] = {}
    for line in _split_lines(output):
        match = _INFO_LINE.match(line)
        if match:
            data[match.group(1)] = match.group(2).strip()
    return data


def parse_get(output: str) -> dict[str, str]:
    """Parse ``key = value`` lines from ``lemonldap-ng-cli get``."""
    result: dict[str, str] = {}
    for line in _split_lines(output):
        match = _GET_LINE.match(line)
        if match:
            result[match.group(1)] = match.group(2).strip()
    return result


def parse_json(output: str, *, source: str) -> Any:
    """Decode raw JSON emitted by a vendor binary.

    Args:
        output: Process stdout
        source: Human readable name of the producing command, used in errors

    Raises:
        OutputParseError: If the output is not valid JSON
    """
    try:
        return json.loads(output)
    except json.JSONDecodeError as e:
        raise OutputParseError(
            f"Unexpected output from {source}: invalid JSON at line {e.lineno} column {e.colno}"
        ) from e
