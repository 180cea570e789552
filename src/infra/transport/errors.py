"""Error taxonomy for the transport layer.

Every failure raised by a transport or by the registry derives from
``LlngError`` so callers can handle the whole family at one seam, while the
subclasses keep the data needed for diagnosis (exit codes, HTTP status and
body). Messages never contain credentials or authorization headers.
"""

from __future__ import annotations

import re

_URL_USERINFO = re.compile(r"(?P<scheme>[a-zA-Z][a-zA-Z0-9+.-]*://)[^/@\s]+@")


def redact_credentials(text: str) -> str:
    """Strip ``user:password@`` userinfo from any URL embedded in ``text``."""
    return _URL_USERINFO.sub(r"\g<scheme>***@", text)


class LlngError(Exception):
    """Base exception for all LemonLDAP::NG administration failures."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(message)


class ExecutionError(LlngError):
    """A vendor binary (or kubectl/ssh) exited non-zero or could not start.

    Attributes:
        exit_code: Process exit status, or None when the process never started
        spawn_error: True when the process could not be spawned at all
    """

    def __init__(
        self,
        message: str,
        *,
        exit_code: int | None = None,
        spawn_error: bool = False,
    ):
        self.exit_code = exit_code
        self.spawn_error = spawn_error
        super().__init__(message)


class PodResolutionError(LlngError):
    """No pod matched the configured label selector."""


class HttpError(LlngError):
    """The REST management API answered with a non-2xx status.

    Attributes:
        status_code: HTTP status code
        reason: HTTP reason phrase
        body: Response body as text
    """

    def __init__(self, status_code: int, reason: str, body: str):
        self.status_code = status_code
        self.reason = reason
        self.body = body
        super().__init__(f"HTTP {status_code} {reason}".rstrip(), details=body or None)


class NetworkError(LlngError):
    """Connection-level failure talking to the REST management API."""

    PREFIX = "API request failed: "

    def __init__(self, cause: str):
        super().__init__(f"{self.PREFIX}{redact_credentials(cause)}")


class UnsupportedOperationError(LlngError):
    """The operation does not exist on the active transport."""


class ConfigurationError(LlngError):
    """Instance configuration is inconsistent with the requested transport."""


class UnknownInstanceError(LlngError):
    """The requested instance name is not configured."""

    def __init__(self, name: str, known: list[str]):
        self.name = name
        self.known = known
        super().__init__(
            f"Unknown instance '{name}'. Available instances: {', '.join(known)}"
        )


class RollbackBoundaryError(LlngError):
    """Rollback requested while already at the first configuration."""


class OutputParseError(LlngError):
    """A vendor binary produced output that could not be decoded."""


def describe_error(error: object) -> str:
    """Render any raised value as readable, credential-free text."""
    if isinstance(error, LlngError):
        text = error.message
    elif isinstance(error, BaseException):
        text = str(error) or error.__class__.__name__
    elif isinstance(error, str):
        text = error
    else:
        text = repr(error)
    return redact_credentials(text)
