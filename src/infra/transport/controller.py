"""Abstract LLNG transport interface.

Defines the contract for configuration and session operations that can be
implemented by different backends (local/SSH shell, kubectl exec, REST API).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any

from src.infra.constants import DEFAULT_CONSTANTS

# =============================================================================
# Data Types
# =============================================================================


@dataclass
class ConfigInfo:
    """Metadata of the current configuration snapshot."""

    cfg_num: int
    cfg_author: str = ""
    cfg_date: str = ""
    cfg_log: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return the snapshot metadata with LLNG's own key names."""
        return {
            "cfgNum": self.cfg_num,
            "cfgAuthor": self.cfg_author,
            "cfgDate": self.cfg_date,
            "cfgLog": self.cfg_log,
        }


@dataclass
class SessionOptions:
    """Backend selection shared by every session operation.

    Attributes:
        backend: Explicit backend (persistent, oidc, saml, cas)
        refresh_tokens: Target refresh token (offline) sessions
        persistent: Shortcut for the persistent backend
        hash: The given session ID is the original cookie value
    """

    backend: str | None = None
    refresh_tokens: bool = False
    persistent: bool = False
    hash: bool = False


@dataclass
class SessionDeleteOptions(SessionOptions):
    """Options for session deletion; ``where``/``kind`` switch to filter mode."""

    where: dict[str, str] | None = None
    kind: str | None = None

    def normalized(self) -> SessionDeleteOptions:
        """Return a copy with ``kind`` folded into ``where``."""
        return replace(self, where=expand_kind(self.where, self.kind), kind=None)


@dataclass
class SessionFilter(SessionOptions):
    """Search criteria for sessions.

    Attributes:
        where: field=value equality clauses
        select: Fields to return
        count: Return only the number of matches
        id_only: Return only session IDs
        kind: Shortcut for a ``_session_kind`` clause (SSO, SAML, CAS, OIDC, ...)
    """

    where: dict[str, str] | None = None
    select: list[str] = field(default_factory=list)
    count: bool = False
    id_only: bool = False
    kind: str | None = None

    def normalized(self) -> SessionFilter:
        """Return a copy with ``kind`` folded into ``where``."""
        return replace(self, where=expand_kind(self.where, self.kind), kind=None)


@dataclass(frozen=True)
class BackendSelection:
    """Physical session backend plus any clause the selection implies."""

    name: str
    where: dict[str, str] = field(default_factory=dict)


def expand_kind(where: dict[str, str] | None, kind: str | None) -> dict[str, str] | None:
    """Merge the session kind shortcut into a where mapping."""
    merged = dict(where or {})
    if kind:
        merged[DEFAULT_CONSTANTS.SESSION_KIND_KEY] = kind
    return merged or None


def resolve_backend(options: SessionOptions | None) -> BackendSelection:
    """Resolve session options to exactly one physical backend.

    Precedence: ``persistent`` > ``refresh_tokens`` (oidc backend restricted
    to refresh tokens) > explicit ``backend`` > ``global``.
    """
    if options is None:
        return BackendSelection(DEFAULT_CONSTANTS.DEFAULT_SESSION_BACKEND)
    if options.persistent:
        return BackendSelection(DEFAULT_CONSTANTS.PERSISTENT_BACKEND)
    if options.refresh_tokens:
        return BackendSelection(
            DEFAULT_CONSTANTS.OIDC_BACKEND,
            {"_type": DEFAULT_CONSTANTS.REFRESH_TOKEN_TYPE},
        )
    return BackendSelection(options.backend or DEFAULT_CONSTANTS.DEFAULT_SESSION_BACKEND)


# =============================================================================
# Abstract Transport
# =============================================================================


class LlngTransport(ABC):
    """Abstract base class for LLNG administration operations.

    All methods block until the underlying process or HTTP round trip
    completes. No operation is transactional: multi-step flows (read, modify,
    write) race with concurrent writers and the last write wins.
    """

    mode: str = ""

    # =========================================================================
    # Configuration
    # =========================================================================

    @abstractmethod
    def config_info(self) -> ConfigInfo:
        """Get metadata (number, author, date, log) of the current config."""
        ...

    @abstractmethod
    def config_get(self, keys: list[str]) -> dict[str, Any]:
        """Get config value(s) by key."""
        ...

    @abstractmethod
    def config_set(self, pairs: dict[str, Any], log: str | None = None) -> None:
        """Set config value(s), optionally recording a log message."""
        ...

    @abstractmethod
    def config_add_key(self, key: str, subkey: str, value: str) -> None:
        """Add a subkey to a hash-valued config key."""
        ...

    @abstractmethod
    def config_del_key(self, key: str, subkey: str) -> None:
        """Remove a subkey from a hash-valued config key."""
        ...

    @abstractmethod
    def config_save(self) -> str:
        """Export the full current configuration as JSON text."""
        ...

    @abstractmethod
    def config_restore(self, payload: str) -> None:
        """Replace the configuration with a full JSON export."""
        ...

    @abstractmethod
    def config_merge(self, payload: str) -> None:
        """Deep-merge a JSON snippet into the current configuration."""
        ...

    @abstractmethod
    def config_rollback(self) -> None:
        """Restore the numerically previous configuration snapshot."""
        ...

    @abstractmethod
    def config_update_cache(self) -> None:
        """Force the portal to reload the configuration cache."""
        ...

    @abstractmethod
    def config_test_email(self, destination: str) -> None:
        """Send a test email using the configured SMTP settings."""
        ...

    @abstractmethod
    def config_dump(self) -> str:
        """Return the full configuration as rendered by the config editor."""
        ...

    # =========================================================================
    # Sessions
    # =========================================================================

    @abstractmethod
    def session_get(
        self, session_id: str, options: SessionOptions | None = None
    ) -> dict[str, Any]:
        """Get one session by ID."""
        ...

    @abstractmethod
    def session_search(self, filters: SessionFilter) -> list[Any]:
        """Search sessions matching a filter."""
        ...

    @abstractmethod
    def session_delete(
        self, ids: list[str], options: SessionDeleteOptions | None = None
    ) -> None:
        """Delete sessions by ID, or every session matching ``options.where``."""
        ...

    @abstractmethod
    def session_set_key(
        self,
        session_id: str,
        pairs: dict[str, Any],
        options: SessionOptions | None = None,
    ) -> None:
        """Set attributes in a session."""
        ...

    @abstractmethod
    def session_del_key(
        self,
        session_id: str,
        keys: list[str],
        options: SessionOptions | None = None,
    ) -> None:
        """Remove attributes from a session."""
        ...

    @abstractmethod
    def session_backup(
        self,
        backend: str | None = None,
        refresh_tokens: bool = False,
        persistent: bool = False,
    ) -> str:
        """Dump every session of a backend as JSON text."""
        ...

    # =========================================================================
    # Second factors and consents
    # =========================================================================

    @abstractmethod
    def second_factors_get(self, user: str) -> list[Any]:
        """List a user's registered second factors."""
        ...

    @abstractmethod
    def second_factors_delete(self, user: str, ids: list[str]) -> None:
        """Delete specific second factors."""
        ...

    @abstractmethod
    def second_factors_del_type(self, user: str, device_type: str) -> None:
        """Delete all second factors of one type."""
        ...

    @abstractmethod
    def consents_get(self, user: str) -> list[Any]:
        """List a user's OIDC consents."""
        ...

    @abstractmethod
    def consents_delete(self, user: str, ids: list[str]) -> None:
        """Delete OIDC consents."""
        ...

    # =========================================================================
    # Scripts
    # =========================================================================

    @abstractmethod
    def exec_script(self, script_name: str, args: list[str]) -> str:
        """Run a named helper script shipped with LLNG and return its output."""
        ...
