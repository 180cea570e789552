"""LemonLDAP::NG administration constants.

This module centralizes the binary names, default install paths, REST routes
and Kubernetes conventions used by every transport.
"""

from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class LlngConstants:
    """Constants shared by the shell, Kubernetes and API transports.

    All attributes are class-level and immutable.
    """

    # Vendor binaries
    DEFAULT_BIN_PREFIX: str = "/usr/share/lemonldap-ng/bin"
    CLI_NAME: str = "lemonldap-ng-cli"
    SESSIONS_NAME: str = "lemonldap-ng-sessions"
    CONFIG_EDITOR_NAME: str = "lmConfigEditor"
    DELETE_SESSION_SCRIPT: str = "llngDeleteSession"

    # Executables on the administration host
    SSH_BINARY: str = "ssh"
    SUDO_BINARY: str = "sudo"
    KUBECTL_BINARY: str = "kubectl"

    # Kubernetes conventions
    DEPLOYMENT_LABEL_KEY: str = "app.kubernetes.io/name"
    POD_NAME_JSONPATH: str = "jsonpath={.items[0].metadata.name}"

    # REST management API
    API_PREFIX: str = "/api/v1"
    DEFAULT_SESSION_BACKEND: str = "global"
    PERSISTENT_BACKEND: str = "persistent"
    OIDC_BACKEND: str = "oidc"
    REFRESH_TOKEN_TYPE: str = "refresh_token"

    # Session filter shortcut key
    SESSION_KIND_KEY: str = "_session_kind"

    # Named scripts must be plain file names inside the bin prefix
    SCRIPT_NAME_PATTERN: re.Pattern[str] = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.-]*$")

    @property
    def config_latest_path(self) -> str:
        """Route of the current configuration snapshot."""
        return f"{self.API_PREFIX}/config/latest"

    @property
    def config_path(self) -> str:
        """Route used to write a new configuration snapshot."""
        return f"{self.API_PREFIX}/config"


DEFAULT_CONSTANTS = LlngConstants()
