"""Named-instance transport registry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, get_args

from loguru import logger

from src.app.runtime.config.config_data import (
    InstanceConfig,
    LlngConfig,
    OidcParams,
    TransportMode,
)

from .api_transport import ApiTransport
from .controller import LlngTransport
from .errors import ConfigurationError, UnknownInstanceError
from .k8s_transport import KubernetesTransport
from .shell_transport import ShellTransport

Role = Literal["portal", "manager"]
ROLES: tuple[str, ...] = get_args(Role)


def build_transport(name: str, config: InstanceConfig) -> LlngTransport:
    """Construct the transport matching ``config.mode``; performs no I/O.

    Raises:
        ConfigurationError: If the params block for the mode is missing
    """
    if config.mode == TransportMode.API:
        if config.api is None:
            raise ConfigurationError(
                f"Instance '{name}': API mode requires 'api' configuration"
            )
        return ApiTransport(config.api)
    if config.mode == TransportMode.K8S:
        if config.k8s is None:
            raise ConfigurationError(
                f"Instance '{name}': K8s mode requires 'k8s' configuration"
            )
        return KubernetesTransport(config.k8s)
    if config.ssh is None:
        raise ConfigurationError(
            f"Instance '{name}': SSH mode requires 'ssh' configuration"
        )
    return ShellTransport(config.ssh)


@dataclass
class TransportEntry:
    """Transports built for one instance."""

    portal: LlngTransport
    manager: LlngTransport | None = None
    manager_resolved: bool = False


class TransportRegistry:
    """Resolves instance names to transports, built lazily and cached.

    The ``manager`` role uses the instance's manager override (each omitted
    field falls back to the portal value) and shares the portal transport
    when no override is configured.

    Example:
        registry = TransportRegistry(load_config())
        transport = registry.get_transport("prod", role="manager")
    """

    def __init__(self, config: LlngConfig):
        self._configs: dict[str, InstanceConfig] = dict(config.instances)
        self.default_instance = config.default
        self._entries: dict[str, TransportEntry] = {}

    def _resolve(self, instance: str | None) -> tuple[str, InstanceConfig]:
        name = instance or self.default_instance
        config = self._configs.get(name)
        if config is None:
            raise UnknownInstanceError(name, list(self._configs))
        return name, config

    def _entry(self, name: str, config: InstanceConfig) -> TransportEntry:
        entry = self._entries.get(name)
        if entry is None:
            logger.debug(f"Creating {config.mode.value} transport for instance '{name}'")
            entry = self._entries.setdefault(
                name, TransportEntry(portal=build_transport(name, config))
            )
        return entry

    def get_transport(self, instance: str | None = None, role: Role = "portal") -> LlngTransport:
        """Return the cached transport for an instance and role.

        Raises:
            UnknownInstanceError: If the instance is not configured
            ConfigurationError: If the role is unknown or the instance lacks
                the params for its mode
        """
        if role not in ROLES:
            raise ConfigurationError(
                f"Unknown role '{role}'. Expected one of: {', '.join(ROLES)}"
            )
        name, config = self._resolve(instance)
        entry = self._entry(name, config)
        if role == "portal":
            return entry.portal

        if not entry.manager_resolved:
            manager_config = config.manager_config()
            if manager_config is not None:
                logger.debug(f"Creating manager transport for instance '{name}'")
                entry.manager = build_transport(name, manager_config)
            entry.manager_resolved = True
        return entry.manager or entry.portal

    def get_oidc_config(self, instance: str | None = None) -> OidcParams | None:
        _, config = self._resolve(instance)
        return config.oidc

    def list_instances(self) -> list[dict[str, Any]]:
        """Describe every configured instance in configuration order."""
        return [
            {
                "name": name,
                "mode": config.mode.value,
                "isDefault": name == self.default_instance,
                "hasManager": config.manager is not None,
            }
            for name, config in self._configs.items()
        ]
