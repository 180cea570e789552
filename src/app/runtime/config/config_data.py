"""Instance configuration models.

Configuration files use camelCase keys (``binPrefix``, ``podSelector``,
``verifySsl``, ...); the models expose snake_case attributes.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class TransportMode(str, Enum):
    """How commands reach the LLNG deployment.

    - SSH: vendor CLI run locally or over SSH (alias: shell)
    - K8S: vendor CLI run in a pod through kubectl exec (alias: kubernetes)
    - API: REST management API
    """

    SSH = "ssh"
    K8S = "k8s"
    API = "api"


_MODE_ALIASES = {"shell": TransportMode.SSH, "kubernetes": TransportMode.K8S}


def _coerce_mode(value: Any) -> Any:
    if isinstance(value, str):
        return _MODE_ALIASES.get(value.lower(), value.lower())
    return value


class _ConfigModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# =============================================================================
# Transport Parameters
# =============================================================================


class ShellParams(_ConfigModel):
    """Local or SSH execution of the vendor binaries."""

    host: str | None = Field(default=None, description="Remote host; unset runs locally")
    user: str | None = None
    port: int | None = None
    sudo: str | None = Field(default=None, description="Account to run the binaries as")
    remote_command: str | None = Field(
        default=None,
        description="Wrapper placed before the binary, e.g. 'docker exec sso-auth-1'",
    )
    bin_prefix: str | None = None
    cli_path: str | None = None
    sessions_path: str | None = None
    config_editor_path: str | None = None
    delete_session_path: str | None = None


class KubernetesParams(_ConfigModel):
    """Execution of the vendor binaries inside a pod."""

    namespace: str | None = None
    context: str | None = None
    deployment: str | None = None
    pod_selector: str | None = None
    container: str | None = None
    bin_prefix: str | None = None
    cli_path: str | None = None
    sessions_path: str | None = None
    config_editor_path: str | None = None


class BasicAuth(_ConfigModel):
    username: str
    password: str = Field(repr=False)


class ApiParams(_ConfigModel):
    """REST management API endpoint."""

    base_url: str
    basic_auth: BasicAuth | None = None
    verify_ssl: bool = True
    timeout: float | None = Field(default=None, description="Request timeout in seconds")


class OidcParams(_ConfigModel):
    """OIDC relying party used by interactive tooling."""

    issuer: str
    client_id: str
    client_secret: str | None = Field(default=None, repr=False)
    redirect_uri: str = "http://localhost:8080/callback"
    scope: str = "openid profile email"


# =============================================================================
# Instances
# =============================================================================


class ManagerOverride(_ConfigModel):
    """Transport used for manager (configuration-writing) operations.

    Every omitted field falls back to the portal value of the same instance.
    """

    mode: TransportMode | None = None
    ssh: ShellParams | None = None
    k8s: KubernetesParams | None = None
    api: ApiParams | None = None

    @field_validator("mode", mode="before")
    @classmethod
    def _normalize_mode(cls, value: Any) -> Any:
        return _coerce_mode(value)


class InstanceConfig(_ConfigModel):
    """One named LLNG deployment."""

    mode: TransportMode = TransportMode.SSH
    ssh: ShellParams | None = None
    k8s: KubernetesParams | None = None
    api: ApiParams | None = None
    oidc: OidcParams | None = None
    manager: ManagerOverride | None = None

    @field_validator("mode", mode="before")
    @classmethod
    def _normalize_mode(cls, value: Any) -> Any:
        return _coerce_mode(value)

    @model_validator(mode="after")
    def _default_shell_block(self) -> InstanceConfig:
        if self.mode == TransportMode.SSH and self.ssh is None:
            self.ssh = ShellParams()
        return self

    def manager_config(self) -> InstanceConfig | None:
        """Return the effective manager configuration, or None without override."""
        if self.manager is None:
            return None
        return InstanceConfig(
            mode=self.manager.mode or self.mode,
            ssh=self.manager.ssh or self.ssh,
            k8s=self.manager.k8s or self.k8s,
            api=self.manager.api or self.api,
        )


class LlngConfig(_ConfigModel):
    """All configured instances plus the name of the default one."""

    instances: dict[str, InstanceConfig] = Field(default_factory=dict)
    default: str = "default"

    @model_validator(mode="after")
    def _check_default(self) -> LlngConfig:
        if not self.instances:
            self.instances = {"default": InstanceConfig()}
        if self.default not in self.instances:
            self.default = next(iter(self.instances))
        return self
