"""Instance configuration loading."""

import os
import stat
from pathlib import Path
from typing import Any

import yaml
from loguru import logger
from pydantic import ValidationError

from src.app.runtime.config.config_data import LlngConfig
from src.app.runtime.config.config_utils import apply_env_overlay, set_nested
from src.app.runtime.config.config_utils import substitute_env_vars
from src.infra.transport.errors import ConfigurationError

CONFIG_ENV_VAR = "LLNG_CONFIG"
DEFAULT_CONFIG_PATH = Path.home() / ".llng-mcp.json"

# Environment variable -> key path inside the default instance
ENV_OVERLAY: dict[str, tuple[str, ...]] = {
    "LLNG_MODE": ("mode",),
    "LLNG_SSH_HOST": ("ssh", "host"),
    "LLNG_SSH_USER": ("ssh", "user"),
    "LLNG_SSH_PORT": ("ssh", "port"),
    "LLNG_SSH_SUDO": ("ssh", "sudo"),
    "LLNG_SSH_CLI_PATH": ("ssh", "cliPath"),
    "LLNG_SSH_SESSIONS_PATH": ("ssh", "sessionsPath"),
    "LLNG_SSH_CONFIG_EDITOR_PATH": ("ssh", "configEditorPath"),
    "LLNG_SSH_BIN_PREFIX": ("ssh", "binPrefix"),
    "LLNG_SSH_REMOTE_COMMAND": ("ssh", "remoteCommand"),
    "LLNG_K8S_NAMESPACE": ("k8s", "namespace"),
    "LLNG_K8S_CONTEXT": ("k8s", "context"),
    "LLNG_K8S_DEPLOYMENT": ("k8s", "deployment"),
    "LLNG_K8S_POD_SELECTOR": ("k8s", "podSelector"),
    "LLNG_K8S_CONTAINER": ("k8s", "container"),
    "LLNG_API_URL": ("api", "baseUrl"),
    "LLNG_OIDC_ISSUER": ("oidc", "issuer"),
    "LLNG_OIDC_CLIENT_ID": ("oidc", "clientId"),
    "LLNG_OIDC_CLIENT_SECRET": ("oidc", "clientSecret"),
    "LLNG_OIDC_REDIRECT_URI": ("oidc", "redirectUri"),
    "LLNG_OIDC_SCOPE": ("oidc", "scope"),
}


def resolve_config_path(file_path: Path | None = None) -> Path:
    """Return the explicit path, ``$LLNG_CONFIG``, or ``~/.llng-mcp.json``."""
    if file_path is not None:
        return file_path
    from_env = os.getenv(CONFIG_ENV_VAR)
    return Path(from_env).expanduser() if from_env else DEFAULT_CONFIG_PATH


def _warn_if_world_readable(file_path: Path) -> None:
    mode = stat.S_IMODE(file_path.stat().st_mode)
    if mode & 0o077:
        logger.warning(
            f"{file_path} has permissions {mode:o}. It may contain credentials "
            f"and should be restricted to owner only (chmod 600)."
        )


def _read_file(file_path: Path) -> dict[str, Any]:
    if not file_path.exists():
        logger.info(f"No configuration file at {file_path}, using defaults")
        return {}

    _warn_if_world_readable(file_path)
    with open(file_path) as f:
        content = f.read()

    try:
        content = substitute_env_vars(content)
        loaded = yaml.safe_load(content)
    except ValueError as e:
        raise ConfigurationError(f"Invalid configuration file {file_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Error parsing {file_path}", details=str(e)) from e

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigurationError(f"Invalid configuration file {file_path}: expected a mapping")
    return loaded


def _to_multi_instance(raw: dict[str, Any]) -> dict[str, Any]:
    """Wrap a legacy flat configuration as the single ``default`` instance."""
    if "instances" in raw:
        instances = raw.get("instances") or {}
        if not isinstance(instances, dict):
            raise ConfigurationError("'instances' must be a mapping of name to instance")
        default = raw.get("default")
        if default not in instances:
            default = next(iter(instances), "default")
        return {"instances": instances, "default": default}
    return {"instances": {"default": raw}, "default": "default"}


def _overlay_environment(multi: dict[str, Any]) -> None:
    """Apply LLNG_* variables to the default instance only."""
    instances: dict[str, Any] = multi["instances"]
    target = instances.setdefault(multi["default"], {})

    applied = apply_env_overlay(target, ENV_OVERLAY)

    user = os.getenv("LLNG_API_BASIC_USER")
    password = os.getenv("LLNG_API_BASIC_PASSWORD")
    if user or password:
        set_nested(target, ("api", "basicAuth"), {"username": user or "", "password": password or ""})
        applied += 1

    verify = os.getenv("LLNG_API_VERIFY_SSL")
    if verify:
        set_nested(target, ("api", "verifySsl"), verify != "false")
        applied += 1

    if applied:
        logger.info(f"Applied {applied} LLNG_* environment overrides to '{multi['default']}'")


def load_config(file_path: Path | None = None) -> LlngConfig:
    """
    Load the instance configuration.

    The file is read as YAML (a JSON document is valid YAML) after
    ``${VAR}`` substitution. A flat file holding a single instance is wrapped
    as instance ``default``; a file with ``instances`` is taken as is, and its
    ``default`` falls back to the first instance. LLNG_* environment variables
    are then applied to the default instance.

    Args:
        file_path: Explicit configuration file; defaults to ``$LLNG_CONFIG`` or
            ``~/.llng-mcp.json``

    Returns:
        Validated LlngConfig

    Raises:
        ConfigurationError: If the file cannot be parsed or fails validation
    """
    path = resolve_config_path(file_path)
    logger.info(f"Loading configuration from {path}")

    multi = _to_multi_instance(_read_file(path))
    _overlay_environment(multi)

    try:
        config = LlngConfig.model_validate(multi)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e

    logger.debug(f"Configured instances: {list(config.instances)} (default: {config.default})")
    return config
