"""OIDC relying party management.

Relying parties live in five hash-valued configuration keys, each indexed by
the RP's configuration key (``confKey``). All operations go through the
instance's manager-role transport.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from loguru import logger

from src.infra.transport import LlngTransport, TransportRegistry

RP_CONFIG_KEYS = (
    "oidcRPMetaDataOptions",
    "oidcRPMetaDataExportedVars",
    "oidcRPMetaDataMacros",
    "oidcRPMetaDataScopeRules",
    "oidcRPMetaDataOptionsExtraClaims",
)

DEFAULT_EXPORTED_VARS = {"name": "cn", "preferred_username": "uid", "email": "mail"}


def _as_mapping(value: Any) -> dict[str, Any]:
    """CLI transports return hash values as JSON text; API transports as dicts."""
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return {}
    return value if isinstance(value, dict) else {}


@dataclass
class RelyingPartySummary:
    conf_key: str
    client_id: str
    display_name: str

    def as_dict(self) -> dict[str, str]:
        return {
            "confKey": self.conf_key,
            "clientID": self.client_id,
            "displayName": self.display_name,
        }


class OidcRpService:
    """List, inspect, add and delete OIDC relying parties.

    Example:
        ```python
        service = OidcRpService(registry, instance="prod")
        service.add_rp("app1", client_id="app1", redirect_uris="https://app1/cb")
        ```
    """

    def __init__(self, registry: TransportRegistry, instance: str | None = None):
        self.registry = registry
        self.instance = instance

    @property
    def transport(self) -> LlngTransport:
        return self.registry.get_transport(self.instance, role="manager")

    def list_rps(self) -> list[RelyingPartySummary]:
        data = self.transport.config_get(["oidcRPMetaDataOptions"])
        options = _as_mapping(data.get("oidcRPMetaDataOptions"))
        summaries = []
        for conf_key, opts in options.items():
            opts = opts if isinstance(opts, dict) else {}
            summaries.append(
                RelyingPartySummary(
                    conf_key=conf_key,
                    client_id=opts.get("oidcRPMetaDataOptionsClientID") or "",
                    display_name=opts.get("oidcRPMetaDataOptionsDisplayName") or "",
                )
            )
        return summaries

    def get_rp(self, conf_key: str) -> dict[str, Any]:
        """Return every configuration section that mentions ``conf_key``."""
        data = self.transport.config_get(list(RP_CONFIG_KEYS))
        result: dict[str, Any] = {}
        for key in RP_CONFIG_KEYS:
            container = _as_mapping(data.get(key))
            if conf_key in container:
                result[key] = container[conf_key]
        return result

    def add_rp(
        self,
        conf_key: str,
        *,
        client_id: str,
        redirect_uris: str,
        client_secret: str | None = None,
        display_name: str | None = None,
        exported_vars: dict[str, str] | None = None,
        extra_claims: dict[str, str] | None = None,
        options: dict[str, Any] | None = None,
    ) -> None:
        """Merge a new relying party into the configuration.

        Args:
            conf_key: Internal identifier of the RP
            client_id: OAuth2 client ID
            redirect_uris: Redirect URIs, space or newline separated
            client_secret: OAuth2 client secret
            display_name: Name shown on the portal
            exported_vars: Claim to attribute mapping (defaults to name/preferred_username/email)
            extra_claims: Extra claim mappings
            options: Additional raw ``oidcRPMetaDataOptions*`` values
        """
        rp_options: dict[str, Any] = {
            "oidcRPMetaDataOptionsClientID": client_id,
            "oidcRPMetaDataOptionsRedirectUris": redirect_uris,
            **(options or {}),
        }
        if client_secret:
            rp_options["oidcRPMetaDataOptionsClientSecret"] = client_secret
        if display_name:
            rp_options["oidcRPMetaDataOptionsDisplayName"] = display_name

        snippet: dict[str, Any] = {
            "oidcRPMetaDataOptions": {conf_key: rp_options},
            "oidcRPMetaDataExportedVars": {
                conf_key: exported_vars or dict(DEFAULT_EXPORTED_VARS)
            },
        }
        if extra_claims:
            snippet["oidcRPMetaDataOptionsExtraClaims"] = {conf_key: extra_claims}

        logger.info(f"Adding OIDC RP '{conf_key}'")
        self.transport.config_merge(json.dumps(snippet))

    def delete_rp(self, conf_key: str) -> None:
        transport = self.transport
        logger.info(f"Deleting OIDC RP '{conf_key}'")
        for key in RP_CONFIG_KEYS:
            transport.config_del_key(key, conf_key)
