"""Unit tests for the OidcRpService.

The registry is mocked so the tests only verify which transport calls the
service makes and how it shapes their results.
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from src.app.core.services.oidc_rp import RP_CONFIG_KEYS, OidcRpService


@pytest.fixture
def mock_transport() -> MagicMock:
    return MagicMock()


@pytest.fixture
def mock_registry(mock_transport: MagicMock) -> MagicMock:
    registry = MagicMock()
    registry.get_transport.return_value = mock_transport
    return registry


@pytest.fixture
def service(mock_registry: MagicMock) -> OidcRpService:
    return OidcRpService(mock_registry, instance="prod")


class TestListAndGet:
    def test_uses_manager_role(
        self, service: OidcRpService, mock_registry: MagicMock, mock_transport: MagicMock
    ) -> None:
        mock_transport.config_get.return_value = {}

        service.list_rps()

        mock_registry.get_transport.assert_called_once_with("prod", role="manager")

    def test_list_from_api_mapping(
        self, service: OidcRpService, mock_transport: MagicMock
    ) -> None:
        mock_transport.config_get.return_value = {
            "oidcRPMetaDataOptions": {
                "app1": {
                    "oidcRPMetaDataOptionsClientID": "client-1",
                    "oidcRPMetaDataOptionsDisplayName": "App One",
                },
                "app2": {"oidcRPMetaDataOptionsClientID": "client-2"},
            }
        }

        rps = [rp.as_dict() for rp in service.list_rps()]

        assert rps == [
            {"confKey": "app1", "clientID": "client-1", "displayName": "App One"},
            {"confKey": "app2", "clientID": "client-2", "displayName": ""},
        ]

    def test_list_from_cli_json_text(
        self, service: OidcRpService, mock_transport: MagicMock
    ) -> None:
        mock_transport.config_get.return_value = {
            "oidcRPMetaDataOptions": json.dumps(
                {"app1": {"oidcRPMetaDataOptionsClientID": "client-1"}}
            )
        }

        assert [rp.conf_key for rp in service.list_rps()] == ["app1"]

    def test_list_with_unparseable_value_is_empty(
        self, service: OidcRpService, mock_transport: MagicMock
    ) -> None:
        mock_transport.config_get.return_value = {"oidcRPMetaDataOptions": "HASH(0x55d)"}

        assert service.list_rps() == []

    def test_get_collects_every_section(
        self, service: OidcRpService, mock_transport: MagicMock
    ) -> None:
        mock_transport.config_get.return_value = {
            "oidcRPMetaDataOptions": {"app1": {"oidcRPMetaDataOptionsClientID": "c"}},
            "oidcRPMetaDataExportedVars": {"app1": {"email": "mail"}, "app2": {}},
            "oidcRPMetaDataMacros": {"app2": {}},
        }

        rp = service.get_rp("app1")

        mock_transport.config_get.assert_called_once_with(list(RP_CONFIG_KEYS))
        assert rp == {
            "oidcRPMetaDataOptions": {"oidcRPMetaDataOptionsClientID": "c"},
            "oidcRPMetaDataExportedVars": {"email": "mail"},
        }


class TestAddAndDelete:
    def test_add_merges_snippet(self, service: OidcRpService, mock_transport: MagicMock) -> None:
        service.add_rp(
            "app1",
            client_id="client-1",
            redirect_uris="https://app1.example.com/cb",
            client_secret="secret",
            display_name="App One",
            options={"oidcRPMetaDataOptionsBypassConsent": 1},
        )

        snippet = json.loads(mock_transport.config_merge.call_args[0][0])
        assert snippet == {
            "oidcRPMetaDataOptions": {
                "app1": {
                    "oidcRPMetaDataOptionsClientID": "client-1",
                    "oidcRPMetaDataOptionsRedirectUris": "https://app1.example.com/cb",
                    "oidcRPMetaDataOptionsBypassConsent": 1,
                    "oidcRPMetaDataOptionsClientSecret": "secret",
                    "oidcRPMetaDataOptionsDisplayName": "App One",
                }
            },
            "oidcRPMetaDataExportedVars": {
                "app1": {"name": "cn", "preferred_username": "uid", "email": "mail"}
            },
        }

    def test_add_with_custom_claims(
        self, service: OidcRpService, mock_transport: MagicMock
    ) -> None:
        service.add_rp(
            "app1",
            client_id="client-1",
            redirect_uris="https://app1.example.com/cb",
            exported_vars={"email": "mail"},
            extra_claims={"groups": "memberOf"},
        )

        snippet = json.loads(mock_transport.config_merge.call_args[0][0])
        assert snippet["oidcRPMetaDataExportedVars"] == {"app1": {"email": "mail"}}
        assert snippet["oidcRPMetaDataOptionsExtraClaims"] == {"app1": {"groups": "memberOf"}}
        assert "oidcRPMetaDataOptionsClientSecret" not in snippet["oidcRPMetaDataOptions"]["app1"]

    def test_delete_removes_every_section(
        self, service: OidcRpService, mock_transport: MagicMock
    ) -> None:
        service.delete_rp("app1")

        deleted = [call[0] for call in mock_transport.config_del_key.call_args_list]
        assert deleted == [(key, "app1") for key in RP_CONFIG_KEYS]
