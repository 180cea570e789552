"""Unit tests for the OidcClientService.

The HTTP session is a MagicMock; the tests check the requests sent to the
provider and how responses and failures are surfaced.
"""

from __future__ import annotations

import base64
import json
from typing import Any
from unittest.mock import MagicMock
from urllib.parse import parse_qs, urlsplit

import pytest
import requests

from src.app.core.services.oidc_client import (
    OidcClientService,
    build_code_challenge,
    decode_jwt_payload,
)
from src.app.runtime.config.config_data import OidcParams
from src.infra.transport import (
    ConfigurationError,
    HttpError,
    NetworkError,
    UnsupportedOperationError,
)

ISSUER = "https://auth.example.com"
DISCOVERY = {
    "issuer": ISSUER,
    "authorization_endpoint": f"{ISSUER}/oauth2/authorize",
    "token_endpoint": f"{ISSUER}/oauth2/token",
    "userinfo_endpoint": f"{ISSUER}/oauth2/userinfo",
    "introspection_endpoint": f"{ISSUER}/oauth2/introspect",
}


def _response(payload: Any = None, *, status: int = 200, reason: str = "OK") -> MagicMock:
    response = MagicMock()
    response.status_code = status
    response.reason = reason
    response.json.return_value = payload
    response.text = json.dumps(payload) if payload is not None else ""
    response.headers = {}
    return response


def _jwt(claims: dict[str, Any]) -> str:
    payload = base64.urlsafe_b64encode(json.dumps(claims).encode()).rstrip(b"=").decode()
    return f"eyJhbGciOiJSUzI1NiJ9.{payload}.c2ln"


@pytest.fixture
def params() -> OidcParams:
    return OidcParams(issuer=f"{ISSUER}/", client_id="cli", client_secret="shh")


@pytest.fixture
def mock_registry(params: OidcParams) -> MagicMock:
    registry = MagicMock()
    registry.get_oidc_config.return_value = params
    registry.default_instance = "prod"
    return registry


@pytest.fixture
def session() -> MagicMock:
    session = MagicMock()
    session.request.return_value = _response(DISCOVERY)
    return session


@pytest.fixture
def service(mock_registry: MagicMock, session: MagicMock) -> OidcClientService:
    return OidcClientService(mock_registry, instance="prod", session=session)


def _with_discovery(session: MagicMock, *responses: MagicMock) -> None:
    session.request.side_effect = [_response(DISCOVERY), *responses]


class TestDiscovery:
    def test_metadata_is_fetched_once_per_issuer(
        self, service: OidcClientService, session: MagicMock
    ) -> None:
        assert service.metadata() == DISCOVERY
        assert service.metadata() == DISCOVERY

        session.request.assert_called_once_with(
            "GET", f"{ISSUER}/.well-known/openid-configuration"
        )

    def test_discovery_failure_raises_http_error(
        self, service: OidcClientService, session: MagicMock
    ) -> None:
        session.request.return_value = _response(status=404, reason="Not Found")

        with pytest.raises(HttpError, match="HTTP 404 Not Found"):
            service.metadata()

    def test_connection_failure_raises_network_error(
        self, service: OidcClientService, session: MagicMock
    ) -> None:
        session.request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(NetworkError):
            service.metadata()

    def test_missing_oidc_block(self, mock_registry: MagicMock, session: MagicMock) -> None:
        mock_registry.get_oidc_config.return_value = None
        service = OidcClientService(mock_registry, session=session)

        with pytest.raises(ConfigurationError, match="OIDC not configured for instance 'prod'"):
            service.metadata()

        session.request.assert_not_called()


class TestAuthorizationFlow:
    def test_authorize_url_carries_pkce_and_state(self, service: OidcClientService) -> None:
        request = service.authorize_url()

        url = urlsplit(request.url)
        query = parse_qs(url.query)
        assert f"{url.scheme}://{url.netloc}{url.path}" == DISCOVERY["authorization_endpoint"]
        assert list(query) == [
            "response_type",
            "client_id",
            "redirect_uri",
            "scope",
            "code_challenge",
            "code_challenge_method",
            "state",
        ]
        assert query["response_type"] == ["code"]
        assert query["scope"] == ["openid profile email"]
        assert query["code_challenge_method"] == ["S256"]
        assert query["code_challenge"] == [build_code_challenge(request.code_verifier)]
        assert query["state"] == [request.state]

    def test_authorize_url_scope_override_and_fresh_values(
        self, service: OidcClientService
    ) -> None:
        first = service.authorize_url("openid offline_access")
        second = service.authorize_url()

        assert parse_qs(urlsplit(first.url).query)["scope"] == ["openid offline_access"]
        assert first.code_verifier != second.code_verifier
        assert first.state != second.state

    def test_exchange_code_posts_form(
        self, service: OidcClientService, session: MagicMock
    ) -> None:
        _with_discovery(session, _response({"access_token": "at", "id_token": "it"}))

        tokens = service.exchange_code("code-1", "verifier-1")

        assert tokens == {"access_token": "at", "id_token": "it"}
        call = session.request.call_args
        assert call[0] == ("POST", DISCOVERY["token_endpoint"])
        assert call[1]["data"] == {
            "grant_type": "authorization_code",
            "code": "code-1",
            "redirect_uri": "http://localhost:8080/callback",
            "code_verifier": "verifier-1",
            "client_id": "cli",
            "client_secret": "shh",
        }

    def test_token_error_keeps_provider_body(
        self, service: OidcClientService, session: MagicMock
    ) -> None:
        _with_discovery(
            session, _response({"error": "invalid_grant"}, status=400, reason="Bad Request")
        )

        with pytest.raises(HttpError) as excinfo:
            service.exchange_code("expired", "v")

        assert excinfo.value.status_code == 400
        assert "invalid_grant" in excinfo.value.body

    def test_refresh_without_secret(
        self, service: OidcClientService, session: MagicMock, params: OidcParams
    ) -> None:
        params.client_secret = None
        _with_discovery(session, _response({"access_token": "at2"}))

        service.refresh("rt")

        assert session.request.call_args[1]["data"] == {
            "grant_type": "refresh_token",
            "refresh_token": "rt",
            "client_id": "cli",
        }


class TestTokenInspection:
    def test_userinfo_sends_bearer(self, service: OidcClientService, session: MagicMock) -> None:
        _with_discovery(session, _response({"sub": "dwho"}))

        assert service.userinfo("at") == {"sub": "dwho"}
        call = session.request.call_args
        assert call[0] == ("GET", DISCOVERY["userinfo_endpoint"])
        assert call[1]["headers"] == {"Authorization": "Bearer at"}

    def test_introspect_posts_token_and_credentials(
        self, service: OidcClientService, session: MagicMock
    ) -> None:
        _with_discovery(session, _response({"active": True}))

        assert service.introspect("at") == {"active": True}
        assert session.request.call_args[1]["data"] == {
            "token": "at",
            "client_id": "cli",
            "client_secret": "shh",
        }

    def test_introspect_without_endpoint(
        self, service: OidcClientService, session: MagicMock
    ) -> None:
        metadata = {k: v for k, v in DISCOVERY.items() if k != "introspection_endpoint"}
        session.request.return_value = _response(metadata)

        with pytest.raises(UnsupportedOperationError, match="Introspection endpoint not supported"):
            service.introspect("at")

        assert session.request.call_count == 1

    def test_whoami_decodes_unpadded_payload(self) -> None:
        token = _jwt({"sub": "dwho", "aud": "cli"})

        assert OidcClientService.whoami(token) == {"sub": "dwho", "aud": "cli"}

    @pytest.mark.parametrize("token", ["not-a-jwt", "a.b", "a.b.c.d"])
    def test_whoami_rejects_malformed_tokens(self, token: str) -> None:
        with pytest.raises(ValueError, match="Invalid JWT format"):
            decode_jwt_payload(token)

    def test_check_auth_does_not_follow_redirects(
        self, service: OidcClientService, session: MagicMock
    ) -> None:
        response = _response(status=302, reason="Found")
        response.headers = {"Location": f"{ISSUER}/?url=aHR0cHM6Ly9hcHA="}
        session.request.return_value = response

        result = service.check_auth("https://app.example.com/", "at")

        assert result == {
            "status": 302,
            "statusText": "Found",
            "headers": {"Location": f"{ISSUER}/?url=aHR0cHM6Ly9hcHA="},
        }
        call = session.request.call_args
        assert call[0] == ("GET", "https://app.example.com/")
        assert call[1]["allow_redirects"] is False
        assert call[1]["headers"] == {"Authorization": "Bearer at"}


def test_code_challenge_matches_rfc7636_example() -> None:
    verifier = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"

    assert build_code_challenge(verifier) == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGEVpg6mZ8"
