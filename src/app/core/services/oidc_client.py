"""OIDC authorization-code client for testing an instance's OpenID provider.

Talks to the provider advertised by the instance's ``oidc`` configuration
block: discovery, PKCE authorization URLs, token exchange and refresh,
userinfo, introspection and ID token inspection.
"""

from __future__ import annotations

import base64
import hashlib
import json
import secrets
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

import requests
from loguru import logger

from src.app.runtime.config.config_data import OidcParams
from src.infra.transport import (
    ConfigurationError,
    HttpError,
    NetworkError,
    TransportRegistry,
    UnsupportedOperationError,
)

DISCOVERY_PATH = "/.well-known/openid-configuration"
PKCE_METHOD = "S256"


def build_code_challenge(code_verifier: str) -> str:
    """Derive the S256 PKCE challenge for a verifier."""
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def decode_jwt_payload(token: str) -> dict[str, Any]:
    """Decode the payload of a JWT without verifying its signature.

    Raises:
        ValueError: If the token is not three dot-separated segments or the
            payload is not base64url-encoded JSON
    """
    parts = token.split(".")
    if len(parts) != 3:
        raise ValueError("Invalid JWT format")
    payload = parts[1] + "=" * (-len(parts[1]) % 4)
    return json.loads(base64.urlsafe_b64decode(payload))


@dataclass
class AuthorizationRequest:
    """Authorization URL plus the values needed to finish the flow."""

    url: str
    code_verifier: str
    state: str

    def as_dict(self) -> dict[str, str]:
        return {"url": self.url, "code_verifier": self.code_verifier, "state": self.state}


class OidcClientService:
    """Relying-party side of the authorization-code flow with PKCE.

    Discovery documents are fetched once per issuer and kept for the life of
    the service.
    """

    def __init__(
        self,
        registry: TransportRegistry,
        instance: str | None = None,
        session: requests.Session | None = None,
    ):
        self.registry = registry
        self.instance = instance
        self.session = session or requests.Session()
        self._discovery: dict[str, dict[str, Any]] = {}

    @property
    def params(self) -> OidcParams:
        """OIDC settings of the instance.

        Raises:
            ConfigurationError: If the instance has no ``oidc`` block
        """
        params = self.registry.get_oidc_config(self.instance)
        if params is None:
            name = self.instance or self.registry.default_instance
            raise ConfigurationError(f"OIDC not configured for instance '{name}'")
        return params

    def _send(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        logger.debug(f"OIDC {method} {url.split('?', 1)[0]}")
        try:
            return self.session.request(method, url, **kwargs)
        except requests.RequestException as e:
            raise NetworkError(str(e)) from e

    def _json(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        response = self._send(method, url, **kwargs)
        if not 200 <= response.status_code < 300:
            raise HttpError(response.status_code, response.reason or "", response.text)
        try:
            return response.json()
        except ValueError as e:
            raise NetworkError(f"Invalid JSON response from {url}: {e}") from e

    def _client_credentials(self, params: OidcParams) -> dict[str, str]:
        credentials = {"client_id": params.client_id}
        if params.client_secret:
            credentials["client_secret"] = params.client_secret
        return credentials

    # =========================================================================
    # Discovery
    # =========================================================================

    def metadata(self) -> dict[str, Any]:
        """Return the provider's discovery document, fetching it on first use."""
        issuer = self.params.issuer.rstrip("/")
        if issuer not in self._discovery:
            logger.debug(f"Fetching discovery metadata for {issuer}")
            self._discovery[issuer] = self._json("GET", f"{issuer}{DISCOVERY_PATH}")
        return self._discovery[issuer]

    def _endpoint(self, name: str) -> str:
        endpoint = self.metadata().get(name)
        if not endpoint:
            raise UnsupportedOperationError(f"Provider does not advertise {name}")
        return endpoint

    # =========================================================================
    # Authorization code flow
    # =========================================================================

    def authorize_url(self, scope: str | None = None) -> AuthorizationRequest:
        """Build an authorization URL with a fresh PKCE verifier and state."""
        params = self.params
        code_verifier = secrets.token_urlsafe(32)
        state = secrets.token_urlsafe(16)
        query = urlencode(
            {
                "response_type": "code",
                "client_id": params.client_id,
                "redirect_uri": params.redirect_uri,
                "scope": scope or params.scope,
                "code_challenge": build_code_challenge(code_verifier),
                "code_challenge_method": PKCE_METHOD,
                "state": state,
            }
        )
        endpoint = self._endpoint("authorization_endpoint")
        separator = "&" if "?" in endpoint else "?"
        return AuthorizationRequest(
            url=f"{endpoint}{separator}{query}", code_verifier=code_verifier, state=state
        )

    def exchange_code(self, code: str, code_verifier: str) -> dict[str, Any]:
        """Exchange an authorization code for tokens."""
        params = self.params
        data = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": params.redirect_uri,
            "code_verifier": code_verifier,
            **self._client_credentials(params),
        }
        return self._json("POST", self._endpoint("token_endpoint"), data=data)

    def refresh(self, refresh_token: str) -> dict[str, Any]:
        """Obtain new tokens with a refresh token."""
        data = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            **self._client_credentials(self.params),
        }
        return self._json("POST", self._endpoint("token_endpoint"), data=data)

    # =========================================================================
    # Token inspection
    # =========================================================================

    def userinfo(self, access_token: str) -> dict[str, Any]:
        return self._json(
            "GET",
            self._endpoint("userinfo_endpoint"),
            headers={"Authorization": f"Bearer {access_token}"},
        )

    def introspect(self, token: str) -> dict[str, Any]:
        """Ask the provider whether a token is active.

        Raises:
            UnsupportedOperationError: If no introspection endpoint is advertised
        """
        endpoint = self.metadata().get("introspection_endpoint")
        if not endpoint:
            raise UnsupportedOperationError("Introspection endpoint not supported")
        data = {"token": token, **self._client_credentials(self.params)}
        return self._json("POST", endpoint, data=data)

    @staticmethod
    def whoami(id_token: str) -> dict[str, Any]:
        """Return the claims of an ID token (signature is not checked)."""
        return decode_jwt_payload(id_token)

    def check_auth(self, url: str, access_token: str) -> dict[str, Any]:
        """Request a protected URL with a bearer token and report the outcome.

        Redirects are not followed so a redirect to the portal shows up as
        the answer.
        """
        response = self._send(
            "GET",
            url,
            headers={"Authorization": f"Bearer {access_token}"},
            allow_redirects=False,
        )
        return {
            "status": response.status_code,
            "statusText": response.reason or "",
            "headers": dict(response.headers),
        }
