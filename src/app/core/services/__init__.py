"""Core services exports."""

# OIDC Services
from .oidc_client import AuthorizationRequest, OidcClientService
from .oidc_rp import OidcRpService, RelyingPartySummary

__all__ = [
    # OIDC Services
    "AuthorizationRequest",
    "OidcClientService",
    "OidcRpService",
    "RelyingPartySummary",
]
