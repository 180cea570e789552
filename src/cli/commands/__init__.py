"""CLI command modules organized by administration area.

Command Groups:
- instances: Configured instances
- config: LLNG configuration
- session: Sessions
- 2fa: Second factor devices (API mode)
- consent: OIDC consents (API mode)
- script: Helper scripts (shell and Kubernetes modes)
- oidc-rp: OIDC relying parties
- oidc: OIDC authorization-code client
"""

from .config import config_app
from .instances import instances_app
from .oidc import oidc_app
from .oidc_rp import oidc_rp_app
from .scripts import script_app
from .second_factors import consents_app, second_factors_app
from .sessions import session_app

__all__ = [
    "instances_app",
    "config_app",
    "session_app",
    "second_factors_app",
    "consents_app",
    "script_app",
    "oidc_rp_app",
    "oidc_app",
]
