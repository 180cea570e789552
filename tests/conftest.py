import os
from unittest.mock import MagicMock

import pytest

from src.app.runtime.config.config_data import (
    ApiParams,
    KubernetesParams,
    LlngConfig,
    ShellParams,
)

# Keep the developer's own ~/.llng-mcp.json and LLNG_* variables out of tests
for _name in [name for name in os.environ if name.startswith("LLNG_")]:
    del os.environ[_name]


@pytest.fixture
def mock_runner() -> MagicMock:
    """Command runner whose run_checked returns empty output by default."""
    runner = MagicMock()
    runner.run_checked.return_value = ""
    return runner


@pytest.fixture
def shell_params() -> ShellParams:
    return ShellParams()


@pytest.fixture
def k8s_params() -> KubernetesParams:
    return KubernetesParams(namespace="auth", deployment="lemonldap-ng")


@pytest.fixture
def api_params() -> ApiParams:
    return ApiParams.model_validate(
        {
            "baseUrl": "https://manager.example.com/",
            "basicAuth": {"username": "admin", "password": "s3cret"},
        }
    )


@pytest.fixture
def multi_config() -> LlngConfig:
    """Three instances, one per transport mode; prod has a manager override."""
    return LlngConfig.model_validate(
        {
            "instances": {
                "prod": {
                    "mode": "api",
                    "api": {"baseUrl": "https://manager.prod.example.com"},
                    "manager": {"mode": "ssh", "ssh": {"host": "manager.prod.example.com"}},
                    "oidc": {"issuer": "https://auth.prod.example.com", "clientId": "cli"},
                },
                "staging": {"mode": "ssh", "ssh": {"host": "staging.example.com"}},
                "cluster": {
                    "mode": "kubernetes",
                    "k8s": {"namespace": "auth", "deployment": "lemonldap-ng"},
                },
            },
            "default": "prod",
        }
    )
