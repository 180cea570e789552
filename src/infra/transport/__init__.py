"""LemonLDAP::NG transport layer.

One operation contract (``LlngTransport``) with three substrates: the vendor
CLI run locally or over SSH, the same CLI run in a Kubernetes pod, and the
REST management API.

Example:
    from src.app.runtime.config.config_loader import load_config
    from src.infra.transport import SessionFilter, TransportRegistry

    registry = TransportRegistry(load_config())
    transport = registry.get_transport("prod")
    sessions = transport.session_search(SessionFilter(where={"uid": "dwho"}))
"""

from .api_transport import ApiTransport, deep_merge
from .cli_transport import CliTransport
from .controller import (
    BackendSelection,
    ConfigInfo,
    LlngTransport,
    SessionDeleteOptions,
    SessionFilter,
    SessionOptions,
    resolve_backend,
)
from .errors import (
    ConfigurationError,
    ExecutionError,
    HttpError,
    LlngError,
    NetworkError,
    OutputParseError,
    PodResolutionError,
    RollbackBoundaryError,
    UnknownInstanceError,
    UnsupportedOperationError,
    describe_error,
)
from .k8s_transport import KubernetesTransport
from .registry import TransportEntry, TransportRegistry
from .shell_transport import ShellTransport

__all__ = [
    # Transports
    "LlngTransport",
    "CliTransport",
    "ShellTransport",
    "KubernetesTransport",
    "ApiTransport",
    "TransportRegistry",
    "TransportEntry",
    # Data classes
    "ConfigInfo",
    "SessionOptions",
    "SessionFilter",
    "SessionDeleteOptions",
    "BackendSelection",
    # Utilities
    "resolve_backend",
    "deep_merge",
    "describe_error",
    # Errors
    "LlngError",
    "ExecutionError",
    "PodResolutionError",
    "HttpError",
    "NetworkError",
    "UnsupportedOperationError",
    "ConfigurationError",
    "UnknownInstanceError",
    "RollbackBoundaryError",
    "OutputParseError",
]
