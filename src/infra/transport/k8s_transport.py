"""Execution of the vendor binaries inside a Kubernetes pod via ``kubectl``."""

from __future__ import annotations

from collections.abc import Mapping

from loguru import logger

from src.app.runtime.config.config_data import KubernetesParams
from src.infra.constants import DEFAULT_CONSTANTS

from .cli_transport import CliTransport
from .errors import ConfigurationError, PodResolutionError
from .paths import resolve_paths
from .runner import CommandRunner


class KubernetesTransport(CliTransport):
    """Runs the LLNG binaries in the first pod matching a label selector.

    The pod name is looked up once and reused for the transport's lifetime;
    call ``reset_pod_cache`` after a rollout to look it up again.
    """

    mode = "k8s"

    def __init__(self, params: KubernetesParams, runner: CommandRunner | None = None):
        super().__init__(
            resolve_paths(
                params.bin_prefix,
                params.cli_path,
                params.sessions_path,
                params.config_editor_path,
            )
        )
        self.params = params
        self.runner = runner or CommandRunner()
        self._pod_name: str | None = None

    # =========================================================================
    # Pod resolution
    # =========================================================================

    @property
    def selector(self) -> str:
        """Label selector identifying the LLNG pods."""
        if self.params.pod_selector:
            return self.params.pod_selector
        if self.params.deployment:
            return f"{DEFAULT_CONSTANTS.DEPLOYMENT_LABEL_KEY}={self.params.deployment}"
        raise ConfigurationError(
            "K8s deployment or podSelector is required but not configured"
        )

    def _namespace(self) -> str:
        if not self.params.namespace:
            raise ConfigurationError("K8s namespace is required but not configured")
        return self.params.namespace

    def _run_kubectl(self, args: list[str], input_data: str | None = None) -> str:
        return self.runner.run_checked(
            [DEFAULT_CONSTANTS.KUBECTL_BINARY, *args],
            input_data=input_data,
            label="kubectl command",
        )

    def resolve_pod(self) -> str:
        """Return the target pod name, querying the cluster on first use."""
        if self._pod_name:
            return self._pod_name

        namespace = self._namespace()
        selector = self.selector
        args = ["-n", namespace]
        if self.params.context:
            args.extend(["--context", self.params.context])
        args.extend(
            ["get", "pods", "-l", selector, "-o", DEFAULT_CONSTANTS.POD_NAME_JSONPATH]
        )

        pod_name = self._run_kubectl(args).strip()
        if not pod_name or pod_name == "{}":
            raise PodResolutionError(
                f"No pod found for selector '{selector}' in namespace '{namespace}'"
            )

        logger.debug(f"Resolved pod {pod_name} in namespace {namespace}")
        self._pod_name = pod_name
        return pod_name

    def reset_pod_cache(self) -> None:
        """Forget the cached pod name."""
        self._pod_name = None

    # =========================================================================
    # Execution
    # =========================================================================

    def build_exec_args(
        self, pod_name: str, command: list[str], *, stdin: bool = False
    ) -> list[str]:
        """Build ``[--context C] -n NS exec [-i] POD [-c CONTAINER] -- command``."""
        args: list[str] = []
        if self.params.context:
            args.extend(["--context", self.params.context])
        args.extend(["-n", self._namespace(), "exec"])
        if stdin:
            args.append("-i")
        args.append(pod_name)
        if self.params.container:
            args.extend(["-c", self.params.container])
        args.extend(["--", *command])
        return args

    def _exec(self, argv: list[str], env: Mapping[str, str] | None = None) -> str:
        if env:
            argv = ["env", *(f"{key}={value}" for key, value in env.items()), *argv]
        pod_name = self.resolve_pod()
        return self._run_kubectl(self.build_exec_args(pod_name, argv))

    def _exec_with_stdin(self, argv: list[str], payload: str) -> str:
        pod_name = self.resolve_pod()
        return self._run_kubectl(
            self.build_exec_args(pod_name, argv, stdin=True), input_data=payload
        )
