"""Deployment driver: populates, waits on, and scales a colored slot.

Each slot is a Helm release named ``<app>-<slot>`` whose Deployment carries
the same name.  Installing is an idempotent converge (``helm upgrade
--install``), so re-running a deploy with the same version is a no-op
upgrade rather than a fresh create.

Classes
-------
BaseDeploymentDriver
    Abstract contract used by the orchestrator.
HelmDeploymentDriver
    Helm + kubectl implementation.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from pydantic import ValidationError

from bluegreen.domain.enums import Slot
from bluegreen.domain.exceptions import (
    CommandError,
    CommandTimeout,
    ReleaseOperationFailed,
    RolloutTimeout,
    ScaleOperationFailed,
)
from bluegreen.domain.values import DeploymentRequest
from bluegreen.infrastructure.kube import Deployment, is_not_found
from bluegreen.infrastructure.shell import CommandRunner

logger = logging.getLogger(__name__)

# Extra slack granted to the kubectl process beyond its own --timeout.
_PROCESS_GRACE_SECONDS = 30


# ===================================================================== #
#  Base Deployment Driver (ABC)                                          #
# ===================================================================== #


class BaseDeploymentDriver(ABC):
    """Applies releases into colored slots and reports their readiness."""

    @abstractmethod
    def deploy(self, slot: Slot, version: str, request: DeploymentRequest) -> None:
        """Install or upgrade the ``<app>-<slot>`` release at *version*.

        Raises ``ReleaseOperationFailed`` if the release does not converge.
        """

    @abstractmethod
    def wait_until_ready(
        self, slot: Slot, timeout_seconds: int, request: DeploymentRequest
    ) -> None:
        """Block until the slot's rollout completes.

        Raises ``RolloutTimeout`` after *timeout_seconds*.
        """

    @abstractmethod
    def scale_to(self, slot: Slot, replicas: int, request: DeploymentRequest) -> None:
        """Set the slot's instance count.

        A slot that does not exist already satisfies any scale-down and is
        treated as success.
        """

    def ready_replicas(self, slot: Slot, namespace: str, app_name: str) -> int:
        """Number of ready instances in *slot* (0 when unknown)."""
        return 0


# ===================================================================== #
#  Helm driver                                                           #
# ===================================================================== #


class HelmDeploymentDriver(BaseDeploymentDriver):
    """Drives slots with ``helm upgrade --install`` and ``kubectl rollout``.

    Parameters
    ----------
    runner:
        Command runner for helm/kubectl.
    kubectl, helm:
        Executables.
    release_timeout:
        Value for ``helm --timeout`` (``"5m"`` by default).
    """

    def __init__(
        self,
        runner: CommandRunner,
        kubectl: str = "kubectl",
        helm: str = "helm",
        release_timeout: str = "5m",
    ) -> None:
        self._runner = runner
        self._kubectl = kubectl
        self._helm = helm
        self._release_timeout = release_timeout

    def ensure_namespace(self, namespace: str) -> None:
        """Create *namespace* if it does not exist yet (apply is idempotent)."""
        manifest = self._runner.run(
            [
                self._kubectl, "create", "namespace", namespace,
                "--dry-run=client", "-o", "yaml",
            ],
            timeout=60,
        )
        self._runner.run(
            [self._kubectl, "apply", "-f", "-"],
            input=manifest.stdout,
            timeout=60,
        )

    def helm_command(self, slot: Slot, version: str, request: DeploymentRequest) -> list[str]:
        """Build the ``helm upgrade --install`` argv for *slot*."""
        command = [
            self._helm, "upgrade", "--install",
            request.release_name(slot), request.chart,
            "--namespace", request.namespace,
            "--set", f"color={slot.value}",
            "--set", f"image.tag={version}",
            "--set", f"replicaCount={request.replica_count}",
        ]
        for key, value in sorted(request.set_values.items()):
            command.extend(["--set", f"{key}={value}"])
        command.extend(["--wait", "--timeout", self._release_timeout])
        return command

    def deploy(self, slot: Slot, version: str, request: DeploymentRequest) -> None:
        release = request.release_name(slot)
        logger.info(
            "Deploying %s version %s to %s/%s",
            request.chart,
            version,
            request.namespace,
            release,
        )
        try:
            self.ensure_namespace(request.namespace)
            self._runner.run(self.helm_command(slot, version, request), timeout=None)
        except CommandError as exc:
            raise ReleaseOperationFailed(
                f"release {release} failed to converge: {exc}",
                release_name=release,
            ) from exc

    def wait_until_ready(
        self, slot: Slot, timeout_seconds: int, request: DeploymentRequest
    ) -> None:
        name = request.release_name(slot)
        logger.info("Waiting up to %ds for deployment/%s rollout", timeout_seconds, name)
        try:
            self._runner.run(
                [
                    self._kubectl, "rollout", "status", f"deployment/{name}",
                    "-n", request.namespace,
                    f"--timeout={timeout_seconds}s",
                ],
                timeout=timeout_seconds + _PROCESS_GRACE_SECONDS,
            )
        except CommandTimeout as exc:
            raise RolloutTimeout(
                f"deployment/{name} not ready after {timeout_seconds}s",
                resource_name=name,
                timeout_seconds=timeout_seconds,
            ) from exc
        except CommandError as exc:
            raise RolloutTimeout(
                f"deployment/{name} did not complete its rollout: {exc}",
                resource_name=name,
                timeout_seconds=timeout_seconds,
            ) from exc

    def scale_to(self, slot: Slot, replicas: int, request: DeploymentRequest) -> None:
        name = request.release_name(slot)
        logger.info("Scaling deployment/%s to %d replica(s)", name, replicas)
        result = self._runner.run(
            [
                self._kubectl, "scale", f"deployment/{name}",
                "-n", request.namespace,
                f"--replicas={replicas}",
            ],
            check=False,
            timeout=120,
        )
        if result.ok:
            return
        if is_not_found(result.stderr):
            logger.info("deployment/%s does not exist, nothing to scale", name)
            return
        raise ScaleOperationFailed(
            f"cannot scale deployment/{name} to {replicas}: {result.stderr.strip()}",
            resource_name=name,
            replicas=replicas,
        )

    def ready_replicas(self, slot: Slot, namespace: str, app_name: str) -> int:
        name = f"{app_name}-{slot.value}"
        result = self._runner.run(
            [self._kubectl, "get", "deployment", name, "-n", namespace, "-o", "json"],
            check=False,
            timeout=60,
        )
        if not result.ok:
            return 0
        try:
            return Deployment.model_validate_json(result.stdout).status.ready_replicas
        except ValidationError:
            logger.warning("Unparseable deployment/%s status", name)
            return 0
