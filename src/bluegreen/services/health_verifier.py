"""Health verification of a slot's live instances.

Every live pod selected by ``app=<app>-<slot>`` is probed on the
application's health endpoint and the results are aggregated all-or-nothing:
no instances, or any single unhealthy instance, fails the verdict.

Classes
-------
InstanceProber
    Strategy for probing one instance address.
KubectlCurlProber
    Probes from inside the cluster with an ephemeral curl pod.
HttpProber
    Probes directly over HTTP (runner must reach the pod network).
BaseHealthVerifier
    Abstract contract used by the orchestrator.
HealthVerifier
    Enumerates pods with kubectl and delegates to a prober.
"""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod

import requests
from pydantic import ValidationError

from bluegreen.domain.enums import Slot
from bluegreen.domain.exceptions import CommandError
from bluegreen.domain.values import DeploymentRequest, HealthVerdict, ProbeResult
from bluegreen.infrastructure.kube import PodList
from bluegreen.infrastructure.shell import CommandRunner

logger = logging.getLogger(__name__)


# ===================================================================== #
#  Probers                                                               #
# ===================================================================== #


class InstanceProber(ABC):
    """Probes a single instance; never raises for an unhealthy instance."""

    @abstractmethod
    def probe(self, address: str, port: int, path: str, namespace: str) -> ProbeResult:
        """Return the health of the instance at *address*."""


class KubectlCurlProber(InstanceProber):
    """Runs ``curl -sf`` from a throwaway pod in the target namespace."""

    def __init__(
        self,
        runner: CommandRunner,
        kubectl: str = "kubectl",
        image: str = "curlimages/curl:latest",
        timeout: int = 30,
    ) -> None:
        self._runner = runner
        self._kubectl = kubectl
        self._image = image
        self._timeout = timeout

    def probe(self, address: str, port: int, path: str, namespace: str) -> ProbeResult:
        pod_name = f"health-check-{uuid.uuid4().hex[:8]}"
        url = f"http://{address}:{port}{path}"
        try:
            result = self._runner.run(
                [
                    self._kubectl, "run", pod_name,
                    "--rm", "-i", "--restart=Never",
                    f"--image={self._image}",
                    "-n", namespace,
                    "--",
                    "curl", "-sf", "--max-time", str(self._timeout), url,
                ],
                check=False,
                timeout=self._timeout + 60,
            )
        except CommandError as exc:
            return ProbeResult(address=address, healthy=False, detail=str(exc))
        if result.ok:
            return ProbeResult(address=address, healthy=True)
        return ProbeResult(
            address=address,
            healthy=False,
            detail=f"curl exited {result.returncode}",
        )


class HttpProber(InstanceProber):
    """Issues a direct ``GET`` with requests; any 2xx response is healthy."""

    def __init__(self, timeout: float = 5.0, session: requests.Session | None = None) -> None:
        self._timeout = timeout
        self._session = session or requests.Session()

    def probe(self, address: str, port: int, path: str, namespace: str) -> ProbeResult:
        url = f"http://{address}:{port}{path}"
        try:
            response = self._session.get(url, timeout=self._timeout)
        except requests.RequestException as exc:
            return ProbeResult(address=address, healthy=False, detail=str(exc))
        if 200 <= response.status_code < 300:
            return ProbeResult(address=address, healthy=True, detail=str(response.status_code))
        return ProbeResult(
            address=address,
            healthy=False,
            detail=f"HTTP {response.status_code}",
        )


# ===================================================================== #
#  Verifiers                                                             #
# ===================================================================== #


class BaseHealthVerifier(ABC):
    """Produces a pass/fail verdict for a slot."""

    @abstractmethod
    def check_health(
        self,
        slot: Slot,
        health_path: str,
        namespace: str,
        request: DeploymentRequest,
    ) -> HealthVerdict:
        """Probe every live instance of *slot* and aggregate the results."""


class HealthVerifier(BaseHealthVerifier):
    """Enumerates slot pods with kubectl and probes each one.

    Parameters
    ----------
    runner:
        Command runner for kubectl.
    prober:
        Instance prober; defaults to ``KubectlCurlProber``.
    kubectl:
        kubectl executable.
    """

    def __init__(
        self,
        runner: CommandRunner,
        prober: InstanceProber | None = None,
        kubectl: str = "kubectl",
    ) -> None:
        self._runner = runner
        self._prober = prober or KubectlCurlProber(runner, kubectl=kubectl)
        self._kubectl = kubectl

    def list_instances(self, selector: str, namespace: str) -> PodList:
        result = self._runner.run(
            [self._kubectl, "get", "pods", "-n", namespace, "-l", selector, "-o", "json"],
            timeout=60,
        )
        return PodList.model_validate_json(result.stdout)

    def check_health(
        self,
        slot: Slot,
        health_path: str,
        namespace: str,
        request: DeploymentRequest,
    ) -> HealthVerdict:
        selector = f"app={request.release_name(slot)}"
        try:
            pods = self.list_instances(selector, namespace).live_pods()
        except (CommandError, ValidationError) as exc:
            logger.warning("Cannot enumerate instances for %s: %s", selector, exc)
            return HealthVerdict(passed=False, reason=f"instance enumeration failed: {exc}")

        if not pods:
            logger.warning("No pods found for %s in %s", selector, namespace)

        probes: list[ProbeResult] = []
        for pod in pods:
            address = pod.status.pod_ip
            if not address:
                probes.append(
                    ProbeResult(
                        address=pod.metadata.name,
                        healthy=False,
                        detail="no pod IP assigned",
                    )
                )
                continue
            result = self._prober.probe(address, request.health_check_port, health_path, namespace)
            if not result.healthy:
                logger.warning(
                    "Pod %s (%s) is unhealthy: %s", pod.metadata.name, address, result.detail
                )
            probes.append(result)

        verdict = HealthVerdict.from_probes(probes)
        logger.info(
            "Health verdict for %s: %s (%s)",
            selector,
            "pass" if verdict.passed else "fail",
            verdict.reason,
        )
        return verdict
