"""Color routing: which slot receives live traffic.

The routing record is the ``color`` key of the selector on the Service named
after the application.  The Service is the single source of truth; every
read here goes to the API server and may already be stale by the time the
caller acts on it.

Classes
-------
BaseColorRouter
    Abstract contract used by the orchestrator.
KubectlColorRouter
    Reads and patches the Service selector with kubectl.
"""

from __future__ import annotations

import json
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable

from pydantic import ValidationError

from bluegreen.domain.enums import Slot
from bluegreen.domain.exceptions import CommandError, RouteOperationFailed
from bluegreen.infrastructure.kube import Service, is_not_found
from bluegreen.infrastructure.shell import CommandRunner, retry

logger = logging.getLogger(__name__)

SELECTOR_KEY = "color"


# ===================================================================== #
#  Base Color Router (ABC)                                               #
# ===================================================================== #


class BaseColorRouter(ABC):
    """Reads and updates the active slot of an application."""

    @abstractmethod
    def read_color(self, namespace: str, app_name: str) -> Slot | None:
        """Return the routed slot, or ``None`` when no routing record exists."""

    @abstractmethod
    def switch_traffic(self, namespace: str, app_name: str, target: Slot) -> None:
        """Point all new traffic at *target*.  Idempotent.

        The effect on live traffic may lag; callers re-verify after settling.
        """

    def get_active_color(self, namespace: str, app_name: str) -> Slot:
        """Return the active slot, seeding ``Slot.BLUE`` for a first deploy."""
        color = self.read_color(namespace, app_name)
        if color is None:
            logger.info(
                "No routing record for %s/%s, assuming %s is active",
                namespace,
                app_name,
                Slot.BLUE.value,
            )
            return Slot.BLUE
        return color

    def verify_traffic(self, namespace: str, app_name: str, expected: Slot) -> bool:
        """Read the routing record back and compare it with *expected*."""
        actual = self.read_color(namespace, app_name)
        if actual is not expected:
            logger.warning(
                "Routing for %s/%s reads %s, expected %s",
                namespace,
                app_name,
                actual.value if actual else "<none>",
                expected.value,
            )
            return False
        return True


# ===================================================================== #
#  kubectl-backed router                                                 #
# ===================================================================== #


class KubectlColorRouter(BaseColorRouter):
    """Routes traffic by patching ``spec.selector.color`` on the app Service.

    Parameters
    ----------
    runner:
        Command runner for kubectl.
    kubectl:
        kubectl executable.
    read_attempts:
        Attempts for a routing read before giving up on transient errors.
    read_backoff:
        Initial delay between read attempts (doubles each time).
    sleep_fn:
        Injected sleep used between attempts.
    """

    def __init__(
        self,
        runner: CommandRunner,
        kubectl: str = "kubectl",
        read_attempts: int = 3,
        read_backoff: float = 1.0,
        sleep_fn: Callable[[float], None] = time.sleep,
    ) -> None:
        self._runner = runner
        self._kubectl = kubectl
        self._read_attempts = read_attempts
        self._read_backoff = read_backoff
        self._sleep_fn = sleep_fn

    def _get_service(self, namespace: str, app_name: str) -> Service | None:
        result = self._runner.run(
            [self._kubectl, "get", "service", app_name, "-n", namespace, "-o", "json"],
            check=False,
            timeout=60,
        )
        if result.ok:
            return Service.model_validate_json(result.stdout)
        if is_not_found(result.stderr):
            return None
        raise CommandError(
            f"kubectl get service {app_name} failed: {result.stderr.strip()}",
            command=result.args,
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
        )

    def read_color(self, namespace: str, app_name: str) -> Slot | None:
        try:
            service = retry(
                lambda: self._get_service(namespace, app_name),
                attempts=self._read_attempts,
                initial_delay=self._read_backoff,
                sleep_fn=self._sleep_fn,
            )
        except (CommandError, ValidationError) as exc:
            raise RouteOperationFailed(
                f"cannot read routing record of {namespace}/{app_name}: {exc}",
                service=app_name,
            ) from exc
        if service is None:
            return None
        label = service.spec.selector.get(SELECTOR_KEY)
        slot = Slot.parse(label)
        if label and slot is None:
            logger.warning(
                "Service %s/%s routes to unrecognized color %r", namespace, app_name, label
            )
        return slot

    def switch_traffic(self, namespace: str, app_name: str, target: Slot) -> None:
        patch = json.dumps({"spec": {"selector": {SELECTOR_KEY: target.value}}})
        logger.info("Switching %s/%s traffic to %s", namespace, app_name, target.value)
        try:
            self._runner.run(
                [self._kubectl, "patch", "service", app_name, "-n", namespace, "-p", patch],
                timeout=60,
            )
        except CommandError as exc:
            raise RouteOperationFailed(
                f"cannot switch {namespace}/{app_name} to {target.value}: {exc}",
                service=app_name,
            ) from exc
