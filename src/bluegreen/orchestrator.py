"""Blue-green orchestrator facade.

``BlueGreenOrchestrator`` is the single entry point pipeline steps call.  It
validates the request, points tooling at the right cluster, serializes runs
per application, drives the compiled state graph, and turns the final graph
state into either a ``DeploymentOutcome`` or the original triggering error.

Usage::

    orchestrator = BlueGreenOrchestrator.for_kubernetes()
    outcome = orchestrator.deploy(
        DeploymentRequest(
            cluster="eks-us-east-1-prod",
            namespace="shop",
            app_name="checkout",
            chart="./charts/checkout",
            version="1.4.2",
        )
    )
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from bluegreen.domain.enums import Slot
from bluegreen.domain.values import DeploymentOutcome, DeploymentRequest, StepFailure
from bluegreen.graph.graph import build_bluegreen_graph, initial_state
from bluegreen.graph.streaming import format_stream_events
from bluegreen.infrastructure.cluster import ClusterContextProvider
from bluegreen.infrastructure.config import OrchestratorConfig
from bluegreen.infrastructure.event_bus import EventBus
from bluegreen.infrastructure.locks import DeploymentLockRegistry, default_lock_registry
from bluegreen.infrastructure.shell import CommandRunner
from bluegreen.services.color_router import BaseColorRouter, KubectlColorRouter
from bluegreen.services.deployment_driver import BaseDeploymentDriver, HelmDeploymentDriver
from bluegreen.services.health_verifier import (
    BaseHealthVerifier,
    HealthVerifier,
    InstanceProber,
    KubectlCurlProber,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[dict[str, Any]], None]


class BlueGreenOrchestrator:
    """Runs blue-green release rotations against injected collaborators.

    Parameters
    ----------
    router:
        Color Router for the routing record.
    driver:
        Deployment Driver for the slots.
    verifier:
        Health Verifier for the pre-switch gate.
    context_provider:
        Resolves ``request.cluster`` before each run.  ``None`` skips
        resolution (tooling already points at the right cluster).
    event_bus:
        Receives every domain event of every run.
    config:
        Timing knobs; only ``settle_seconds`` is read here.
    lock_registry:
        Per-application run guard; defaults to the process-wide registry.
    sleep_fn:
        Used for the switch delay and the settle wait.
    """

    def __init__(
        self,
        router: BaseColorRouter,
        driver: BaseDeploymentDriver,
        verifier: BaseHealthVerifier,
        context_provider: ClusterContextProvider | None = None,
        event_bus: EventBus | None = None,
        config: OrchestratorConfig | None = None,
        lock_registry: DeploymentLockRegistry | None = None,
        sleep_fn: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config or OrchestratorConfig()
        self._config.validate()
        self._router = router
        self._driver = driver
        self._verifier = verifier
        self._context_provider = context_provider
        self._event_bus = event_bus if event_bus is not None else EventBus()
        self._locks = lock_registry if lock_registry is not None else default_lock_registry
        self._graph = build_bluegreen_graph(
            router=router,
            driver=driver,
            verifier=verifier,
            event_bus=self._event_bus,
            sleep_fn=sleep_fn,
            settle_seconds=self._config.settle_seconds,
        )

    @classmethod
    def for_kubernetes(
        cls,
        config: OrchestratorConfig | None = None,
        runner: CommandRunner | None = None,
        prober: InstanceProber | None = None,
        event_bus: EventBus | None = None,
        sleep_fn: Callable[[float], None] = time.sleep,
        resolve_context: bool = True,
    ) -> BlueGreenOrchestrator:
        """Wire the kubectl/helm collaborators from a single config.

        With *resolve_context* off, runs use whatever context kubectl is
        already pointed at.
        """
        cfg = config or OrchestratorConfig()
        cfg.validate()
        runner = runner or CommandRunner()
        prober = prober or KubectlCurlProber(
            runner,
            kubectl=cfg.kubectl,
            image=cfg.probe_image,
            timeout=cfg.probe_timeout,
        )
        return cls(
            router=KubectlColorRouter(
                runner,
                kubectl=cfg.kubectl,
                read_attempts=cfg.route_read_attempts,
                read_backoff=cfg.route_read_backoff,
                sleep_fn=sleep_fn,
            ),
            driver=HelmDeploymentDriver(
                runner,
                kubectl=cfg.kubectl,
                helm=cfg.helm,
                release_timeout=cfg.release_timeout,
            ),
            verifier=HealthVerifier(runner, prober=prober, kubectl=cfg.kubectl),
            context_provider=(
                ClusterContextProvider(runner, kubectl=cfg.kubectl) if resolve_context else None
            ),
            event_bus=event_bus,
            config=cfg,
            sleep_fn=sleep_fn,
        )

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    @property
    def graph(self) -> Any:
        """The compiled LangGraph driving each run."""
        return self._graph

    # -- operations ---------------------------------------------------------

    def deploy(
        self,
        request: DeploymentRequest,
        on_progress: ProgressCallback | None = None,
    ) -> DeploymentOutcome:
        """Roll *request* out to the inactive slot and move traffic to it.

        Returns the outcome of a verified switch.  On any failure up to and
        including switch verification, routing is restored to the prior color,
        the new slot is told to drain, and the triggering error is raised.
        Absence of that error is the only rollback confirmation: callers
        should verify the cluster manually after a failure.

        Raises
        ------
        ConfigurationError
            Invalid request or unrecognized cluster identifier, before any
            mutation.
        ConcurrentDeploymentError
            Another run for the same namespace/app is in flight in this process.
        """
        request.validate()
        with self._locks.hold(request.namespace, request.app_name):
            self.use_cluster(request.cluster)
            logger.info(
                "Starting blue-green deployment of %s %s into %s",
                request.app_name,
                request.version,
                request.namespace,
            )
            final = self._run(request, on_progress)
        return self._finish(final)

    def use_cluster(self, cluster_id: str) -> None:
        """Point kubectl/helm at *cluster_id* (no-op without a context provider)."""
        if self._context_provider is not None:
            self._context_provider.resolve_context(cluster_id)

    def status(self, namespace: str, app_name: str) -> Slot:
        """Currently active slot of *app_name* (``blue`` if never deployed)."""
        return self._router.get_active_color(namespace, app_name)

    def slot_report(self, namespace: str, app_name: str) -> dict[str, Any]:
        """Active slot plus ready instance counts of both slots."""
        active = self.status(namespace, app_name)
        return {
            "namespace": namespace,
            "appName": app_name,
            "activeColor": active.value,
            "readyReplicas": {
                slot.value: self._driver.ready_replicas(slot, namespace, app_name)
                for slot in Slot
            },
        }

    # -- internals ----------------------------------------------------------

    def _run(
        self, request: DeploymentRequest, on_progress: ProgressCallback | None
    ) -> dict[str, Any]:
        state = initial_state(request)
        if on_progress is None:
            return self._graph.invoke(state)

        final: dict[str, Any] = state
        for mode, chunk in self._graph.stream(state, stream_mode=["updates", "values"]):
            if mode == "updates":
                for record in format_stream_events(iter([chunk])):
                    on_progress(record)
            else:
                final = chunk
        return final

    @staticmethod
    def _finish(final: dict[str, Any]) -> DeploymentOutcome:
        outcome: DeploymentOutcome | None = final.get("outcome")
        if outcome is not None:
            return outcome
        failure: StepFailure | None = final.get("failure")
        if failure is None:
            raise RuntimeError("deployment graph ended without an outcome or a failure")
        for cleanup in final.get("cleanup_errors", []):
            logger.warning("Rollback left an unfinished step: %s", cleanup)
        raise failure.error
