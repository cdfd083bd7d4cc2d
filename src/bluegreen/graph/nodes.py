"""LangGraph node functions for the blue-green state machine.

Each ``make_*_node`` factory closes over a ``StepContext`` holding the
collaborators and returns a node that takes a ``DeploymentState`` and returns
a partial update dict.  Nodes delegate to the Color Router, Deployment Driver
and Health Verifier rather than touching the cluster themselves.

Step nodes from ``deploying`` through ``verifying_switch`` catch collaborator
errors and report them as a ``StepFailure`` in the ``failure`` channel; the
conditional edges read that tag to decide between continuing and rolling
back.  Cleanup nodes (``scaling_down_old``, ``rolling_back``) swallow and
record their errors.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from bluegreen.domain.enums import Phase, Slot
from bluegreen.domain.events import (
    CleanupStepFailed,
    DeploymentFailed,
    DeploymentStarted,
    DeploymentSucceeded,
    DomainEvent,
    PhaseEntered,
    RollbackStarted,
    TrafficSwitched,
)
from bluegreen.domain.exceptions import (
    HealthCheckFailed,
    RollbackStepFailed,
    TrafficVerificationFailed,
)
from bluegreen.domain.values import DeploymentOutcome, DeploymentRequest, StepFailure
from bluegreen.infrastructure.event_bus import EventBus
from bluegreen.services.color_router import BaseColorRouter
from bluegreen.services.deployment_driver import BaseDeploymentDriver
from bluegreen.services.health_verifier import BaseHealthVerifier

logger = logging.getLogger(__name__)

Node = Callable[[dict[str, Any]], dict[str, Any]]


@dataclass
class StepContext:
    """Collaborators and timing shared by every node of one compiled graph."""

    router: BaseColorRouter
    driver: BaseDeploymentDriver
    verifier: BaseHealthVerifier
    event_bus: EventBus = field(default_factory=EventBus)
    sleep_fn: Callable[[float], None] = time.sleep
    settle_seconds: float = 10.0

    def publish(self, event: DomainEvent) -> None:
        self.event_bus.publish(event)


def _source(request: DeploymentRequest) -> str:
    return f"{request.namespace}/{request.app_name}"


def _enter(ctx: StepContext, state: dict[str, Any], phase: Phase) -> dict[str, Any]:
    """Announce *phase* and return the bookkeeping part of the node update."""
    request = state["request"]
    logger.info("[%s] %s", _source(request), phase.value)
    ctx.publish(PhaseEntered(source_id=_source(request), phase=phase.value))
    return {"phase": phase.value, "phases": [phase.value]}


def _cleanup_error(
    ctx: StepContext, request: DeploymentRequest, step: str, exc: Exception
) -> RollbackStepFailed:
    logger.warning("[%s] best-effort %s failed: %s", _source(request), step, exc)
    ctx.publish(CleanupStepFailed(source_id=_source(request), step=step, reason=str(exc)))
    return RollbackStepFailed(f"{step} failed: {exc}", step=step, cause=exc)


# ===================================================================== #
#  Happy-path nodes                                                      #
# ===================================================================== #


def make_idle_node(ctx: StepContext) -> Node:
    def idle_node(state: dict[str, Any]) -> dict[str, Any]:
        """Resolve the active color ``C`` and the target ``N = complement(C)``."""
        request = state["request"]
        update = _enter(ctx, state, Phase.IDLE)
        try:
            current = ctx.router.get_active_color(request.namespace, request.app_name)
        except Exception as exc:
            logger.error("[%s] cannot read routing record: %s", _source(request), exc)
            return {**update, "failure": StepFailure(phase=Phase.IDLE, error=exc)}

        target = current.complement()
        logger.info(
            "[%s] active=%s, deploying %s to %s",
            _source(request),
            current.value,
            request.version,
            target.value,
        )
        ctx.publish(
            DeploymentStarted(
                source_id=_source(request),
                version=request.version,
                current_color=current.value,
                target_color=target.value,
            )
        )
        return {
            **update,
            "current_color": current,
            "target_color": target,
            "failure": None,
            "route_switched": False,
            "rolled_back": False,
            "route_restored": False,
        }

    return idle_node


def make_deploying_node(ctx: StepContext) -> Node:
    def deploying_node(state: dict[str, Any]) -> dict[str, Any]:
        request = state["request"]
        update = _enter(ctx, state, Phase.DEPLOYING)
        try:
            ctx.driver.deploy(state["target_color"], request.version, request)
        except Exception as exc:
            return {**update, "failure": StepFailure(phase=Phase.DEPLOYING, error=exc)}
        return update

    return deploying_node


def make_awaiting_ready_node(ctx: StepContext) -> Node:
    def awaiting_ready_node(state: dict[str, Any]) -> dict[str, Any]:
        request = state["request"]
        update = _enter(ctx, state, Phase.AWAITING_READY)
        try:
            ctx.driver.wait_until_ready(
                state["target_color"], request.health_check_timeout, request
            )
        except Exception as exc:
            return {**update, "failure": StepFailure(phase=Phase.AWAITING_READY, error=exc)}
        return update

    return awaiting_ready_node


def make_health_checking_node(ctx: StepContext) -> Node:
    def health_checking_node(state: dict[str, Any]) -> dict[str, Any]:
        """Gate on an all-or-nothing health verdict for the new slot."""
        request = state["request"]
        target: Slot = state["target_color"]
        update = _enter(ctx, state, Phase.HEALTH_CHECKING)
        try:
            verdict = ctx.verifier.check_health(
                target, request.health_check_path, request.namespace, request
            )
        except Exception as exc:
            return {**update, "failure": StepFailure(phase=Phase.HEALTH_CHECKING, error=exc)}

        if not verdict.passed:
            error = HealthCheckFailed(
                f"health checks failed for {target.value} deployment: {verdict.reason}",
                slot=target.value,
                unhealthy=verdict.unhealthy_addresses,
            )
            return {
                **update,
                "verdict": verdict,
                "failure": StepFailure(phase=Phase.HEALTH_CHECKING, error=error),
            }
        return {**update, "verdict": verdict}

    return health_checking_node


def make_switch_delay_node(ctx: StepContext) -> Node:
    def switch_delay_node(state: dict[str, Any]) -> dict[str, Any]:
        """Soak the healthy slot before it takes traffic."""
        request = state["request"]
        update = _enter(ctx, state, Phase.SWITCH_DELAY)
        if request.traffic_switch_delay > 0:
            logger.info(
                "[%s] waiting %ds before switching traffic",
                _source(request),
                request.traffic_switch_delay,
            )
            try:
                ctx.sleep_fn(request.traffic_switch_delay)
            except Exception as exc:
                return {**update, "failure": StepFailure(phase=Phase.SWITCH_DELAY, error=exc)}
        return update

    return switch_delay_node


def make_switching_node(ctx: StepContext) -> Node:
    def switching_node(state: dict[str, Any]) -> dict[str, Any]:
        request = state["request"]
        target: Slot = state["target_color"]
        update = _enter(ctx, state, Phase.SWITCHING)
        try:
            ctx.router.switch_traffic(request.namespace, request.app_name, target)
        except Exception as exc:
            return {**update, "failure": StepFailure(phase=Phase.SWITCHING, error=exc)}
        ctx.publish(TrafficSwitched(source_id=_source(request), target_color=target.value))
        return {**update, "route_switched": True}

    return switching_node


def make_verifying_switch_node(ctx: StepContext) -> Node:
    def verifying_switch_node(state: dict[str, Any]) -> dict[str, Any]:
        """Let the switch settle, then read the routing record back."""
        request = state["request"]
        target: Slot = state["target_color"]
        update = _enter(ctx, state, Phase.VERIFYING_SWITCH)
        try:
            ctx.sleep_fn(ctx.settle_seconds)
            verified = ctx.router.verify_traffic(request.namespace, request.app_name, target)
        except Exception as exc:
            return {**update, "failure": StepFailure(phase=Phase.VERIFYING_SWITCH, error=exc)}

        if not verified:
            error = TrafficVerificationFailed(
                f"traffic verification failed: {request.app_name} does not route to "
                f"{target.value}",
                expected=target.value,
            )
            return {**update, "failure": StepFailure(phase=Phase.VERIFYING_SWITCH, error=error)}
        return update

    return verifying_switch_node


def make_scaling_down_old_node(ctx: StepContext) -> Node:
    def scaling_down_old_node(state: dict[str, Any]) -> dict[str, Any]:
        """Drain the deposed slot; errors never fail the run."""
        request = state["request"]
        update = _enter(ctx, state, Phase.SCALING_DOWN_OLD)
        if not request.scale_down_old:
            logger.info("[%s] keeping %s scaled up", _source(request), state["current_color"].value)
            return update
        try:
            ctx.driver.scale_to(state["current_color"], 0, request)
        except Exception as exc:
            return {
                **update,
                "cleanup_errors": [_cleanup_error(ctx, request, "scale_down_old", exc)],
            }
        return update

    return scaling_down_old_node


def make_done_node(ctx: StepContext) -> Node:
    def done_node(state: dict[str, Any]) -> dict[str, Any]:
        request = state["request"]
        update = _enter(ctx, state, Phase.DONE)
        current: Slot = state["current_color"]
        target: Slot = state["target_color"]
        elapsed = time.monotonic() - state.get("started_at", time.monotonic())
        outcome = DeploymentOutcome(
            success=True,
            active_color=target,
            previous_color=current,
            version=request.version,
            phases=tuple(state.get("phases", [])) + (Phase.DONE.value,),
            elapsed_seconds=elapsed,
        )
        logger.info(
            "[%s] deployment of %s complete, active color is now %s",
            _source(request),
            request.version,
            target.value,
        )
        ctx.publish(
            DeploymentSucceeded(
                source_id=_source(request),
                version=request.version,
                active_color=target.value,
                previous_color=current.value,
            )
        )
        return {**update, "outcome": outcome}

    return done_node


# ===================================================================== #
#  Failure-path nodes                                                    #
# ===================================================================== #


def make_rolling_back_node(ctx: StepContext) -> Node:
    def rolling_back_node(state: dict[str, Any]) -> dict[str, Any]:
        """Restore the prior route, then drain the failed slot.

        Both actions are attempted unconditionally.  Re-issuing the route is
        safe when it was never switched because the switch is idempotent.
        ``route_restored`` is set only when the restoring switch succeeded.
        """
        request = state["request"]
        current: Slot = state["current_color"]
        target: Slot = state["target_color"]
        failure: StepFailure = state["failure"]
        route_switched = bool(state.get("route_switched"))
        update = _enter(ctx, state, Phase.ROLLING_BACK)

        logger.error(
            "[%s] %s failed (%s), rolling back to %s",
            _source(request),
            failure.phase.value,
            failure.message,
            current.value,
        )
        if route_switched:
            logger.warning(
                "[%s] traffic was already routed to %s, reverting it",
                _source(request),
                target.value,
            )
        ctx.publish(
            RollbackStarted(
                source_id=_source(request),
                failed_phase=failure.phase.value,
                reason=failure.message,
                restore_color=current.value,
                route_switched=route_switched,
            )
        )

        errors: list[RollbackStepFailed] = []
        restored = False
        try:
            ctx.router.switch_traffic(request.namespace, request.app_name, current)
            restored = True
            ctx.publish(
                TrafficSwitched(source_id=_source(request), target_color=current.value, revert=True)
            )
        except Exception as exc:
            errors.append(_cleanup_error(ctx, request, "restore_route", exc))

        try:
            ctx.driver.scale_to(target, 0, request)
        except Exception as exc:
            errors.append(_cleanup_error(ctx, request, "drain_failed_slot", exc))

        return {
            **update,
            "rolled_back": True,
            "route_restored": restored,
            "cleanup_errors": errors,
        }

    return rolling_back_node


def make_failed_node(ctx: StepContext) -> Node:
    def failed_node(state: dict[str, Any]) -> dict[str, Any]:
        request = state["request"]
        failure: StepFailure = state["failure"]
        update = _enter(ctx, state, Phase.FAILED)
        current = state.get("current_color")
        restored = current.value if current is not None and state.get("route_restored") else ""
        if state.get("rolled_back") and not restored:
            logger.error(
                "[%s] routing record could not be restored; verify the cluster",
                _source(request),
            )
        ctx.publish(
            DeploymentFailed(
                source_id=_source(request),
                version=request.version,
                failed_phase=failure.phase.value,
                reason=failure.message,
                restored_color=restored,
            )
        )
        return update

    return failed_node
