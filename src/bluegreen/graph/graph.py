"""Build the blue-green StateGraph.

``build_bluegreen_graph()`` wires the eleven phase nodes and the conditional
edges into a compiled LangGraph::

    idle -> deploying -> awaiting_ready -> health_checking -> switch_delay
         -> switching -> verifying_switch -> scaling_down_old -> done

Every step from ``deploying`` through ``verifying_switch`` may instead route
to ``rolling_back -> failed``; a failed ``idle`` read goes straight to
``failed`` because nothing has been mutated yet.
"""

import time
from collections.abc import Callable
from typing import Any

from langgraph.graph import END, START, StateGraph

from bluegreen.domain.enums import ROLLBACK_ELIGIBLE_PHASES, Phase
from bluegreen.domain.values import DeploymentRequest
from bluegreen.graph.edges import route_after_idle, route_after_step
from bluegreen.graph.nodes import (
    StepContext,
    make_awaiting_ready_node,
    make_deploying_node,
    make_done_node,
    make_failed_node,
    make_health_checking_node,
    make_idle_node,
    make_rolling_back_node,
    make_scaling_down_old_node,
    make_switch_delay_node,
    make_switching_node,
    make_verifying_switch_node,
)
from bluegreen.graph.state import DeploymentState
from bluegreen.infrastructure.event_bus import EventBus
from bluegreen.services.color_router import BaseColorRouter
from bluegreen.services.deployment_driver import BaseDeploymentDriver
from bluegreen.services.health_verifier import BaseHealthVerifier

# Happy-path order after ``idle``.
_HAPPY_PATH = (
    Phase.DEPLOYING,
    Phase.AWAITING_READY,
    Phase.HEALTH_CHECKING,
    Phase.SWITCH_DELAY,
    Phase.SWITCHING,
    Phase.VERIFYING_SWITCH,
    Phase.SCALING_DOWN_OLD,
    Phase.DONE,
)

# Rollback-eligible steps, each paired with its successor.
_GUARDED_STEPS = tuple(
    (step.value, successor.value)
    for step, successor in zip(_HAPPY_PATH, _HAPPY_PATH[1:])
    if step in ROLLBACK_ELIGIBLE_PHASES
)


def build_bluegreen_graph(
    router: BaseColorRouter,
    driver: BaseDeploymentDriver,
    verifier: BaseHealthVerifier,
    event_bus: EventBus | None = None,
    sleep_fn: Callable[[float], None] = time.sleep,
    settle_seconds: float = 10.0,
    checkpointer: Any | None = None,
) -> Any:
    """Build and compile the blue-green StateGraph.

    Parameters
    ----------
    router:
        Color Router reading and writing the routing record.
    driver:
        Deployment Driver populating and scaling slots.
    verifier:
        Health Verifier producing the pre-switch verdict.
    event_bus:
        Bus receiving phase and lifecycle events.  A private bus is created
        when omitted.
    sleep_fn:
        Used for the traffic-switch delay and the post-switch settle.
    settle_seconds:
        Fixed wait between the switch and its read-back.
    checkpointer:
        Optional LangGraph checkpointer for persistence.

    Returns
    -------
    CompiledStateGraph
        A compiled graph ready for ``.invoke()`` or ``.stream()``.
    """
    ctx = StepContext(
        router=router,
        driver=driver,
        verifier=verifier,
        event_bus=event_bus if event_bus is not None else EventBus(),
        sleep_fn=sleep_fn,
        settle_seconds=settle_seconds,
    )
    graph = StateGraph(DeploymentState)

    graph.add_node("idle", make_idle_node(ctx))
    graph.add_node("deploying", make_deploying_node(ctx))
    graph.add_node("awaiting_ready", make_awaiting_ready_node(ctx))
    graph.add_node("health_checking", make_health_checking_node(ctx))
    graph.add_node("switch_delay", make_switch_delay_node(ctx))
    graph.add_node("switching", make_switching_node(ctx))
    graph.add_node("verifying_switch", make_verifying_switch_node(ctx))
    graph.add_node("scaling_down_old", make_scaling_down_old_node(ctx))
    graph.add_node("done", make_done_node(ctx))
    graph.add_node("rolling_back", make_rolling_back_node(ctx))
    graph.add_node("failed", make_failed_node(ctx))

    graph.add_edge(START, "idle")
    graph.add_conditional_edges(
        "idle",
        route_after_idle,
        {"deploying": "deploying", "failed": "failed"},
    )
    for step, successor in _GUARDED_STEPS:
        graph.add_conditional_edges(
            step,
            route_after_step,
            {"continue": successor, "rolling_back": "rolling_back"},
        )
    graph.add_edge("scaling_down_old", "done")
    graph.add_edge("done", END)
    graph.add_edge("rolling_back", "failed")
    graph.add_edge("failed", END)

    compile_kwargs: dict[str, Any] = {}
    if checkpointer is not None:
        compile_kwargs["checkpointer"] = checkpointer
    return graph.compile(**compile_kwargs)


def initial_state(request: DeploymentRequest) -> dict[str, Any]:
    """Seed state for one run of *request*."""
    return {
        "request": request,
        "started_at": time.monotonic(),
        "failure": None,
        "verdict": None,
        "outcome": None,
        "route_switched": False,
        "rolled_back": False,
        "route_restored": False,
        "phases": [],
        "cleanup_errors": [],
    }
