"""LangGraph-native blue-green state machine.

Public API
----------
build_bluegreen_graph
    Build and compile the Idle-Deploy-Ready-Health-Switch-Verify-ScaleDown
    graph with its rollback branch.
DeploymentState
    The TypedDict state flowing through the graph.

Edge functions:
    route_after_idle, route_after_step
"""

from bluegreen.graph.edges import route_after_idle, route_after_step
from bluegreen.graph.graph import build_bluegreen_graph, initial_state
from bluegreen.graph.nodes import StepContext
from bluegreen.graph.state import DeploymentState
from bluegreen.graph.streaming import collect_stream_events, format_stream_events

__all__ = [
    "DeploymentState",
    "StepContext",
    "build_bluegreen_graph",
    "initial_state",
    # Edges
    "route_after_idle",
    "route_after_step",
    # Streaming
    "format_stream_events",
    "collect_stream_events",
]
