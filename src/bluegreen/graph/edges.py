"""Conditional edge functions for the blue-green LangGraph.

Step nodes never raise; they report a ``StepFailure`` in the ``failure``
channel and these functions inspect that tag to pick the next node.
"""

from __future__ import annotations

from typing import Any, Literal


def route_after_idle(state: dict[str, Any]) -> Literal["deploying", "failed"]:
    """Nothing has been mutated yet, so a failed read ends the run directly."""
    if state.get("failure") is not None:
        return "failed"
    return "deploying"


def route_after_step(state: dict[str, Any]) -> Literal["continue", "rolling_back"]:
    """After a rollback-eligible step, continue or escalate into rollback."""
    if state.get("failure") is not None:
        return "rolling_back"
    return "continue"
