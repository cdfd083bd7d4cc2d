"""LangGraph state definition for a blue-green orchestration run.

Defines ``DeploymentState``, a ``TypedDict`` that flows through the
LangGraph ``StateGraph``.  Append-only channels use
``Annotated[list, operator.add]`` so that each node can record its phase or a
cleanup error without overwriting earlier entries.

Note: We intentionally do NOT use ``from __future__ import annotations`` because
LangGraph needs to resolve type hints at runtime via ``get_type_hints()``.
"""

import operator
from typing import Annotated, TypedDict

from bluegreen.domain.enums import Slot
from bluegreen.domain.values import (
    DeploymentOutcome,
    DeploymentRequest,
    HealthVerdict,
    StepFailure,
)


class DeploymentState(TypedDict, total=False):
    """State flowing through the blue-green graph.

    Fields are grouped into:

    * **Input** -- the validated request and the run clock.
    * **Colors** -- resolved once by the ``idle`` node.
    * **Step results** -- written by the step nodes, read by the edges.
    * **Accumulation channels** -- append-reducers for the phase trail and
      best-effort cleanup errors.
    """

    # -- Input ---------------------------------------------------------------
    request: DeploymentRequest
    started_at: float

    # -- Colors --------------------------------------------------------------
    current_color: Slot
    target_color: Slot

    # -- Step results --------------------------------------------------------
    phase: str
    failure: StepFailure | None
    verdict: HealthVerdict | None
    route_switched: bool
    rolled_back: bool
    route_restored: bool
    outcome: DeploymentOutcome | None

    # -- Accumulation channels (append-reducers) -----------------------------
    phases: Annotated[list, operator.add]
    cleanup_errors: Annotated[list, operator.add]
