"""Shared fixtures for graph tests."""

from __future__ import annotations

import pytest

from bluegreen.domain.enums import Slot
from bluegreen.domain.values import DeploymentRequest
from bluegreen.graph.graph import initial_state
from bluegreen.graph.nodes import StepContext
from bluegreen.infrastructure.event_bus import EventBus
from bluegreen.testing import InMemoryCluster


@pytest.fixture
def ctx(cluster: InMemoryCluster, event_bus: EventBus, sleep_fn) -> StepContext:
    return StepContext(
        router=cluster.router,
        driver=cluster.driver,
        verifier=cluster.verifier,
        event_bus=event_bus,
        sleep_fn=sleep_fn,
        settle_seconds=10.0,
    )


@pytest.fixture
def resolved_state(deploy_request: DeploymentRequest) -> dict:
    """State as left by a successful ``idle`` node: blue live, green target."""
    state = initial_state(deploy_request)
    state.update({"current_color": Slot.BLUE, "target_color": Slot.GREEN})
    return state
