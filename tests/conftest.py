"""Shared fixtures for the blue-green test suite."""

from __future__ import annotations

import pytest

from bluegreen.domain.values import DeploymentRequest
from bluegreen.infrastructure.event_bus import EventBus, EventStore
from bluegreen.infrastructure.locks import DeploymentLockRegistry
from bluegreen.orchestrator import BlueGreenOrchestrator
from bluegreen.testing import InMemoryCluster, RecordingRunner

NAMESPACE = "shop"
APP = "checkout"


# ---------------------------------------------------------------------------
# Request fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def deploy_request() -> DeploymentRequest:
    """Request for checkout 1.1.0 with a short, observable switch delay."""
    return DeploymentRequest(
        cluster="staging-context",
        namespace=NAMESPACE,
        app_name=APP,
        chart="./charts/checkout",
        version="1.1.0",
        traffic_switch_delay=5,
        replica_count=2,
    )


# ---------------------------------------------------------------------------
# Collaborator fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sleeps() -> list[float]:
    """Every delay requested through the injected sleep function."""
    return []


@pytest.fixture
def sleep_fn(sleeps: list[float]):
    return sleeps.append


@pytest.fixture
def cluster() -> InMemoryCluster:
    return InMemoryCluster()


@pytest.fixture
def runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def event_store(event_bus: EventBus) -> EventStore:
    store = EventStore()
    event_bus.subscribe_all(store.append)
    return store


@pytest.fixture
def orchestrator(
    cluster: InMemoryCluster,
    event_bus: EventBus,
    sleep_fn,
) -> BlueGreenOrchestrator:
    return BlueGreenOrchestrator(
        cluster.router,
        cluster.driver,
        cluster.verifier,
        event_bus=event_bus,
        lock_registry=DeploymentLockRegistry(),
        sleep_fn=sleep_fn,
    )
