#!/usr/bin/env python3
"""Example 01: Blue-green rotations against an in-memory cluster.

Demonstrates:
- Wiring BlueGreenOrchestrator to the in-memory router, driver and verifier
- A successful rotation followed by a second one back to the first slot
- A failed health gate and the automatic rollback
- Inspecting the recorded domain events

Run:
    PYTHONPATH=src python examples/01_in_memory_rotation.py
"""

from __future__ import annotations

import logging
from dataclasses import replace

from bluegreen.domain.events import DeploymentFailed, PhaseEntered, RollbackStarted
from bluegreen.domain.exceptions import HealthCheckFailed
from bluegreen.domain.values import DeploymentRequest
from bluegreen.infrastructure.event_bus import EventBus, EventStore
from bluegreen.orchestrator import BlueGreenOrchestrator
from bluegreen.testing import InMemoryCluster


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    # -- Cluster and orchestrator ---------------------------------------------
    cluster = InMemoryCluster()
    bus = EventBus()
    store = EventStore()
    bus.subscribe_all(store.append)

    orchestrator = BlueGreenOrchestrator(
        cluster.router,
        cluster.driver,
        cluster.verifier,
        event_bus=bus,
        sleep_fn=lambda seconds: None,
    )

    request = DeploymentRequest(
        cluster="demo-context",
        namespace="shop",
        app_name="checkout",
        chart="./charts/checkout",
        version="1.0.0",
    )

    # -- Two successful rotations ---------------------------------------------
    for version in ("1.0.0", "1.1.0"):
        outcome = orchestrator.deploy(replace(request, version=version))
        print(
            f"{version}: {outcome.previous_color.value} -> {outcome.active_color.value} "
            f"via {len(outcome.phases)} phases"
        )

    # -- A failing health gate ------------------------------------------------
    live = orchestrator.status("shop", "checkout")
    cluster.unhealthy.add("10.0.2.2")
    try:
        orchestrator.deploy(replace(request, version="1.2.0"))
    except HealthCheckFailed as exc:
        print(f"1.2.0 rejected: {exc}")
    print(f"traffic still on {orchestrator.status('shop', 'checkout').value} (was {live.value})")

    # -- Events -----------------------------------------------------------------
    rollback = store.query(RollbackStarted)[-1]
    failed = store.query(DeploymentFailed)[-1]
    print(f"rollback from {rollback.failed_phase}, restored {failed.restored_color}")
    print(f"{len(store.query(PhaseEntered))} phase transitions recorded in total")


if __name__ == "__main__":
    main()
