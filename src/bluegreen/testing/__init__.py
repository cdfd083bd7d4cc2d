"""Public testing utilities for blue-green orchestration.

Provides an in-memory cluster with router, driver and verifier fakes plus a
scripted command runner, for self-contained examples and tests that need
neither kubectl nor helm.
"""

from bluegreen.testing.fakes import (
    InMemoryCluster,
    InMemoryColorRouter,
    InMemoryDeploymentDriver,
    InMemoryHealthVerifier,
    RecordingRunner,
    route_failure,
    scale_failure,
)

__all__ = [
    "InMemoryCluster",
    "InMemoryColorRouter",
    "InMemoryDeploymentDriver",
    "InMemoryHealthVerifier",
    "RecordingRunner",
    "route_failure",
    "scale_failure",
]
