"""Blue-green deployment orchestration.

Rolls a new application version into the idle one of two parallel slots,
gates on readiness and health, flips traffic atomically at the routing
layer, and reverts to the previous slot when anything goes wrong.
"""

__version__ = "0.1.0"

from bluegreen.domain import DeploymentOutcome, DeploymentRequest, Slot
from bluegreen.graph import build_bluegreen_graph
from bluegreen.infrastructure import OrchestratorConfig
from bluegreen.orchestrator import BlueGreenOrchestrator

__all__ = [
    "BlueGreenOrchestrator",
    "DeploymentOutcome",
    "DeploymentRequest",
    "OrchestratorConfig",
    "Slot",
    "build_bluegreen_graph",
]
