"""Domain layer for blue-green orchestration.

Re-exports all public domain types so that consumers can write::

    from bluegreen.domain import DeploymentRequest, Slot, RolloutTimeout
"""

# -- Enumerations -------------------------------------------------------------
from .enums import ROLLBACK_ELIGIBLE_PHASES, ClusterProvider, Phase, Slot

# -- Value Objects ------------------------------------------------------------
from .values import (
    DeploymentOutcome,
    DeploymentRequest,
    HealthVerdict,
    ProbeResult,
    StepFailure,
)

# -- Domain Events ------------------------------------------------------------
from .events import (
    CleanupStepFailed,
    DeploymentFailed,
    DeploymentStarted,
    DeploymentSucceeded,
    DomainEvent,
    PhaseEntered,
    RollbackStarted,
    TrafficSwitched,
)

# -- Exceptions ---------------------------------------------------------------
from .exceptions import (
    BlueGreenError,
    CommandError,
    CommandTimeout,
    ConcurrentDeploymentError,
    ConfigurationError,
    HealthCheckFailed,
    ReleaseOperationFailed,
    RollbackStepFailed,
    RolloutTimeout,
    RouteOperationFailed,
    ScaleOperationFailed,
    TrafficVerificationFailed,
    UnknownClusterFormat,
)

__all__ = [
    # enums
    "ClusterProvider",
    "Phase",
    "ROLLBACK_ELIGIBLE_PHASES",
    "Slot",
    # values
    "DeploymentOutcome",
    "DeploymentRequest",
    "HealthVerdict",
    "ProbeResult",
    "StepFailure",
    # events
    "CleanupStepFailed",
    "DeploymentFailed",
    "DeploymentStarted",
    "DeploymentSucceeded",
    "DomainEvent",
    "PhaseEntered",
    "RollbackStarted",
    "TrafficSwitched",
    # exceptions
    "BlueGreenError",
    "CommandError",
    "CommandTimeout",
    "ConcurrentDeploymentError",
    "ConfigurationError",
    "HealthCheckFailed",
    "ReleaseOperationFailed",
    "RollbackStepFailed",
    "RolloutTimeout",
    "RouteOperationFailed",
    "ScaleOperationFailed",
    "TrafficVerificationFailed",
    "UnknownClusterFormat",
]
