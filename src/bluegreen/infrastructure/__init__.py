"""Infrastructure layer for blue-green orchestration.

Re-exports the public API surface for convenience::

    from bluegreen.infrastructure import (
        CommandRunner, ClusterContextProvider, EventBus, OrchestratorConfig,
    )
"""

from bluegreen.infrastructure.cluster import (
    ClusterContextProvider,
    ClusterTarget,
    parse_cluster_id,
)
from bluegreen.infrastructure.config import OrchestratorConfig, load_config_from_json
from bluegreen.infrastructure.event_bus import EventBus, EventStore
from bluegreen.infrastructure.locks import DeploymentLockRegistry, default_lock_registry
from bluegreen.infrastructure.shell import (
    CommandResult,
    CommandRunner,
    mask_sensitive,
    retry,
)

__all__ = [
    # Cluster context
    "ClusterContextProvider",
    "ClusterTarget",
    "parse_cluster_id",
    # Configuration
    "OrchestratorConfig",
    "load_config_from_json",
    # Event bus
    "EventBus",
    "EventStore",
    # Locks
    "DeploymentLockRegistry",
    "default_lock_registry",
    # Commands
    "CommandResult",
    "CommandRunner",
    "mask_sensitive",
    "retry",
]
