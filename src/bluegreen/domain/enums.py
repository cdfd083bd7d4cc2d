"""Domain enumerations for blue-green release rotation.

These enums capture the fixed vocabularies used across the domain layer:
deployment slots, orchestration phases, and supported cluster providers.
"""

from __future__ import annotations

from enum import Enum


class Slot(Enum):
    """One of the two parallel deployment environments of an application."""

    BLUE = "blue"
    GREEN = "green"

    def complement(self) -> Slot:
        """Return the other slot."""
        return Slot.GREEN if self is Slot.BLUE else Slot.BLUE

    @classmethod
    def parse(cls, label: str | None) -> Slot | None:
        """Map a routing label to a slot, ``None`` when unrecognized."""
        if not label:
            return None
        try:
            return cls(label.strip().lower())
        except ValueError:
            return None

    def __str__(self) -> str:
        return self.value


class Phase(Enum):
    """Finite-state-machine states for a blue-green orchestration run."""

    IDLE = "idle"
    DEPLOYING = "deploying"
    AWAITING_READY = "awaiting_ready"
    HEALTH_CHECKING = "health_checking"
    SWITCH_DELAY = "switch_delay"
    SWITCHING = "switching"
    VERIFYING_SWITCH = "verifying_switch"
    SCALING_DOWN_OLD = "scaling_down_old"
    DONE = "done"
    ROLLING_BACK = "rolling_back"
    FAILED = "failed"


# Phases from which a failure escalates into rollback.
ROLLBACK_ELIGIBLE_PHASES = frozenset({
    Phase.DEPLOYING,
    Phase.AWAITING_READY,
    Phase.HEALTH_CHECKING,
    Phase.SWITCH_DELAY,
    Phase.SWITCHING,
    Phase.VERIFYING_SWITCH,
})


class ClusterProvider(Enum):
    """Naming conventions recognized for cluster identifiers."""

    EKS = "eks"  # eks-<region>-<name>
    GKE = "gke"  # gke-<name>-<zone>-<project>
    KUBECONFIG = "kubeconfig"  # pre-configured kubectl context
