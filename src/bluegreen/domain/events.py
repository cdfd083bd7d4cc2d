"""Domain events for blue-green orchestration.

Every event is a frozen dataclass inheriting from ``DomainEvent``.  The
orchestrator emits events at each phase boundary; subscribers (notifiers,
audit logs, progress displays) react without being able to affect the run.

All events carry a ``timestamp`` and a ``source_id`` identifying the
application the run belongs to (``<namespace>/<app_name>``).
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

# ---------------------------------------------------------------------------
# Base event
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DomainEvent:
    """Base class for all domain events."""

    timestamp: float = field(default_factory=time.time)
    source_id: str = ""


# ---------------------------------------------------------------------------
# Run lifecycle events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DeploymentStarted(DomainEvent):
    """A run resolved its current and target colors."""

    version: str = ""
    current_color: str = ""
    target_color: str = ""


@dataclass(frozen=True)
class PhaseEntered(DomainEvent):
    """The state machine entered a new phase."""

    phase: str = ""


@dataclass(frozen=True)
class TrafficSwitched(DomainEvent):
    """The routing record was written."""

    target_color: str = ""
    revert: bool = False


@dataclass(frozen=True)
class RollbackStarted(DomainEvent):
    """A failure escalated into rollback.

    ``route_switched`` tells whether traffic had already moved to the failed
    slot.
    """

    failed_phase: str = ""
    reason: str = ""
    restore_color: str = ""
    route_switched: bool = False


@dataclass(frozen=True)
class CleanupStepFailed(DomainEvent):
    """A best-effort cleanup action errored; the run outcome is unaffected."""

    step: str = ""
    reason: str = ""


@dataclass(frozen=True)
class DeploymentSucceeded(DomainEvent):
    """The new color is live and verified."""

    version: str = ""
    active_color: str = ""
    previous_color: str = ""


@dataclass(frozen=True)
class DeploymentFailed(DomainEvent):
    """The run ended in failure.

    ``restored_color`` names the color traffic was switched back to, and is
    empty when no rollback ran or the restoring switch itself failed.
    """

    version: str = ""
    failed_phase: str = ""
    reason: str = ""
    restored_color: str = ""
