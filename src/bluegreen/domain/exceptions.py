"""Domain exceptions for blue-green orchestration.

All domain-specific exceptions inherit from ``BlueGreenError`` so callers can
catch the full family with a single ``except`` clause when needed.
"""

from __future__ import annotations

from typing import Any


class BlueGreenError(Exception):
    """Base exception for all blue-green orchestration errors."""

    def __init__(self, message: str = "", details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details: dict[str, Any] = details or {}


class ConfigurationError(BlueGreenError):
    """Raised when a required request field is missing or malformed.

    Always raised before any cluster mutation; the caller can correct the
    input and retry.
    """

    def __init__(
        self,
        message: str = "Invalid configuration",
        field_name: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.field_name = field_name


class UnknownClusterFormat(ConfigurationError):
    """Raised when a cluster identifier matches no supported naming convention."""

    def __init__(
        self,
        message: str = "Unknown cluster identifier format",
        cluster_id: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, field_name="cluster", details=details)
        self.cluster_id = cluster_id


class CommandError(BlueGreenError):
    """Raised when an external command exits with a non-zero status."""

    def __init__(
        self,
        message: str = "Command failed",
        command: tuple[str, ...] = (),
        returncode: int = 1,
        stdout: str = "",
        stderr: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.command = command
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class CommandTimeout(CommandError):
    """Raised when an external command exceeds its time bound."""

    def __init__(
        self,
        message: str = "Command timed out",
        command: tuple[str, ...] = (),
        timeout: float = 0.0,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, command=command, returncode=-1, details=details)
        self.timeout = timeout


class ReleaseOperationFailed(BlueGreenError):
    """Raised when a release install/upgrade does not converge."""

    def __init__(
        self,
        message: str = "Release operation failed",
        release_name: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.release_name = release_name


class RolloutTimeout(BlueGreenError):
    """Raised when a deployment never reports a completed rollout in time."""

    def __init__(
        self,
        message: str = "Rollout did not complete in time",
        resource_name: str = "",
        timeout_seconds: int = 0,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.resource_name = resource_name
        self.timeout_seconds = timeout_seconds


class HealthCheckFailed(BlueGreenError):
    """Raised when the aggregated health verdict of a slot is fail."""

    def __init__(
        self,
        message: str = "health checks failed",
        slot: str = "",
        unhealthy: tuple[str, ...] = (),
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.slot = slot
        self.unhealthy = unhealthy


class RouteOperationFailed(BlueGreenError):
    """Raised when the routing record cannot be written."""

    def __init__(
        self,
        message: str = "Route update failed",
        service: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.service = service


class TrafficVerificationFailed(BlueGreenError):
    """Raised when the routing record does not read back the switched color."""

    def __init__(
        self,
        message: str = "traffic verification failed",
        expected: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.expected = expected


class ScaleOperationFailed(BlueGreenError):
    """Raised when a replica count adjustment fails for an existing resource."""

    def __init__(
        self,
        message: str = "Scale operation failed",
        resource_name: str = "",
        replicas: int = 0,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.resource_name = resource_name
        self.replicas = replicas


class RollbackStepFailed(BlueGreenError):
    """Records a best-effort cleanup action that errored.

    Never propagated to the caller; kept in the run state and published as a
    ``CleanupStepFailed`` event.
    """

    def __init__(
        self,
        message: str = "Cleanup step failed",
        step: str = "",
        cause: BaseException | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.step = step
        self.cause = cause


class ConcurrentDeploymentError(BlueGreenError):
    """Raised when a run is already in flight for the same application."""

    def __init__(
        self,
        message: str = "A deployment is already in progress",
        namespace: str = "",
        app_name: str = "",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.namespace = namespace
        self.app_name = app_name
