"""Value objects for blue-green orchestration.

All types here are frozen dataclasses -- immutable, compared by value.
They represent the deployment request, probe measurements, verdicts, and the
outcome record handed back to the caller.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import Any

from .enums import Phase, Slot
from .exceptions import ConfigurationError

# ---------------------------------------------------------------------------
# DeploymentRequest
# ---------------------------------------------------------------------------

_REQUIRED_FIELDS = ("cluster", "namespace", "app_name", "chart", "version")

# Scalars in these fields are stringified by ``from_dict`` (e.g. a numeric image tag).
_STRING_FIELDS = _REQUIRED_FIELDS + ("health_check_path",)

# Pipeline parameter spellings accepted by ``DeploymentRequest.from_dict``.
_FIELD_ALIASES = {
    "appName": "app_name",
    "helmChart": "chart",
    "imageTag": "version",
    "healthCheckPath": "health_check_path",
    "healthCheckTimeout": "health_check_timeout",
    "healthCheckPort": "health_check_port",
    "trafficSwitchDelay": "traffic_switch_delay",
    "replicaCount": "replica_count",
    "scaleDownOld": "scale_down_old",
    "setValues": "set_values",
}


@dataclass(frozen=True)
class DeploymentRequest:
    """Immutable input to one blue-green orchestration run.

    Attributes
    ----------
    cluster:
        Logical cluster identifier (``eks-<region>-<name>``,
        ``gke-<name>-<zone>-<project>`` or a kubectl context name).
    namespace:
        Kubernetes namespace holding both slots and the routing Service.
    app_name:
        Application name; also the name of the routing Service.
    chart:
        Helm chart reference installed into each slot.
    version:
        Release version (image tag) to roll out.
    health_check_path:
        Application-level health endpoint probed on every instance.
    health_check_timeout:
        Upper bound in seconds for the rollout to report ready.
    traffic_switch_delay:
        Soak period in seconds between a healthy slot and the traffic switch.
    replica_count:
        Instances to run in the new slot.
    scale_down_old:
        Scale the deposed slot to zero after a verified switch.
    health_check_port:
        Container port the health endpoint listens on.
    set_values:
        Extra ``--set`` overrides passed to the release.
    """

    cluster: str
    namespace: str
    app_name: str
    chart: str
    version: str
    health_check_path: str = "/health"
    health_check_timeout: int = 300
    traffic_switch_delay: int = 30
    replica_count: int = 3
    scale_down_old: bool = True
    health_check_port: int = 8080
    set_values: Mapping[str, str] = field(default_factory=dict)

    def validate(self) -> None:
        """Raise ``ConfigurationError`` if any field is missing or out of range."""
        for name in _STRING_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, str):
                raise ConfigurationError(
                    f"{name} must be a string, got {type(value).__name__}", field_name=name
                )
            if not value.strip():
                raise ConfigurationError(f"{name} is required", field_name=name)
        if not self.health_check_path.startswith("/"):
            raise ConfigurationError(
                f"health_check_path must start with '/', got '{self.health_check_path}'",
                field_name="health_check_path",
            )
        if self.health_check_timeout < 1:
            raise ConfigurationError(
                f"health_check_timeout must be >= 1, got {self.health_check_timeout}",
                field_name="health_check_timeout",
            )
        if self.traffic_switch_delay < 0:
            raise ConfigurationError(
                f"traffic_switch_delay must be >= 0, got {self.traffic_switch_delay}",
                field_name="traffic_switch_delay",
            )
        if self.replica_count < 1:
            raise ConfigurationError(
                f"replica_count must be >= 1, got {self.replica_count}",
                field_name="replica_count",
            )
        if not 0 < self.health_check_port < 65536:
            raise ConfigurationError(
                f"health_check_port must be in (0, 65536), got {self.health_check_port}",
                field_name="health_check_port",
            )

    def release_name(self, slot: Slot) -> str:
        """Name of the release and deployment backing *slot*."""
        return f"{self.app_name}-{slot.value}"

    def to_dict(self) -> dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["set_values"] = dict(self.set_values)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DeploymentRequest:
        """Build and validate a request from loosely typed pipeline parameters.

        Both snake_case field names and the camelCase pipeline spellings
        (``appName``, ``imageTag``, ...) are accepted.  Unknown keys are
        ignored; ``None`` values fall back to the field default.
        """
        valid_keys = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = _FIELD_ALIASES.get(key, key)
            if name in valid_keys and value is not None:
                kwargs[name] = value
        for name in _STRING_FIELDS:
            value = kwargs.get(name)
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                kwargs[name] = str(value)
        missing = [name for name in _REQUIRED_FIELDS if name not in kwargs]
        if missing:
            raise ConfigurationError(
                f"{missing[0]} is required", field_name=missing[0]
            )
        try:
            for name in (
                "health_check_timeout",
                "traffic_switch_delay",
                "replica_count",
                "health_check_port",
            ):
                if name in kwargs:
                    kwargs[name] = int(kwargs[name])
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"invalid numeric value: {exc}") from exc
        if "scale_down_old" in kwargs:
            kwargs["scale_down_old"] = _coerce_bool(kwargs["scale_down_old"])
        if "set_values" in kwargs:
            kwargs["set_values"] = _coerce_set_values(kwargs["set_values"])
        request = cls(**kwargs)
        request.validate()
        return request


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in ("false", "0", "no", "off", "")
    return bool(value)


def _coerce_set_values(value: Any) -> dict[str, str]:
    """Accept a mapping or a list of ``KEY=VALUE`` strings."""
    if isinstance(value, Mapping):
        return {str(k): str(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        values: dict[str, str] = {}
        for item in value:
            key, sep, val = str(item).partition("=")
            if not sep or not key.strip():
                raise ConfigurationError(
                    f"set_values entries must look like KEY=VALUE, got '{item}'",
                    field_name="set_values",
                )
            values[key.strip()] = val
        return values
    raise ConfigurationError(
        f"set_values must be a mapping or a list of KEY=VALUE strings, "
        f"got {type(value).__name__}",
        field_name="set_values",
    )


# ---------------------------------------------------------------------------
# ProbeResult / HealthVerdict
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProbeResult:
    """Outcome of probing one instance's health endpoint."""

    address: str
    healthy: bool
    detail: str = ""


@dataclass(frozen=True)
class HealthVerdict:
    """Aggregate pass/fail over every probed instance of a slot.

    All-or-nothing: an empty probe set or a single unhealthy instance fails
    the whole verdict.
    """

    passed: bool
    probes: tuple[ProbeResult, ...] = ()
    reason: str = ""

    @classmethod
    def from_probes(cls, probes: tuple[ProbeResult, ...] | list[ProbeResult]) -> HealthVerdict:
        probes = tuple(probes)
        if not probes:
            return cls(passed=False, probes=(), reason="no instances found")
        unhealthy = [p.address for p in probes if not p.healthy]
        if unhealthy:
            return cls(
                passed=False,
                probes=probes,
                reason=f"{len(unhealthy)}/{len(probes)} instance(s) unhealthy: "
                + ", ".join(unhealthy),
            )
        return cls(passed=True, probes=probes, reason=f"{len(probes)} instance(s) healthy")

    @property
    def unhealthy_addresses(self) -> tuple[str, ...]:
        return tuple(p.address for p in self.probes if not p.healthy)


# ---------------------------------------------------------------------------
# StepFailure
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StepFailure:
    """Result tag returned by a state-machine step that did not succeed."""

    phase: Phase
    error: BaseException

    @property
    def message(self) -> str:
        return str(self.error) or type(self.error).__name__


# ---------------------------------------------------------------------------
# DeploymentOutcome
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DeploymentOutcome:
    """Result of a successful orchestration run."""

    success: bool
    active_color: Slot
    previous_color: Slot
    version: str
    phases: tuple[str, ...] = ()
    elapsed_seconds: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Caller-facing record, keyed the way pipeline steps publish it."""
        return {
            "success": self.success,
            "activeColor": self.active_color.value,
            "previousColor": self.previous_color.value,
            "imageTag": self.version,
        }
