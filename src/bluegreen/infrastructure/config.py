"""Configuration dataclasses for the orchestrator.

Each config is a plain ``dataclass`` with a ``validate()`` method that raises
``ValueError`` on invalid combinations.  Per-deployment parameters live on
``DeploymentRequest``; this module holds the knobs that stay fixed across
runs (tool paths, settle and probe timings, retry policy).
"""

from __future__ import annotations

import json
import re
from dataclasses import asdict, dataclass, fields
from typing import Any

from bluegreen.domain.values import DeploymentRequest

_DURATION_RE = re.compile(r"^\d+[smh]$")


@dataclass(frozen=True)
class OrchestratorConfig:
    """Parameters shared by every run of an orchestrator.

    Attributes
    ----------
    settle_seconds:
        Fixed wait between the traffic switch and its read-back.
    release_timeout:
        Duration passed to ``helm upgrade --timeout`` (e.g. ``"5m"``).
    probe_timeout:
        Per-instance bound in seconds for one health probe.
    probe_image:
        Image used for in-cluster curl probes.
    route_read_attempts:
        Attempts for reading the routing record before giving up.
    route_read_backoff:
        Initial delay in seconds between routing read attempts; doubles
        after each failure.
    kubectl:
        kubectl executable.
    helm:
        helm executable.
    """

    settle_seconds: float = 10.0
    release_timeout: str = "5m"
    probe_timeout: int = 30
    probe_image: str = "curlimages/curl:latest"
    route_read_attempts: int = 3
    route_read_backoff: float = 1.0
    kubectl: str = "kubectl"
    helm: str = "helm"

    def validate(self) -> None:
        """Raise ``ValueError`` if any field is out of valid range."""
        if self.settle_seconds < 0:
            raise ValueError(f"settle_seconds must be >= 0, got {self.settle_seconds}")
        if not _DURATION_RE.match(self.release_timeout):
            raise ValueError(
                f"release_timeout must look like '300s', '5m' or '1h', "
                f"got '{self.release_timeout}'"
            )
        if self.probe_timeout < 1:
            raise ValueError(f"probe_timeout must be >= 1, got {self.probe_timeout}")
        if self.route_read_attempts < 1:
            raise ValueError(
                f"route_read_attempts must be >= 1, got {self.route_read_attempts}"
            )
        if self.route_read_backoff < 0:
            raise ValueError(
                f"route_read_backoff must be >= 0, got {self.route_read_backoff}"
            )
        if not self.kubectl or not self.helm:
            raise ValueError("kubectl and helm executables must not be empty")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OrchestratorConfig:
        valid_keys = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        cfg = cls(**filtered)
        cfg.validate()
        return cfg


def load_config_from_json(
    json_str: str, request_overrides: dict[str, Any] | None = None
) -> dict[str, Any]:
    """Parse a JSON document into typed config objects.

    Recognized top-level sections are ``orchestrator`` (an
    ``OrchestratorConfig``) and ``request`` (a ``DeploymentRequest``).
    Unknown sections are preserved as raw values.  *request_overrides* are
    laid over the ``request`` section (creating it if absent) before it is
    parsed, so command-line flags win over file values.
    """
    raw = json.loads(json_str)
    if not isinstance(raw, dict):
        raise ValueError("Top-level JSON must be an object")
    if request_overrides:
        base = raw.get("request")
        raw["request"] = {**(base if isinstance(base, dict) else {}), **request_overrides}
    result: dict[str, Any] = {}
    for section, data in raw.items():
        if section == "orchestrator" and isinstance(data, dict):
            result[section] = OrchestratorConfig.from_dict(data)
        elif section == "request" and isinstance(data, dict):
            result[section] = DeploymentRequest.from_dict(data)
        else:
            result[section] = data
    return result
