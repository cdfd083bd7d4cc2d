"""Typed views over ``kubectl ... -o json`` output.

Only the fields the orchestrator reads are modelled; everything else in the
API objects is ignored.  Parsing goes through Pydantic so that a malformed or
truncated document fails loudly instead of silently yielding defaults.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _KubeModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ObjectMeta(_KubeModel):
    name: str = ""
    namespace: str = ""
    labels: dict[str, str] = Field(default_factory=dict)
    deletion_timestamp: str | None = Field(default=None, alias="deletionTimestamp")


# -- Service ------------------------------------------------------------------

class ServiceSpec(_KubeModel):
    selector: dict[str, str] = Field(default_factory=dict)


class Service(_KubeModel):
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    spec: ServiceSpec = Field(default_factory=ServiceSpec)


# -- Pods ---------------------------------------------------------------------

_FINISHED_PHASES = frozenset({"Succeeded", "Failed"})


class PodStatus(_KubeModel):
    phase: str = ""
    pod_ip: str | None = Field(default=None, alias="podIP")


class Pod(_KubeModel):
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    status: PodStatus = Field(default_factory=PodStatus)


class PodList(_KubeModel):
    items: list[Pod] = Field(default_factory=list)

    def live_pods(self) -> list[Pod]:
        """Pods that are neither terminating nor finished, in listing order."""
        return [
            pod
            for pod in self.items
            if pod.metadata.deletion_timestamp is None
            and pod.status.phase not in _FINISHED_PHASES
        ]


# -- Deployment ---------------------------------------------------------------

class DeploymentStatus(_KubeModel):
    replicas: int = 0
    ready_replicas: int = Field(default=0, alias="readyReplicas")


class Deployment(_KubeModel):
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    status: DeploymentStatus = Field(default_factory=DeploymentStatus)


def is_not_found(stderr: str) -> bool:
    """True when kubectl reported that the addressed resource does not exist."""
    text = stderr.lower()
    return "notfound" in text or "not found" in text
