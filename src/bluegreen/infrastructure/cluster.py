"""Cluster context resolution.

Turns a logical cluster identifier into an active kubectl context.  The
supported naming conventions form the closed ``ClusterProvider`` enum; each
provider has exactly one entry in ``_CONTEXT_COMMANDS`` building the command
that installs credentials for it.

Conventions
-----------
``eks-<region>-<name>``
    ``aws eks update-kubeconfig --name <name> --region <region>``
``gke-<name>-<zone>-<project>``
    ``gcloud container clusters get-credentials <name> --zone <zone> --project <project>``
anything else that is a valid context name
    ``kubectl config use-context <id>``
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass

from bluegreen.domain.enums import ClusterProvider
from bluegreen.domain.exceptions import UnknownClusterFormat
from bluegreen.infrastructure.shell import CommandRunner

logger = logging.getLogger(__name__)

_AWS_REGION = r"[a-z]{2}(?:-gov)?-[a-z]+-\d"
_GCP_ZONE = r"[a-z]+-[a-z]+\d+(?:-[a-z])?"
_NAME = r"[a-z0-9](?:[a-z0-9-]*[a-z0-9])?"

_EKS_PATTERNS = (
    re.compile(rf"^eks-(?P<region>{_AWS_REGION})-(?P<name>{_NAME})$"),
    re.compile(rf"^eks-(?P<region>[a-z0-9]+)-(?P<name>{_NAME})$"),
)
_GKE_PATTERNS = (
    re.compile(rf"^gke-(?P<name>{_NAME}?)-(?P<zone>{_GCP_ZONE})-(?P<project>{_NAME})$"),
    re.compile(r"^gke-(?P<name>[a-z0-9]+)-(?P<zone>[a-z0-9]+)-(?P<project>[a-z0-9]+)$"),
)
_CONTEXT_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._@:/-]*$")


@dataclass(frozen=True)
class ClusterTarget:
    """A parsed cluster identifier."""

    provider: ClusterProvider
    name: str
    region: str = ""
    zone: str = ""
    project: str = ""


def parse_cluster_id(cluster_id: str) -> ClusterTarget:
    """Classify *cluster_id* by naming convention.

    Raises ``UnknownClusterFormat`` for empty identifiers, identifiers that
    carry an ``eks-``/``gke-`` prefix without the matching structure, and
    anything that is not a legal kubectl context name.
    """
    ident = (cluster_id or "").strip()
    if not ident or ident != cluster_id:
        raise UnknownClusterFormat(
            f"cluster identifier {cluster_id!r} is empty or has surrounding whitespace",
            cluster_id=cluster_id or "",
        )

    if ident.startswith("eks-"):
        for pattern in _EKS_PATTERNS:
            match = pattern.match(ident)
            if match:
                return ClusterTarget(
                    provider=ClusterProvider.EKS,
                    name=match["name"],
                    region=match["region"],
                )
        raise UnknownClusterFormat(
            f"EKS cluster identifier must look like eks-<region>-<name>, got {ident!r}",
            cluster_id=ident,
        )

    if ident.startswith("gke-"):
        for pattern in _GKE_PATTERNS:
            match = pattern.match(ident)
            if match:
                return ClusterTarget(
                    provider=ClusterProvider.GKE,
                    name=match["name"],
                    zone=match["zone"],
                    project=match["project"],
                )
        raise UnknownClusterFormat(
            "GKE cluster identifier must look like gke-<name>-<zone>-<project>, "
            f"got {ident!r}",
            cluster_id=ident,
        )

    if _CONTEXT_RE.match(ident):
        return ClusterTarget(provider=ClusterProvider.KUBECONFIG, name=ident)

    raise UnknownClusterFormat(
        f"cluster identifier {ident!r} matches no supported naming convention",
        cluster_id=ident,
    )


def _eks_command(target: ClusterTarget, kubectl: str) -> list[str]:
    return [
        "aws", "eks", "update-kubeconfig",
        "--name", target.name,
        "--region", target.region,
    ]


def _gke_command(target: ClusterTarget, kubectl: str) -> list[str]:
    return [
        "gcloud", "container", "clusters", "get-credentials", target.name,
        "--zone", target.zone,
        "--project", target.project,
    ]


def _kubeconfig_command(target: ClusterTarget, kubectl: str) -> list[str]:
    return [kubectl, "config", "use-context", target.name]


_CONTEXT_COMMANDS: dict[ClusterProvider, Callable[[ClusterTarget, str], list[str]]] = {
    ClusterProvider.EKS: _eks_command,
    ClusterProvider.GKE: _gke_command,
    ClusterProvider.KUBECONFIG: _kubeconfig_command,
}


class ClusterContextProvider:
    """Points subsequent kubectl/helm invocations at a cluster.

    Parameters
    ----------
    runner:
        Command runner used to install credentials / switch context.
    kubectl:
        kubectl executable for the plain-context case.
    """

    def __init__(self, runner: CommandRunner, kubectl: str = "kubectl") -> None:
        self._runner = runner
        self._kubectl = kubectl

    def context_command(self, cluster_id: str) -> list[str]:
        """Return the command that would activate *cluster_id*, without running it."""
        target = parse_cluster_id(cluster_id)
        return _CONTEXT_COMMANDS[target.provider](target, self._kubectl)

    def resolve_context(self, cluster_id: str) -> ClusterTarget:
        """Activate *cluster_id* as the current context and return its parse."""
        target = parse_cluster_id(cluster_id)
        command = _CONTEXT_COMMANDS[target.provider](target, self._kubectl)
        logger.info("Resolving %s cluster context for %s", target.provider.value, cluster_id)
        self._runner.run(command, timeout=120)
        return target
