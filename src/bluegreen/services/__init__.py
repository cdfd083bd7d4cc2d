"""Collaborator services driven by the blue-green state machine.

Color routing, slot deployment and health verification, each as an abstract
contract plus a Kubernetes-backed implementation.
"""

from bluegreen.services.color_router import BaseColorRouter, KubectlColorRouter
from bluegreen.services.deployment_driver import BaseDeploymentDriver, HelmDeploymentDriver
from bluegreen.services.health_verifier import (
    BaseHealthVerifier,
    HealthVerifier,
    HttpProber,
    InstanceProber,
    KubectlCurlProber,
)

__all__ = [
    "BaseColorRouter",
    "KubectlColorRouter",
    "BaseDeploymentDriver",
    "HelmDeploymentDriver",
    "BaseHealthVerifier",
    "HealthVerifier",
    "InstanceProber",
    "KubectlCurlProber",
    "HttpProber",
]
