#!/usr/bin/env python3
"""Example 02: Using the orchestrator from a CI/CD pipeline step.

Demonstrates:
- Building a DeploymentRequest from loosely typed pipeline parameters
- Wiring the kubectl/helm collaborators with BlueGreenOrchestrator.for_kubernetes
- Streaming phase progress and publishing the outcome record as JSON
- Mapping the result onto the step's exit code

Needs kubectl, helm and credentials for the target cluster.

Run:
    PYTHONPATH=src python examples/02_pipeline_step.py
"""

from __future__ import annotations

import json
import logging
import os
import sys

from bluegreen.domain.exceptions import BlueGreenError, ConfigurationError
from bluegreen.domain.values import DeploymentRequest
from bluegreen.infrastructure.config import OrchestratorConfig
from bluegreen.orchestrator import BlueGreenOrchestrator


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    params = {
        "cluster": os.environ.get("DEPLOY_CLUSTER", "eks-us-east-1-staging"),
        "namespace": os.environ.get("DEPLOY_NAMESPACE", "shop"),
        "appName": os.environ.get("APP_NAME", "checkout"),
        "helmChart": os.environ.get("HELM_CHART", "./charts/checkout"),
        "imageTag": os.environ.get("IMAGE_TAG", "latest"),
        "trafficSwitchDelay": os.environ.get("TRAFFIC_SWITCH_DELAY", "30"),
        "scaleDownOld": os.environ.get("SCALE_DOWN_OLD", "true"),
    }

    try:
        request = DeploymentRequest.from_dict(params)
    except ConfigurationError as exc:
        print(f"invalid parameters: {exc}", file=sys.stderr)
        return 2

    orchestrator = BlueGreenOrchestrator.for_kubernetes(OrchestratorConfig(release_timeout="10m"))

    def show(record: dict) -> None:
        marker = "FAILED" if record["failed"] else "ok"
        print(f"[{record['node']}] {marker} {record['reason']}".rstrip())

    try:
        outcome = orchestrator.deploy(request, on_progress=show)
    except BlueGreenError as exc:
        print(json.dumps({"success": False, "error": str(exc), "imageTag": request.version}))
        return 1

    print(json.dumps(outcome.to_dict()))
    return 0


if __name__ == "__main__":
    sys.exit(main())
