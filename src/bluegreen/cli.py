"""Command-line interface for blue-green deployments.

Provides subcommands for running a deployment, inspecting which slot is live,
and printing version information.  Intended to be called from a CI/CD
pipeline step; the exit code is the pipeline signal.

Entry point
-----------
The ``main()`` function is registered as a console script in
``pyproject.toml``::

    [project.scripts]
    bluegreen = "bluegreen.cli:main"

Exit codes: ``0`` success, ``1`` deployment failure (traffic restored to the
previous color), ``2`` invalid configuration (nothing was touched).

Usage examples::

    bluegreen deploy --cluster eks-us-east-1-prod --namespace shop \\
        --app checkout --chart ./charts/checkout --version 1.4.2
    bluegreen deploy --config deploy.json --version 1.4.3 --json
    bluegreen status --namespace shop --app checkout
    bluegreen info
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from bluegreen.domain.exceptions import BlueGreenError, ConfigurationError
from bluegreen.infrastructure.config import OrchestratorConfig, load_config_from_json
from bluegreen.orchestrator import BlueGreenOrchestrator
from bluegreen.presentation.console import DeploymentConsole

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2

# argparse dest -> DeploymentRequest field
_REQUEST_FLAGS = {
    "cluster": "cluster",
    "namespace": "namespace",
    "app": "app_name",
    "chart": "chart",
    "release_version": "version",
    "health_check_path": "health_check_path",
    "health_check_timeout": "health_check_timeout",
    "health_check_port": "health_check_port",
    "traffic_switch_delay": "traffic_switch_delay",
    "replicas": "replica_count",
}


def _build_parser() -> argparse.ArgumentParser:
    """Build the top-level argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="bluegreen",
        description="Blue-green deployment orchestrator for Kubernetes and Helm.",
    )
    parser.add_argument(
        "--version",
        dest="show_version",
        action="store_true",
        default=False,
        help="Show version and exit.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Log executed commands (DEBUG level).",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available subcommands")

    # -- deploy ------------------------------------------------------------
    deploy_parser = subparsers.add_parser(
        "deploy",
        help="Roll a new version into the inactive slot and switch traffic.",
        description=(
            "Deploy VERSION to the inactive slot, gate on readiness and health, "
            "switch traffic, and roll back on failure."
        ),
    )
    deploy_parser.add_argument(
        "--config",
        type=str,
        default=None,
        help=(
            "JSON file with optional 'orchestrator' and 'request' sections.  "
            "Flags given on the command line override the request section."
        ),
    )
    deploy_parser.add_argument("--cluster", type=str, default=None, help="Cluster identifier.")
    deploy_parser.add_argument("--namespace", type=str, default=None, help="Target namespace.")
    deploy_parser.add_argument("--app", type=str, default=None, help="Application name.")
    deploy_parser.add_argument("--chart", type=str, default=None, help="Helm chart reference.")
    deploy_parser.add_argument(
        "--version",
        dest="release_version",
        type=str,
        default=None,
        help="Version (image tag) to deploy.",
    )
    deploy_parser.add_argument(
        "--health-check-path",
        type=str,
        default=None,
        help="Health endpoint probed on every instance. (default: /health)",
    )
    deploy_parser.add_argument(
        "--health-check-timeout",
        type=int,
        default=None,
        help="Seconds to wait for the rollout to become ready. (default: 300)",
    )
    deploy_parser.add_argument(
        "--health-check-port",
        type=int,
        default=None,
        help="Port of the health endpoint. (default: 8080)",
    )
    deploy_parser.add_argument(
        "--traffic-switch-delay",
        type=int,
        default=None,
        help="Seconds to wait between a healthy slot and the switch. (default: 30)",
    )
    deploy_parser.add_argument(
        "--replicas",
        type=int,
        default=None,
        help="Instances to run in the new slot. (default: 3)",
    )
    deploy_parser.add_argument(
        "--keep-old",
        action="store_true",
        default=False,
        help="Do not scale the previous slot down after a verified switch.",
    )
    deploy_parser.add_argument(
        "--set",
        dest="set_values",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Extra chart value; may be repeated.",
    )
    deploy_parser.add_argument(
        "--no-context",
        action="store_true",
        default=False,
        help="Use the current kubectl context instead of resolving --cluster.",
    )
    deploy_parser.add_argument(
        "--progress",
        action="store_true",
        default=False,
        help="Print each phase as it is entered.",
    )
    _add_output_flags(deploy_parser)

    # -- status ------------------------------------------------------------
    status_parser = subparsers.add_parser(
        "status",
        help="Show which slot receives traffic.",
        description="Show the active slot and the ready instances of both slots.",
    )
    status_parser.add_argument("--namespace", type=str, required=True, help="Namespace.")
    status_parser.add_argument("--app", type=str, required=True, help="Application name.")
    status_parser.add_argument(
        "--cluster",
        type=str,
        default=None,
        help="Resolve this cluster first; the current context is used otherwise.",
    )
    _add_output_flags(status_parser)

    # -- info --------------------------------------------------------------
    subparsers.add_parser(
        "info",
        help="Show version and tooling defaults.",
        description="Display the version and the default orchestrator settings.",
    )

    return parser


def _add_output_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Print a JSON record instead of a table.",
    )
    parser.add_argument(
        "--plain",
        action="store_true",
        default=False,
        help="Plain text output without colour.",
    )


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _make_orchestrator(
    config: OrchestratorConfig, resolve_context: bool
) -> BlueGreenOrchestrator:
    return BlueGreenOrchestrator.for_kubernetes(config, resolve_context=resolve_context)


def _parse_set_values(pairs: list[str]) -> dict[str, str]:
    values: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ConfigurationError(
                f"--set expects KEY=VALUE, got '{pair}'", field_name="set_values"
            )
        values[key.strip()] = value
    return values


def _request_overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides = {
        field: getattr(args, dest)
        for dest, field in _REQUEST_FLAGS.items()
        if getattr(args, dest) is not None
    }
    if args.keep_old:
        overrides["scale_down_old"] = False
    if args.set_values:
        overrides["set_values"] = _parse_set_values(args.set_values)
    return overrides


# =========================================================================
# Subcommand handlers
# =========================================================================

def _cmd_deploy(args: argparse.Namespace) -> int:
    """Handle the ``deploy`` subcommand."""
    try:
        source = Path(args.config).read_text(encoding="utf-8") if args.config else "{}"
        loaded = load_config_from_json(source, request_overrides=_request_overrides(args))
        config = loaded.get("orchestrator") or OrchestratorConfig()
        request = loaded.get("request")
        if request is None:
            raise ConfigurationError("cluster is required", field_name="cluster")
        orchestrator = _make_orchestrator(config, resolve_context=not args.no_context)
    except (ConfigurationError, ValueError, OSError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIG

    console = DeploymentConsole(use_rich=not args.plain)
    on_progress = console.print_progress if args.progress and not args.json else None
    try:
        outcome = orchestrator.deploy(request, on_progress=on_progress)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIG
    except BlueGreenError as exc:
        if args.json:
            print(json.dumps({
                "success": False,
                "error": type(exc).__name__,
                "message": str(exc),
                "imageTag": request.version,
            }))
        else:
            console.print_failure(exc)
        return EXIT_FAILED

    if args.json:
        print(json.dumps(outcome.to_dict()))
    else:
        console.print_outcome(outcome)
    return EXIT_OK


def _cmd_status(args: argparse.Namespace) -> int:
    """Handle the ``status`` subcommand."""
    orchestrator = _make_orchestrator(OrchestratorConfig(), resolve_context=True)
    try:
        if args.cluster:
            orchestrator.use_cluster(args.cluster)
        report = orchestrator.slot_report(args.namespace, args.app)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIG
    except BlueGreenError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_FAILED

    if args.json:
        print(json.dumps(report))
    else:
        DeploymentConsole(use_rich=not args.plain).print_status(report)
    return EXIT_OK


def _cmd_info(args: argparse.Namespace) -> int:
    """Handle the ``info`` subcommand."""
    from bluegreen import __version__

    print(f"bluegreen v{__version__}")
    print()
    print("Orchestrator defaults:")
    for key, value in OrchestratorConfig().to_dict().items():
        print(f"  {key}: {value}")
    print()
    print("Cluster identifiers:")
    print("  eks-<region>-<name>            -- aws eks update-kubeconfig")
    print("  gke-<name>-<zone>-<project>    -- gcloud container clusters get-credentials")
    print("  <context>                      -- kubectl config use-context")
    return EXIT_OK


# =========================================================================
# Main entry point
# =========================================================================

def main(argv: list[str] | None = None) -> None:
    """CLI entry point.

    Parameters
    ----------
    argv:
        Command-line arguments.  Defaults to ``sys.argv[1:]``.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.show_version:
        from bluegreen import __version__
        print(f"bluegreen {__version__}")
        sys.exit(EXIT_OK)

    if args.command is None:
        parser.print_help()
        sys.exit(EXIT_OK)

    _configure_logging(args.verbose)

    handlers: dict[str, Any] = {
        "deploy": _cmd_deploy,
        "status": _cmd_status,
        "info": _cmd_info,
    }

    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(EXIT_FAILED)

    try:
        exit_code = handler(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        exit_code = 130
    except Exception as exc:
        logger.exception("Unexpected error")
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = EXIT_FAILED

    sys.exit(exit_code)
