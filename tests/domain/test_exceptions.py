"""Tests for the domain exception hierarchy."""

from __future__ import annotations

from bluegreen.domain.exceptions import (
    BlueGreenError,
    CommandError,
    CommandTimeout,
    ConfigurationError,
    HealthCheckFailed,
    RollbackStepFailed,
    UnknownClusterFormat,
)


class TestHierarchy:

    def test_unknown_cluster_is_configuration_error(self) -> None:
        exc = UnknownClusterFormat("bad id", cluster_id="eks-")
        assert isinstance(exc, ConfigurationError)
        assert isinstance(exc, BlueGreenError)
        assert exc.field_name == "cluster"
        assert exc.cluster_id == "eks-"

    def test_command_timeout_is_command_error(self) -> None:
        exc = CommandTimeout("slow", command=("kubectl", "get"), timeout=5.0)
        assert isinstance(exc, CommandError)
        assert exc.command == ("kubectl", "get")

    def test_details_default_to_empty(self) -> None:
        assert BlueGreenError("boom").details == {}

    def test_health_check_failed_carries_addresses(self) -> None:
        exc = HealthCheckFailed(slot="green", unhealthy=("10.0.2.1",))
        assert str(exc) == "health checks failed"
        assert exc.unhealthy == ("10.0.2.1",)

    def test_rollback_step_keeps_cause(self) -> None:
        cause = RuntimeError("api down")
        exc = RollbackStepFailed("restore_route failed", step="restore_route", cause=cause)
        assert exc.cause is cause
        assert exc.step == "restore_route"
