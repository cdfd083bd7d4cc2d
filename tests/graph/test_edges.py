"""Tests for conditional edge functions."""

from __future__ import annotations

from bluegreen.domain.enums import Phase
from bluegreen.domain.exceptions import RolloutTimeout
from bluegreen.domain.values import StepFailure
from bluegreen.graph.edges import route_after_idle, route_after_step


def _failure() -> StepFailure:
    return StepFailure(phase=Phase.AWAITING_READY, error=RolloutTimeout("not ready"))


class TestRouteAfterIdle:

    def test_deploy_when_no_failure(self) -> None:
        assert route_after_idle({"failure": None}) == "deploying"

    def test_deploy_when_failure_missing(self) -> None:
        state: dict = {}
        assert route_after_idle(state) == "deploying"

    def test_failed_on_failure(self) -> None:
        assert route_after_idle({"failure": _failure()}) == "failed"


class TestRouteAfterStep:

    def test_continue_when_no_failure(self) -> None:
        assert route_after_step({"failure": None}) == "continue"

    def test_rollback_on_failure(self) -> None:
        assert route_after_step({"failure": _failure()}) == "rolling_back"
