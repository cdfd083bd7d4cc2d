"""Tests for the per-application deployment lock."""

from __future__ import annotations

import pytest

from bluegreen.domain.exceptions import ConcurrentDeploymentError
from bluegreen.infrastructure.locks import DeploymentLockRegistry


class TestDeploymentLockRegistry:

    def test_hold_and_release(self) -> None:
        registry = DeploymentLockRegistry()
        with registry.hold("shop", "checkout"):
            assert registry.is_locked("shop", "checkout")
        assert not registry.is_locked("shop", "checkout")

    def test_second_holder_rejected(self) -> None:
        registry = DeploymentLockRegistry()
        with registry.hold("shop", "checkout"):
            with pytest.raises(ConcurrentDeploymentError) as excinfo:
                with registry.hold("shop", "checkout"):
                    pass
        assert excinfo.value.app_name == "checkout"

    def test_independent_keys(self) -> None:
        registry = DeploymentLockRegistry()
        with registry.hold("shop", "checkout"):
            with registry.hold("shop", "cart"):
                assert registry.is_locked("shop", "cart")
            with registry.hold("other", "checkout"):
                pass

    def test_released_after_error(self) -> None:
        registry = DeploymentLockRegistry()
        with pytest.raises(RuntimeError):
            with registry.hold("shop", "checkout"):
                raise RuntimeError("step failed")
        assert not registry.is_locked("shop", "checkout")
