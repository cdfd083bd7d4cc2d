"""Tests for DeploymentRequest, HealthVerdict, StepFailure and DeploymentOutcome."""

from __future__ import annotations

import pytest

from bluegreen.domain.enums import Phase, Slot
from bluegreen.domain.exceptions import ConfigurationError, RolloutTimeout
from bluegreen.domain.values import (
    DeploymentOutcome,
    DeploymentRequest,
    HealthVerdict,
    ProbeResult,
    StepFailure,
)


def _request(**overrides) -> DeploymentRequest:
    fields = {
        "cluster": "eks-us-east-1-prod",
        "namespace": "shop",
        "app_name": "checkout",
        "chart": "./charts/checkout",
        "version": "1.1.0",
    }
    fields.update(overrides)
    return DeploymentRequest(**fields)


class TestDeploymentRequestDefaults:

    def test_defaults(self) -> None:
        request = _request()
        assert request.health_check_path == "/health"
        assert request.health_check_timeout == 300
        assert request.traffic_switch_delay == 30
        assert request.replica_count == 3
        assert request.scale_down_old is True
        assert request.health_check_port == 8080
        assert dict(request.set_values) == {}

    def test_frozen(self) -> None:
        request = _request()
        with pytest.raises(AttributeError):
            request.version = "2.0.0"  # type: ignore[misc]

    def test_release_name(self) -> None:
        request = _request()
        assert request.release_name(Slot.BLUE) == "checkout-blue"
        assert request.release_name(Slot.GREEN) == "checkout-green"


class TestDeploymentRequestValidate:

    def test_valid_request_passes(self) -> None:
        _request().validate()

    @pytest.mark.parametrize("name", ["cluster", "namespace", "app_name", "chart", "version"])
    def test_empty_required_field(self, name: str) -> None:
        with pytest.raises(ConfigurationError) as excinfo:
            _request(**{name: ""}).validate()
        assert excinfo.value.field_name == name

    def test_whitespace_only_is_empty(self) -> None:
        with pytest.raises(ConfigurationError):
            _request(namespace="   ").validate()

    def test_health_path_must_be_absolute(self) -> None:
        with pytest.raises(ConfigurationError) as excinfo:
            _request(health_check_path="health").validate()
        assert excinfo.value.field_name == "health_check_path"

    def test_zero_timeout_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            _request(health_check_timeout=0).validate()

    def test_negative_delay_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            _request(traffic_switch_delay=-1).validate()

    def test_zero_delay_allowed(self) -> None:
        _request(traffic_switch_delay=0).validate()

    def test_zero_replicas_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            _request(replica_count=0).validate()

    def test_port_out_of_range(self) -> None:
        with pytest.raises(ConfigurationError):
            _request(health_check_port=70000).validate()

    def test_non_string_field_named_as_wrong_type(self) -> None:
        with pytest.raises(ConfigurationError, match="version must be a string, got int"):
            _request(version=42).validate()

    def test_non_string_health_path_rejected(self) -> None:
        with pytest.raises(ConfigurationError) as excinfo:
            _request(health_check_path=["/health"]).validate()
        assert excinfo.value.field_name == "health_check_path"


class TestDeploymentRequestFromDict:

    def test_pipeline_spellings(self) -> None:
        request = DeploymentRequest.from_dict({
            "cluster": "gke-web-us-central1-a-acme",
            "namespace": "shop",
            "appName": "checkout",
            "helmChart": "oci://charts/checkout",
            "imageTag": "2.0.0",
            "healthCheckTimeout": "120",
            "trafficSwitchDelay": 0,
            "scaleDownOld": "false",
        })
        assert request.app_name == "checkout"
        assert request.chart == "oci://charts/checkout"
        assert request.version == "2.0.0"
        assert request.health_check_timeout == 120
        assert request.traffic_switch_delay == 0
        assert request.scale_down_old is False

    def test_unknown_keys_and_none_ignored(self) -> None:
        request = DeploymentRequest.from_dict({
            **_request().to_dict(),
            "notifyChannel": "#deploys",
            "replica_count": None,
        })
        assert request.replica_count == 3

    def test_missing_required_field(self) -> None:
        data = _request().to_dict()
        del data["chart"]
        with pytest.raises(ConfigurationError) as excinfo:
            DeploymentRequest.from_dict(data)
        assert excinfo.value.field_name == "chart"

    def test_invalid_number(self) -> None:
        with pytest.raises(ConfigurationError, match="invalid numeric value"):
            DeploymentRequest.from_dict({**_request().to_dict(), "replicaCount": "three"})

    def test_set_values_stringified(self) -> None:
        request = DeploymentRequest.from_dict({
            **_request().to_dict(),
            "setValues": {"resources.limits.cpu": 2},
        })
        assert dict(request.set_values) == {"resources.limits.cpu": "2"}

    def test_validates_once_at_boundary(self) -> None:
        with pytest.raises(ConfigurationError):
            DeploymentRequest.from_dict({**_request().to_dict(), "healthCheckPath": "ready"})

    def test_numeric_image_tag_stringified(self) -> None:
        request = DeploymentRequest.from_dict({**_request().to_dict(), "imageTag": 42})
        assert request.version == "42"

    def test_numeric_scalars_stringified(self) -> None:
        request = DeploymentRequest.from_dict({
            **_request().to_dict(),
            "version": 1.5,
            "namespace": 7,
        })
        assert request.version == "1.5"
        assert request.namespace == "7"

    def test_structured_value_in_string_field_rejected(self) -> None:
        with pytest.raises(ConfigurationError, match="health_check_path must be a string"):
            DeploymentRequest.from_dict({
                **_request().to_dict(),
                "healthCheckPath": {"path": "/health"},
            })

    def test_set_values_from_list(self) -> None:
        request = DeploymentRequest.from_dict({
            **_request().to_dict(),
            "setValues": ["ingress.enabled=true", "env.MODE=a=b"],
        })
        assert dict(request.set_values) == {"ingress.enabled": "true", "env.MODE": "a=b"}

    @pytest.mark.parametrize("value", [["no-separator"], 5, "k=v"])
    def test_malformed_set_values(self, value) -> None:
        with pytest.raises(ConfigurationError) as excinfo:
            DeploymentRequest.from_dict({**_request().to_dict(), "setValues": value})
        assert excinfo.value.field_name == "set_values"


class TestHealthVerdict:

    def test_empty_probe_set_fails(self) -> None:
        verdict = HealthVerdict.from_probes([])
        assert verdict.passed is False
        assert verdict.reason == "no instances found"

    def test_all_healthy_passes(self) -> None:
        verdict = HealthVerdict.from_probes([
            ProbeResult(address="10.0.0.1", healthy=True),
            ProbeResult(address="10.0.0.2", healthy=True),
        ])
        assert verdict.passed is True
        assert verdict.unhealthy_addresses == ()

    def test_single_unhealthy_fails_whole_verdict(self) -> None:
        verdict = HealthVerdict.from_probes([
            ProbeResult(address="10.0.0.1", healthy=True),
            ProbeResult(address="10.0.0.2", healthy=False, detail="HTTP 503"),
            ProbeResult(address="10.0.0.3", healthy=True),
        ])
        assert verdict.passed is False
        assert verdict.unhealthy_addresses == ("10.0.0.2",)
        assert "1/3" in verdict.reason


class TestStepFailure:

    def test_message_from_error(self) -> None:
        failure = StepFailure(phase=Phase.AWAITING_READY, error=RolloutTimeout("not ready"))
        assert failure.message == "not ready"
        assert failure.phase is Phase.AWAITING_READY

    def test_message_falls_back_to_class_name(self) -> None:
        failure = StepFailure(phase=Phase.SWITCHING, error=RuntimeError())
        assert failure.message == "RuntimeError"


class TestDeploymentOutcome:

    def test_to_dict(self) -> None:
        outcome = DeploymentOutcome(
            success=True,
            active_color=Slot.GREEN,
            previous_color=Slot.BLUE,
            version="1.1.0",
        )
        assert outcome.to_dict() == {
            "success": True,
            "activeColor": "green",
            "previousColor": "blue",
            "imageTag": "1.1.0",
        }
