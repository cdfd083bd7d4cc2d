"""Tests for cluster identifier parsing and context resolution."""

from __future__ import annotations

import pytest

from bluegreen.domain.enums import ClusterProvider
from bluegreen.domain.exceptions import CommandError, UnknownClusterFormat
from bluegreen.infrastructure.cluster import ClusterContextProvider, parse_cluster_id
from bluegreen.testing import RecordingRunner


class TestParseClusterId:

    def test_eks(self) -> None:
        target = parse_cluster_id("eks-us-east-1-prod")
        assert target.provider is ClusterProvider.EKS
        assert target.region == "us-east-1"
        assert target.name == "prod"

    def test_eks_hyphenated_name(self) -> None:
        target = parse_cluster_id("eks-us-west-2-payments-api")
        assert target.region == "us-west-2"
        assert target.name == "payments-api"

    def test_eks_govcloud_region(self) -> None:
        target = parse_cluster_id("eks-us-gov-west-1-core")
        assert target.region == "us-gov-west-1"
        assert target.name == "core"

    def test_gke(self) -> None:
        target = parse_cluster_id("gke-web-us-central1-a-acme")
        assert target.provider is ClusterProvider.GKE
        assert target.name == "web"
        assert target.zone == "us-central1-a"
        assert target.project == "acme"

    def test_gke_hyphenated_name(self) -> None:
        target = parse_cluster_id("gke-my-cluster-europe-west1-b-proj")
        assert target.name == "my-cluster"
        assert target.zone == "europe-west1-b"
        assert target.project == "proj"

    def test_gke_simple_three_part(self) -> None:
        target = parse_cluster_id("gke-a-b-c")
        assert (target.name, target.zone, target.project) == ("a", "b", "c")

    def test_plain_context(self) -> None:
        target = parse_cluster_id("staging-context")
        assert target.provider is ClusterProvider.KUBECONFIG
        assert target.name == "staging-context"

    def test_arn_style_context(self) -> None:
        ident = "arn:aws:eks:us-east-1:123456789012:cluster/prod"
        assert parse_cluster_id(ident).provider is ClusterProvider.KUBECONFIG

    @pytest.mark.parametrize(
        "ident",
        ["", " prod", "prod ", "eks-prod", "eks-", "gke-", "gke-onlyname", "my context", "-prod"],
    )
    def test_rejected(self, ident: str) -> None:
        with pytest.raises(UnknownClusterFormat):
            parse_cluster_id(ident)


class TestClusterContextProvider:

    def test_context_command_eks(self) -> None:
        provider = ClusterContextProvider(RecordingRunner())
        assert provider.context_command("eks-eu-west-1-shop") == [
            "aws", "eks", "update-kubeconfig", "--name", "shop", "--region", "eu-west-1",
        ]

    def test_context_command_gke(self) -> None:
        provider = ClusterContextProvider(RecordingRunner())
        assert provider.context_command("gke-web-us-central1-a-acme") == [
            "gcloud", "container", "clusters", "get-credentials", "web",
            "--zone", "us-central1-a", "--project", "acme",
        ]

    def test_resolve_runs_use_context(self, runner: RecordingRunner) -> None:
        provider = ClusterContextProvider(runner, kubectl="/usr/local/bin/kubectl")
        target = provider.resolve_context("staging-context")
        assert target.provider is ClusterProvider.KUBECONFIG
        assert runner.calls == [
            ("/usr/local/bin/kubectl", "config", "use-context", "staging-context"),
        ]

    def test_invalid_identifier_runs_nothing(self, runner: RecordingRunner) -> None:
        with pytest.raises(UnknownClusterFormat):
            ClusterContextProvider(runner).resolve_context("eks-")
        assert runner.calls == []

    def test_tool_failure_propagates(self, runner: RecordingRunner) -> None:
        runner.script(["aws"], returncode=255, stderr="expired token")
        with pytest.raises(CommandError):
            ClusterContextProvider(runner).resolve_context("eks-us-east-1-prod")
