"""Unit tests for cluster state snapshots."""

from __future__ import annotations

import subprocess
from unittest.mock import patch

import pytest

from kube_e2e.k8s.kubectl import KubectlOptions
from kube_e2e.k8s.state import STATE_QUERIES, collect_cluster_state

RUN_KUBECTL_E = "kube_e2e.k8s.state.run_kubectl_e"


def completed(
    stdout: str = "", stderr: str = "", returncode: int = 0
) -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.mark.requirement("E2E-038")
class TestCollectClusterState:
    """Tests for collect_cluster_state()."""

    def test_one_section_per_query(self) -> None:
        with patch(RUN_KUBECTL_E, return_value=completed("output\n")) as mock_run:
            state = collect_cluster_state(KubectlOptions(namespace="ns-a"))

        assert mock_run.call_count == len(STATE_QUERIES)
        assert state.count("(namespace=ns-a)") == len(STATE_QUERIES)
        assert "$ kubectl get all -o wide (namespace=ns-a)\noutput" in state

    def test_failed_query_shows_stderr(self) -> None:
        with patch(RUN_KUBECTL_E, return_value=completed(stderr="forbidden", returncode=1)):
            state = collect_cluster_state(KubectlOptions(namespace="ns-a"))

        assert "forbidden" in state

    def test_never_raises(self) -> None:
        with patch(RUN_KUBECTL_E, side_effect=FileNotFoundError("kubectl")):
            state = collect_cluster_state(KubectlOptions())

        assert "<unavailable:" in state
        assert "(namespace=default)" in state

    def test_timeout_is_reported(self) -> None:
        with patch(RUN_KUBECTL_E, side_effect=subprocess.TimeoutExpired("kubectl", 120)):
            state = collect_cluster_state(KubectlOptions(namespace="ns-a"))

        assert state.count("<unavailable:") == len(STATE_QUERIES)
