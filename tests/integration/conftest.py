"""Integration test configuration.

These tests install a real deployment into the cluster of the current
kubeconfig context (override with KUBE_E2E_KUBECONFIG/KUBE_E2E_KUBE_CONTEXT)
and need the ``kubectl`` and ``helm`` binaries on PATH.

Environment Variables:
    KUBE_E2E_CHART_PATH: Path to the chart under test
        (default: deploy/helm/sumologic, relative to the working directory)
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path

import pytest

from kube_e2e.pytest_plugin import feature_runner, runner, runner_config


@pytest.fixture(scope="session")
def chart_path() -> Path:
    """Absolute path to the chart under test."""
    path = Path(os.environ.get("KUBE_E2E_CHART_PATH", "deploy/helm/sumologic")).resolve()
    if not (path / "Chart.yaml").is_file():
        pytest.fail(f"Chart not found at {path}. Set KUBE_E2E_CHART_PATH.")
    return path


@pytest.fixture(scope="session", autouse=True)
def _require_binaries() -> None:
    missing = [binary for binary in ("kubectl", "helm") if shutil.which(binary) is None]
    if missing:
        pytest.fail(f"Integration tests need {', '.join(missing)} on PATH")


__all__ = ["chart_path", "feature_runner", "runner", "runner_config"]
