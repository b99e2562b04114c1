"""Root-level test configuration for kube-e2e.

Unit tests (tests/unit/) exercise the engine with fake steps and mocked
kubectl/helm processes. Integration tests (tests/integration/) need a
Kubernetes cluster, kubectl and helm, and are deselected by default:

    pytest -m integration tests/integration
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from kube_e2e.config import RunnerConfig
from kube_e2e.context import ExecutionContext
from kube_e2e.k8s.kubectl import KubectlOptions
from kube_e2e.reporting import TestHandle
from kube_e2e.runner import TestRunner


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers",
        "integration: Integration tests requiring a Kubernetes cluster",
    )
    config.addinivalue_line(
        "markers",
        "requirement(id): Mark test as covering a specific requirement",
    )


@pytest.fixture
def fast_config(tmp_path: Any) -> RunnerConfig:
    """RunnerConfig with short polling for unit tests."""
    return RunnerConfig(poll_interval=0.05, poll_timeout=0.5, output_dir=tmp_path)


@pytest.fixture
def runner(fast_config: RunnerConfig) -> TestRunner:
    """Runner using the fast configuration."""
    return TestRunner(fast_config)


@pytest.fixture
def handle(fast_config: RunnerConfig) -> TestHandle:
    """Root reporting handle with fast polling."""
    return TestHandle("unit", polling=fast_config.polling)


@pytest.fixture
def kube_ctx() -> ExecutionContext:
    """Context with a namespace and kubectl options bound."""
    return (
        ExecutionContext()
        .set("namespace", "test-ns")
        .set("kubectl_options", KubectlOptions(namespace="test-ns"))
    )


@pytest.fixture
def recorder() -> Callable[[str], Callable[..., None]]:
    """Factory for steps that append their name to a shared call log.

    The log is available as ``recorder.calls``.
    """
    calls: list[str] = []

    def make(name: str) -> Callable[..., None]:
        def step(ctx: ExecutionContext, t: TestHandle, config: RunnerConfig) -> None:
            calls.append(name)

        step.__name__ = name
        return step

    make.calls = calls  # type: ignore[attr-defined]
    return make
