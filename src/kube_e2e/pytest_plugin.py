"""pytest integration for kube-e2e.

Register in a conftest with ``pytest_plugins = ["kube_e2e.pytest_plugin"]``.

Fixtures:
    runner_config: Session-wide RunnerConfig loaded from the environment
    runner: Session-wide TestRunner, configured logging included
    feature_runner: Runs a feature and fails the test with its report
"""

from __future__ import annotations

from collections.abc import Callable

import pytest

from kube_e2e.config import RunnerConfig
from kube_e2e.feature import Feature
from kube_e2e.logging import configure_logging
from kube_e2e.runner import FeatureResult, TestRunner


@pytest.fixture(scope="session")
def runner_config() -> RunnerConfig:
    """Static run configuration, read once per session."""
    return RunnerConfig()


@pytest.fixture(scope="session")
def runner(runner_config: RunnerConfig) -> TestRunner:
    """The session's runner, passed explicitly into each test."""
    configure_logging(runner_config.log_level, json_output=runner_config.log_json)
    return TestRunner(runner_config)


@pytest.fixture
def feature_runner(runner: TestRunner) -> Callable[[Feature], FeatureResult]:
    """Run a feature; fail the current test with the feature report on failure."""

    def _run(feature: Feature) -> FeatureResult:
        result = runner.run(feature)
        if not result.passed:
            pytest.fail(result.report(), pytrace=False)
        return result

    return _run


__all__ = ["feature_runner", "runner", "runner_config"]
