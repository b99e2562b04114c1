"""kube-e2e: phased feature tests for Kubernetes deployments.

This package provides:
- ExecutionContext: Typed context threaded through feature steps
- Step, FunctionStep: The step contract
- FeatureBuilder, Feature: Setup / Assess / Teardown bundles
- TestRunner, FeatureResult: Feature execution and reporting
- TestHandle: Reporting handle with fail_now / fail_later / eventually
- wait_for_condition, PollingConfig: Eventual-consistency polling
- stepfuncs: Reusable kubectl and helm steps

Example:
    >>> from kube_e2e import FeatureBuilder, TestRunner
    >>> from kube_e2e.stepfuncs import SetKubectlNamespace, KubectlApply
    >>> feature = (
    ...     FeatureBuilder("installation")
    ...     .setup(SetKubectlNamespace("test-ns"))
    ...     .setup(KubectlApply("manifest.yaml"))
    ...     .assess("pods are running", check_pods)
    ...     .build()
    ... )
    >>> TestRunner().test(feature)

See Also:
    - kube_e2e.runner: Phase state machine
    - kube_e2e.pytest_plugin: Session-scoped runner fixture
"""

from __future__ import annotations

__version__ = "0.1.0"

from kube_e2e.config import RunnerConfig
from kube_e2e.context import ExecutionContext
from kube_e2e.errors import (
    FatalStepError,
    FeatureBuildError,
    FeatureFailedError,
    KubeE2EError,
    MissingBindingError,
    PollingTimeoutError,
)
from kube_e2e.feature import Feature, FeatureBuilder
from kube_e2e.polling import PollingConfig, wait_for_condition
from kube_e2e.reporting import TestHandle
from kube_e2e.runner import AssessResult, FeatureResult, RunState, StepStatus, TestRunner
from kube_e2e.steps import FunctionStep, Step

__all__: list[str] = [
    "AssessResult",
    "ExecutionContext",
    "FatalStepError",
    "Feature",
    "FeatureBuildError",
    "FeatureBuilder",
    "FeatureFailedError",
    "FeatureResult",
    "FunctionStep",
    "KubeE2EError",
    "MissingBindingError",
    "PollingConfig",
    "PollingTimeoutError",
    "RunState",
    "RunnerConfig",
    "Step",
    "StepStatus",
    "TestHandle",
    "TestRunner",
    "wait_for_condition",
]
