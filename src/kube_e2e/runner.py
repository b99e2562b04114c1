"""Feature runner.

Executes a Feature through the states

    INIT -> SETUP -> ASSESSING -> TEARING_DOWN -> DONE

- Setup steps run in order, each receiving the previous step's context. A
  failure skips the rest of Setup and all of Assess.
- Each Assess step runs as a sub-test with its own reporting handle. A
  fatal failure skips the remaining Assess steps.
- Teardown steps always all run, whatever happened before. Their errors are
  logged and recorded but never change the outcome.

The outcome is a failure if Setup failed or any Assess step failed, fatally
or softly.

The runner is a session object: build one per test session and pass it to
each test (see ``kube_e2e.pytest_plugin``).

Example:
    runner = TestRunner(RunnerConfig())
    result = runner.run(feature)
    result.raise_for_failure()
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum

import structlog

from kube_e2e.config import RunnerConfig
from kube_e2e.context import ExecutionContext
from kube_e2e.errors import FatalStepError, FeatureFailedError
from kube_e2e.feature import Feature
from kube_e2e.reporting import TestHandle

logger = structlog.get_logger(__name__)


class RunState(str, Enum):
    """Lifecycle state of a feature run."""

    INIT = "init"
    SETUP = "setup"
    ASSESSING = "assessing"
    TEARING_DOWN = "tearing_down"
    DONE = "done"


class StepStatus(str, Enum):
    """Outcome of a single assessment."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class AssessResult:
    """Result of one labeled assessment.

    Attributes:
        label: Assessment label.
        status: PASSED, FAILED or SKIPPED.
        failures: Failure messages recorded by the assessment.
        fatal: Whether the assessment aborted with a fatal failure.
        duration: Wall-clock seconds spent in the assessment.
    """

    label: str
    status: StepStatus
    failures: list[str] = field(default_factory=list)
    fatal: bool = False
    duration: float = 0.0

    @property
    def failed(self) -> bool:
        return self.status == StepStatus.FAILED


@dataclass
class FeatureResult:
    """Result of one feature run.

    Attributes:
        feature: Feature name.
        states: States visited, in order.
        setup_failed_step: Name of the Setup step that failed, if any.
        setup_failures: Failure messages recorded during Setup.
        assessments: One result per assessment, in declared order.
        teardown_errors: (step name, message) pairs of failed Teardown steps.
        executed: "phase:step" entries for every step that was started.
        diagnostics: Named diagnostic outputs attached by steps.
    """

    feature: str
    states: list[RunState] = field(default_factory=lambda: [RunState.INIT])
    setup_failed_step: str | None = None
    setup_failures: list[str] = field(default_factory=list)
    assessments: list[AssessResult] = field(default_factory=list)
    teardown_errors: list[tuple[str, str]] = field(default_factory=list)
    executed: list[str] = field(default_factory=list)
    diagnostics: dict[str, str] = field(default_factory=dict)

    @property
    def state(self) -> RunState:
        return self.states[-1]

    @property
    def setup_failed(self) -> bool:
        return self.setup_failed_step is not None or bool(self.setup_failures)

    @property
    def failed_assessments(self) -> list[AssessResult]:
        return [a for a in self.assessments if a.failed]

    @property
    def passed(self) -> bool:
        return not self.setup_failed and not self.failed_assessments

    def report(self) -> str:
        """Render a human-readable summary of the run."""
        outcome = "PASSED" if self.passed else "FAILED"
        lines = [f"Feature '{self.feature}' {outcome}"]

        if self.setup_failed:
            where = f" at step '{self.setup_failed_step}'" if self.setup_failed_step else ""
            lines.append(f"  setup: FAILED{where}")
            lines.extend(f"      - {message}" for message in self.setup_failures)

        for assessment in self.assessments:
            lines.append(f"  assess '{assessment.label}': {assessment.status.value.upper()}")
            lines.extend(f"      - {message}" for message in assessment.failures)

        if self.teardown_errors:
            lines.append(f"  teardown: {len(self.teardown_errors)} error(s), outcome unaffected")
            lines.extend(f"      - {name}: {message}" for name, message in self.teardown_errors)

        for name, content in self.diagnostics.items():
            lines.append(f"--- {name} ---")
            lines.append(content)

        return "\n".join(lines)

    def raise_for_failure(self) -> None:
        """Raise FeatureFailedError if the run failed.

        Raises:
            FeatureFailedError: If Setup or any assessment failed.
        """
        if not self.passed:
            raise FeatureFailedError(self)


class TestRunner:
    """Runs features with a shared static configuration.

    Attributes:
        config: Static configuration passed to every step.
    """

    # Keep pytest from collecting this class
    __test__ = False

    def __init__(self, config: RunnerConfig | None = None) -> None:
        self.config = config or RunnerConfig()

    def test(self, feature: Feature) -> FeatureResult:
        """Run a feature and raise if it failed.

        Raises:
            FeatureFailedError: If the run failed.
        """
        result = self.run(feature)
        result.raise_for_failure()
        return result

    def run(self, feature: Feature) -> FeatureResult:
        """Run a feature and return its result without raising.

        Teardown runs even if Setup or Assess is interrupted by an exception
        that is not an ``Exception`` (e.g. KeyboardInterrupt).
        """
        result = FeatureResult(feature=feature.name)
        handle = TestHandle(feature.name, polling=self.config.polling)
        ctx = ExecutionContext()
        log = logger.bind(feature=feature.name)
        log.info("runner.feature_started")

        try:
            self._transition(result, RunState.SETUP, log)
            ctx = self._run_setup(feature, ctx, handle, result, log)
            if result.setup_failed_step is None:
                self._transition(result, RunState.ASSESSING, log)
                ctx = self._run_assessments(feature, ctx, handle, result, log)
        finally:
            self._transition(result, RunState.TEARING_DOWN, log)
            self._run_teardown(feature, ctx, handle, result, log)
            result.diagnostics.update(handle.attachments)
            self._transition(result, RunState.DONE, log)

        log.info(
            "runner.feature_finished",
            passed=result.passed,
            failed_assessments=[a.label for a in result.failed_assessments],
        )
        return result

    def _transition(
        self,
        result: FeatureResult,
        state: RunState,
        log: structlog.typing.FilteringBoundLogger,
    ) -> None:
        log.debug("runner.state", previous=result.state.value, state=state.value)
        result.states.append(state)

    def _run_setup(
        self,
        feature: Feature,
        ctx: ExecutionContext,
        handle: TestHandle,
        result: FeatureResult,
        log: structlog.typing.FilteringBoundLogger,
    ) -> ExecutionContext:
        for entry in feature.setup:
            result.executed.append(f"setup:{entry.name}")
            before = len(handle.failures)
            try:
                ctx = entry.step(ctx, handle, self.config)
            except Exception as e:
                if entry.ignore_failure:
                    log.debug("runner.setup_step_ignored", step=entry.name, error=str(e))
                    del handle.failures[before:]
                    continue
                if not isinstance(e, FatalStepError):
                    handle.failures.append(_describe(e))
                result.setup_failed_step = entry.name
                result.setup_failures = list(handle.failures)
                log.error("runner.setup_step_failed", step=entry.name, error=str(e))
                return ctx
        result.setup_failures = list(handle.failures)
        if result.setup_failures:
            log.warning("runner.setup_soft_failures", failures=result.setup_failures)
        return ctx

    def _run_assessments(
        self,
        feature: Feature,
        ctx: ExecutionContext,
        handle: TestHandle,
        result: FeatureResult,
        log: structlog.typing.FilteringBoundLogger,
    ) -> ExecutionContext:
        aborted = False
        for assessment in feature.assessments:
            if aborted:
                result.assessments.append(
                    AssessResult(label=assessment.label, status=StepStatus.SKIPPED)
                )
                continue

            result.executed.append(f"assess:{assessment.label}")
            sub = handle.child(assessment.label)
            start = time.monotonic()
            fatal = False
            try:
                ctx = assessment.step(ctx, sub, self.config)
            except FatalStepError:
                fatal = True
            except Exception as e:
                sub.failures.append(_describe(e))
                fatal = True

            status = StepStatus.FAILED if sub.failed else StepStatus.PASSED
            result.assessments.append(
                AssessResult(
                    label=assessment.label,
                    status=status,
                    failures=list(sub.failures),
                    fatal=fatal,
                    duration=time.monotonic() - start,
                )
            )
            for name, content in sub.attachments.items():
                result.diagnostics[f"{assessment.label}: {name}"] = content
            log.info(
                "runner.assessment_finished",
                assessment=assessment.label,
                status=status.value,
                fatal=fatal,
            )
            if fatal:
                aborted = True

        failed = {a.label: a.failures for a in result.failed_assessments}
        if failed:
            log.warning("runner.assessments_failed", failures=failed)
        return ctx

    def _run_teardown(
        self,
        feature: Feature,
        ctx: ExecutionContext,
        handle: TestHandle,
        result: FeatureResult,
        log: structlog.typing.FilteringBoundLogger,
    ) -> None:
        for entry in feature.teardown:
            result.executed.append(f"teardown:{entry.name}")
            before = len(handle.failures)
            error: Exception | None = None
            try:
                ctx = entry.step(ctx, handle, self.config)
            except Exception as e:  # noqa: BLE001
                error = e

            messages = handle.failures[before:]
            del handle.failures[before:]
            if error is not None and not isinstance(error, FatalStepError):
                messages.append(_describe(error))
            if not messages:
                continue

            if entry.ignore_failure:
                log.debug("runner.teardown_step_ignored", step=entry.name, errors=messages)
            else:
                log.warning("runner.teardown_step_failed", step=entry.name, errors=messages)
                result.teardown_errors.extend((entry.name, m) for m in messages)


def _describe(error: Exception) -> str:
    return f"{type(error).__name__}: {error}"


__all__ = [
    "AssessResult",
    "FeatureResult",
    "RunState",
    "StepStatus",
    "TestRunner",
]
