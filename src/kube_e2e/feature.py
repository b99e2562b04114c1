"""Feature definition and builder.

A feature is one test scenario: ordered Setup steps, ordered labeled Assess
steps and ordered Teardown steps. Features are assembled with the chainable
FeatureBuilder and are immutable once built.

Example:
    feature = (
        FeatureBuilder("installation")
        .setup(SetKubectlNamespace(namespace))
        .setup(KubectlApply(manifest))
        .assess("secret is created", check_secret)
        .teardown(KubectlDeleteNamespace(namespace))
        .build()
    )
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

import structlog

from kube_e2e.errors import FeatureBuildError
from kube_e2e.steps import Step, StepLike, as_step

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RegisteredStep:
    """A step as registered in a phase.

    Attributes:
        step: The step to execute.
        name: Name used in logs and reports.
        ignore_failure: If True, an exception raised by the step is logged
            and the phase continues as if the step had succeeded.
    """

    step: Step
    name: str
    ignore_failure: bool = False


@dataclass(frozen=True)
class Assessment:
    """A labeled Assess step. Each runs as a separate sub-test."""

    label: str
    step: Step


@dataclass(frozen=True)
class Feature:
    """Immutable bundle of Setup, Assess and Teardown steps."""

    name: str
    setup: tuple[RegisteredStep, ...] = ()
    assessments: tuple[Assessment, ...] = ()
    teardown: tuple[RegisteredStep, ...] = ()
    labels: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def assessment_labels(self) -> list[str]:
        return [a.label for a in self.assessments]


class FeatureBuilder:
    """Append-only builder for Feature.

    Every method returns the builder so calls can be chained.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._setup: list[RegisteredStep] = []
        self._assessments: list[Assessment] = []
        self._teardown: list[RegisteredStep] = []
        self._labels: dict[str, str] = {}

    def with_label(self, key: str, value: str) -> FeatureBuilder:
        """Attach a descriptive label (e.g. "type": "installation")."""
        self._labels[key] = value
        return self

    def setup(
        self,
        step: StepLike,
        *,
        name: str | None = None,
        ignore_failure: bool = False,
    ) -> FeatureBuilder:
        """Append a Setup step."""
        self._setup.append(_register(step, name, ignore_failure))
        return self

    def assess(self, label: str, step: StepLike) -> FeatureBuilder:
        """Append a labeled Assess step.

        Raises:
            FeatureBuildError: If the label is empty or already used.
        """
        if not label:
            raise FeatureBuildError(self.name, "assessment label must not be empty")
        if any(a.label == label for a in self._assessments):
            raise FeatureBuildError(self.name, f"duplicate assessment label '{label}'")
        self._assessments.append(Assessment(label=label, step=as_step(step, name=label)))
        return self

    def teardown(
        self,
        step: StepLike,
        *,
        name: str | None = None,
        ignore_failure: bool = False,
    ) -> FeatureBuilder:
        """Append a Teardown step."""
        self._teardown.append(_register(step, name, ignore_failure))
        return self

    def build(self) -> Feature:
        """Freeze the registered steps into a Feature.

        Raises:
            FeatureBuildError: If no Assess step was registered.
        """
        if not self._assessments:
            raise FeatureBuildError(self.name, "at least one assessment is required")
        feature = Feature(
            name=self.name,
            setup=tuple(self._setup),
            assessments=tuple(self._assessments),
            teardown=tuple(self._teardown),
            labels=MappingProxyType(dict(self._labels)),
        )
        logger.debug(
            "feature.built",
            feature=self.name,
            setup=len(feature.setup),
            assessments=len(feature.assessments),
            teardown=len(feature.teardown),
        )
        return feature

    # Alias reading naturally at the end of a builder chain
    feature = build


def _register(step: StepLike, name: str | None, ignore_failure: bool) -> RegisteredStep:
    resolved = as_step(step, name=name)
    return RegisteredStep(
        step=resolved,
        name=name or resolved.name,
        ignore_failure=ignore_failure,
    )


__all__ = [
    "Assessment",
    "Feature",
    "FeatureBuilder",
    "RegisteredStep",
]
