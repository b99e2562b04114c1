"""Step contract for feature phases.

A step is the atomic unit of work of a feature. It receives the current
ExecutionContext, the reporting handle of the test it runs in and the
static RunnerConfig, and returns the context for the next step.

Steps hold the parameters they need as named fields instead of capturing
them from an enclosing scope, so each step can be constructed and tested
on its own. Side effects must tolerate re-application: outer tooling may
retry Setup.

Example:
    @dataclass(frozen=True)
    class SetRelease(Step):
        release_name: str

        def run(self, ctx, t, config):
            return ctx.set("release_name", self.release_name)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, Optional, Union

if TYPE_CHECKING:
    from kube_e2e.config import RunnerConfig
    from kube_e2e.context import ExecutionContext
    from kube_e2e.reporting import TestHandle

# Signature of a plain-function step
StepFunc = Callable[
    ["ExecutionContext", "TestHandle", "RunnerConfig"],
    Optional["ExecutionContext"],
]


class Step(ABC):
    """Base class for step objects."""

    @property
    def name(self) -> str:
        """Name used in logs and reports. Defaults to the class name."""
        return type(self).__name__

    @abstractmethod
    def run(
        self,
        ctx: ExecutionContext,
        t: TestHandle,
        config: RunnerConfig,
    ) -> ExecutionContext | None:
        """Execute the step.

        Args:
            ctx: Context returned by the previous step.
            t: Reporting handle of the surrounding test.
            config: Static run configuration.

        Returns:
            The context for the next step. None means "unchanged".
        """

    def __call__(
        self,
        ctx: ExecutionContext,
        t: TestHandle,
        config: RunnerConfig,
    ) -> ExecutionContext:
        result = self.run(ctx, t, config)
        return ctx if result is None else result


class FunctionStep(Step):
    """Adapter turning a plain function into a step."""

    def __init__(self, func: StepFunc, name: str | None = None) -> None:
        self.func = func
        self._name = name or getattr(func, "__name__", type(func).__name__)

    @property
    def name(self) -> str:
        return self._name

    def run(
        self,
        ctx: ExecutionContext,
        t: TestHandle,
        config: RunnerConfig,
    ) -> ExecutionContext | None:
        return self.func(ctx, t, config)

    def __repr__(self) -> str:
        return f"FunctionStep({self._name!r})"


StepLike = Union[Step, StepFunc]


def as_step(step: StepLike, name: str | None = None) -> Step:
    """Coerce a step object or plain function into a Step.

    Raises:
        TypeError: If ``step`` is neither a Step nor callable.
    """
    if isinstance(step, Step):
        return step
    if callable(step):
        return FunctionStep(step, name=name)
    msg = f"Expected a Step or callable, got {type(step).__name__}"
    raise TypeError(msg)


__all__ = [
    "FunctionStep",
    "Step",
    "StepFunc",
    "StepLike",
    "as_step",
]
