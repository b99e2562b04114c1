"""Exception hierarchy for kube-e2e.

All exceptions inherit from KubeE2EError, allowing callers to catch every
engine error with a single except clause.

Exception Hierarchy:
    KubeE2EError (base)
    ├── MissingBindingError     # Context key read before any step set it
    ├── FeatureBuildError       # Feature definition is unusable
    ├── FatalStepError          # fail_now() aborted the current phase
    ├── PollingTimeoutError     # Condition never held before the deadline
    ├── FeatureFailedError      # Feature run finished with failures
    ├── ClusterError (base for cluster tooling)
    │   ├── KubectlError        # kubectl exited non-zero
    │   │   └── ResourceNotFoundError  # Object does not exist (yet)
    │   └── HelmError           # helm exited non-zero
    └── StructuralError (base for errors polling must not retry)
        └── MalformedQueryError # Bad selector, unknown flag, bad manifest

Example:
    >>> from kube_e2e.errors import MissingBindingError
    >>> raise MissingBindingError("namespace")
    Traceback (most recent call last):
        ...
    MissingBindingError: No value bound for context key 'namespace'
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kube_e2e.runner import FeatureResult


class KubeE2EError(Exception):
    """Base exception for all kube-e2e errors."""


class MissingBindingError(KubeE2EError, KeyError):
    """Raised when a context key is read before any step bound it.

    Reading an unbound key is a programming error in the feature
    definition (a step ordering mistake), not a runtime condition.

    Attributes:
        key: The context key that was requested.
    """

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"No value bound for context key '{key}'")

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return str(self.args[0])


class FeatureBuildError(KubeE2EError):
    """Raised when a feature cannot be built from the registered steps.

    Attributes:
        feature: Name of the feature being built.
        reason: Why the feature is invalid.
    """

    def __init__(self, feature: str, reason: str) -> None:
        self.feature = feature
        self.reason = reason
        super().__init__(f"Invalid feature '{feature}': {reason}")


class FatalStepError(KubeE2EError):
    """Raised by ``TestHandle.fail_now`` to abort the current phase.

    Attributes:
        message: Failure message recorded on the handle.
        step: Name of the step (or assessment label) that failed, if known.
    """

    def __init__(self, message: str, step: str | None = None) -> None:
        self.message = message
        self.step = step
        prefix = f"[{step}] " if step else ""
        super().__init__(f"{prefix}{message}")


class PollingTimeoutError(KubeE2EError, TimeoutError):
    """Raised when a polling operation times out.

    Attributes:
        description: What was being waited for
        timeout: How long we waited
        last_error: Last exception encountered during polling (if any)
    """

    def __init__(
        self,
        description: str,
        timeout: float,
        last_error: Exception | None = None,
    ) -> None:
        self.description = description
        self.timeout = timeout
        self.last_error = last_error
        message = f"Timeout waiting for {description} after {timeout:.1f}s"
        if last_error:
            message += f" (last error: {last_error})"
        super().__init__(message)


class FeatureFailedError(KubeE2EError, AssertionError):
    """Raised when a feature run finished with a failed outcome.

    Subclasses AssertionError so test frameworks report it as a test
    failure rather than an error.

    Attributes:
        result: The FeatureResult of the failed run.
    """

    def __init__(self, result: FeatureResult) -> None:
        self.result = result
        super().__init__(result.report())


class ClusterError(KubeE2EError):
    """Base exception for failures of external cluster tooling."""


class KubectlError(ClusterError):
    """Raised when a kubectl invocation exits non-zero.

    Attributes:
        kubectl_args: kubectl arguments (without the binary name).
        returncode: Process exit code.
        stderr: Captured standard error.
    """

    def __init__(self, args: Sequence[str], returncode: int, stderr: str) -> None:
        self.kubectl_args = list(args)
        self.returncode = returncode
        self.stderr = stderr.strip()
        super().__init__(
            f"kubectl {' '.join(self.kubectl_args)} failed "
            f"(exit {returncode}): {self.stderr}"
        )


class ResourceNotFoundError(KubectlError):
    """Raised when the requested object does not exist.

    While polling this is the expected transient state of a resource that
    the cluster has not created yet.
    """


class HelmError(ClusterError):
    """Raised when a helm invocation exits non-zero.

    Attributes:
        helm_args: helm arguments (without the binary name).
        returncode: Process exit code.
        stderr: Captured standard error.
    """

    def __init__(self, args: Sequence[str], returncode: int, stderr: str) -> None:
        self.helm_args = list(args)
        self.returncode = returncode
        self.stderr = stderr.strip()
        super().__init__(
            f"helm {' '.join(self.helm_args)} failed (exit {returncode}): {self.stderr}"
        )


class StructuralError(KubeE2EError):
    """Base exception for errors that retrying can never fix.

    Polling loops propagate these immediately instead of treating them as
    a not-yet-true observation.
    """


class MalformedQueryError(StructuralError, KubectlError):
    """Raised when kubectl rejects the query itself.

    Examples are an unparsable label selector, an unknown flag or an
    unknown resource type.
    """


__all__ = [
    "ClusterError",
    "FatalStepError",
    "FeatureBuildError",
    "FeatureFailedError",
    "HelmError",
    "KubeE2EError",
    "KubectlError",
    "MalformedQueryError",
    "MissingBindingError",
    "PollingTimeoutError",
    "ResourceNotFoundError",
    "StructuralError",
]
