"""Reporting handle passed to every step.

The handle is how a step reports failure:

- ``fail_now``: record the failure and abort the current phase by raising
  ``FatalStepError``.
- ``fail_later``: record the failure and keep going.
- ``eventually``: poll a condition; on timeout, ``fail_now``.
- ``eventually_soft``: poll a condition; on timeout, ``fail_later``.

Each assessment runs with its own child handle so failures are recorded
under its label, while ``failed`` on the parent reflects the whole run.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import NoReturn

import structlog

from kube_e2e.errors import FatalStepError, PollingTimeoutError
from kube_e2e.polling import PollingConfig, wait_for_condition

logger = structlog.get_logger(__name__)


class TestHandle:
    """Per-test failure recorder, the engine's equivalent of a test object.

    Attributes:
        name: Feature name or assessment label.
        failures: Failure messages recorded on this handle, in order.
        logs: Informational messages recorded with ``log``.
        attachments: Named diagnostic outputs recorded with ``attach``.
    """

    # Keep pytest from collecting this class
    __test__ = False

    def __init__(
        self,
        name: str,
        parent: TestHandle | None = None,
        polling: PollingConfig | None = None,
    ) -> None:
        self.name = name
        self.parent = parent
        self.polling = polling or (parent.polling if parent else PollingConfig())
        self.failures: list[str] = []
        self.logs: list[str] = []
        self.attachments: dict[str, str] = {}
        self._children: list[TestHandle] = []

    @property
    def failed(self) -> bool:
        """Whether this handle or any child recorded a failure."""
        return bool(self.failures) or any(child.failed for child in self._children)

    def child(self, name: str) -> TestHandle:
        """Create a handle for a sub-test (one assessment)."""
        handle = TestHandle(name, parent=self, polling=self.polling)
        self._children.append(handle)
        return handle

    def log(self, message: str) -> None:
        """Record an informational message."""
        self.logs.append(message)
        logger.info("test.log", test=self.name, message=message)

    def attach(self, name: str, content: str) -> None:
        """Attach diagnostic output (e.g. a cluster state dump) to the report."""
        self.attachments[name] = content

    def fail_later(self, message: str) -> None:
        """Record a failure without interrupting the step."""
        self.failures.append(message)
        logger.warning("test.failed_soft", test=self.name, message=message)

    def fail_now(self, message: str) -> NoReturn:
        """Record a failure and abort the current phase.

        Raises:
            FatalStepError: Always.
        """
        self.failures.append(message)
        logger.error("test.failed_fatal", test=self.name, message=message)
        raise FatalStepError(message, step=self.name)

    def eventually(
        self,
        condition: Callable[[], bool],
        timeout: float | None = None,
        interval: float | None = None,
        description: str = "condition",
    ) -> None:
        """Require that ``condition`` becomes true before ``timeout``.

        Timeout and interval default to this handle's polling configuration. A
        default interval that would not fit an explicit timeout is cut to half
        of it.

        Raises:
            FatalStepError: If the condition never held.
        """
        error = self._poll(condition, timeout, interval, description)
        if error is not None:
            self.fail_now(str(error))

    def eventually_soft(
        self,
        condition: Callable[[], bool],
        timeout: float | None = None,
        interval: float | None = None,
        description: str = "condition",
    ) -> bool:
        """Expect that ``condition`` becomes true before ``timeout``.

        Returns:
            True if the condition held, False if a failure was recorded.
        """
        error = self._poll(condition, timeout, interval, description)
        if error is not None:
            self.fail_later(str(error))
            return False
        return True

    def _poll(
        self,
        condition: Callable[[], bool],
        timeout: float | None,
        interval: float | None,
        description: str,
    ) -> PollingTimeoutError | None:
        resolved_timeout = self.polling.timeout if timeout is None else timeout
        resolved_interval = self.polling.interval if interval is None else interval
        # A default interval never exceeds an explicit, shorter timeout
        if interval is None and resolved_interval >= resolved_timeout:
            resolved_interval = resolved_timeout / 2
        config = PollingConfig(
            timeout=resolved_timeout,
            interval=resolved_interval,
            description=description,
        )
        try:
            wait_for_condition(condition, config=config)
        except PollingTimeoutError as e:
            return e
        return None

    def __repr__(self) -> str:
        return f"TestHandle({self.name!r}, failed={self.failed})"


__all__ = ["TestHandle"]
