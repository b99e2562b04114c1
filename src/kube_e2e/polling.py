"""Polling utilities for eventually-consistent cluster state.

A reconciling cluster passes through intermediate states on its way to the
desired one (a replica count may go 0 -> 1 -> 3), so a single point-in-time
check is not enough. These helpers evaluate a condition repeatedly and only
the observation made at or before the deadline matters.

Functions:
    wait_for_condition: Poll until a condition is true or timeout
    wait_for_resource: Poll until a named object exists

Example:
    from kube_e2e.polling import wait_for_condition

    assert wait_for_condition(
        lambda: len(list_resources(opts, "pods", label_selector=sel)) == 3,
        timeout=60.0,
        interval=1.0,
        description="3 pods running",
    )
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing_extensions import Self

from kube_e2e.errors import (
    FatalStepError,
    MissingBindingError,
    PollingTimeoutError,
    StructuralError,
)
from kube_e2e.k8s.kubectl import KubectlOptions, get

logger = structlog.get_logger(__name__)


class PollingConfig(BaseModel):
    """Configuration for one polling assertion.

    Attributes:
        timeout: Maximum wait time in seconds. Defaults to 30.0.
        interval: Poll interval in seconds. Defaults to 0.5. Must be
            strictly positive and strictly less than ``timeout``.
        description: Description for error messages. Defaults to "condition".

    Example:
        config = PollingConfig(timeout=60.0, interval=1.0)
        wait_for_condition(predicate, config=config)
    """

    model_config = ConfigDict(frozen=True)

    timeout: float = Field(
        default=30.0,
        gt=0.0,
        description="Maximum wait time in seconds",
    )
    interval: float = Field(
        default=0.5,
        gt=0.0,
        description="Poll interval in seconds",
    )
    description: str = Field(
        default="condition",
        min_length=1,
        description="Description for error messages",
    )

    @model_validator(mode="after")
    def _interval_below_timeout(self) -> Self:
        if self.interval >= self.timeout:
            msg = f"interval ({self.interval}s) must be less than timeout ({self.timeout}s)"
            raise ValueError(msg)
        return self


def wait_for_condition(
    condition: Callable[[], bool],
    timeout: float = 30.0,
    interval: float = 0.5,
    description: str = "condition",
    *,
    config: PollingConfig | None = None,
    raise_on_timeout: bool = True,
) -> bool:
    """Poll until condition is True or timeout.

    The condition is evaluated immediately and then every ``interval``
    seconds. An exception raised by the condition counts as "not yet true"
    and is kept for the timeout message. Errors no amount of waiting can
    fix are re-raised at once: ``StructuralError`` (a malformed query),
    ``MissingBindingError`` (a context key nothing has set) and
    ``FatalStepError`` (``fail_now`` called from inside the condition).

    Args:
        condition: Callable returning True when the condition is met.
        timeout: Maximum wait time in seconds. Defaults to 30.0.
        interval: Poll interval in seconds. Defaults to 0.5.
        description: Description for error messages. Defaults to "condition".
        config: Optional PollingConfig overriding timeout/interval/description.
        raise_on_timeout: If True, raise PollingTimeoutError on timeout.
            If False, return False on timeout. Defaults to True.

    Returns:
        True if condition was met within timeout.
        False if raise_on_timeout=False and timeout occurred.

    Raises:
        ValueError: If interval is not positive or not below timeout.
        PollingTimeoutError: If condition not met within timeout and
            raise_on_timeout=True.
        StructuralError: If the condition raised one.
        MissingBindingError: If the condition read an unbound context key.
        FatalStepError: If the condition called ``fail_now``.
    """
    if config is None:
        config = PollingConfig(timeout=timeout, interval=interval, description=description)

    start_time = time.monotonic()
    last_error: Exception | None = None
    attempts = 0

    while True:
        attempts += 1
        try:
            if condition():
                logger.debug(
                    "polling.condition_met",
                    description=config.description,
                    attempts=attempts,
                    elapsed=round(time.monotonic() - start_time, 3),
                )
                return True
        except (StructuralError, MissingBindingError, FatalStepError):
            raise
        except Exception as e:  # noqa: BLE001
            last_error = e

        elapsed = time.monotonic() - start_time
        if elapsed >= config.timeout:
            logger.info(
                "polling.timeout",
                description=config.description,
                timeout=config.timeout,
                attempts=attempts,
                last_error=str(last_error) if last_error else None,
            )
            if raise_on_timeout:
                raise PollingTimeoutError(config.description, config.timeout, last_error)
            return False

        # Sleep for interval, but don't exceed remaining time
        remaining = config.timeout - elapsed
        sleep_time = min(config.interval, remaining)
        if sleep_time > 0:
            time.sleep(sleep_time)


def wait_for_resource(
    options: KubectlOptions,
    kind: str,
    name: str,
    timeout: float = 60.0,
    interval: float = 1.0,
    *,
    raise_on_timeout: bool = True,
) -> dict[str, Any] | None:
    """Wait until a named object exists and return it.

    Args:
        options: Connection options; the namespace scopes the lookup.
        kind: Resource kind (e.g., "secret").
        name: Object name.
        timeout: Maximum wait time in seconds.
        interval: Poll interval in seconds.
        raise_on_timeout: If True, raise on timeout. Defaults to True.

    Returns:
        The object as a dictionary, or None if raise_on_timeout=False and
        it never appeared.

    Raises:
        PollingTimeoutError: If the object did not appear within timeout and
            raise_on_timeout=True.
    """
    found: dict[str, Any] = {}

    def fetch() -> bool:
        found.update(get(options, kind, name))
        return True

    if wait_for_condition(
        fetch,
        timeout=timeout,
        interval=interval,
        description=f"{kind}/{name} in {options.namespace or 'default'}",
        raise_on_timeout=raise_on_timeout,
    ):
        return found
    return None


# Module exports
__all__ = [
    "PollingConfig",
    "PollingTimeoutError",
    "wait_for_condition",
    "wait_for_resource",
]
