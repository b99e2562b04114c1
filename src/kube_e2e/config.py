"""Run configuration for kube-e2e.

Static configuration shared by every step of every feature in a session.
Loaded from environment variables with the ``KUBE_E2E_`` prefix.

Environment Variables:
    KUBE_E2E_KUBECONFIG: kubeconfig path (default: kubectl's own lookup)
    KUBE_E2E_KUBE_CONTEXT: kubeconfig context (default: current context)
    KUBE_E2E_OUTPUT_DIR: Directory for rendered manifests and state dumps
    KUBE_E2E_POLL_INTERVAL: Default poll interval in seconds (default: 1.0)
    KUBE_E2E_POLL_TIMEOUT: Default poll timeout in seconds (default: 60.0)
    KUBE_E2E_DUMP_STATE_ON_FAILURE: Print cluster state on failure (default: true)
    KUBE_E2E_LOG_LEVEL: Minimum log level (default: INFO)
    KUBE_E2E_LOG_JSON: Emit JSON logs instead of console output (default: false)

Example:
    >>> config = RunnerConfig(poll_timeout=120.0)
    >>> config.kubectl_options("my-namespace").namespace
    'my-namespace'
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing_extensions import Self

from kube_e2e.k8s.kubectl import KubectlOptions
from kube_e2e.polling import PollingConfig


class RunnerConfig(BaseSettings):
    """Static configuration passed to every step."""

    model_config = SettingsConfigDict(
        env_prefix="KUBE_E2E_",
        frozen=True,
        extra="ignore",
    )

    kubeconfig: Path | None = Field(
        default=None,
        description="kubeconfig path",
    )
    kube_context: str | None = Field(
        default=None,
        description="kubeconfig context",
    )
    output_dir: Path = Field(
        default_factory=lambda: Path(tempfile.gettempdir()),
        description="Directory for rendered manifests and state dumps",
    )
    poll_interval: float = Field(
        default=1.0,
        gt=0.0,
        description="Default poll interval in seconds",
    )
    poll_timeout: float = Field(
        default=60.0,
        gt=0.0,
        description="Default poll timeout in seconds",
    )
    dump_state_on_failure: bool = Field(
        default=True,
        description="Print cluster state when a feature fails",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Minimum log level",
    )
    log_json: bool = Field(
        default=False,
        description="Emit JSON logs",
    )

    @model_validator(mode="after")
    def _poll_interval_below_timeout(self) -> Self:
        if self.poll_interval >= self.poll_timeout:
            msg = (
                f"poll_interval ({self.poll_interval}s) must be less than "
                f"poll_timeout ({self.poll_timeout}s)"
            )
            raise ValueError(msg)
        return self

    @property
    def polling(self) -> PollingConfig:
        """Default polling configuration for assertions."""
        return PollingConfig(timeout=self.poll_timeout, interval=self.poll_interval)

    def kubectl_options(self, namespace: str | None = None) -> KubectlOptions:
        """Build kubectl connection options for a namespace."""
        return KubectlOptions(
            config_path=self.kubeconfig,
            context_name=self.kube_context,
            namespace=namespace,
        )


__all__ = ["RunnerConfig"]
