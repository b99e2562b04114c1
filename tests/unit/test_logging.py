"""Unit tests for structlog configuration."""

from __future__ import annotations

import json
from collections.abc import Iterator

import pytest
import structlog

from kube_e2e.logging import configure_logging


@pytest.fixture(autouse=True)
def reset_structlog() -> Iterator[None]:
    yield
    structlog.reset_defaults()


@pytest.mark.requirement("E2E-061")
class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_json_output(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging("INFO", json_output=True)

        structlog.get_logger("kube_e2e.test").info("runner.feature_started", feature="install")

        line = capsys.readouterr().out.strip().splitlines()[-1]
        event = json.loads(line)
        assert event["event"] == "runner.feature_started"
        assert event["feature"] == "install"
        assert event["level"] == "info"
        assert "timestamp" in event

    def test_level_filters_lower_events(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging("WARNING", json_output=True)

        log = structlog.get_logger("kube_e2e.test")
        log.info("runner.state")
        log.warning("runner.teardown_step_failed")

        out = capsys.readouterr().out
        assert "runner.state" not in out
        assert "runner.teardown_step_failed" in out

    def test_level_is_case_insensitive(self) -> None:
        configure_logging("debug")

    def test_unknown_level(self) -> None:
        with pytest.raises(ValueError, match="Unknown log level"):
            configure_logging("VERBOSE")
