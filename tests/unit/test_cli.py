"""Unit tests for the kube-e2e CLI."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from kube_e2e.cli.main import cli
from kube_e2e.cli.utils import ExitCode
from kube_e2e.errors import KubectlError

VALID_NS = "non-helm-default-20261018t101500-a1b2c3d4"


@pytest.mark.requirement("E2E-070")
class TestRootGroup:
    def test_help_lists_commands(self) -> None:
        result = CliRunner().invoke(cli, ["--help"])

        assert result.exit_code == 0
        for command in ("names", "state", "cleanup"):
            assert command in result.output

    def test_version(self) -> None:
        result = CliRunner().invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "kube-e2e" in result.output


@pytest.mark.requirement("E2E-071")
class TestNamesCommand:
    """Tests for `kube-e2e names`."""

    def test_text_output(self) -> None:
        result = CliRunner().invoke(cli, ["names", "--prefix", "non_helm_default"])

        assert result.exit_code == 0
        lines = result.output.strip().splitlines()
        assert lines[0].startswith("namespace=non-helm-default-")
        assert lines[1].startswith("release=non-helm-default-")

    def test_json_output(self) -> None:
        result = CliRunner().invoke(cli, ["names", "-p", "sumo", "-o", "json"])

        assert result.exit_code == 0
        names = json.loads(result.output)
        assert names["namespace"].startswith("sumo-")
        assert names["release"].startswith("sumo-")


@pytest.mark.requirement("E2E-072")
class TestStateCommand:
    """Tests for `kube-e2e state`."""

    def test_prints_state(self) -> None:
        with patch("kube_e2e.cli.commands.collect_cluster_state", return_value="pod/a Running"):
            result = CliRunner().invoke(cli, ["state", "--namespace", VALID_NS])

        assert result.exit_code == 0
        assert "pod/a Running" in result.output

    def test_writes_file(self, tmp_path: Path) -> None:
        output = tmp_path / "state.txt"
        with patch("kube_e2e.cli.commands.collect_cluster_state", return_value="pod/a Running"):
            result = CliRunner().invoke(
                cli, ["state", "-n", VALID_NS, "--output-file", str(output)]
            )

        assert result.exit_code == 0
        assert output.read_text() == "pod/a Running"

    def test_invalid_namespace(self) -> None:
        result = CliRunner().invoke(cli, ["state", "--namespace", "Bad_NS"])

        assert result.exit_code == ExitCode.VALIDATION_ERROR
        assert "Invalid namespace name" in result.output

    def test_namespace_required(self) -> None:
        result = CliRunner().invoke(cli, ["state"])
        assert result.exit_code == ExitCode.USAGE_ERROR


@pytest.mark.requirement("E2E-073")
class TestCleanupCommand:
    """Tests for `kube-e2e cleanup`."""

    def test_deletes_namespace(self) -> None:
        with patch("kube_e2e.cli.commands.delete_namespace") as mock_delete:
            result = CliRunner().invoke(cli, ["cleanup", "--namespace", VALID_NS, "--wait"])

        assert result.exit_code == 0
        assert mock_delete.call_args[0][1] == VALID_NS
        assert mock_delete.call_args.kwargs == {"wait": True}
        assert f"Deleted namespace {VALID_NS}" in result.output

    def test_cluster_error_exit_code(self) -> None:
        error = KubectlError(["delete", "namespace", VALID_NS], 1, "connection refused")
        with patch("kube_e2e.cli.commands.delete_namespace", side_effect=error):
            result = CliRunner().invoke(cli, ["cleanup", "-n", VALID_NS])

        assert result.exit_code == ExitCode.CLUSTER_ERROR
        assert "connection refused" in result.output
