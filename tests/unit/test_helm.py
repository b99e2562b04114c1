"""Unit tests for helm templating helpers."""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from kube_e2e.errors import HelmError
from kube_e2e.k8s.helm import (
    HelmOptions,
    dependency_update,
    parse_manifest,
    render_template,
    template_args,
)
from kube_e2e.k8s.kubectl import KubectlOptions

MANIFEST = """\
---
# Source: sumologic/templates/secret.yaml
apiVersion: v1
kind: Secret
metadata:
  name: sumologic
---
apiVersion: apps/v1
kind: StatefulSet
metadata:
  name: rel-sumologic-fluentd-logs
---
"""


def helm_runner(stdout: str = "", stderr: str = "", returncode: int = 0) -> MagicMock:
    result = subprocess.CompletedProcess(
        args=[], returncode=returncode, stdout=stdout, stderr=stderr
    )
    return MagicMock(return_value=result)


@pytest.mark.requirement("E2E-034")
class TestTemplateArgs:
    """Tests for helm template argument building."""

    def test_minimal(self) -> None:
        assert template_args(HelmOptions(), "charts/sumologic", "rel") == [
            "template",
            "rel",
            "charts/sumologic",
        ]

    def test_full(self) -> None:
        options = HelmOptions(
            values_files=(Path("values/values_default.yaml"),),
            set_values={"sumologic.accessId": "dummy"},
            kubectl_options=KubectlOptions(context_name="kind", namespace="ns"),
            extra_args=("--include-crds",),
        )

        args = template_args(
            options, "charts/sumologic", "rel", api_versions=["policy/v1/PodDisruptionBudget"]
        )

        assert args == [
            "template",
            "rel",
            "charts/sumologic",
            "--kube-context",
            "kind",
            "--namespace",
            "ns",
            "-f",
            "values/values_default.yaml",
            "--set",
            "sumologic.accessId=dummy",
            "--api-versions",
            "policy/v1/PodDisruptionBudget",
            "--include-crds",
        ]


@pytest.mark.requirement("E2E-035")
class TestRenderTemplate:
    """Tests for render_template()."""

    def test_writes_manifest(self, tmp_path: Path) -> None:
        output = tmp_path / "rendered.yaml"
        runner = helm_runner(stdout=MANIFEST)

        count = render_template(HelmOptions(), "chart", "rel", output, helm_runner=runner)

        assert count == 2
        assert output.read_text() == MANIFEST
        assert runner.call_args[0][0][:3] == ["template", "rel", "chart"]

    def test_helm_failure(self, tmp_path: Path) -> None:
        runner = helm_runner(stderr="Error: chart not found", returncode=1)

        with pytest.raises(HelmError, match="chart not found") as exc_info:
            render_template(
                HelmOptions(), "chart", "rel", tmp_path / "out.yaml", helm_runner=runner
            )

        assert exc_info.value.helm_args[0] == "template"
        assert not (tmp_path / "out.yaml").exists()

    def test_empty_render_is_error(self, tmp_path: Path) -> None:
        runner = helm_runner(stdout="---\n# nothing\n---\n")

        with pytest.raises(HelmError, match="rendered no objects"):
            render_template(
                HelmOptions(), "chart", "rel", tmp_path / "out.yaml", helm_runner=runner
            )


@pytest.mark.requirement("E2E-036")
class TestDependencyUpdate:
    def test_runs_dependency_update(self) -> None:
        runner = helm_runner()
        dependency_update("charts/sumologic", helm_runner=runner)
        runner.assert_called_once_with(["dependency", "update", "charts/sumologic"])

    def test_failure_raises(self) -> None:
        runner = helm_runner(stderr="no repository definition", returncode=1)
        with pytest.raises(HelmError):
            dependency_update("charts/sumologic", helm_runner=runner)


@pytest.mark.requirement("E2E-037")
class TestParseManifest:
    def test_skips_empty_documents(self) -> None:
        docs = parse_manifest(MANIFEST)
        assert [d["kind"] for d in docs] == ["Secret", "StatefulSet"]

    def test_invalid_yaml(self) -> None:
        with pytest.raises(ValueError, match="not valid YAML"):
            parse_manifest("kind: [unclosed")
