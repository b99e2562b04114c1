"""Helm templating utilities for feature steps.

Renders a chart into a plain manifest file with ``helm template`` so the
result can be applied with kubectl, mirroring a non-Helm installation.

Used by:
    - kube_e2e.stepfuncs (HelmDependencyUpdate, HelmTemplate steps)
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field

from kube_e2e.errors import HelmError
from kube_e2e.k8s.kubectl import KubectlOptions

logger = structlog.get_logger(__name__)

# Default helm command timeout in seconds
DEFAULT_TIMEOUT = 900


class HelmOptions(BaseModel):
    """Options shared by helm invocations of one feature.

    Attributes:
        values_files: Values files passed with ``-f``, in order.
        set_values: ``--set key=value`` overrides.
        kubectl_options: Connection options (kubeconfig, context, namespace).
        extra_args: Additional arguments appended to ``helm template``.
    """

    model_config = ConfigDict(frozen=True)

    values_files: tuple[Path, ...] = Field(default=(), description="Values files")
    set_values: dict[str, str] = Field(default_factory=dict, description="--set overrides")
    kubectl_options: KubectlOptions = Field(default_factory=KubectlOptions)
    extra_args: tuple[str, ...] = Field(default=(), description="Extra template arguments")

    def global_args(self) -> list[str]:
        """Build the connection flags shared by every helm call."""
        args: list[str] = []
        kube = self.kubectl_options
        if kube.config_path is not None:
            args.extend(["--kubeconfig", str(kube.config_path)])
        if kube.context_name:
            args.extend(["--kube-context", kube.context_name])
        if kube.namespace:
            args.extend(["--namespace", kube.namespace])
        return args


def run_helm(args: list[str], timeout: int = DEFAULT_TIMEOUT) -> subprocess.CompletedProcess[str]:
    """Run helm command with timeout.

    Args:
        args: helm arguments.
        timeout: Command timeout in seconds.

    Returns:
        Completed process result.
    """
    logger.debug("helm.run", args=args)
    return subprocess.run(
        ["helm"] + args,
        capture_output=True,
        text=True,
        timeout=timeout,
        check=False,
    )


def _check(args: list[str], result: subprocess.CompletedProcess[str]) -> str:
    if result.returncode != 0:
        raise HelmError(args, result.returncode, result.stderr)
    return result.stdout


def dependency_update(chart_path: str | Path, *, helm_runner: Any = None) -> None:
    """Fetch the chart's dependencies into its ``charts/`` directory.

    Args:
        chart_path: Path to the chart directory.
        helm_runner: Callable that runs helm commands. Signature:
            ``(args: list[str]) -> subprocess.CompletedProcess[str]``.
            Defaults to ``run_helm``.

    Raises:
        HelmError: If helm exits non-zero.
    """
    run = helm_runner or run_helm
    args = ["dependency", "update", str(chart_path)]
    _check(args, run(args))
    logger.info("helm.dependencies_updated", chart=str(chart_path))


def template_args(
    options: HelmOptions,
    chart_path: str | Path,
    release_name: str,
    api_versions: list[str] | tuple[str, ...] = (),
) -> list[str]:
    """Build the argument list for ``helm template``."""
    args = ["template", release_name, str(chart_path), *options.global_args()]
    for values_file in options.values_files:
        args.extend(["-f", str(values_file)])
    for key, value in options.set_values.items():
        args.extend(["--set", f"{key}={value}"])
    for api_version in api_versions:
        args.extend(["--api-versions", api_version])
    args.extend(options.extra_args)
    return args


def render_template(
    options: HelmOptions,
    chart_path: str | Path,
    release_name: str,
    output_path: str | Path,
    api_versions: list[str] | tuple[str, ...] = (),
    *,
    helm_runner: Any = None,
) -> int:
    """Render a chart with ``helm template`` into a manifest file.

    Args:
        options: Helm options (values files, overrides, connection).
        chart_path: Path to the chart directory.
        release_name: Release name used for rendering.
        output_path: File the rendered manifest is written to.
        api_versions: Capabilities passed with ``--api-versions``.
        helm_runner: Optional replacement for ``run_helm``.

    Returns:
        Number of Kubernetes objects in the rendered manifest.

    Raises:
        HelmError: If helm exits non-zero or renders nothing.
    """
    run = helm_runner or run_helm
    args = template_args(options, chart_path, release_name, api_versions)
    manifest = _check(args, run(args))

    documents = parse_manifest(manifest)
    if not documents:
        raise HelmError(args, 0, "helm template rendered no objects")

    Path(output_path).write_text(manifest)
    logger.info(
        "helm.template_rendered",
        release=release_name,
        output=str(output_path),
        objects=len(documents),
    )
    return len(documents)


def parse_manifest(manifest: str) -> list[dict[str, Any]]:
    """Split a multi-document manifest into its non-empty objects.

    Raises:
        ValueError: If the manifest is not valid YAML.
    """
    try:
        return [doc for doc in yaml.safe_load_all(manifest) if doc]
    except yaml.YAMLError as exc:
        msg = f"rendered manifest is not valid YAML: {exc}"
        raise ValueError(msg) from exc


__all__ = [
    "DEFAULT_TIMEOUT",
    "HelmOptions",
    "dependency_update",
    "parse_manifest",
    "render_template",
    "run_helm",
    "template_args",
]
