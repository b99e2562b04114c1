"""Reusable steps for installing and inspecting a deployment.

Every step is a frozen dataclass holding its parameters as named fields.
Steps that talk to the cluster read their connection options from the
context, so ``SetKubectlNamespace`` must run before them.

Example:
    feature = (
        FeatureBuilder("installation")
        .setup(SetKubectlNamespace(namespace))
        .setup(CreateNamespace())
        .setup(SetHelmOptions(values_file))
        .setup(HelmTemplate(chart, release, output))
        .setup(KubectlApply(output))
        .teardown(PrintClusterState())
        .teardown(KubectlDeleteNamespace(namespace))
        ...
    )
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from kube_e2e.context import HELM_OPTIONS, KUBECTL_OPTIONS, NAMESPACE
from kube_e2e.k8s import helm, kubectl
from kube_e2e.k8s.helm import HelmOptions
from kube_e2e.k8s.state import collect_cluster_state
from kube_e2e.steps import Step

if TYPE_CHECKING:
    from kube_e2e.config import RunnerConfig
    from kube_e2e.context import ExecutionContext
    from kube_e2e.k8s.kubectl import KubectlOptions
    from kube_e2e.reporting import TestHandle

logger = structlog.get_logger(__name__)


def _options_for(ctx: ExecutionContext, namespace: str | None) -> KubectlOptions:
    options = ctx.require_kubectl_options()
    return options.with_namespace(namespace) if namespace else options


@dataclass(frozen=True)
class SetKubectlNamespace(Step):
    """Bind the active namespace and matching kubectl options."""

    namespace: str

    def run(self, ctx: ExecutionContext, t: TestHandle, config: RunnerConfig) -> ExecutionContext:
        if ctx.has(KUBECTL_OPTIONS):
            options = ctx.require_kubectl_options().with_namespace(self.namespace)
        else:
            options = config.kubectl_options(self.namespace)
        return ctx.set(NAMESPACE, self.namespace).set(KUBECTL_OPTIONS, options)


@dataclass(frozen=True)
class CreateNamespace(Step):
    """Create the active namespace, or ``namespace`` if given."""

    namespace: str | None = None

    def run(self, ctx: ExecutionContext, t: TestHandle, config: RunnerConfig) -> None:
        target = self.namespace or ctx.require_namespace()
        kubectl.create_namespace(ctx.require_kubectl_options(), target)


@dataclass(frozen=True)
class KubectlApply(Step):
    """Apply manifests (files or URLs) in the active namespace.

    Attributes:
        paths: Manifest files or URLs, applied in one kubectl call.
        namespace: Namespace override. Defaults to the active namespace.
    """

    paths: tuple[str, ...]
    namespace: str | None = None

    def __init__(self, *paths: str | Path, namespace: str | None = None) -> None:
        object.__setattr__(self, "paths", tuple(str(p) for p in paths))
        object.__setattr__(self, "namespace", namespace)

    def run(self, ctx: ExecutionContext, t: TestHandle, config: RunnerConfig) -> None:
        options = _options_for(ctx, self.namespace)
        output = kubectl.apply(options, *self.paths)
        logger.info("step.applied", paths=list(self.paths), namespace=options.namespace)
        logger.debug("step.apply_output", output=output)


@dataclass(frozen=True)
class KubectlDelete(Step):
    """Delete the objects described by manifests, tolerating missing ones."""

    paths: tuple[str, ...]
    namespace: str | None = None

    def __init__(self, *paths: str | Path, namespace: str | None = None) -> None:
        object.__setattr__(self, "paths", tuple(str(p) for p in paths))
        object.__setattr__(self, "namespace", namespace)

    def run(self, ctx: ExecutionContext, t: TestHandle, config: RunnerConfig) -> None:
        options = _options_for(ctx, self.namespace)
        kubectl.delete(options, *self.paths)
        logger.info("step.deleted", paths=list(self.paths), namespace=options.namespace)


@dataclass(frozen=True)
class KubectlDeleteNamespace(Step):
    """Delete a namespace and everything in it."""

    namespace: str

    def run(self, ctx: ExecutionContext, t: TestHandle, config: RunnerConfig) -> None:
        if ctx.has(KUBECTL_OPTIONS):
            options = ctx.require_kubectl_options()
        else:
            options = config.kubectl_options()
        kubectl.delete_namespace(options, self.namespace)
        logger.info("step.namespace_deleted", namespace=self.namespace)


@dataclass(frozen=True)
class SetCurrentContextNamespace(Step):
    """Point the current kubeconfig context at ``namespace``."""

    namespace: str

    def run(self, ctx: ExecutionContext, t: TestHandle, config: RunnerConfig) -> None:
        options = ctx.require_kubectl_options().model_copy(update={"namespace": None})
        kubectl.run_kubectl(
            options, "config", "set-context", "--current", f"--namespace={self.namespace}"
        )


@dataclass(frozen=True)
class SetHelmOptions(Step):
    """Bind Helm options using the active kubectl options."""

    values_files: tuple[str, ...] = ()
    set_values: dict[str, str] = field(default_factory=dict)

    def run(self, ctx: ExecutionContext, t: TestHandle, config: RunnerConfig) -> ExecutionContext:
        options = HelmOptions(
            values_files=tuple(Path(v) for v in self.values_files),
            set_values=self.set_values,
            kubectl_options=ctx.require_kubectl_options(),
        )
        return ctx.set(HELM_OPTIONS, options)


@dataclass(frozen=True)
class HelmDependencyUpdate(Step):
    """Fetch chart dependencies. Safe to repeat."""

    chart_path: str

    def run(self, ctx: ExecutionContext, t: TestHandle, config: RunnerConfig) -> None:
        helm.dependency_update(self.chart_path)


@dataclass(frozen=True)
class HelmTemplate(Step):
    """Render the chart into ``output_path`` with the bound Helm options.

    Attributes:
        chart_path: Chart directory.
        release_name: Release name used for rendering.
        output_path: File the manifest is written to.
        api_versions: Capabilities passed with ``--api-versions``.
    """

    chart_path: str
    release_name: str
    output_path: str
    api_versions: tuple[str, ...] = ()

    def run(self, ctx: ExecutionContext, t: TestHandle, config: RunnerConfig) -> ExecutionContext:
        objects = helm.render_template(
            ctx.require_helm_options(),
            self.chart_path,
            self.release_name,
            self.output_path,
            self.api_versions,
        )
        t.log(f"rendered {objects} objects into {self.output_path}")
        return ctx.set("templated_file", self.output_path)


@dataclass(frozen=True)
class PrintClusterState(Step):
    """Dump the namespace state when the feature has failed.

    The dump is attached to the feature report and written to
    ``<output_dir>/<namespace>-cluster-state.txt``. Set ``always`` to dump
    on success too.
    """

    always: bool = False

    def run(self, ctx: ExecutionContext, t: TestHandle, config: RunnerConfig) -> None:
        if not (self.always or (t.failed and config.dump_state_on_failure)):
            return

        options = ctx.require_kubectl_options()
        namespace = options.namespace or "default"
        state = collect_cluster_state(options)
        t.attach(f"cluster state ({namespace})", state)

        dump_path = config.output_dir / f"{namespace}-cluster-state.txt"
        try:
            dump_path.write_text(state)
        except OSError as e:
            logger.warning("step.state_dump_not_written", path=str(dump_path), error=str(e))
        else:
            logger.info("step.state_dumped", path=str(dump_path))


__all__ = [
    "CreateNamespace",
    "HelmDependencyUpdate",
    "HelmTemplate",
    "KubectlApply",
    "KubectlDelete",
    "KubectlDeleteNamespace",
    "PrintClusterState",
    "SetCurrentContextNamespace",
    "SetHelmOptions",
    "SetKubectlNamespace",
]
