"""Developer commands for working with feature test namespaces.

Example:
    $ kube-e2e names --prefix non_helm_default
    $ kube-e2e state --namespace non-helm-default-20261018t101500-a1b2c3d4
    $ kube-e2e cleanup --namespace non-helm-default-20261018t101500-a1b2c3d4
"""

from __future__ import annotations

import json
from pathlib import Path

import click

from kube_e2e.cli.utils import ExitCode, error_exit, info, success
from kube_e2e.config import RunnerConfig
from kube_e2e.errors import ClusterError
from kube_e2e.k8s.kubectl import delete_namespace
from kube_e2e.k8s.state import collect_cluster_state
from kube_e2e.naming import generate_release_name, generate_unique_namespace, validate_namespace


def _namespace_option(func: click.decorators.FC) -> click.decorators.FC:
    return click.option(
        "--namespace",
        "-n",
        type=str,
        required=True,
        help="Test namespace.",
        metavar="TEXT",
    )(func)


@click.command(
    name="names",
    help="Print a fresh namespace and release name pair.",
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option("--prefix", "-p", type=str, default="test", help="Name prefix.")
@click.option(
    "--output",
    "-o",
    type=click.Choice(["text", "json"], case_sensitive=False),
    default="text",
    help="Output format.",
)
def names_command(prefix: str, output: str) -> None:
    """Generate names for an isolated feature run."""
    namespace = generate_unique_namespace(prefix)
    release = generate_release_name(prefix)
    if output.lower() == "json":
        success(json.dumps({"namespace": namespace, "release": release}))
    else:
        success(f"namespace={namespace}")
        success(f"release={release}")


@click.command(
    name="state",
    help="Dump the state of a test namespace for diagnosis.",
    context_settings={"help_option_names": ["-h", "--help"]},
)
@_namespace_option
@click.option(
    "--output-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the dump to a file instead of stdout.",
)
def state_command(namespace: str, output_file: Path | None) -> None:
    """Print kubectl snapshots of the namespace."""
    if not validate_namespace(namespace):
        error_exit(
            "Invalid namespace name",
            exit_code=ExitCode.VALIDATION_ERROR,
            namespace=namespace,
        )

    state = collect_cluster_state(RunnerConfig().kubectl_options(namespace))
    if output_file is None:
        success(state)
        return

    output_file.write_text(state)
    info(f"Cluster state written to {output_file}")


@click.command(
    name="cleanup",
    help="Delete a test namespace left behind by an interrupted run.",
    context_settings={"help_option_names": ["-h", "--help"]},
)
@_namespace_option
@click.option("--wait/--no-wait", default=False, help="Wait for deletion to finish.")
def cleanup_command(namespace: str, wait: bool) -> None:
    """Delete a namespace and everything in it."""
    if not validate_namespace(namespace):
        error_exit(
            "Invalid namespace name",
            exit_code=ExitCode.VALIDATION_ERROR,
            namespace=namespace,
        )

    try:
        delete_namespace(RunnerConfig().kubectl_options(), namespace, wait=wait)
    except ClusterError as e:
        error_exit(str(e), exit_code=ExitCode.CLUSTER_ERROR, namespace=namespace)

    success(f"Deleted namespace {namespace}")


__all__ = ["cleanup_command", "names_command", "state_command"]
