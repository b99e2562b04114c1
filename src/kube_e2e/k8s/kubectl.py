"""kubectl resource client for feature steps.

Thin wrapper over the real kubectl binary. Every call goes through
``run_kubectl_e``, which returns the completed process, or ``run_kubectl``,
which raises a classified error when kubectl exits non-zero:

- ``ResourceNotFoundError``: the object does not exist (yet)
- ``MalformedQueryError``: kubectl rejected the query itself
- ``KubectlError``: any other failure

Example:
    from kube_e2e.k8s.kubectl import KubectlOptions, apply, list_resources

    opts = KubectlOptions(namespace="sumologic-test-a1b2c3d4")
    apply(opts, "yamls/receiver-mock.yaml")
    pods = list_resources(opts, "pods", label_selector="app=receiver-mock")
"""

from __future__ import annotations

import json
import os
import subprocess
from pathlib import Path
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field

from kube_e2e.errors import KubectlError, MalformedQueryError, ResourceNotFoundError

logger = structlog.get_logger(__name__)

# Default kubectl command timeout in seconds
DEFAULT_TIMEOUT = 120

# stderr fragments that mean "retrying will never help"
_MALFORMED_MARKERS = (
    "unable to parse requirement",
    "error: unknown flag",
    "error: unknown shorthand flag",
    "the server doesn't have a resource type",
    "found invalid field",
    "error parsing",
    "is invalid",
)

_NOT_FOUND_MARKERS = (
    "(NotFound)",
    "not found",
)


class KubectlOptions(BaseModel):
    """Connection options for kubectl invocations.

    Attributes:
        context_name: kubeconfig context to use. Defaults to current context.
        config_path: Path to kubeconfig. Defaults to kubectl's own lookup.
        namespace: Namespace passed with ``--namespace``.
        env: Extra environment variables for the kubectl process.
    """

    model_config = ConfigDict(frozen=True)

    context_name: str | None = Field(default=None, description="kubeconfig context")
    config_path: Path | None = Field(default=None, description="kubeconfig path")
    namespace: str | None = Field(default=None, description="Target namespace")
    env: dict[str, str] = Field(default_factory=dict, description="Extra env vars")

    def with_namespace(self, namespace: str) -> KubectlOptions:
        """Return a copy targeting another namespace."""
        return self.model_copy(update={"namespace": namespace})

    def global_args(self) -> list[str]:
        """Build the connection flags shared by every kubectl call."""
        args: list[str] = []
        if self.config_path is not None:
            args.extend(["--kubeconfig", str(self.config_path)])
        if self.context_name:
            args.extend(["--context", self.context_name])
        if self.namespace:
            args.extend(["--namespace", self.namespace])
        return args


def run_kubectl_e(
    options: KubectlOptions,
    *args: str,
    timeout: int = DEFAULT_TIMEOUT,
) -> subprocess.CompletedProcess[str]:
    """Run kubectl and return the completed process without checking it.

    Args:
        options: Connection options.
        *args: kubectl arguments (e.g., "get", "pods").
        timeout: Command timeout in seconds.

    Returns:
        Completed process result with stdout, stderr, and returncode.
    """
    cmd = ["kubectl", *options.global_args(), *args]
    env = {**os.environ, **options.env} if options.env else None
    logger.debug("kubectl.run", args=list(args), namespace=options.namespace)
    return subprocess.run(
        cmd,
        capture_output=True,
        text=True,
        timeout=timeout,
        check=False,
        env=env,
    )


def run_kubectl(
    options: KubectlOptions,
    *args: str,
    timeout: int = DEFAULT_TIMEOUT,
) -> str:
    """Run kubectl and return its stdout, raising on failure.

    Args:
        options: Connection options.
        *args: kubectl arguments.
        timeout: Command timeout in seconds.

    Returns:
        Captured standard output.

    Raises:
        ResourceNotFoundError: If the target object does not exist.
        MalformedQueryError: If kubectl rejected the query itself.
        KubectlError: For any other non-zero exit.
    """
    result = run_kubectl_e(options, *args, timeout=timeout)
    if result.returncode != 0:
        raise classify_error(args, result.returncode, result.stderr)
    return result.stdout


def classify_error(args: tuple[str, ...] | list[str], returncode: int, stderr: str) -> KubectlError:
    """Map kubectl stderr onto the error taxonomy.

    Args:
        args: kubectl arguments of the failed call.
        returncode: Process exit code.
        stderr: Captured standard error.

    Returns:
        The most specific KubectlError subclass for the failure.
    """
    if any(marker in stderr for marker in _MALFORMED_MARKERS):
        return MalformedQueryError(args, returncode, stderr)
    if any(marker in stderr for marker in _NOT_FOUND_MARKERS):
        return ResourceNotFoundError(args, returncode, stderr)
    return KubectlError(args, returncode, stderr)


def apply(options: KubectlOptions, *paths: str | Path) -> str:
    """Apply one or more manifests (files or URLs).

    ``kubectl apply`` is idempotent: re-applying an unchanged manifest
    leaves the cluster state unchanged.
    """
    args: list[str] = ["apply"]
    for path in paths:
        args.extend(["-f", str(path)])
    return run_kubectl(options, *args)


def delete(
    options: KubectlOptions,
    *paths: str | Path,
    ignore_not_found: bool = True,
) -> str:
    """Delete the objects described by one or more manifests."""
    args: list[str] = ["delete"]
    for path in paths:
        args.extend(["-f", str(path)])
    if ignore_not_found:
        args.append("--ignore-not-found")
    return run_kubectl(options, *args)


def delete_by_name(
    options: KubectlOptions,
    kind: str,
    name: str,
    *,
    ignore_not_found: bool = True,
) -> str:
    """Delete a single object by kind and name."""
    args = ["delete", kind, name]
    if ignore_not_found:
        args.append("--ignore-not-found")
    return run_kubectl(options, *args)


def get(options: KubectlOptions, kind: str, name: str) -> dict[str, Any]:
    """Fetch a single object as a dictionary.

    Raises:
        ResourceNotFoundError: If the object does not exist.
    """
    stdout = run_kubectl(options, "get", kind, name, "-o", "json")
    return _parse_json(stdout, f"{kind}/{name}")


def list_resources(
    options: KubectlOptions,
    kind: str,
    *,
    label_selector: str | None = None,
    field_selector: str | None = None,
) -> list[dict[str, Any]]:
    """List objects of a kind in the options' namespace.

    Args:
        options: Connection options.
        kind: Resource kind (e.g., "pods", "pvc", "daemonsets").
        label_selector: Optional label selector (``-l``).
        field_selector: Optional field selector (``--field-selector``).

    Returns:
        The ``items`` of the returned list, possibly empty.
    """
    args = ["get", kind, "-o", "json"]
    if label_selector:
        args.extend(["-l", label_selector])
    if field_selector:
        args.extend(["--field-selector", field_selector])
    stdout = run_kubectl(options, *args)
    items: list[dict[str, Any]] = _parse_json(stdout, kind).get("items", [])
    return items


def create_namespace(options: KubectlOptions, name: str) -> bool:
    """Create a namespace, tolerating one that already exists.

    Returns:
        True if the namespace was created, False if it already existed.
    """
    cluster_scoped = options.model_copy(update={"namespace": None})
    result = run_kubectl_e(cluster_scoped, "create", "namespace", name)
    if result.returncode == 0:
        logger.info("kubectl.namespace_created", namespace=name)
        return True
    if "AlreadyExists" in result.stderr:
        logger.debug("kubectl.namespace_exists", namespace=name)
        return False
    raise classify_error(["create", "namespace", name], result.returncode, result.stderr)


def delete_namespace(options: KubectlOptions, name: str, *, wait: bool = False) -> str:
    """Delete a namespace and everything in it."""
    args = ["delete", "namespace", name, "--ignore-not-found", f"--wait={str(wait).lower()}"]
    return run_kubectl(options.model_copy(update={"namespace": None}), *args)


def _parse_json(stdout: str, what: str) -> dict[str, Any]:
    """Parse kubectl JSON output.

    Raises:
        KubectlError: If the output is not valid JSON.
    """
    try:
        result: dict[str, Any] = json.loads(stdout)
    except json.JSONDecodeError as exc:
        preview = stdout.strip()[:200]
        raise KubectlError(
            ["get", what, "-o", "json"],
            0,
            f"invalid JSON output: {exc}\nOutput preview: {preview}",
        ) from exc
    return result


__all__ = [
    "DEFAULT_TIMEOUT",
    "KubectlOptions",
    "apply",
    "classify_error",
    "create_namespace",
    "delete",
    "delete_by_name",
    "delete_namespace",
    "get",
    "list_resources",
    "run_kubectl",
    "run_kubectl_e",
]
