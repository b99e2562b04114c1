"""Cluster state snapshots for failure diagnosis.

When a feature fails, the observable state of its namespace is the most
useful thing to look at. ``collect_cluster_state`` gathers it without ever
raising, so it is safe to call from teardown.
"""

from __future__ import annotations

import subprocess

import structlog

from kube_e2e.k8s.kubectl import KubectlOptions, run_kubectl_e

logger = structlog.get_logger(__name__)

# kubectl queries included in a snapshot, in output order
STATE_QUERIES: tuple[tuple[str, ...], ...] = (
    ("get", "all", "-o", "wide"),
    ("get", "pvc", "-o", "wide"),
    ("get", "events", "--sort-by=.lastTimestamp"),
    ("describe", "pods"),
)


def collect_cluster_state(options: KubectlOptions) -> str:
    """Collect a text snapshot of the namespace targeted by ``options``.

    Failed queries are included in the snapshot as their error output.

    Args:
        options: Connection options; the namespace scopes every query.

    Returns:
        Human-readable snapshot with one section per query.
    """
    sections: list[str] = []
    for query in STATE_QUERIES:
        header = f"$ kubectl {' '.join(query)} (namespace={options.namespace or 'default'})"
        try:
            result = run_kubectl_e(options, *query)
        except (OSError, subprocess.TimeoutExpired) as e:
            body = f"<unavailable: {e}>"
        else:
            body = result.stdout if result.returncode == 0 else result.stderr
        sections.append(f"{header}\n{body.rstrip()}")
    return "\n\n".join(sections)


__all__ = ["STATE_QUERIES", "collect_cluster_state"]
