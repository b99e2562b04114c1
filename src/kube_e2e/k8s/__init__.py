"""Cluster tooling adapters (kubectl resource client, helm templating).

Modules:
    kubectl: Resource client over the kubectl binary
    helm: Chart rendering with ``helm template``
    state: Namespace snapshots for failure diagnosis
"""

from __future__ import annotations

from kube_e2e.k8s.helm import HelmOptions
from kube_e2e.k8s.kubectl import KubectlOptions

__all__: list[str] = [
    "HelmOptions",
    "KubectlOptions",
]
