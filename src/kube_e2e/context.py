"""Execution context threaded through feature phases.

Each step receives the context returned by the previous step and may return
an updated copy. Bindings known ahead of time are typed fields; anything
else goes into ``extensions``.

Example:
    >>> ctx = ExecutionContext()
    >>> ctx = ctx.set("namespace", "sumologic-test-a1b2c3d4")
    >>> ctx.get("namespace")
    'sumologic-test-a1b2c3d4'
    >>> ctx = ctx.set("templated_file", "/tmp/rendered.yaml")
    >>> ctx.get("templated_file")
    '/tmp/rendered.yaml'
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from kube_e2e.errors import MissingBindingError
from kube_e2e.k8s.helm import HelmOptions
from kube_e2e.k8s.kubectl import KubectlOptions

# Well-known context keys
NAMESPACE = "namespace"
KUBECTL_OPTIONS = "kubectl_options"
HELM_OPTIONS = "helm_options"

_TYPED_KEYS = frozenset({NAMESPACE, KUBECTL_OPTIONS, HELM_OPTIONS})


class ExecutionContext(BaseModel):
    """Immutable handle over the bindings of one feature run.

    ``set`` never mutates the receiver; it returns a new context with the
    binding replaced. Setting a key twice overwrites the earlier value.

    Attributes:
        namespace: Namespace the feature runs in.
        kubectl_options: Connection options for the resource client.
        helm_options: Options for the templating tool.
        extensions: Bindings not known ahead of time.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    namespace: str | None = Field(default=None, description="Active namespace")
    kubectl_options: KubectlOptions | None = Field(default=None)
    helm_options: HelmOptions | None = Field(default=None)
    extensions: dict[str, Any] = Field(default_factory=dict)

    def set(self, key: str, value: Any) -> ExecutionContext:
        """Return a copy of this context with ``key`` bound to ``value``.

        Raises:
            ValidationError: If ``key`` is a typed key and ``value`` does not
                match its field type.
        """
        if key in _TYPED_KEYS:
            values = {name: getattr(self, name) for name in _TYPED_KEYS}
            values[key] = value
            return type(self).model_validate({**values, "extensions": self.extensions})
        return self.model_copy(update={"extensions": {**self.extensions, key: value}})

    def get(self, key: str) -> Any:
        """Return the value bound to ``key``.

        Raises:
            MissingBindingError: If nothing is bound to ``key``.
        """
        if key in _TYPED_KEYS:
            value = getattr(self, key)
            if value is None:
                raise MissingBindingError(key)
            return value
        try:
            return self.extensions[key]
        except KeyError:
            raise MissingBindingError(key) from None

    def has(self, key: str) -> bool:
        """Check whether ``key`` is bound."""
        if key in _TYPED_KEYS:
            return getattr(self, key) is not None
        return key in self.extensions

    def require_namespace(self) -> str:
        value: str = self.get(NAMESPACE)
        return value

    def require_kubectl_options(self) -> KubectlOptions:
        value: KubectlOptions = self.get(KUBECTL_OPTIONS)
        return value

    def require_helm_options(self) -> HelmOptions:
        value: HelmOptions = self.get(HELM_OPTIONS)
        return value


__all__ = [
    "HELM_OPTIONS",
    "KUBECTL_OPTIONS",
    "NAMESPACE",
    "ExecutionContext",
]
