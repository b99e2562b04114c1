"""Unique resource names for feature isolation.

Features that run concurrently in one cluster are isolated by naming, not
by locking: each run gets its own namespace and release name.

Functions:
    generate_unique_namespace: Create a unique K8s namespace name
    generate_release_name: Create a unique Helm release name
    validate_namespace: Check if a namespace name is valid for K8s

Example:
    from kube_e2e.naming import generate_unique_namespace

    namespace = generate_unique_namespace("non_helm_default")
    # Returns: "non-helm-default-20261018t101500-a1b2c3d4"
"""

from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone

# K8s namespace constraints
MAX_NAMESPACE_LENGTH = 63
NAMESPACE_PATTERN = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")

# Helm release names must also fit into derived resource names
MAX_RELEASE_LENGTH = 53


class InvalidNamespaceError(ValueError):
    """Raised when a namespace name is invalid for Kubernetes."""

    def __init__(self, namespace: str, reason: str) -> None:
        self.namespace = namespace
        self.reason = reason
        super().__init__(f"Invalid namespace '{namespace}': {reason}")


def _normalize(prefix: str, default: str) -> str:
    normalized = prefix.lower().replace("_", "-")
    normalized = re.sub(r"[^a-z0-9-]", "", normalized)
    normalized = normalized.strip("-")
    return normalized or default


def _unique_name(prefix: str, default: str, max_length: int, now: datetime | None) -> str:
    moment = now or datetime.now(timezone.utc)
    suffix = f"{moment.strftime('%Y%m%dt%H%M%S')}-{uuid.uuid4().hex[:8]}"

    normalized = _normalize(prefix, default)
    max_prefix_length = max_length - len(suffix) - 1
    if len(normalized) > max_prefix_length:
        normalized = normalized[:max_prefix_length].rstrip("-") or default[:max_prefix_length]

    return f"{normalized}-{suffix}"


def generate_unique_namespace(prefix: str = "test", now: datetime | None = None) -> str:
    """Generate a unique K8s namespace name.

    Combines the normalized prefix with a timestamp and a random suffix.
    The result follows Kubernetes naming conventions:
    - Lowercase alphanumeric characters and hyphens only
    - Must start and end with alphanumeric character
    - Maximum 63 characters

    Args:
        prefix: Namespace prefix (e.g., "test", "non_helm_default").
            Underscores are converted to hyphens.
        now: Timestamp embedded in the name. Defaults to the current UTC time.

    Returns:
        Unique namespace string.

    Raises:
        InvalidNamespaceError: If the generated name breaks K8s naming rules.
    """
    namespace = _unique_name(prefix, "test", MAX_NAMESPACE_LENGTH, now)

    if not validate_namespace(namespace):
        raise InvalidNamespaceError(
            namespace,
            "Generated namespace does not match K8s naming rules",
        )

    return namespace


def generate_release_name(prefix: str = "rel", now: datetime | None = None) -> str:
    """Generate a unique Helm release name (at most 53 characters)."""
    return _unique_name(prefix, "rel", MAX_RELEASE_LENGTH, now)


def validate_namespace(namespace: str) -> bool:
    """Check if a namespace name is valid for Kubernetes.

    Example:
        >>> validate_namespace("test-namespace-abc123")
        True
        >>> validate_namespace("Test_Namespace")  # Invalid: uppercase, underscore
        False
    """
    if not namespace:
        return False

    if len(namespace) > MAX_NAMESPACE_LENGTH:
        return False

    return bool(NAMESPACE_PATTERN.match(namespace))


# Module exports
__all__ = [
    "InvalidNamespaceError",
    "MAX_NAMESPACE_LENGTH",
    "MAX_RELEASE_LENGTH",
    "generate_release_name",
    "generate_unique_namespace",
    "validate_namespace",
]
