"""Static registry of Kubernetes resource kinds.

Maps a ``kind`` to the REST plural name and scope the API server serves
it under. Kinds missing from the registry fall back to rule-based
pluralization and are treated as namespaced.
"""

from __future__ import annotations

from typing import NamedTuple


class KindInfo(NamedTuple):
    """REST addressing facts for a resource kind."""

    plural: str
    cluster_scoped: bool = False


def pluralize(kind: str) -> str:
    """Pluralize a kind by suffix rule.

    ``...s`` becomes ``...ses``, ``...y`` becomes ``...ies``, anything
    else gets an ``s`` appended. The result is lower-case.
    """
    lower = kind.lower()
    if lower.endswith("s"):
        return lower + "es"
    if lower.endswith("y"):
        return lower[:-1] + "ies"
    return lower + "s"


_CLUSTER_SCOPED = (
    "APIService",
    "CertificateSigningRequest",
    "ClusterRole",
    "ClusterRoleBinding",
    "CustomResourceDefinition",
    "MutatingWebhookConfiguration",
    "Namespace",
    "Node",
    "PersistentVolume",
    "PodSecurityPolicy",
    "PriorityClass",
    "RuntimeClass",
    "StorageClass",
    "ValidatingWebhookConfiguration",
    "VolumeAttachment",
)

_NAMESPACED = (
    "ConfigMap",
    "ControllerRevision",
    "CronJob",
    "DaemonSet",
    "Deployment",
    "Event",
    "HorizontalPodAutoscaler",
    "Ingress",
    "Job",
    "Lease",
    "LimitRange",
    "NetworkPolicy",
    "PersistentVolumeClaim",
    "Pod",
    "PodDisruptionBudget",
    "PodTemplate",
    "ReplicaSet",
    "ReplicationController",
    "ResourceQuota",
    "Role",
    "RoleBinding",
    "Secret",
    "Service",
    "ServiceAccount",
    "StatefulSet",
)

# Kinds whose plural does not follow the suffix rule.
_IRREGULAR = {
    "Endpoints": KindInfo("endpoints"),
}

KIND_REGISTRY: dict[str, KindInfo] = {
    **{kind: KindInfo(pluralize(kind), cluster_scoped=True) for kind in _CLUSTER_SCOPED},
    **{kind: KindInfo(pluralize(kind)) for kind in _NAMESPACED},
    **_IRREGULAR,
}


def kind_info(kind: str) -> KindInfo:
    """Look up a kind, falling back to the suffix rule for unknown kinds."""
    info = KIND_REGISTRY.get(kind)
    if info is None:
        return KindInfo(pluralize(kind))
    return info


def plural_name(kind: str) -> str:
    """Return the REST resource name for a kind, e.g. ``ingresses``."""
    return kind_info(kind).plural


def is_cluster_scoped(kind: str) -> bool:
    """Return True if resources of this kind live outside namespaces."""
    return kind_info(kind).cluster_scoped
