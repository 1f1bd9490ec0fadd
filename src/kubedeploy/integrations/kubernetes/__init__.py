"""Kubernetes integration - API clients and configuration models."""

from kubedeploy.integrations.kubernetes.client import KubernetesClient
from kubedeploy.integrations.kubernetes.config import (
    ClusterConfig,
    DeployConfig,
    KubernetesConfig,
    KubernetesDefaultsConfig,
)
from kubedeploy.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConflictError,
    KubernetesConnectionError,
    KubernetesDeleteError,
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesReconcileError,
    KubernetesSelectorError,
    KubernetesSpecError,
    KubernetesTimeoutError,
    KubernetesValidationError,
)
from kubedeploy.integrations.kubernetes.object_api import KubernetesObjectApi

__all__ = [
    "ClusterConfig",
    "DeployConfig",
    "KubernetesAuthError",
    "KubernetesClient",
    "KubernetesConfig",
    "KubernetesConflictError",
    "KubernetesConnectionError",
    "KubernetesDefaultsConfig",
    "KubernetesDeleteError",
    "KubernetesError",
    "KubernetesNotFoundError",
    "KubernetesObjectApi",
    "KubernetesReconcileError",
    "KubernetesSelectorError",
    "KubernetesSpecError",
    "KubernetesTimeoutError",
    "KubernetesValidationError",
]
