"""RBAC templates: service account, role and role binding.

``rbac.roleSpec.kind == "ClusterRole"`` selects the cluster-scoped role
and binding; otherwise namespaced ones are built.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from kubedeploy.integrations.kubernetes.config import DEFAULT_FULFILLER
from kubedeploy.services.kubernetes.templates.base import (
    app_labels,
    metadata_template,
    overlay,
    service_account_name,
)

if TYPE_CHECKING:
    from kubedeploy.integrations.kubernetes.models import Application

RBAC_API_GROUP = "rbac.authorization.k8s.io"
RBAC_API_VERSION = f"{RBAC_API_GROUP}/v1"


def _rbac(app: Application) -> Any:
    if app.rbac is None:
        raise ValueError(f"Application {app.slug} has no RBAC configuration")
    return app.rbac


def is_cluster_role(app: Application) -> bool:
    """Return True if the application asks for a ClusterRole."""
    return _rbac(app).role_spec.get("kind") == "ClusterRole"


def service_account_template(
    app: Application,
    fulfiller: str = DEFAULT_FULFILLER,
) -> dict[str, Any]:
    """Build the service account the application's pods run as."""
    default = {
        "apiVersion": "v1",
        "kind": "ServiceAccount",
        "metadata": metadata_template(app.name, app.ns, labels=app_labels(app, fulfiller)),
    }
    return overlay(default, _rbac(app).service_account_spec)


def role_template(app: Application, fulfiller: str = DEFAULT_FULFILLER) -> dict[str, Any]:
    """Build the Role, or ClusterRole, from ``rbac.roleSpec``."""
    cluster = is_cluster_role(app)
    default = {
        "apiVersion": RBAC_API_VERSION,
        "kind": "ClusterRole" if cluster else "Role",
        "metadata": metadata_template(
            app.name,
            None if cluster else app.ns,
            labels=app_labels(app, fulfiller),
        ),
        "rules": [],
    }
    return overlay(default, _rbac(app).role_spec)


def role_binding_template(app: Application, fulfiller: str = DEFAULT_FULFILLER) -> dict[str, Any]:
    """Bind the application's role to its service account."""
    cluster = is_cluster_role(app)
    role_name = (_rbac(app).role_spec.get("metadata") or {}).get("name") or app.name
    subject: dict[str, Any] = {"kind": "ServiceAccount", "name": service_account_name(app)}
    if cluster:
        subject["namespace"] = app.ns
    default = {
        "apiVersion": RBAC_API_VERSION,
        "kind": "ClusterRoleBinding" if cluster else "RoleBinding",
        "metadata": metadata_template(
            app.name,
            None if cluster else app.ns,
            labels=app_labels(app, fulfiller),
        ),
        "roleRef": {
            "apiGroup": RBAC_API_GROUP,
            "kind": "ClusterRole" if cluster else "Role",
            "name": role_name,
        },
        "subjects": [subject],
    }
    return overlay(default, _rbac(app).role_binding_spec)
