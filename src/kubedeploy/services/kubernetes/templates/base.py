"""Shared pieces of the per-kind template builders."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from kubedeploy.services.kubernetes.labels import application_labels
from kubedeploy.utils.merge import deep_merge

if TYPE_CHECKING:
    from kubedeploy.integrations.kubernetes.models import Application


def metadata_template(
    name: str,
    namespace: str | None = None,
    labels: dict[str, str] | None = None,
    annotations: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Build object metadata, omitting unset fields."""
    metadata: dict[str, Any] = {"name": name}
    if namespace:
        metadata["namespace"] = namespace
    if labels:
        metadata["labels"] = dict(labels)
    if annotations:
        metadata["annotations"] = dict(annotations)
    return metadata


def app_labels(app: Application, fulfiller: str, component: str | None = None) -> dict[str, str]:
    """Standard labels for a resource of ``app``."""
    return application_labels(
        name=app.name,
        workspace_id=app.workspace_id,
        fulfiller=fulfiller,
        component=component,
    )


def overlay(
    default: dict[str, Any],
    partial: dict[str, Any] | None,
) -> dict[str, Any]:
    """Merge a caller's partial spec over a default one.

    The default's ``apiVersion`` and ``kind`` always survive the merge.
    """
    merged = deep_merge(default, partial)
    merged["apiVersion"] = default["apiVersion"]
    merged["kind"] = default["kind"]
    return merged


def service_account_name(app: Application) -> str:
    """Name of the service account the application's pods run as."""
    if app.rbac and app.rbac.service_account_spec:
        name = (app.rbac.service_account_spec.get("metadata") or {}).get("name")
        if name:
            return name
    return app.name
