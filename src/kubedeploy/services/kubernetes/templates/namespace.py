"""Namespace template."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from kubedeploy.integrations.kubernetes.config import DEFAULT_FULFILLER
from kubedeploy.services.kubernetes.labels import MANAGED_BY_LABEL, WORKSPACE_LABEL
from kubedeploy.services.kubernetes.templates.base import app_labels, metadata_template

if TYPE_CHECKING:
    from kubedeploy.integrations.kubernetes.models import Application

_RETAINED_LABELS = (WORKSPACE_LABEL, MANAGED_BY_LABEL)


def namespace_template(app: Application, fulfiller: str = DEFAULT_FULFILLER) -> dict[str, Any]:
    """Build the application's namespace.

    A namespace can be shared by several applications, so only the
    workspace and managed-by labels are set.
    """
    labels = app_labels(app, fulfiller)
    return {
        "apiVersion": "v1",
        "kind": "Namespace",
        "metadata": metadata_template(
            app.ns,
            labels={key: labels[key] for key in _RETAINED_LABELS},
        ),
    }
