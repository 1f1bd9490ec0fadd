"""Service template."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from kubedeploy.integrations.kubernetes.config import DEFAULT_FULFILLER
from kubedeploy.services.kubernetes.labels import match_labels
from kubedeploy.services.kubernetes.templates.base import app_labels, metadata_template, overlay

if TYPE_CHECKING:
    from kubedeploy.integrations.kubernetes.models import Application


def service_template(app: Application, fulfiller: str = DEFAULT_FULFILLER) -> dict[str, Any]:
    """Build a NodePort service exposing the container's ``http`` port.

    ``app.service_spec`` is merged over the default.
    """
    default = {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": metadata_template(app.name, app.ns, labels=app_labels(app, fulfiller)),
        "spec": {
            "ports": [
                {
                    "name": "http",
                    "protocol": "TCP",
                    "port": app.port,
                    "targetPort": "http",
                }
            ],
            "selector": match_labels(app.name, app.workspace_id),
            "sessionAffinity": "None",
            "type": "NodePort",
        },
    }
    return overlay(default, app.service_spec)
