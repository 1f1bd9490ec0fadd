"""Deployment template."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from kubedeploy.integrations.kubernetes.config import DEFAULT_FULFILLER
from kubedeploy.services.kubernetes.labels import match_labels
from kubedeploy.services.kubernetes.templates.base import (
    app_labels,
    metadata_template,
    overlay,
    service_account_name,
)

if TYPE_CHECKING:
    from kubedeploy.integrations.kubernetes.models import Application

DEFAULT_REPLICAS = 1

DEFAULT_RESOURCES: dict[str, dict[str, str]] = {
    "limits": {"cpu": "1000m", "memory": "384Mi"},
    "requests": {"cpu": "100m", "memory": "320Mi"},
}


def http_probe() -> dict[str, Any]:
    """HTTP GET probe against the container's ``http`` port."""
    return {
        "httpGet": {"path": "/", "port": "http", "scheme": "HTTP"},
        "initialDelaySeconds": 30,
        "timeoutSeconds": 3,
        "periodSeconds": 10,
        "successThreshold": 1,
        "failureThreshold": 3,
    }


def deployment_template(app: Application, fulfiller: str = DEFAULT_FULFILLER) -> dict[str, Any]:
    """Build the application's Deployment.

    Runs a single container with conservative resource limits and a
    surge-only rolling update. When a port is set the container exposes it
    as ``http`` with readiness and liveness probes. ``app.deployment_spec``
    is merged over the default.
    """
    labels = app_labels(app, fulfiller)
    container: dict[str, Any] = {
        "name": app.name,
        "image": app.image,
        "resources": {key: dict(value) for key, value in DEFAULT_RESOURCES.items()},
    }
    if app.port:
        container["ports"] = [{"name": "http", "containerPort": app.port, "protocol": "TCP"}]
        container["readinessProbe"] = http_probe()
        container["livenessProbe"] = http_probe()

    pod_spec: dict[str, Any] = {"containers": [container]}
    if app.image_pull_secret:
        pod_spec["imagePullSecrets"] = [{"name": app.image_pull_secret}]
    if app.rbac:
        pod_spec["serviceAccountName"] = service_account_name(app)

    default = {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": metadata_template(app.name, app.ns, labels=labels),
        "spec": {
            "replicas": app.replicas if app.replicas is not None else DEFAULT_REPLICAS,
            "selector": {"matchLabels": match_labels(app.name, app.workspace_id)},
            "template": {
                "metadata": metadata_template(app.name, labels=labels),
                "spec": pod_spec,
            },
            "strategy": {
                "type": "RollingUpdate",
                "rollingUpdate": {"maxUnavailable": 0, "maxSurge": 1},
            },
        },
    }
    return overlay(default, app.deployment_spec)
