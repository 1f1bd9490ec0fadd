"""Ingress template and endpoint URL."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from kubedeploy.integrations.kubernetes.config import DEFAULT_FULFILLER
from kubedeploy.services.kubernetes.templates.base import app_labels, metadata_template, overlay

if TYPE_CHECKING:
    from kubedeploy.integrations.kubernetes.models import Application

INGRESS_ANNOTATIONS = {
    "kubernetes.io/ingress.class": "nginx",
    "nginx.ingress.kubernetes.io/rewrite-target": "/",
    "nginx.ingress.kubernetes.io/client-body-buffer-size": "1m",
}


def ingress_template(app: Application, fulfiller: str = DEFAULT_FULFILLER) -> dict[str, Any]:
    """Build an nginx ingress with one rule routing ``app.path`` to the service.

    TLS is configured when ``app.tls_secret`` is set. ``app.ingress_spec``
    is merged over the default.
    """
    rule: dict[str, Any] = {
        "http": {
            "paths": [
                {
                    "path": app.path,
                    "pathType": "ImplementationSpecific",
                    "backend": {"service": {"name": app.name, "port": {"name": "http"}}},
                }
            ]
        }
    }
    if app.host:
        rule["host"] = app.host

    spec: dict[str, Any] = {"rules": [rule]}
    if app.tls_secret:
        tls: dict[str, Any] = {"secretName": app.tls_secret}
        if app.host:
            tls["hosts"] = [app.host]
        spec["tls"] = [tls]

    default = {
        "apiVersion": "networking.k8s.io/v1",
        "kind": "Ingress",
        "metadata": metadata_template(
            app.name,
            app.ns,
            labels=app_labels(app, fulfiller),
            annotations=INGRESS_ANNOTATIONS,
        ),
        "spec": spec,
    }
    return overlay(default, app.ingress_spec)


def endpoint_base_url(app: Application) -> str:
    """Return the URL the ingress serves the application at.

    The protocol defaults to ``https`` when a TLS secret is set and
    ``http`` otherwise; the host defaults to ``localhost``. The URL always
    ends with ``/``.
    """
    protocol = app.protocol or ("https" if app.tls_secret else "http")
    host = app.host or "localhost"
    tail = f"{app.path}/" if app.path and app.path != "/" else "/"
    return f"{protocol}://{host}{tail}"
