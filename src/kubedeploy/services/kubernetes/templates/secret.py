"""Secret templates."""

from __future__ import annotations

import base64
from typing import TYPE_CHECKING, Any

from kubedeploy.integrations.kubernetes.config import DEFAULT_FULFILLER
from kubedeploy.integrations.kubernetes.exceptions import KubernetesSpecError
from kubedeploy.services.kubernetes.templates.base import app_labels, metadata_template, overlay

if TYPE_CHECKING:
    from kubedeploy.integrations.kubernetes.models import Application


def secret_template(
    app: Application,
    secret: dict[str, Any],
    fulfiller: str = DEFAULT_FULFILLER,
) -> dict[str, Any]:
    """Label one of the application's secrets and place it in its namespace.

    Values in ``secret`` must already be base64-encoded.

    Raises:
        KubernetesSpecError: If the secret has no ``metadata.name``.
    """
    name = (secret.get("metadata") or {}).get("name")
    if not name:
        raise KubernetesSpecError(f"Secret for application {app.slug} has no name", secret)
    default = {
        "apiVersion": "v1",
        "kind": "Secret",
        "type": "Opaque",
        "metadata": metadata_template(name, labels=app_labels(app, fulfiller, component="secret")),
    }
    merged = overlay(default, secret)
    merged["metadata"]["namespace"] = app.ns
    return merged


def encode_secret(name: str, data: dict[str, str]) -> dict[str, Any]:
    """Build an Opaque secret from plain-text values."""
    return {
        "apiVersion": "v1",
        "kind": "Secret",
        "type": "Opaque",
        "metadata": metadata_template(name),
        "data": {
            key: base64.b64encode(value.encode("utf-8")).decode("ascii")
            for key, value in data.items()
        },
    }
