"""Standard application labels.

Follows the Kubernetes recommended ``app.kubernetes.io/*`` label set,
plus a workspace label tying resources to the workspace that owns them.
"""

from __future__ import annotations

import re

NAME_LABEL = "app.kubernetes.io/name"
PART_OF_LABEL = "app.kubernetes.io/part-of"
MANAGED_BY_LABEL = "app.kubernetes.io/managed-by"
COMPONENT_LABEL = "app.kubernetes.io/component"
INSTANCE_LABEL = "app.kubernetes.io/instance"
VERSION_LABEL = "app.kubernetes.io/version"
WORKSPACE_LABEL = "kubedeploy.io/workspace-id"

_LEADING_INVALID = re.compile(r"^[^A-Za-z0-9]+")
_TRAILING_INVALID = re.compile(r"[^A-Za-z0-9]+$")
_INTERIOR_INVALID = re.compile(r"[^-A-Za-z0-9_.]+")


def safe_label_value(value: str) -> str:
    """Remove characters not allowed in a label value.

    Leading and trailing non-alphanumerics are stripped and interior runs
    of invalid characters become ``_``. Length is not enforced.
    """
    value = _LEADING_INVALID.sub("", value)
    value = _TRAILING_INVALID.sub("", value)
    return _INTERIOR_INVALID.sub("_", value)


def match_labels(name: str, workspace_id: str) -> dict[str, str]:
    """Labels that select every resource of one application."""
    return {
        NAME_LABEL: name,
        WORKSPACE_LABEL: workspace_id,
    }


def application_labels(
    name: str,
    workspace_id: str,
    fulfiller: str,
    component: str | None = None,
    instance: str | None = None,
    version: str | None = None,
) -> dict[str, str]:
    """Full label set for a resource belonging to an application.

    Args:
        name: Application name.
        workspace_id: Owning workspace.
        fulfiller: Name of the tool managing the resource.
        component: Optional component within the application.
        instance: Optional instance identifier.
        version: Optional application version.

    Returns:
        Label mapping.
    """
    labels = {
        **match_labels(name, workspace_id),
        PART_OF_LABEL: name,
        MANAGED_BY_LABEL: safe_label_value(fulfiller),
    }
    if component:
        labels[COMPONENT_LABEL] = component
    if instance:
        labels[INSTANCE_LABEL] = instance
    if version:
        labels[VERSION_LABEL] = version
    return labels


def label_selector_string(labels: dict[str, str]) -> str:
    """Format labels as an equality selector, ``k1=v1,k2=v2``."""
    return ",".join(f"{key}={value}" for key, value in labels.items())
