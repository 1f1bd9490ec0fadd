"""Resource identity, naming and spec cleanup helpers."""

from __future__ import annotations

import copy
import re
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from kubedeploy.integrations.kubernetes.models.application import app_slug
from kubedeploy.utils.merge import get_nested_value

if TYPE_CHECKING:
    from kubedeploy.integrations.kubernetes.models import Application, DeleteRequest

DEFAULT_VALID_NAME = "valid-name"
MAX_NAME_LENGTH = 63
VALID_NAME_PATTERN = re.compile(r"^[a-z]([-a-z0-9]*[a-z0-9])?$")

_LEADING_INVALID = re.compile(r"^[^a-z]+")
_TRAILING_INVALID = re.compile(r"[^a-z0-9]+$")
_INTERIOR_INVALID = re.compile(r"[^-a-z0-9]+")

SERVER_METADATA_FIELDS = (
    "creationTimestamp",
    "generation",
    "managedFields",
    "resourceVersion",
    "selfLink",
    "uid",
)

SERVER_ANNOTATIONS = (
    "deployment.kubernetes.io/revision",
    "kubectl.kubernetes.io/last-applied-configuration",
)


def resource_identity(resource: dict[str, Any]) -> str:
    """Return ``kind|[namespace|]name``.

    ``apiVersion`` is left out so the same object served under two API
    groups has one identity.
    """
    metadata = resource.get("metadata") or {}
    identity = resource.get("kind", "") + "|"
    if metadata.get("namespace"):
        identity += metadata["namespace"] + "|"
    return identity + (metadata.get("name") or "")


def unique_resources(resources: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Drop resources whose identity was already seen, keeping the first."""
    seen: set[str] = set()
    unique: list[dict[str, Any]] = []
    for resource in resources:
        identity = resource_identity(resource)
        if identity in seen:
            continue
        seen.add(identity)
        unique.append(resource)
    return unique


def valid_name(name: str) -> str:
    """Turn an arbitrary string into a valid resource name.

    The result matches ``^[a-z]([-a-z0-9]*[a-z0-9])?$`` and is 1-63
    characters long. :data:`DEFAULT_VALID_NAME` is returned when nothing
    usable is left.
    """
    valid = name[:MAX_NAME_LENGTH].lower()
    valid = _LEADING_INVALID.sub("", valid)
    valid = _TRAILING_INVALID.sub("", valid)
    valid = _INTERIOR_INVALID.sub("-", valid)
    # Lower-casing some characters lengthens the string.
    if len(valid) > MAX_NAME_LENGTH:
        valid = _TRAILING_INVALID.sub("", valid[:MAX_NAME_LENGTH])
    return valid or DEFAULT_VALID_NAME


def app_name(app: Application | DeleteRequest) -> str:
    """Return the ``namespace/name`` slug of an application."""
    return app_slug(app.ns, app.name)


def clean_resource_spec(resource: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of a live resource stripped of server-populated fields.

    Removes identifying and bookkeeping metadata, the revision and
    last-applied annotations (dropping ``annotations`` when emptied), the
    pod template creation timestamp and ``status``.
    """
    cleaned = copy.deepcopy(resource)
    cleaned.pop("status", None)

    metadata = cleaned.get("metadata")
    if isinstance(metadata, dict):
        for field in SERVER_METADATA_FIELDS:
            metadata.pop(field, None)
        annotations = metadata.get("annotations")
        if isinstance(annotations, dict):
            for key in SERVER_ANNOTATIONS:
                annotations.pop(key, None)
            if not annotations:
                del metadata["annotations"]

    template = get_nested_value(cleaned, "spec.template")
    if isinstance(template, dict) and isinstance(template.get("metadata"), dict):
        template["metadata"].pop("creationTimestamp", None)

    return cleaned
