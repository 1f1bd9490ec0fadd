"""Predicates matching resources against selector fields."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from kubedeploy.integrations.kubernetes.exceptions import KubernetesSelectorError

if TYPE_CHECKING:
    from kubedeploy.integrations.kubernetes.models import (
        LabelSelector,
        LabelSelectorRequirement,
        ResourceKind,
    )


def name_match(value: str | None, matcher: Any = None) -> bool:
    """Match a name or namespace against a string or pattern.

    A missing matcher matches anything; a string must be equal; a pattern
    is searched for anywhere in the value.

    Raises:
        KubernetesSelectorError: If the matcher is neither a string nor a pattern.
    """
    if matcher is None:
        return True
    if isinstance(matcher, str):
        return value == matcher
    if isinstance(matcher, re.Pattern):
        return value is not None and matcher.search(value) is not None
    raise KubernetesSelectorError(
        "Provided matcher is neither a string nor a pattern: "
        f"{matcher!r} ({type(matcher).__name__})"
    )


def _requirement_match(labels: dict[str, str], requirement: LabelSelectorRequirement) -> bool:
    present = requirement.key in labels
    if requirement.operator == "Exists":
        return present
    if requirement.operator == "DoesNotExist":
        return not present
    if requirement.operator == "In":
        return present and labels[requirement.key] in requirement.values
    return not present or labels[requirement.key] not in requirement.values


def label_match(resource: dict[str, Any], selector: LabelSelector | None = None) -> bool:
    """Return True if the resource's labels satisfy the selector.

    Every ``matchLabels`` entry must be present with an equal value and
    every ``matchExpressions`` requirement must hold.
    """
    if selector is None:
        return True
    labels = (resource.get("metadata") or {}).get("labels") or {}
    for key, value in (selector.match_labels or {}).items():
        if labels.get(key) != value:
            return False
    return all(_requirement_match(labels, req) for req in selector.match_expressions or [])


def kind_match(resource: dict[str, Any], kinds: list[ResourceKind] | None = None) -> bool:
    """Return True if the resource's kind is listed; apiVersion is ignored."""
    if not kinds:
        return True
    return any(resource.get("kind") == k.kind for k in kinds)
