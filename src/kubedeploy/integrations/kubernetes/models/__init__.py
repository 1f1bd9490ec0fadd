"""Pydantic models for applications and resource selectors."""

from kubedeploy.integrations.kubernetes.models.application import (
    Application,
    DeleteRequest,
    RbacSpec,
    app_slug,
)
from kubedeploy.integrations.kubernetes.models.selector import (
    LabelSelector,
    LabelSelectorRequirement,
    Matcher,
    ResourceKind,
    ResourceSelector,
)

__all__ = [
    "Application",
    "DeleteRequest",
    "LabelSelector",
    "LabelSelectorRequirement",
    "Matcher",
    "RbacSpec",
    "ResourceKind",
    "ResourceSelector",
    "app_slug",
]
