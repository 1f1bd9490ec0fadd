"""Kubernetes service module.

Provides application reconciliation and selector-driven resource
inventory on top of the generic object API.
"""

from kubedeploy.services.kubernetes.application_manager import ApplicationManager
from kubedeploy.services.kubernetes.base import K8sBaseManager
from kubedeploy.services.kubernetes.selector import (
    DEFAULT_FETCH_SELECTORS,
    DEFAULT_KINDS,
    ResourceFetchManager,
    evaluate,
    parse_selectors,
)

__all__ = [
    "DEFAULT_FETCH_SELECTORS",
    "DEFAULT_KINDS",
    "ApplicationManager",
    "K8sBaseManager",
    "ResourceFetchManager",
    "evaluate",
    "parse_selectors",
]
