"""Base manager for Kubernetes service managers.

Provides shared infrastructure for the managers: client access, the
generic object API and bound structured logging.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from kubedeploy.integrations.kubernetes.object_api import KubernetesObjectApi

if TYPE_CHECKING:
    from kubedeploy.integrations.kubernetes.client import KubernetesClient

logger = structlog.get_logger()


class K8sBaseManager:
    """Base class for Kubernetes service managers.

    Subclasses set ``_entity_name`` for structured log context.

    Example:
        >>> class InventoryManager(K8sBaseManager):
        ...     _entity_name = "inventory"
    """

    _entity_name: str = ""

    def __init__(
        self,
        client: KubernetesClient,
        *,
        object_api: KubernetesObjectApi | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            client: Kubernetes API client instance.
            object_api: Generic resource API; built from ``client`` when omitted.
        """
        self._client = client
        self._objects = object_api if object_api is not None else KubernetesObjectApi(client)
        self._log = logger.bind(entity=self._entity_name)
