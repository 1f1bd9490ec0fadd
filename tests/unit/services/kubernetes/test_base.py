"""Unit tests for K8sBaseManager."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import structlog

from kubedeploy.integrations.kubernetes.object_api import KubernetesObjectApi
from kubedeploy.services.kubernetes.base import K8sBaseManager


class InventoryManager(K8sBaseManager):
    _entity_name = "inventory"


@pytest.mark.unit
@pytest.mark.kubernetes
class TestK8sBaseManager:
    """Tests for K8sBaseManager."""

    def test_builds_object_api_from_client(self, mock_k8s_client: MagicMock) -> None:
        manager = InventoryManager(mock_k8s_client)

        assert manager._client is mock_k8s_client
        assert isinstance(manager._objects, KubernetesObjectApi)

    def test_uses_given_object_api(self, mock_k8s_client: MagicMock) -> None:
        object_api = MagicMock()
        manager = InventoryManager(mock_k8s_client, object_api=object_api)

        assert manager._objects is object_api

    def test_logger_bound_to_entity(self, mock_k8s_client: MagicMock) -> None:
        manager = InventoryManager(mock_k8s_client)
        assert structlog.get_context(manager._log)["entity"] == "inventory"
