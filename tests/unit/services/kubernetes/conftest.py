"""Shared fixtures for Kubernetes service tests."""

from __future__ import annotations

import copy
from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock

import pytest

from kubedeploy.integrations.kubernetes.exceptions import (
    KubernetesConflictError,
    KubernetesError,
    KubernetesNotFoundError,
)
from kubedeploy.integrations.kubernetes.models import Application
from kubedeploy.integrations.kubernetes.object_api import KubernetesObjectApi, request_path
from kubedeploy.utils.merge import deep_merge


def _selector_matches(resource: dict[str, Any], selector: str | None) -> bool:
    if not selector:
        return True
    labels = (resource.get("metadata") or {}).get("labels") or {}
    for term in selector.split(","):
        key, _, value = term.partition("=")
        if labels.get(key) != value:
            return False
    return True


class FakeObjectApi(KubernetesObjectApi):
    """In-memory object API.

    Only the transport is faked: paths, upsert and delete_if_exists run
    the real code. Objects are keyed by their read path.

    Attributes:
        objects: Stored resources by request path.
        requests: ``(method, path, body)`` for every request, in order.
        failures: Errors to raise, keyed by ``(method, kind)``.
        unserved: Kinds whose list calls return 404.
    """

    def __init__(self) -> None:
        client = MagicMock()
        client.timeout = 30
        super().__init__(client)
        self.objects: dict[str, dict[str, Any]] = {}
        self.requests: list[tuple[str, str, Any]] = []
        self.failures: dict[tuple[str, str], KubernetesError] = {}
        self.unserved: set[str] = set()

    def add(self, *resources: dict[str, Any]) -> None:
        for resource in resources:
            self.objects[request_path(resource, "read")] = copy.deepcopy(resource)

    def get(self, resource: dict[str, Any]) -> dict[str, Any] | None:
        return self.objects.get(request_path(resource, "read"))

    def methods(self) -> list[str]:
        return [method for method, _, _ in self.requests]

    def written(self) -> list[tuple[str, str]]:
        """``(method, path)`` of every create, patch, replace and delete."""
        return [(m, p) for m, p, _ in self.requests if m != "GET"]

    def _request(
        self,
        spec: dict[str, Any],
        action: Any,
        method: str,
        body: Any = None,
        content_type: str = "application/json",
        query_params: list[tuple[str, str]] | None = None,
    ) -> Any:
        path = request_path(spec, action)
        self.requests.append((method, path, copy.deepcopy(body)))
        kind = spec["kind"]
        metadata = spec.get("metadata") or {}

        failure = self.failures.get((method, kind))
        if failure is not None:
            raise failure

        def not_found() -> KubernetesNotFoundError:
            return KubernetesNotFoundError(
                resource_type=kind,
                resource_name=metadata.get("name"),
                namespace=metadata.get("namespace"),
            )

        if action == "list":
            if kind in self.unserved:
                raise KubernetesNotFoundError()
            prefix = path + "/"
            selector = dict(query_params or []).get("labelSelector")
            return {
                "items": [
                    copy.deepcopy(obj)
                    for key, obj in self.objects.items()
                    if key.startswith(prefix)
                    and "/" not in key[len(prefix) :]
                    and _selector_matches(obj, selector)
                ]
            }

        if action == "create":
            key = request_path(spec, "read")
            if key in self.objects:
                raise KubernetesConflictError(
                    resource_type=kind, resource_name=metadata.get("name")
                )
            self.objects[key] = copy.deepcopy(body)
            return copy.deepcopy(body)

        if path not in self.objects:
            raise not_found()
        if action == "read":
            return copy.deepcopy(self.objects[path])
        if action == "patch":
            self.objects[path] = deep_merge(self.objects[path], body)
            return copy.deepcopy(self.objects[path])
        if action == "replace":
            self.objects[path] = copy.deepcopy(body)
            return copy.deepcopy(body)
        del self.objects[path]
        return {"kind": "Status", "status": "Success"}


@pytest.fixture
def mock_k8s_client() -> MagicMock:
    """Create a mock Kubernetes client."""
    mock_client = MagicMock()
    mock_client.timeout = 30
    mock_client.make_retry_decorator.return_value = lambda f: f
    return mock_client


@pytest.fixture
def fake_objects() -> FakeObjectApi:
    """Create an empty in-memory object API."""
    return FakeObjectApi()


@pytest.fixture
def make_app() -> Callable[..., Application]:
    """Build an Application from camelCase data with sensible defaults."""

    def _make(**overrides: Any) -> Application:
        data: dict[str, Any] = {
            "workspaceId": "ws-1",
            "name": "api",
            "ns": "shop",
            "image": "registry.example.com/api:1.2.0",
        }
        data.update(overrides)
        return Application.model_validate(data)

    return _make
