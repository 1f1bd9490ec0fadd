"""Kind-agnostic Kubernetes REST client.

Addresses any resource from its ``apiVersion``, ``kind`` and ``metadata``
alone, so callers never need a typed API class per resource kind.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Literal

import structlog

from kubedeploy.integrations.kubernetes.exceptions import (
    KubernetesNotFoundError,
    KubernetesSpecError,
)
from kubedeploy.integrations.kubernetes.kinds import is_cluster_scoped, plural_name

if TYPE_CHECKING:
    from kubedeploy.integrations.kubernetes.client import KubernetesClient

logger = structlog.get_logger()

SpecAction = Literal["create", "read", "patch", "replace", "delete", "list"]

STRATEGIC_MERGE_PATCH = "application/strategic-merge-patch+json"
DEFAULT_DELETE_BODY: dict[str, Any] = {"propagationPolicy": "Background"}


def _describe(spec: dict[str, Any]) -> str:
    try:
        return json.dumps(spec, sort_keys=True, default=str)
    except (TypeError, ValueError):
        return repr(spec)


def spec_uri_path(spec: dict[str, Any], action: SpecAction) -> str:
    """Build the relative REST path for a resource descriptor.

    The path is ``apiVersion[/namespaces/<ns>]/<plural>[/<name>]``,
    lower-cased. ``create`` and ``list`` never carry a name segment; every
    other action requires ``metadata.name``. Cluster-scoped kinds never get
    a namespace segment.

    Args:
        spec: Resource descriptor.
        action: Operation the path is built for.

    Returns:
        Path relative to ``/api`` or ``/apis``.

    Raises:
        KubernetesSpecError: If kind, apiVersion or a required name is missing.
    """
    kind = spec.get("kind")
    if not kind:
        raise KubernetesSpecError(f"Spec does not contain kind: {_describe(spec)}", spec)
    api_version = spec.get("apiVersion")
    if not api_version:
        raise KubernetesSpecError(f"Spec does not contain apiVersion: {_describe(spec)}", spec)

    metadata = spec.get("metadata") or {}
    name = metadata.get("name")
    with_name = action not in ("create", "list")
    if with_name and not name:
        raise KubernetesSpecError(f"Spec does not contain name: {_describe(spec)}", spec)

    parts = [api_version]
    namespace = metadata.get("namespace")
    if namespace and not is_cluster_scoped(kind):
        parts.extend(["namespaces", namespace])
    parts.append(plural_name(kind))
    if with_name:
        parts.append(name)
    return "/".join(parts).lower()


def request_path(spec: dict[str, Any], action: SpecAction) -> str:
    """Return the absolute request path, ``/api/v1/...`` or ``/apis/<group>/...``."""
    path = spec_uri_path(spec, action)
    prefix = "/apis/" if "/" in spec["apiVersion"] else "/api/"
    return prefix + path


class KubernetesObjectApi:
    """Generic create/read/patch/replace/delete/list over raw dict specs.

    Every call goes through the client's retry decorator, so transient
    failures are retried and every error surfaces as a ``KubernetesError``.
    """

    def __init__(self, client: KubernetesClient) -> None:
        self._client = client

    def _request(
        self,
        spec: dict[str, Any],
        action: SpecAction,
        method: str,
        body: Any = None,
        content_type: str = "application/json",
        query_params: list[tuple[str, str]] | None = None,
    ) -> Any:
        path = request_path(spec, action)
        metadata = spec.get("metadata") or {}

        def call() -> Any:
            logger.debug("kubernetes_request", method=method, path=path)
            try:
                return self._client.api_client.call_api(
                    path,
                    method,
                    query_params=query_params or [],
                    header_params={"Accept": "application/json", "Content-Type": content_type},
                    body=body,
                    response_type="object",
                    auth_settings=["BearerToken"],
                    _return_http_data_only=True,
                    _preload_content=True,
                    _request_timeout=self._client.timeout,
                )
            except Exception as e:
                raise self._client.translate_api_exception(
                    e,
                    resource_type=spec.get("kind"),
                    resource_name=metadata.get("name"),
                    namespace=metadata.get("namespace"),
                ) from e

        return self._client.make_retry_decorator(f"{method} {path}")(call)()

    def create(self, spec: dict[str, Any]) -> dict[str, Any]:
        """Create a resource."""
        return self._request(spec, "create", "POST", body=spec)

    def read(self, spec: dict[str, Any]) -> dict[str, Any]:
        """Read a resource by kind, namespace and name."""
        return self._request(spec, "read", "GET")

    def patch(self, spec: dict[str, Any]) -> dict[str, Any]:
        """Strategic-merge patch a resource with ``spec``."""
        return self._request(spec, "patch", "PATCH", body=spec, content_type=STRATEGIC_MERGE_PATCH)

    def replace(self, spec: dict[str, Any]) -> dict[str, Any]:
        """Replace a resource wholesale."""
        return self._request(spec, "replace", "PUT", body=spec)

    def delete(self, spec: dict[str, Any], body: dict[str, Any] | None = None) -> dict[str, Any]:
        """Delete a resource.

        Args:
            spec: Resource descriptor.
            body: Delete options; defaults to background propagation.
        """
        if body is None:
            body = dict(DEFAULT_DELETE_BODY)
        return self._request(spec, "delete", "DELETE", body=body)

    def list(
        self,
        spec: dict[str, Any],
        label_selector: str | None = None,
    ) -> list[dict[str, Any]]:
        """List resources of a kind, in one namespace or cluster-wide.

        The API server omits ``kind`` and ``apiVersion`` from list items,
        so they are filled in from ``spec``.

        Args:
            spec: Descriptor giving kind, apiVersion and optional namespace.
            label_selector: Label selector string, e.g. ``app=web,tier=front``.

        Returns:
            List of resource dicts.
        """
        query = [("labelSelector", label_selector)] if label_selector else None
        response = self._request(spec, "list", "GET", query_params=query)
        items = (response or {}).get("items") or []
        for item in items:
            item.setdefault("kind", spec["kind"])
            item.setdefault("apiVersion", spec["apiVersion"])
        return items

    def upsert(self, spec: dict[str, Any]) -> dict[str, Any]:
        """Create the resource if absent, otherwise patch it in place."""
        path = spec_uri_path(spec, "read")
        try:
            self.read(spec)
        except KubernetesNotFoundError:
            logger.debug("creating_resource", kind=spec.get("kind"), path=path)
            return self.create(spec)
        logger.debug("patching_resource", kind=spec.get("kind"), path=path)
        return self.patch(spec)

    def delete_if_exists(
        self,
        spec: dict[str, Any],
        body: dict[str, Any] | None = None,
    ) -> dict[str, Any] | None:
        """Delete a resource, treating absence as success.

        Returns:
            The live resource as read before deletion, or None if it did
            not exist.
        """
        try:
            live = self.read(spec)
        except KubernetesNotFoundError:
            return None
        try:
            self.delete(spec, body)
        except KubernetesNotFoundError:
            return None
        return live
