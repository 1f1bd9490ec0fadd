"""Ordered include/exclude selection of cluster resources.

A selector pipeline is a list of :class:`ResourceSelector` rules. For
each resource the first rule whose predicates all match decides whether
it is included or excluded; resources no rule matches are excluded.
Leading ``exclude`` rules therefore carve exceptions out of a trailing
catch-all ``include``.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from kubedeploy.integrations.kubernetes.exceptions import (
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesSelectorError,
)
from kubedeploy.integrations.kubernetes.kinds import is_cluster_scoped
from kubedeploy.integrations.kubernetes.models import (
    LabelSelector,
    ResourceKind,
    ResourceSelector,
)
from kubedeploy.services.kubernetes.base import K8sBaseManager
from kubedeploy.services.kubernetes.matchers import kind_match, label_match, name_match
from kubedeploy.services.kubernetes.resources import clean_resource_spec, unique_resources

if TYPE_CHECKING:
    from kubedeploy.integrations.kubernetes.client import KubernetesClient
    from kubedeploy.integrations.kubernetes.object_api import KubernetesObjectApi


def _kind(api_version: str, kind: str) -> ResourceKind:
    return ResourceKind(api_version=api_version, kind=kind)


DEFAULT_KINDS: tuple[ResourceKind, ...] = (
    _kind("v1", "ConfigMap"),
    _kind("v1", "Secret"),
    _kind("v1", "Service"),
    _kind("v1", "ServiceAccount"),
    _kind("v1", "PersistentVolume"),
    _kind("v1", "PersistentVolumeClaim"),
    _kind("networking.k8s.io/v1", "Ingress"),
    _kind("policy/v1beta1", "PodSecurityPolicy"),
    _kind("apps/v1", "DaemonSet"),
    _kind("apps/v1", "Deployment"),
    _kind("apps/v1", "StatefulSet"),
    _kind("autoscaling/v1", "HorizontalPodAutoscaler"),
    _kind("batch/v1", "CronJob"),
    _kind("networking.k8s.io/v1", "NetworkPolicy"),
    _kind("policy/v1", "PodDisruptionBudget"),
    _kind("rbac.authorization.k8s.io/v1", "ClusterRole"),
    _kind("rbac.authorization.k8s.io/v1", "ClusterRoleBinding"),
    _kind("rbac.authorization.k8s.io/v1", "Role"),
    _kind("rbac.authorization.k8s.io/v1", "RoleBinding"),
    _kind("storage.k8s.io/v1", "StorageClass"),
)

NAMESPACE_KIND = _kind("v1", "Namespace")

_CLUSTER_RBAC_KINDS = [
    _kind("rbac.authorization.k8s.io/v1", "ClusterRole"),
    _kind("rbac.authorization.k8s.io/v1", "ClusterRoleBinding"),
]


def _is_service_account_token(resource: dict[str, Any]) -> bool:
    return resource.get("type") == "kubernetes.io/service-account-token"


def _default_fetch_selectors() -> list[ResourceSelector]:
    return [
        ResourceSelector.model_validate({"action": "exclude", "namespace": {"regex": "^kube-"}}),
        ResourceSelector(
            action="exclude",
            kinds=[_kind("v1", "Service")],
            namespace="default",
            name="kubernetes",
        ),
        ResourceSelector(action="exclude", kinds=[_kind("v1", "ServiceAccount")], name="default"),
        ResourceSelector(
            action="exclude",
            kinds=_CLUSTER_RBAC_KINDS,
            label_selector=LabelSelector(
                match_labels={"kubernetes.io/bootstrapping": "rbac-defaults"}
            ),
        ),
        ResourceSelector.model_validate(
            {"action": "exclude", "kinds": _CLUSTER_RBAC_KINDS, "name": {"regex": "^system:"}}
        ),
        ResourceSelector(
            action="exclude",
            kinds=[_kind("v1", "Secret")],
            filter=_is_service_account_token,
        ),
        ResourceSelector(action="include", kinds=list(DEFAULT_KINDS)),
    ]


DEFAULT_FETCH_SELECTORS: tuple[ResourceSelector, ...] = tuple(_default_fetch_selectors())


def parse_selectors(data: Iterable[dict[str, Any] | ResourceSelector]) -> list[ResourceSelector]:
    """Validate plain selector data into models.

    Raises:
        KubernetesSelectorError: If any selector is malformed.
    """
    selectors: list[ResourceSelector] = []
    for index, item in enumerate(data):
        if isinstance(item, ResourceSelector):
            selectors.append(item)
            continue
        try:
            selectors.append(ResourceSelector.model_validate(item))
        except ValidationError as e:
            raise KubernetesSelectorError(f"Invalid resource selector at index {index}: {e}") from e
    return selectors


def populate_selector_defaults(selectors: Iterable[ResourceSelector]) -> list[ResourceSelector]:
    """Fill in defaults and drop vacuous rules.

    A missing ``action`` becomes ``include``; an ``include`` without kinds
    gets :data:`DEFAULT_KINDS`. ``exclude`` rules with no predicate at all
    are dropped. The input selectors are not modified.
    """
    populated: list[ResourceSelector] = []
    for selector in selectors:
        update: dict[str, Any] = {}
        action = selector.action or "include"
        if action != selector.action:
            update["action"] = action
        if action == "include" and not selector.kinds:
            update["kinds"] = list(DEFAULT_KINDS)
        if action == "exclude" and not selector.has_predicate():
            continue
        populated.append(selector.model_copy(update=update) if update else selector)
    return populated


def _unique_kinds(kinds: Iterable[ResourceKind]) -> list[ResourceKind]:
    seen: set[str] = set()
    unique: list[ResourceKind] = []
    for kind in kinds:
        if kind.kind in seen:
            continue
        seen.add(kind.kind)
        unique.append(kind)
    return unique


def included_resource_kinds(selectors: Sequence[ResourceSelector]) -> list[ResourceKind]:
    """Return every kind named by an include rule, unique by ``kind``."""
    return _unique_kinds(
        kind for s in selectors if s.action in (None, "include") for kind in s.kinds or ()
    )


def split_resource_kinds(
    kinds: Iterable[ResourceKind],
) -> tuple[list[ResourceKind], list[ResourceKind]]:
    """Partition kinds into ``(cluster_scoped, namespaced)``."""
    cluster: list[ResourceKind] = []
    namespaced: list[ResourceKind] = []
    for kind in kinds:
        (cluster if is_cluster_scoped(kind.kind) else namespaced).append(kind)
    return cluster, namespaced


def namespace_resource_kinds(
    namespace: str,
    selectors: Sequence[ResourceSelector],
) -> list[ResourceKind]:
    """Return the namespaced kinds worth listing in ``namespace``.

    Only include rules whose namespace predicate matches contribute.
    """
    kinds = (
        kind
        for s in selectors
        if s.action in (None, "include") and name_match(namespace, s.namespace)
        for kind in s.kinds or ()
    )
    return split_resource_kinds(_unique_kinds(kinds))[1]


def _matcher_value(resource: dict[str, Any], field: str) -> str | None:
    return (resource.get("metadata") or {}).get(field)


def selector_match(resource: dict[str, Any], selector: ResourceSelector) -> bool:
    """Return True if every predicate of the selector matches the resource."""
    return (
        kind_match(resource, selector.kinds)
        and name_match(_matcher_value(resource, "name"), selector.name)
        and name_match(_matcher_value(resource, "namespace"), selector.namespace)
        and label_match(resource, selector.label_selector)
        and (selector.filter is None or bool(selector.filter(resource)))
    )


def select_resources(
    resources: Iterable[dict[str, Any]],
    selectors: Sequence[ResourceSelector],
) -> list[dict[str, Any]]:
    """Deduplicate resources and keep those the first matching rule includes.

    With no selectors at all every deduplicated resource is returned.
    """
    unique = unique_resources(resources)
    if not selectors:
        return unique
    selected: list[dict[str, Any]] = []
    for resource in unique:
        for selector in selectors:
            if selector_match(resource, selector):
                if selector.action != "exclude":
                    selected.append(resource)
                break
    return selected


def evaluate(
    resources: Iterable[dict[str, Any]],
    selectors: Iterable[ResourceSelector],
) -> list[dict[str, Any]]:
    """Run the full pipeline: defaults, selection, then sanitization.

    Only a literally empty selector list returns every resource; rules that
    all reduce to nothing after defaulting select nothing. Returns cleaned
    copies; the input resources are not modified.
    """
    rules = list(selectors)
    if not rules:
        return [clean_resource_spec(r) for r in unique_resources(resources)]
    populated = populate_selector_defaults(rules)
    if not populated:
        return []
    return [clean_resource_spec(r) for r in select_resources(resources, populated)]


class ResourceFetchManager(K8sBaseManager):
    """Inventory cluster resources through a selector pipeline."""

    _entity_name = "resource"

    def __init__(
        self,
        client: KubernetesClient,
        *,
        object_api: KubernetesObjectApi | None = None,
    ) -> None:
        super().__init__(client, object_api=object_api)

    def fetch(
        self,
        selectors: Iterable[ResourceSelector | dict[str, Any]] | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch and select resources from the cluster.

        Cluster-scoped kinds are listed once; namespaced kinds are listed
        per namespace, only where an include rule could match.

        Args:
            selectors: Selector pipeline; defaults to
                :data:`DEFAULT_FETCH_SELECTORS`.

        Returns:
            Selected, sanitized resource specs.

        Raises:
            KubernetesSelectorError: If a selector is malformed.
            KubernetesError: If listing namespaces or any served kind fails.
        """
        parsed = parse_selectors(DEFAULT_FETCH_SELECTORS if selectors is None else selectors)
        populated = populate_selector_defaults(parsed)
        cluster_kinds, _ = split_resource_kinds(included_resource_kinds(populated))

        unserved: set[str] = set()
        resources: list[dict[str, Any]] = []
        for kind in cluster_kinds:
            resources.extend(self._list(kind, unserved=unserved))

        namespaces = [ns["metadata"]["name"] for ns in self._list(NAMESPACE_KIND)]
        for namespace in namespaces:
            for kind in namespace_resource_kinds(namespace, populated):
                if kind.kind not in unserved:
                    resources.extend(self._list(kind, namespace, unserved=unserved))

        selected = evaluate(resources, parsed)
        self._log.info(
            "fetched_resources",
            listed=len(resources),
            selected=len(selected),
            namespaces=len(namespaces),
        )
        return selected

    def _list(
        self,
        kind: ResourceKind,
        namespace: str | None = None,
        *,
        unserved: set[str] | None = None,
    ) -> list[dict[str, Any]]:
        """List one kind; kinds the cluster does not serve are recorded in ``unserved``."""
        try:
            return self._objects.list(kind.descriptor(namespace))
        except KubernetesError as e:
            if isinstance(e, KubernetesNotFoundError) and unserved is not None:
                self._log.warning(
                    "resource_kind_not_served", kind=kind.kind, api_version=kind.api_version
                )
                unserved.add(kind.kind)
                return []
            where = f"{kind.api_version}/{kind.kind}"
            if namespace:
                where += f" in namespace {namespace}"
            self._log.error("list_failed", kind=kind.kind, namespace=namespace, error=str(e))
            raise KubernetesError(
                message=f"Failed to list resources {where}: {e.message}",
                status_code=e.status_code,
                resource_type=kind.kind,
                namespace=namespace,
                body=e.body,
            ) from e
