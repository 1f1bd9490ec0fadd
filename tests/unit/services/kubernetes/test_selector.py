"""Unit tests for the resource selector pipeline and fetch manager."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any
from unittest.mock import MagicMock

import pytest

from kubedeploy.integrations.kubernetes.exceptions import (
    KubernetesError,
    KubernetesSelectorError,
)
from kubedeploy.integrations.kubernetes.models import LabelSelector, ResourceKind, ResourceSelector
from kubedeploy.services.kubernetes.selector import (
    DEFAULT_FETCH_SELECTORS,
    DEFAULT_KINDS,
    ResourceFetchManager,
    evaluate,
    included_resource_kinds,
    namespace_resource_kinds,
    parse_selectors,
    populate_selector_defaults,
    select_resources,
    split_resource_kinds,
)

if TYPE_CHECKING:
    from tests.unit.services.kubernetes.conftest import FakeObjectApi

SERVICE = ResourceKind(api_version="v1", kind="Service")
SECRET = ResourceKind(api_version="v1", kind="Secret")
DEPLOYMENT = ResourceKind(api_version="apps/v1", kind="Deployment")
RBAC = "rbac.authorization.k8s.io/v1"
CLUSTER_ROLE = ResourceKind(api_version=RBAC, kind="ClusterRole")


def _res(
    kind: str,
    name: str,
    namespace: str | None = None,
    api_version: str = "v1",
    labels: dict[str, str] | None = None,
    **extra: Any,
) -> dict[str, Any]:
    metadata: dict[str, Any] = {"name": name}
    if namespace:
        metadata["namespace"] = namespace
    if labels:
        metadata["labels"] = labels
    return {"apiVersion": api_version, "kind": kind, "metadata": metadata, **extra}


def _names(resources: list[dict[str, Any]]) -> list[str]:
    return [
        "/".join(
            filter(None, [r["kind"], r["metadata"].get("namespace"), r["metadata"]["name"]])
        )
        for r in resources
    ]


@pytest.mark.unit
@pytest.mark.kubernetes
class TestParseSelectors:
    """Test selector validation."""

    def test_plain_data(self) -> None:
        selectors = parse_selectors(
            [
                {"action": "exclude", "namespace": {"regex": "^kube-"}},
                {"kinds": [{"apiVersion": "v1", "kind": "Secret"}]},
            ]
        )

        assert selectors[0].action == "exclude"
        assert isinstance(selectors[0].namespace, re.Pattern)
        assert selectors[1].kinds == [SECRET]

    def test_models_passed_through(self) -> None:
        selector = ResourceSelector(action="include")
        assert parse_selectors([selector])[0] is selector

    def test_error_names_index(self) -> None:
        with pytest.raises(KubernetesSelectorError, match="at index 1"):
            parse_selectors([{"action": "include"}, {"name": 42}])


@pytest.mark.unit
@pytest.mark.kubernetes
class TestPopulateSelectorDefaults:
    """Test default filling."""

    def test_missing_action_becomes_include_with_default_kinds(self) -> None:
        (selector,) = populate_selector_defaults([ResourceSelector()])

        assert selector.action == "include"
        assert selector.kinds == list(DEFAULT_KINDS)

    def test_include_with_kinds_kept(self) -> None:
        (selector,) = populate_selector_defaults([ResourceSelector(kinds=[SECRET])])
        assert selector.kinds == [SECRET]

    def test_vacuous_exclude_dropped(self) -> None:
        populated = populate_selector_defaults(
            [ResourceSelector(action="exclude"), ResourceSelector(action="exclude", name="x")]
        )
        assert len(populated) == 1
        assert populated[0].name == "x"

    def test_exclude_without_kinds_left_unscoped(self) -> None:
        (selector,) = populate_selector_defaults([ResourceSelector(action="exclude", name="x")])
        assert selector.kinds is None

    def test_input_not_modified(self) -> None:
        original = ResourceSelector()
        populate_selector_defaults([original])
        assert original.action is None
        assert original.kinds is None


@pytest.mark.unit
@pytest.mark.kubernetes
class TestDiscoveryPlanning:
    """Test which kinds get listed where."""

    def test_included_kinds_unique_by_kind(self) -> None:
        legacy_ingress = ResourceKind(api_version="extensions/v1beta1", kind="Ingress")
        ingress = ResourceKind(api_version="networking.k8s.io/v1", kind="Ingress")
        selectors = [
            ResourceSelector(action="include", kinds=[legacy_ingress, SECRET]),
            ResourceSelector(action="exclude", kinds=[DEPLOYMENT]),
            ResourceSelector(action="include", kinds=[ingress]),
        ]

        assert included_resource_kinds(selectors) == [legacy_ingress, SECRET]

    def test_split_by_scope(self) -> None:
        cluster, namespaced = split_resource_kinds([SECRET, CLUSTER_ROLE, DEPLOYMENT])

        assert cluster == [CLUSTER_ROLE]
        assert namespaced == [SECRET, DEPLOYMENT]

    def test_namespace_predicate_limits_kinds(self) -> None:
        selectors = [
            ResourceSelector.model_validate(
                {
                    "action": "include",
                    "namespace": {"regex": "^app-"},
                    "kinds": [{"apiVersion": "apps/v1", "kind": "Deployment"}],
                }
            ),
            ResourceSelector(action="include", kinds=[SECRET, CLUSTER_ROLE]),
            ResourceSelector(action="exclude", kinds=[SERVICE]),
        ]

        assert namespace_resource_kinds("kube-system", selectors) == [SECRET]
        assert namespace_resource_kinds("app-1", selectors) == [DEPLOYMENT, SECRET]


@pytest.mark.unit
@pytest.mark.kubernetes
class TestSelectResources:
    """Test first-match-wins selection."""

    def test_order_sensitive_exclude_before_catch_all(self) -> None:
        selectors = populate_selector_defaults(
            [
                ResourceSelector.model_validate(
                    {"action": "exclude", "namespace": {"regex": "^kube-"}}
                ),
                ResourceSelector(action="include"),
            ]
        )
        resources = [
            _res("ConfigMap", "coredns", "kube-system"),
            _res("ConfigMap", "settings", "shop"),
        ]

        assert _names(select_resources(resources, selectors)) == ["ConfigMap/shop/settings"]

    def test_include_before_exclude_wins(self) -> None:
        selectors = [
            ResourceSelector(action="include", kinds=[SERVICE]),
            ResourceSelector(action="exclude", name="api"),
        ]
        resources = [_res("Service", "api", "shop")]

        assert select_resources(resources, selectors) == resources

    def test_unmatched_resources_excluded(self) -> None:
        selectors = [ResourceSelector(action="include", kinds=[DEPLOYMENT])]
        resources = [_res("Service", "api", "shop")]

        assert select_resources(resources, selectors) == []

    def test_empty_selectors_return_everything_deduplicated(self) -> None:
        first = _res("Service", "api", "shop")
        duplicate = _res("Service", "api", "shop", api_version="v2")
        other = _res("Secret", "db", "shop")

        assert select_resources([first, duplicate, other], []) == [first, other]

    def test_duplicates_differing_in_api_version_kept_once(self) -> None:
        selectors = [ResourceSelector(action="include", kinds=[SERVICE])]
        resources = [_res("Service", "api", "shop"), _res("Service", "api", "shop", "v2")]

        assert len(select_resources(resources, selectors)) == 1

    def test_all_predicates_must_match(self) -> None:
        selector = ResourceSelector(
            action="include",
            kinds=[SERVICE],
            namespace="shop",
            name=re.compile("^api"),
            label_selector=LabelSelector(match_labels={"tier": "web"}),
            filter=lambda r: r.get("spec", {}).get("type") == "NodePort",
        )
        web = {"tier": "web"}
        matching = _res("Service", "api-v1", "shop", labels=web, spec={"type": "NodePort"})
        wrong_type = _res("Service", "api-v2", "shop", labels=web, spec={"type": "ClusterIP"})
        unlabelled = _res("Service", "api-v3", "shop", spec={"type": "NodePort"})

        selected = select_resources([matching, wrong_type, unlabelled], [selector])

        assert selected == [matching]

    def test_documented_service_example(self) -> None:
        selectors = parse_selectors(
            [
                {
                    "action": "exclude",
                    "kinds": [{"apiVersion": "v1", "kind": "Service"}],
                    "namespace": "default",
                    "name": "kubernetes",
                },
                {
                    "action": "include",
                    "kinds": [k.model_dump(by_alias=True) for k in DEFAULT_KINDS],
                },
            ]
        )
        resources = [
            _res("Service", "kubernetes", "default"),
            _res("Service", "my-svc", "my-ns"),
        ]

        assert _names(evaluate(resources, selectors)) == ["Service/my-ns/my-svc"]


@pytest.mark.unit
@pytest.mark.kubernetes
class TestEvaluate:
    """Test the complete pipeline."""

    def test_sanitizes_selected_resources(self) -> None:
        resource = _res("Secret", "db", "shop", status={"phase": "x"})
        resource["metadata"]["uid"] = "abc"

        (selected,) = evaluate([resource], [ResourceSelector()])

        assert "status" not in selected
        assert "uid" not in selected["metadata"]
        assert resource["metadata"]["uid"] == "abc"

    def test_default_include_limited_to_default_kinds(self) -> None:
        resources = [_res("Pod", "web-1", "shop"), _res("Secret", "db", "shop")]
        assert _names(evaluate(resources, [ResourceSelector()])) == ["Secret/shop/db"]

    def test_empty_rule_list_returns_everything(self) -> None:
        resources = [_res("Pod", "web-1", "shop"), _res("Secret", "db", "shop")]
        assert _names(evaluate(resources, [])) == ["Pod/shop/web-1", "Secret/shop/db"]

    def test_only_vacuous_excludes_select_nothing(self) -> None:
        resources = [_res("Service", "a", "shop")]
        assert evaluate(resources, [ResourceSelector(action="exclude")]) == []


@pytest.mark.unit
@pytest.mark.kubernetes
class TestDefaultFetchSelectors:
    """Test the safe inventory policy."""

    @pytest.mark.parametrize(
        "resource",
        [
            _res("ConfigMap", "coredns", "kube-system"),
            _res("Service", "kubernetes", "default"),
            _res("ServiceAccount", "default", "shop"),
            _res(
                "ClusterRole",
                "admin",
                api_version=RBAC,
                labels={"kubernetes.io/bootstrapping": "rbac-defaults"},
            ),
            _res("ClusterRoleBinding", "system:node", api_version=RBAC),
            _res("Secret", "default-token-x", "shop", type="kubernetes.io/service-account-token"),
            _res("Pod", "web-1", "shop"),
        ],
    )
    def test_excluded(self, resource: dict[str, Any]) -> None:
        assert evaluate([resource], DEFAULT_FETCH_SELECTORS) == []

    @pytest.mark.parametrize(
        "resource",
        [
            _res("ConfigMap", "settings", "shop"),
            _res("Service", "kubernetes", "shop"),
            _res("ServiceAccount", "api", "shop"),
            _res("ClusterRole", "reader", api_version=RBAC),
            _res("Secret", "db", "shop", type="Opaque"),
            _res("Deployment", "api", "shop", api_version="apps/v1"),
        ],
    )
    def test_included(self, resource: dict[str, Any]) -> None:
        assert len(evaluate([resource], DEFAULT_FETCH_SELECTORS)) == 1


@pytest.fixture
def fetch_manager(mock_k8s_client: MagicMock, fake_objects: FakeObjectApi) -> ResourceFetchManager:
    return ResourceFetchManager(mock_k8s_client, object_api=fake_objects)


def _list_paths(fake: FakeObjectApi) -> list[str]:
    return [path for method, path, _ in fake.requests if method == "GET"]


@pytest.mark.unit
@pytest.mark.kubernetes
class TestResourceFetchManager:
    """Test fetching through the object API."""

    def test_default_fetch(
        self, fetch_manager: ResourceFetchManager, fake_objects: FakeObjectApi
    ) -> None:
        fake_objects.add(
            _res("Namespace", "default"),
            _res("Namespace", "kube-system"),
            _res("Namespace", "shop"),
            _res("Service", "kubernetes", "default", status={"loadBalancer": {}}),
            _res("Service", "api", "shop"),
            _res("ConfigMap", "coredns", "kube-system"),
            _res("Secret", "db", "shop", type="Opaque"),
            _res("Secret", "api-token", "shop", type="kubernetes.io/service-account-token"),
            _res("ClusterRole", "reader", api_version=RBAC),
            _res("ClusterRole", "system:auth", api_version=RBAC),
        )

        resources = fetch_manager.fetch()

        assert sorted(_names(resources)) == [
            "ClusterRole/reader",
            "Secret/shop/db",
            "Service/shop/api",
        ]

    def test_cluster_kinds_listed_once(
        self, fetch_manager: ResourceFetchManager, fake_objects: FakeObjectApi
    ) -> None:
        fake_objects.add(_res("Namespace", "a"), _res("Namespace", "b"))

        fetch_manager.fetch()

        paths = _list_paths(fake_objects)
        assert paths.count("/apis/rbac.authorization.k8s.io/v1/clusterroles") == 1
        assert "/api/v1/namespaces/a/secrets" in paths
        assert "/api/v1/namespaces/b/secrets" in paths
        assert not any("namespaces/a/clusterroles" in p for p in paths)

    def test_namespaces_without_matching_include_skipped(
        self, fetch_manager: ResourceFetchManager, fake_objects: FakeObjectApi
    ) -> None:
        fake_objects.add(_res("Namespace", "shop"), _res("Namespace", "billing"))

        fetch_manager.fetch(
            [
                {
                    "action": "include",
                    "namespace": "shop",
                    "kinds": [{"apiVersion": "v1", "kind": "Secret"}],
                }
            ]
        )

        assert _list_paths(fake_objects) == [
            "/api/v1/namespaces",
            "/api/v1/namespaces/shop/secrets",
        ]

    def test_end_to_end_service_example(
        self, fetch_manager: ResourceFetchManager, fake_objects: FakeObjectApi
    ) -> None:
        fake_objects.add(
            _res("Namespace", "default"),
            _res("Namespace", "my-ns"),
            _res("Service", "kubernetes", "default"),
            _res("Service", "my-svc", "my-ns"),
        )
        selectors = [
            ResourceSelector(
                action="exclude", kinds=[SERVICE], namespace="default", name="kubernetes"
            ),
            ResourceSelector(action="include", kinds=list(DEFAULT_KINDS)),
        ]

        assert _names(fetch_manager.fetch(selectors)) == ["Service/my-ns/my-svc"]

    def test_unserved_kind_skipped(
        self, fetch_manager: ResourceFetchManager, fake_objects: FakeObjectApi
    ) -> None:
        fake_objects.add(
            _res("Namespace", "a"),
            _res("Namespace", "b"),
            _res("Secret", "db", "a"),
        )
        fake_objects.unserved = {"PodSecurityPolicy", "HorizontalPodAutoscaler"}

        resources = fetch_manager.fetch()

        assert _names(resources) == ["Secret/a/db"]
        hpa_lists = [p for p in _list_paths(fake_objects) if "horizontalpodautoscalers" in p]
        assert len(hpa_lists) == 1

    def test_list_failure_names_kind_and_namespace(
        self, fetch_manager: ResourceFetchManager, fake_objects: FakeObjectApi
    ) -> None:
        fake_objects.add(_res("Namespace", "shop"))
        fake_objects.failures[("GET", "Secret")] = KubernetesError("boom", status_code=500)

        with pytest.raises(KubernetesError) as exc_info:
            fetch_manager.fetch()

        assert exc_info.value.message == (
            "Failed to list resources v1/Secret in namespace shop: boom"
        )
        assert exc_info.value.status_code == 500
        assert isinstance(exc_info.value.__cause__, KubernetesError)

    def test_namespace_list_failure_propagates(
        self, fetch_manager: ResourceFetchManager, fake_objects: FakeObjectApi
    ) -> None:
        fake_objects.unserved = {"Namespace"}

        with pytest.raises(KubernetesError, match="Failed to list resources v1/Namespace"):
            fetch_manager.fetch()

    def test_invalid_selector(self, fetch_manager: ResourceFetchManager) -> None:
        with pytest.raises(KubernetesSelectorError):
            fetch_manager.fetch([{"action": "maybe"}])
