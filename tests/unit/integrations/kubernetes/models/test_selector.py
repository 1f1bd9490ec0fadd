"""Unit tests for resource selector models."""

from __future__ import annotations

import re

import pytest
from pydantic import ValidationError

from kubedeploy.integrations.kubernetes.models import (
    LabelSelector,
    ResourceKind,
    ResourceSelector,
)


@pytest.mark.unit
@pytest.mark.kubernetes
class TestResourceKind:
    """Test ResourceKind model."""

    def test_alias_and_descriptor(self) -> None:
        kind = ResourceKind.model_validate({"apiVersion": "apps/v1", "kind": "Deployment"})

        assert kind.descriptor() == {"apiVersion": "apps/v1", "kind": "Deployment"}
        assert kind.descriptor("shop") == {
            "apiVersion": "apps/v1",
            "kind": "Deployment",
            "metadata": {"namespace": "shop"},
        }

    def test_hashable(self) -> None:
        a = ResourceKind(api_version="v1", kind="Secret")
        b = ResourceKind(api_version="v1", kind="Secret")
        assert len({a, b}) == 1


@pytest.mark.unit
@pytest.mark.kubernetes
class TestResourceSelector:
    """Test ResourceSelector model."""

    def test_regex_mapping_compiled(self) -> None:
        selector = ResourceSelector.model_validate(
            {"action": "exclude", "namespace": {"regex": "^kube-"}}
        )
        assert isinstance(selector.namespace, re.Pattern)
        assert selector.namespace.pattern == "^kube-"

    def test_plain_string_kept(self) -> None:
        selector = ResourceSelector(name="default")
        assert selector.name == "default"

    def test_compiled_pattern_kept(self) -> None:
        pattern = re.compile("^system:")
        selector = ResourceSelector(name=pattern)
        assert selector.name is pattern

    def test_invalid_regex_rejected(self) -> None:
        with pytest.raises(ValidationError, match="invalid regular expression"):
            ResourceSelector.model_validate({"name": {"regex": "("}})

    def test_unknown_matcher_mapping_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ResourceSelector.model_validate({"name": {"glob": "kube-*"}})

    def test_non_string_matcher_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ResourceSelector.model_validate({"name": 42})

    def test_unknown_action_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ResourceSelector.model_validate({"action": "ignore"})

    def test_label_selector_alias(self) -> None:
        selector = ResourceSelector.model_validate(
            {
                "labelSelector": {
                    "matchLabels": {"tier": "web"},
                    "matchExpressions": [{"key": "env", "operator": "In", "values": ["prod"]}],
                }
            }
        )
        assert selector.label_selector is not None
        assert selector.label_selector.match_labels == {"tier": "web"}
        assert selector.label_selector.match_expressions is not None
        assert selector.label_selector.match_expressions[0].operator == "In"

    def test_has_predicate(self) -> None:
        assert not ResourceSelector(action="exclude").has_predicate()
        assert ResourceSelector(action="exclude", name="x").has_predicate()
        assert ResourceSelector(label_selector=LabelSelector()).has_predicate()
        assert ResourceSelector(filter=lambda r: True).has_predicate()
