"""Tests for merge utility functions."""

from __future__ import annotations

import pytest

from kubedeploy.utils.merge import deep_merge, get_nested_value


@pytest.mark.unit
class TestDeepMerge:
    """Tests for deep_merge function."""

    def test_scalars_from_overlay_win(self) -> None:
        assert deep_merge({"a": 1, "b": 2}, {"b": 3}) == {"a": 1, "b": 3}

    def test_nested_mappings_merge(self) -> None:
        base = {"spec": {"replicas": 1, "strategy": {"type": "RollingUpdate"}}}
        overlay = {"spec": {"strategy": {"rollingUpdate": {"maxSurge": 2}}}}

        assert deep_merge(base, overlay) == {
            "spec": {
                "replicas": 1,
                "strategy": {"type": "RollingUpdate", "rollingUpdate": {"maxSurge": 2}},
            }
        }

    def test_lists_replaced(self) -> None:
        base = {"containers": [{"name": "a"}, {"name": "b"}]}
        assert deep_merge(base, {"containers": [{"name": "c"}]}) == {"containers": [{"name": "c"}]}

    def test_mapping_replaced_by_scalar(self) -> None:
        assert deep_merge({"a": {"b": 1}}, {"a": None}) == {"a": None}

    def test_none_overlay_copies_base(self) -> None:
        base = {"a": {"b": 1}}
        merged = deep_merge(base, None)

        assert merged == base
        assert merged["a"] is not base["a"]

    def test_inputs_not_modified(self) -> None:
        base = {"a": {"b": [1]}}
        overlay = {"a": {"c": [2]}}

        merged = deep_merge(base, overlay)
        merged["a"]["c"].append(3)

        assert base == {"a": {"b": [1]}}
        assert overlay == {"a": {"c": [2]}}


@pytest.mark.unit
class TestGetNestedValue:
    """Tests for get_nested_value function."""

    def test_existing_path(self) -> None:
        assert get_nested_value({"a": {"b": {"c": 3}}}, "a.b.c") == 3

    def test_missing_path_returns_default(self) -> None:
        assert get_nested_value({"a": {}}, "a.b.c") is None
        assert get_nested_value({"a": {}}, "a.b", default="x") == "x"

    def test_non_mapping_on_path(self) -> None:
        assert get_nested_value({"a": [1, 2]}, "a.b") is None
