"""Deep-merge overlay and nested-path utilities for resource specs."""

from __future__ import annotations

import copy
from typing import Any


def deep_merge(base: dict[str, Any], overlay: dict[str, Any] | None) -> dict[str, Any]:
    """Overlay ``overlay`` on ``base`` and return a new dict.

    Rules:
        - Scalars from the overlay win.
        - Mappings present on both sides merge recursively.
        - Lists are replaced wholesale, never concatenated.
        - Keys only in ``base`` are kept.

    Neither input is modified.

    Args:
        base: Default spec.
        overlay: Caller-supplied partial spec, or None.

    Returns:
        The merged spec.

    Example:
        >>> deep_merge({"a": {"b": 1, "c": [1]}}, {"a": {"c": [2]}})
        {'a': {'b': 1, 'c': [2]}}
    """
    merged = copy.deepcopy(base)
    if not overlay:
        return merged

    for key, value in overlay.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)

    return merged


def get_nested_value(obj: dict[str, Any], path: str, default: Any = None) -> Any:
    """Get a value at a dotted path.

    Keys containing dots cannot be addressed this way; index those
    mappings directly.
    """
    current: Any = obj
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return default
        current = current[part]
    return current
