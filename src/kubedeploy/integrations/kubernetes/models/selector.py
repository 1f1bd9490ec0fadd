"""Resource selector models.

Selectors are usually loaded from YAML or JSON, so regular expressions
may be written as ``{"regex": "^kube-"}`` as well as passed as compiled
patterns.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

Matcher = str | re.Pattern[str]


class ResourceKind(BaseModel):
    """A resource type, independent of any instance."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    api_version: str = Field(alias="apiVersion")
    kind: str

    def descriptor(self, namespace: str | None = None) -> dict[str, Any]:
        """Return a list descriptor for this kind, optionally namespaced."""
        spec: dict[str, Any] = {"apiVersion": self.api_version, "kind": self.kind}
        if namespace:
            spec["metadata"] = {"namespace": namespace}
        return spec


class LabelSelectorRequirement(BaseModel):
    """A set-based label requirement."""

    model_config = ConfigDict(extra="forbid")

    key: str
    operator: Literal["In", "NotIn", "Exists", "DoesNotExist"]
    values: list[str] = []


class LabelSelector(BaseModel):
    """Kubernetes-style label selector; every condition must hold."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    match_labels: dict[str, str] | None = Field(default=None, alias="matchLabels")
    match_expressions: list[LabelSelectorRequirement] | None = Field(
        default=None, alias="matchExpressions"
    )


class ResourceSelector(BaseModel):
    """One include/exclude rule of a selector pipeline.

    Every predicate that is set must match for the rule to apply; unset
    predicates match everything.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    action: Literal["include", "exclude"] | None = None
    kinds: list[ResourceKind] | None = None
    name: Matcher | None = None
    namespace: Matcher | None = None
    label_selector: LabelSelector | None = Field(default=None, alias="labelSelector")
    filter: Callable[[dict[str, Any]], bool] | None = None

    @field_validator("name", "namespace", mode="before")
    @classmethod
    def coerce_matcher(cls, v: Any) -> Any:
        """Compile ``{"regex": ...}`` mappings into patterns."""
        if isinstance(v, dict):
            if set(v) != {"regex"} or not isinstance(v["regex"], str):
                raise ValueError(f"matcher mapping must be {{'regex': <pattern>}}, got {v!r}")
            try:
                return re.compile(v["regex"])
            except re.error as e:
                raise ValueError(f"invalid regular expression {v['regex']!r}: {e}") from e
        if v is not None and not isinstance(v, str | re.Pattern):
            raise ValueError(f"matcher must be a string or a pattern, got {type(v).__name__}")
        return v

    def has_predicate(self) -> bool:
        """Return True if any matching field is set."""
        return any(
            value is not None
            for value in (self.kinds, self.name, self.namespace, self.label_selector, self.filter)
        )
