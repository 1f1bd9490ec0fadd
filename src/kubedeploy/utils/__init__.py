"""Utility functions for kubedeploy."""

from kubedeploy.utils.merge import deep_merge, get_nested_value
from kubedeploy.utils.redact import mask, redact, redact_spec

__all__ = [
    "deep_merge",
    "get_nested_value",
    "mask",
    "redact",
    "redact_spec",
]
