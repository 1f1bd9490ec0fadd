"""Masking of secret-looking values before specs reach the logs."""

from __future__ import annotations

import re
from typing import Any

SENSITIVE_KEY_PATTERN = re.compile(
    r"secret|token|password|jwt|url|auth|key|cert|pass|user",
    re.IGNORECASE,
)

SECRET_PAYLOAD_FIELDS = ("data", "stringData")


def mask(value: str) -> str:
    """Mask a string, keeping the first and last character of long values."""
    if len(value) < 16:
        return "*" * len(value)
    return value[0] + "*" * (len(value) - 2) + value[-1]


def redact(obj: Any) -> Any:
    """Return a copy of ``obj`` with values under sensitive keys masked.

    String values under a sensitive key are masked with :func:`mask`;
    non-string values under a sensitive key are dropped.
    """
    if isinstance(obj, dict):
        result: dict[str, Any] = {}
        for key, value in obj.items():
            if isinstance(key, str) and SENSITIVE_KEY_PATTERN.search(key):
                if isinstance(value, str):
                    result[key] = mask(value)
                continue
            result[key] = redact(value)
        return result
    if isinstance(obj, list):
        return [redact(item) for item in obj]
    return obj


def redact_spec(spec: dict[str, Any]) -> dict[str, Any]:
    """Redact a resource spec for logging.

    Secret payloads are reduced to their key names.
    """
    redacted = redact(spec)
    if spec.get("kind") == "Secret":
        for field in SECRET_PAYLOAD_FIELDS:
            if isinstance(spec.get(field), dict):
                redacted[field] = sorted(spec[field])
    return redacted
