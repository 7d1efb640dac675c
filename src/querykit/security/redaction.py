"""Masking of credentials in DSN query strings and logged bind parameters."""

from __future__ import annotations

import re
from typing import Any, Iterable

REDACTED_VALUE = "***"

# keys are compared with separators stripped, so api_key, apiKey and API-KEY all match
_SENSITIVE_KEY = re.compile(r"password|passwd|pwd|secret|token|apikey|sslkey|privatekey")
_SENSITIVE_TEXT = re.compile(r"password|passwd|secret|token|bearer|authorization", re.IGNORECASE)


def is_sensitive_key(key: str) -> bool:
    compact = "".join(ch for ch in key.lower() if ch.isalnum())
    return _SENSITIVE_KEY.search(compact) is not None


def redact_query_params(query: dict[str, str]) -> dict[str, str]:
    return {key: REDACTED_VALUE if is_sensitive_key(key) else value for key, value in query.items()}


def redact_value(value: Any, *, key: str | None = None) -> Any:
    """
    Mask a bind value whose key or text looks like a credential. Containers
    are masked element by element.
    """
    if key is not None and is_sensitive_key(key):
        return REDACTED_VALUE
    if isinstance(value, dict):
        return {k: redact_value(v, key=str(k)) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(redact_value(item) for item in value)
    text = value.decode("utf-8", errors="ignore") if isinstance(value, bytes) else value
    if isinstance(text, str) and _SENSITIVE_TEXT.search(text):
        return REDACTED_VALUE
    return value


def redact_params(params: Iterable[Any]) -> list[Any]:
    return [redact_value(value) for value in params]
