"""
Slow query threshold configuration.
"""

from __future__ import annotations

import os

SLOW_QUERY_ENV = "QUERYKIT_SLOW_QUERY_MS"


def resolve_slow_query_ms(*, default: int = 100, override: int | None = None) -> int:
    """
    Pick the slow query threshold: explicit override, then environment, then default.
    """
    if override is not None:
        return int(override)
    value = os.getenv(SLOW_QUERY_ENV)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{SLOW_QUERY_ENV} must be an integer, got {value!r}") from None
