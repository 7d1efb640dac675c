"""Credential handling helpers for querykit."""

from .dsns import DSNConfig, parse_dsn
from .redaction import REDACTED_VALUE, redact_params, redact_value

__all__ = [
    "DSNConfig",
    "REDACTED_VALUE",
    "parse_dsn",
    "redact_params",
    "redact_value",
]
