"""DSN parsing and redaction utilities."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import parse_qs, unquote, urlencode, urlparse

from .redaction import redact_query_params


@dataclass
class DSNConfig:
    driver: str
    username: Optional[str]
    password: Optional[str]
    host: Optional[str]
    port: Optional[int]
    database: Optional[str]
    path: str
    query: dict[str, str] = field(default_factory=dict)

    def redacted(self) -> str:
        """
        Return the DSN with credentials and sensitive options masked.
        """

        netloc = ""
        if self.username:
            netloc += self.username
            if self.password:
                netloc += ":***"
            netloc += "@"
        if self.host:
            netloc += self.host
        if self.port:
            netloc += f":{self.port}"

        query = redact_query_params(self.query)
        query_string = urlencode(query, safe="*") if query else ""

        # keep the "//" prefix even when netloc is empty (sqlite:///path)
        result = f"{self.driver}://"
        if netloc:
            result += netloc
        result += self.path or ""
        if query_string:
            result += f"?{query_string}"
        return result

    def parameters(self) -> dict[str, Any]:
        """
        Flatten into the key/value view used by the connection registry.
        """
        params: dict[str, Any] = {
            "driver": self.driver,
            "host": self.host,
            "port": self.port,
            "user": self.username,
            "password": self.password,
            "dbname": self.database,
        }
        params.update(self.query)
        return {key: value for key, value in params.items() if value is not None}


def parse_dsn(dsn: str) -> DSNConfig:
    parsed = urlparse(dsn)
    query = {k: v[0] for k, v in parse_qs(parsed.query).items()}
    password = unquote(parsed.password) if parsed.password else parsed.password
    return DSNConfig(
        driver=parsed.scheme,
        username=unquote(parsed.username) if parsed.username else parsed.username,
        password=password,
        host=parsed.hostname,
        port=parsed.port,
        database=(parsed.path[1:] if parsed.path.startswith("/") else parsed.path) or None,
        path=parsed.path or "",
        query=query,
    )
