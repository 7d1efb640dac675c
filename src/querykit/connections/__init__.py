"""
Connection registry used by queries that are executed without an explicit
adapter.
"""

from .manager import ConnectionProvider, ConnectionRegistry, registry

__all__ = ["ConnectionProvider", "ConnectionRegistry", "registry"]
