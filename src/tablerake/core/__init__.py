"""Core infrastructure: settings, logging, connections, domain models, errors."""

from tablerake.core.connections import (
    ConnectionConfig,
    ConnectionManager,
    close_default_manager,
    get_connection_manager,
)

__all__ = [
    "ConnectionConfig",
    "ConnectionManager",
    "close_default_manager",
    "get_connection_manager",
]
