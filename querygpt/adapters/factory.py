"""
Database Adapter Factory.

Picks the adapter for a profile `database` block:
- `url` or `host`  -> PostgresAdapter
- `path`           -> SQLiteAdapter
"""

from typing import Any, Dict, Optional

from .database_adapter import DatabaseAdapter
from .postgres_adapter import PostgresAdapter
from .sqlite_adapter import SQLiteAdapter


def has_database(cfg: Optional[Dict[str, Any]]) -> bool:
    """True when the block names any database to connect to."""
    return bool(cfg) and any(cfg.get(key) for key in ("url", "host", "path"))


def create_adapter(cfg: Dict[str, Any]) -> DatabaseAdapter:
    """
    Create an (unconnected) adapter for a `database` block.

    Raises:
        ValueError: If the block names no database
    """
    if cfg.get("url") or cfg.get("host"):
        return PostgresAdapter.from_config(cfg)
    if cfg.get("path"):
        return SQLiteAdapter(cfg["path"])
    raise ValueError("database config needs url, host or path")
