"""Database adapters: SQL execution sink and schema export."""
from .database_adapter import (
    DatabaseAdapter,
    DatabaseError,
    DatabaseConnectionError,
    QueryExecutionError,
    DEFAULT_EXCLUDE_TABLES,
)
from .sqlite_adapter import SQLiteAdapter, create_sqlite_adapter
from .postgres_adapter import PostgresAdapter, create_postgres_adapter
from .factory import create_adapter, has_database

__all__ = [
    "DatabaseAdapter",
    "DatabaseError",
    "DatabaseConnectionError",
    "QueryExecutionError",
    "DEFAULT_EXCLUDE_TABLES",
    "SQLiteAdapter",
    "PostgresAdapter",
    "create_sqlite_adapter",
    "create_postgres_adapter",
    "create_adapter",
    "has_database",
]
