"""
Database Adapter Layer for QueryGPT.

Two jobs sit behind this interface, both outside the pipeline core:
- executing the final SQL (the execution sink)
- introspecting a live database into catalog fixtures (schema export)

The pipeline never imports this module; the CLI and the export
script do.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

# Bookkeeping tables left out of a schema export unless explicitly included
DEFAULT_EXCLUDE_TABLES = ("schema_migrations", "ar_internal_metadata", "__diesel_schema_migrations")


class DatabaseError(Exception):
    """Base exception for database operations."""
    pass


class DatabaseConnectionError(DatabaseError):
    """Failed to connect to database."""
    pass


class QueryExecutionError(DatabaseError):
    """Query execution failed."""
    pass


class DatabaseAdapter(ABC):
    """Abstract base class for database adapters."""

    def __init__(self):
        self._connected = False

    @abstractmethod
    def connect(self) -> None:
        """Establish database connection."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Close database connection."""
        pass

    @abstractmethod
    def run(self, sql: str) -> Dict[str, List[Any]]:
        """
        Execute one SQL statement.

        Returns:
            {"columns": [names...], "rows": [[values...], ...]}

        Raises:
            QueryExecutionError: If the database rejects the statement
        """
        pass

    @abstractmethod
    def list_tables(self) -> List[str]:
        """User table names in a stable order."""
        pass

    @abstractmethod
    def table_columns(self, table_name: str) -> List[Dict[str, str]]:
        """Columns of one table as {name, type, description} in declaration order."""
        pass

    def export_catalog(
        self,
        workspace: str,
        description: str,
        include_tables: Optional[Sequence[str]] = None,
        exclude_tables: Optional[Sequence[str]] = None,
    ) -> Dict[str, List[Dict[str, Any]]]:
        """
        Build catalog fixture data for one workspace.

        A non-empty `include_tables` wins over `exclude_tables`. The
        example list is left empty for curation by hand.
        """
        tables = self.list_tables()
        if include_tables:
            wanted = set(include_tables)
            tables = [t for t in tables if t in wanted]
        else:
            excluded = set(DEFAULT_EXCLUDE_TABLES if exclude_tables is None else exclude_tables)
            tables = [t for t in tables if t not in excluded]

        schemas = [
            {
                "table_id": table,
                "description": f"Exported table {table}",
                "columns": self.table_columns(table),
                "partition_info": None,
            }
            for table in tables
        ]
        return {
            "workspaces": [{
                "name": workspace,
                "description": description,
                "table_ids": tables,
                "sql_example_ids": [],
            }],
            "schemas": schemas,
            "examples": [],
        }

    @property
    def is_connected(self) -> bool:
        """Check if database is connected."""
        return self._connected

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()
