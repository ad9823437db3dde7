"""
SQLite Database Adapter.

Executes final SQL and exports schemas from a SQLite file. Used for
local runs and the offline demo database.
"""

import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional

from querygpt.utils.sql_text import sanitize_sql
from .database_adapter import (
    DatabaseAdapter,
    DatabaseConnectionError,
    QueryExecutionError,
)

logger = logging.getLogger(__name__)


class SQLiteAdapter(DatabaseAdapter):
    """SQLite implementation of DatabaseAdapter."""

    def __init__(self, file_path: str):
        super().__init__()
        self.file_path = file_path
        self._connection: Optional[sqlite3.Connection] = None

    def connect(self) -> None:
        """Establish connection to SQLite database."""
        if not self.file_path:
            raise DatabaseConnectionError("No file path specified for SQLite database")

        if self.file_path != ":memory:" and not Path(self.file_path).exists():
            raise DatabaseConnectionError(f"Database file not found: {self.file_path}")

        try:
            self._connection = sqlite3.connect(self.file_path)
            self._connected = True
        except sqlite3.Error as e:
            raise DatabaseConnectionError(f"Failed to connect to SQLite: {e}")

    def disconnect(self) -> None:
        """Close SQLite connection."""
        if self._connection:
            self._connection.close()
            self._connection = None
        self._connected = False

    def run(self, sql: str) -> Dict[str, List[Any]]:
        """Execute model output as SQL; fences and an Explanation section are dropped first."""
        if not self._connection:
            self.connect()

        clean_sql = sanitize_sql(sql)
        logger.info("Executing SQL on %s", self.file_path)
        try:
            cursor = self._connection.cursor()
            cursor.execute(clean_sql)
            if cursor.description:
                columns = [col[0] for col in cursor.description]
                rows = [list(row) for row in cursor.fetchall()]
            else:
                columns, rows = [], []
        except sqlite3.Error as e:
            raise QueryExecutionError(f"Execution failed: {type(e).__name__} {e}")
        return {"columns": columns, "rows": rows}

    def list_tables(self) -> List[str]:
        if not self._connection:
            self.connect()
        cursor = self._connection.execute(
            "SELECT name FROM sqlite_master "
            "WHERE type='table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
        )
        return [row[0] for row in cursor.fetchall()]

    def table_columns(self, table_name: str) -> List[Dict[str, str]]:
        if not self._connection:
            self.connect()
        quoted = table_name.replace('"', '""')
        cursor = self._connection.execute(f'PRAGMA table_info("{quoted}")')
        return [
            {"name": col[1], "type": col[2] or "", "description": ""}
            for col in cursor.fetchall()
        ]


# Convenience function
def create_sqlite_adapter(file_path: str) -> SQLiteAdapter:
    """Create and connect a SQLite adapter."""
    adapter = SQLiteAdapter(file_path)
    adapter.connect()
    return adapter
