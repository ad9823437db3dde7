"""
Deterministic tools used by the pipeline (no LLM calls).

- schema_catalog: in-memory workspace/table/example store
- sql_validator: lexical check of SQL against pruned schemas
"""
from .schema_catalog import WorkspaceStore
from .sql_validator import SQLValidator

__all__ = [
    "WorkspaceStore",
    "SQLValidator",
]
