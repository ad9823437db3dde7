"""
Schema Catalog (workspace store).

In-memory, read-only-after-load store of workspaces, table schemas
and curated SQL examples. Data comes from three YAML fixture files
written by an exporter (see scripts/schema_export.py):

    workspaces.yml    - [{name, description, table_ids, sql_example_ids}]
    schemas.yml       - [{table_id, description, columns, partition_info}]
    sql_examples.yml  - [{id, workspace, description, sql}]

Rows are normalized into pydantic records here, once. Workspace name
lookups are case-insensitive; table and example ids are exact.
"""
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import yaml

from querygpt.models import SqlExample, TableSchema, Workspace

logger = logging.getLogger(__name__)

WORKSPACES_FILE = "workspaces.yml"
SCHEMAS_FILE = "schemas.yml"
EXAMPLES_FILE = "sql_examples.yml"


def _workspace_from_row(row: Dict[str, Any]) -> Workspace:
    return Workspace(
        name=row["name"],
        description=row.get("description") or "",
        table_ids=tuple(row.get("table_ids") or ()),
        example_ids=tuple(row.get("sql_example_ids") or row.get("example_ids") or ()),
    )


class WorkspaceStore:
    """Catalog of workspaces, tables and examples."""

    def __init__(self, data: Dict[str, Iterable[Dict[str, Any]]]):
        self.workspaces: List[Workspace] = [
            _workspace_from_row(row) for row in data.get("workspaces") or []
        ]
        self.tables: List[TableSchema] = [
            TableSchema.model_validate(row) for row in data.get("schemas") or []
        ]
        self.sql_examples: List[SqlExample] = [
            SqlExample.model_validate(row) for row in data.get("examples") or []
        ]
        self._tables_by_id = {t.table_id: t for t in self.tables}
        self._examples_by_id = {ex.id: ex for ex in self.sql_examples}

    # ============================================================
    # LOADING / WRITING
    # ============================================================

    @classmethod
    def load_fixtures(cls, root: Union[str, Path]) -> "WorkspaceStore":
        root = Path(root)
        data = {
            "workspaces": cls._read_yaml(root / WORKSPACES_FILE),
            "schemas": cls._read_yaml(root / SCHEMAS_FILE),
            "examples": cls._read_yaml(root / EXAMPLES_FILE),
        }
        store = cls(data)
        logger.info(
            "Loaded catalog from %s: %d workspaces, %d tables, %d examples",
            root, len(store.workspaces), len(store.tables), len(store.sql_examples),
        )
        return store

    @staticmethod
    def write_fixtures(data: Dict[str, Any], output_dir: Union[str, Path]) -> None:
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        for key, filename in (("workspaces", WORKSPACES_FILE),
                              ("schemas", SCHEMAS_FILE),
                              ("examples", EXAMPLES_FILE)):
            with open(output_dir / filename, "w") as f:
                yaml.safe_dump(data.get(key) or [], f, sort_keys=False)

    @staticmethod
    def _read_yaml(path: Path) -> List[Dict[str, Any]]:
        if not path.exists():
            logger.warning("Catalog file missing: %s", path)
            return []
        with open(path) as f:
            return yaml.safe_load(f) or []

    # ============================================================
    # ACCESSORS
    # ============================================================

    @property
    def workspace_names(self) -> List[str]:
        return [w.name for w in self.workspaces]

    def workspace_by_name(self, name: str) -> Optional[Workspace]:
        wanted = str(name).lower()
        for workspace in self.workspaces:
            if workspace.name.lower() == wanted:
                return workspace
        return None

    def tables_for(self, workspace_names: Iterable[str]) -> List[TableSchema]:
        """Tables of the given workspaces, in catalog order. Unknown ids are ignored."""
        ids = set()
        for name in workspace_names:
            workspace = self.workspace_by_name(name)
            if workspace:
                ids.update(workspace.table_ids)
        return [t for t in self.tables if t.table_id in ids]

    def table_by_id(self, table_id: str) -> Optional[TableSchema]:
        return self._tables_by_id.get(table_id)

    def sql_examples_for(self, workspace_names: Iterable[str]) -> List[SqlExample]:
        ids = set()
        for name in workspace_names:
            workspace = self.workspace_by_name(name)
            if workspace:
                ids.update(workspace.example_ids)
        return [ex for ex in self.sql_examples if ex.id in ids]

    def example_by_id(self, example_id: str) -> Optional[SqlExample]:
        return self._examples_by_id.get(example_id)
