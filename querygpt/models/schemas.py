"""
Pydantic models for the catalog and the pipeline result.

Every record is normalized once at the catalog load boundary
(see tools/schema_catalog.py). Nothing downstream looks fields up
by alternate keys.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Dict, Any, Iterable, Tuple


# ============================================================
# Catalog Models
# ============================================================

class Column(BaseModel):
    """A single column of a table schema."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Column name")
    type: str = Field(default="", description="SQL data type")
    description: str = Field(default="", description="Business meaning of the column")


class TableSchema(BaseModel):
    """Schema of one table as exported into the catalog."""
    model_config = ConfigDict(frozen=True)

    table_id: str = Field(description="Fully qualified table id, e.g. mobility.trips")
    description: str = Field(default="", description="What the table holds")
    columns: Tuple[Column, ...] = Field(default=(), description="Columns in declaration order")
    partition_info: Optional[str] = Field(default=None, description="Partitioning hint for filters")

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    def pruned(self, keep: Iterable[str]) -> "TableSchema":
        """
        Return a copy holding only the kept columns.

        Declaration order of the original is preserved and names are
        matched exactly, so the result is always a subset.
        """
        keep_set = set(keep)
        return TableSchema(
            table_id=self.table_id,
            description=self.description,
            columns=tuple(c for c in self.columns if c.name in keep_set),
            partition_info=self.partition_info,
        )


class Workspace(BaseModel):
    """Named grouping of related tables and curated examples."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Workspace name")
    description: str = Field(default="", description="What questions the workspace answers")
    table_ids: Tuple[str, ...] = Field(default=(), description="Tables in this workspace")
    example_ids: Tuple[str, ...] = Field(default=(), description="Curated SQL examples")


class SqlExample(BaseModel):
    """Curated (description, SQL) pair used as few-shot context. Never executed."""
    model_config = ConfigDict(frozen=True)

    id: str
    workspace: str = ""
    description: str = ""
    sql: str = ""


# ============================================================
# Validation & Result Models
# ============================================================

class ValidationResult(BaseModel):
    """Outcome of the lexical SQL validator."""
    valid: bool = Field(description="True iff errors is empty")
    errors: List[str] = Field(default_factory=list, description="Deduplicated error messages")


class PipelineResult(BaseModel):
    """
    Record of one pipeline run.

    Fields cannot be reassigned once built (frozen model), but the list
    and dict values are plain containers; treat them as read-only.

    The debug trail is a first-class output: it holds each stage's
    prompt and raw response (or heuristic marker), keyed by stage
    name in execution order.

    NOTE: when `repaired` is True, `generated_sql` is the repair output
    and was NOT re-validated. `validation` describes the SQL that was
    generated before repair. Callers needing a stricter guarantee should
    validate `generated_sql` again.
    """
    model_config = ConfigDict(frozen=True)

    question: str
    enhanced_question: str
    intent: Optional[Dict[str, Any]] = Field(default=None, description="Workspace selection decision")
    selected_workspaces: List[str] = Field(default_factory=list)
    proposed_tables: List[str] = Field(default_factory=list)
    confirmed_tables: List[str] = Field(default_factory=list)
    pruned_schemas: List[TableSchema] = Field(default_factory=list)
    few_shot_examples: List[str] = Field(default_factory=list, description="Ids of retrieved examples")
    generated_sql: str
    explanation: str
    validation: ValidationResult
    repaired: bool = False
    debug: Dict[str, Any] = Field(default_factory=dict)
