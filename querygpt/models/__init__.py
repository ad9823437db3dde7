"""Models module initialization."""
from .schemas import (
    # Catalog models
    Column,
    TableSchema,
    Workspace,
    SqlExample,
    # Result models
    ValidationResult,
    PipelineResult,
)

# Structured agent outputs for the robustness protocol
from .agent_outputs import (
    AgentSource,
    AgentOutcome,
    ModelCall,
    BaseAgentOutput,
    WorkspaceSelection,
    TableSelection,
    ColumnPruneResult,
    SQLGeneration,
    HEURISTIC_REASON,
    FALLBACK_REASON,
)

__all__ = [
    # From schemas.py
    "Column",
    "TableSchema",
    "Workspace",
    "SqlExample",
    "ValidationResult",
    "PipelineResult",
    # From agent_outputs.py
    "AgentSource",
    "AgentOutcome",
    "ModelCall",
    "BaseAgentOutput",
    "WorkspaceSelection",
    "TableSelection",
    "ColumnPruneResult",
    "SQLGeneration",
    "HEURISTIC_REASON",
    "FALLBACK_REASON",
]
