"""
Structured output models for each agent in the pipeline.

DESIGN PRINCIPLE:
================
Every JSON agent returns a STRUCTURED output with:
- agent-specific data (workspaces / tables / keep_columns)
- reason: free text from the model, or one of the markers
  "heuristic" (dry-run) and "fallback" (model output unusable)
- source: which branch of the robustness protocol produced it

The model classes double as the shape check for raw model output:
a payload that fails pydantic validation counts as a decode failure.
"""
from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any
from enum import Enum


HEURISTIC_REASON = "heuristic"
FALLBACK_REASON = "fallback"


class AgentSource(str, Enum):
    """Which branch of the protocol produced an agent output."""
    MODEL = "model"            # First answer decoded cleanly
    REPAIRED = "repaired"      # Answer decoded after the one repair request
    FALLBACK = "fallback"      # Both answers unusable, heuristic used
    HEURISTIC = "heuristic"    # Dry-run, model never called
    FORCED = "forced"          # Caller override, agent bypassed


class ModelCall(BaseModel):
    """One prompt/response round-trip, kept for the debug trail."""
    kind: str = Field(description="'initial' or 'repair'")
    prompt: str
    raw: Optional[str] = Field(default=None, description="Raw model text, None on timeout")
    error: Optional[str] = Field(default=None, description="Why the response was rejected")


class BaseAgentOutput(BaseModel):
    """Fields shared by all JSON agents."""
    reason: str = Field(default="", description="Explanation for the choice")


# ============================================================
# 1. WORKSPACE SELECTION
# ============================================================

class WorkspaceSelection(BaseAgentOutput):
    """Output of the workspace (intent) agent: 1 or 2 workspace names."""
    workspaces: List[str] = Field(description="Selected workspace names")


# ============================================================
# 2. TABLE SELECTION
# ============================================================

class TableSelection(BaseAgentOutput):
    """Output of the table agent: up to top-K table ids."""
    tables: List[str] = Field(description="Proposed table ids")


# ============================================================
# 3. COLUMN PRUNING
# ============================================================

class ColumnPruneResult(BaseAgentOutput):
    """Output of the column prune agent for one table."""
    table_id: str = Field(default="", description="Table the columns belong to")
    keep_columns: List[str] = Field(description="Column names to keep")


# ============================================================
# 4. SQL GENERATION
# ============================================================

class SQLGeneration(BaseModel):
    """SQL text produced by the generator or the repair pass."""
    sql: str
    explanation: str
    prompt: str = Field(default="", description="Prompt sent to the model ('stub' in dry-run)")
    raw: str = Field(default="", description="Raw model response ('stub' in dry-run)")


class AgentOutcome(BaseModel):
    """
    Envelope returned by every robust agent invocation.

    `output` is one of the agent output models above, `calls` lists
    every model round-trip in order (empty for heuristic runs).
    """
    agent: str
    source: AgentSource
    output: Dict[str, Any]
    calls: List[ModelCall] = Field(default_factory=list)

    def to_trace(self) -> Dict[str, Any]:
        return {
            "agent": self.agent,
            "source": self.source.value,
            "output": self.output,
            "calls": [c.model_dump() for c in self.calls],
        }
