"""
LLM-backed agents.

- WorkspaceAgent, TableAgent, ColumnPruneAgent follow the robust JSON
  protocol in base.py (model -> one repair -> heuristic).
- PromptEnhancer never fails; it falls back to the original question.
- SQLGenerator produces and repairs SQL; it has no heuristic.
"""
from .base import RobustAgent, tokenize
from .workspace_agent import WorkspaceAgent, WORKSPACE_KEYWORDS
from .table_agent import TableAgent, RESERVED_PREFIX
from .column_prune_agent import ColumnPruneAgent
from .prompt_enhancer import PromptEnhancer
from .sql_generator import SQLGenerator, BUSINESS_RULES, STUB_SQL

__all__ = [
    "RobustAgent",
    "tokenize",
    "WorkspaceAgent",
    "WORKSPACE_KEYWORDS",
    "TableAgent",
    "RESERVED_PREFIX",
    "ColumnPruneAgent",
    "PromptEnhancer",
    "SQLGenerator",
    "BUSINESS_RULES",
    "STUB_SQL",
]
