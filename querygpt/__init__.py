"""
QueryGPT: natural-language questions to schema-constrained SQL.

    from querygpt import QueryPipeline, WorkspaceStore, create_llm_client

    store = WorkspaceStore.load_fixtures("querygpt/fixtures")
    pipeline = QueryPipeline(store, create_llm_client(dry_run=True))
    result = pipeline.run("How many trips were completed yesterday?")
"""
from .orchestrator import QueryPipeline, create_llm_client, LLMError, LLMTimeoutError
from .tools import WorkspaceStore, SQLValidator
from .models import PipelineResult, ValidationResult

__version__ = "1.0.0"

__all__ = [
    "QueryPipeline",
    "create_llm_client",
    "LLMError",
    "LLMTimeoutError",
    "WorkspaceStore",
    "SQLValidator",
    "PipelineResult",
    "ValidationResult",
]
