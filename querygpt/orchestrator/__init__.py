"""Orchestrator module initialization."""
# llm_client and json_utils load before pipeline: the agents import them
from .llm_client import (
    LLMClient,
    LiteLLMClient,
    DryRunLLMClient,
    LLMError,
    LLMTimeoutError,
    create_llm_client,
)
from .json_utils import (
    safe_parse_llm_json,
    extract_first_json_block,
    parse_agent_response,
    JSONExtractionError,
    ParsedResponse,
)
from .pipeline import QueryPipeline, Stage

__all__ = [
    "QueryPipeline",
    "Stage",
    # Model clients
    "LLMClient",
    "LiteLLMClient",
    "DryRunLLMClient",
    "LLMError",
    "LLMTimeoutError",
    "create_llm_client",
    # JSON parsing utilities
    "safe_parse_llm_json",
    "extract_first_json_block",
    "parse_agent_response",
    "JSONExtractionError",
    "ParsedResponse",
]
