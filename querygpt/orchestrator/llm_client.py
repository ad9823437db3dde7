"""
LLM Client Abstraction.

PURPOSE:
========
Provides the single interface every agent uses to talk to a language
model: chat completion, text embeddings, and a `dry_run` flag that
tells agents to skip the model entirely and use their heuristics.

ARCHITECTURE:
=============
- LLMClient: Abstract base class defining the interface
- LiteLLMClient: Any litellm-supported provider (OpenAI, Gemini, Groq, ...)
- DryRunLLMClient: Deterministic offline stubs, no network

ERRORS:
=======
- LLMError: transport/availability failure (fatal unless the call site
  defines a fallback)
- LLMTimeoutError: a call exceeded its timeout. Agents treat this like an
  unparsable response and continue with the repair/fallback protocol.

USAGE:
======
    llm = create_llm_client(PipelineConfig.from_env(), dry_run=False)
    text = llm.chat([{"role": "user", "content": prompt}])
    vectors = llm.embed(["question", "example description"])
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

from litellm import completion, embedding
from litellm.exceptions import Timeout as LiteLLMTimeout

from configs import PipelineConfig, validate_api_key

logger = logging.getLogger(__name__)

Message = Dict[str, str]


# ============================================================
# ERRORS
# ============================================================

class LLMError(Exception):
    """Base exception for model transport errors."""
    pass


class LLMTimeoutError(LLMError):
    """Raised when a model call exceeds its timeout."""
    pass


# ============================================================
# ABSTRACT LLM CLIENT
# ============================================================

class LLMClient(ABC):
    """
    Abstract base class for model clients.

    All clients must implement this interface so agents and the
    pipeline stay independent of the provider.
    """

    dry_run: bool = False

    def __init__(self):
        self.call_count = 0
        self.embed_count = 0

    @abstractmethod
    def chat(self, messages: Sequence[Message]) -> str:
        """
        Send an ordered list of {role, content} messages, return the reply text.

        Raises:
            LLMTimeoutError: When the call times out
            LLMError: For other transport errors or an empty envelope
        """
        pass

    @abstractmethod
    def embed(self, texts: Sequence[str]) -> List[List[float]]:
        """Embed each text, returning one vector per input in order."""
        pass


# ============================================================
# LITELLM CLIENT
# ============================================================

class LiteLLMClient(LLMClient):
    """
    Provider-agnostic client backed by litellm.

    Every call carries `timeout_seconds`; litellm timeouts surface as
    LLMTimeoutError, everything else as LLMError.
    """

    def __init__(
        self,
        chat_model: str = "gpt-4.1-mini",
        embedding_model: str = "text-embedding-3-small",
        temperature: float = 0.1,
        timeout_seconds: float = 30.0,
    ):
        super().__init__()
        self.chat_model = chat_model
        self.embedding_model = embedding_model
        self.temperature = temperature
        self.timeout_seconds = timeout_seconds

    def chat(self, messages: Sequence[Message]) -> str:
        logger.debug("Calling %s with %d message(s)", self.chat_model, len(messages))
        try:
            response = completion(
                model=self.chat_model,
                messages=list(messages),
                temperature=self.temperature,
                timeout=self.timeout_seconds,
            )
        except LiteLLMTimeout as e:
            logger.warning("Chat call to %s timed out after %ss", self.chat_model, self.timeout_seconds)
            raise LLMTimeoutError(f"{self.chat_model} timed out: {e}")
        except Exception as e:
            raise LLMError(f"Chat call to {self.chat_model} failed: {e}")

        self.call_count += 1
        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError) as e:
            raise LLMError(f"Chat response missing content: {e}")
        if content is None:
            raise LLMError(f"Chat response from {self.chat_model} has no content")
        return content

    def embed(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            return []
        logger.debug("Embedding %d text(s) with %s", len(texts), self.embedding_model)
        try:
            response = embedding(
                model=self.embedding_model,
                input=list(texts),
                timeout=self.timeout_seconds,
            )
        except LiteLLMTimeout as e:
            raise LLMTimeoutError(f"{self.embedding_model} timed out: {e}")
        except Exception as e:
            raise LLMError(f"Embedding call to {self.embedding_model} failed: {e}")

        self.embed_count += 1
        vectors = []
        for item in response.data or []:
            vector = item["embedding"] if isinstance(item, dict) else item.embedding
            vectors.append([float(x) for x in vector])
        return vectors


# ============================================================
# DRY-RUN CLIENT (OFFLINE, DETERMINISTIC)
# ============================================================

class DryRunLLMClient(LLMClient):
    """
    Offline client returning canned answers.

    Agents check `dry_run` and use their heuristics without calling
    `chat`, so the stubs here only matter when a caller talks to the
    client directly. Embeddings are deterministic 8-dimensional vectors
    seeded from the text bytes (stable across processes).
    """

    dry_run = True
    VECTOR_DIM = 8

    def chat(self, messages: Sequence[Message]) -> str:
        self.call_count += 1
        content = messages[-1].get("content", "") if messages else ""

        if "workspaces" in content:
            return '{"workspaces": ["Mobility", "CoreServices"], "reason": "stub intent"}'
        if "keep_columns" in content:
            return (
                '{"table_id": "mobility.trips", "keep_columns": '
                '["trip_id", "city", "status", "requested_at", "completed_at", "fare_amount"], '
                '"reason": "stub prune"}'
            )
        if "tables" in content and "reason" in content:
            return '{"tables": ["mobility.trips", "core.users"], "reason": "stub tables"}'
        if "Fix the SQL" in content:
            return "SQL: SELECT 1 AS stub_sql\nExplanation: repaired."
        return "SQL: SELECT 1 AS answer\nExplanation: stub response"

    def embed(self, texts: Sequence[str]) -> List[List[float]]:
        self.embed_count += 1
        return [self.deterministic_vector(text) for text in texts]

    @classmethod
    def deterministic_vector(cls, text: str) -> List[float]:
        seed = 0
        for b in text.encode("utf-8"):
            seed = (seed * 31 + b) % 10_000
        return [((seed + i * 13) % 1000) / 1000.0 for i in range(cls.VECTOR_DIM)]


# ============================================================
# CONVENIENCE FUNCTIONS
# ============================================================

def create_llm_client(config: Optional[PipelineConfig] = None, dry_run: bool = False) -> LLMClient:
    """
    Create the model client for a pipeline run.

    Raises:
        ConfigurationError: If not in dry-run and no API key is configured
            for the chat model's provider.
    """
    if dry_run:
        return DryRunLLMClient()

    config = config or PipelineConfig.from_env()
    validate_api_key(config.chat_model)
    return LiteLLMClient(
        chat_model=config.chat_model,
        embedding_model=config.embedding_model,
        temperature=config.temperature,
        timeout_seconds=config.timeout_seconds,
    )
