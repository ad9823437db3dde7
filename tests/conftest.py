"""
Conftest for QueryGPT tests.

Ensures the project root is on sys.path so that 'querygpt', 'configs'
and the root-level 'cli' module resolve without installation, and
provides shared fixtures: the shipped fixture catalog, a dry-run model
client, and a scripted fake client that replays canned responses.
"""

import sys
from pathlib import Path
from typing import List, Sequence, Union

import pytest

# Add project root to sys.path
project_root = str(Path(__file__).parent.parent)
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from configs import PipelineConfig
from querygpt.models import Column, TableSchema
from querygpt.orchestrator.llm_client import DryRunLLMClient, LLMClient
from querygpt.tools import WorkspaceStore

FIXTURES_DIR = Path(project_root) / "querygpt" / "fixtures"


class ScriptedLLM(LLMClient):
    """
    Fake model client that answers from a script.

    Each entry is returned by one chat() call in order; an Exception
    entry is raised instead. Every message list sent is recorded in
    `prompts` so tests can assert on what the agents asked.
    """

    def __init__(self, responses: Sequence[Union[str, None, Exception]] = (), vectors=None):
        super().__init__()
        self.responses = list(responses)
        self.prompts: List[list] = []
        self.embedded: List[list] = []
        self.vectors = vectors

    def chat(self, messages):
        self.prompts.append(list(messages))
        self.call_count += 1
        if not self.responses:
            raise AssertionError(f"Unexpected chat call #{self.call_count}: {messages[-1]['content'][:80]}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def embed(self, texts):
        self.embed_count += 1
        self.embedded.append(list(texts))
        if self.vectors is not None:
            return self.vectors
        return [DryRunLLMClient.deterministic_vector(t) for t in texts]

    @property
    def last_prompt(self) -> str:
        return self.prompts[-1][-1]["content"]


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def store() -> WorkspaceStore:
    return WorkspaceStore.load_fixtures(FIXTURES_DIR)


@pytest.fixture
def dry_llm() -> DryRunLLMClient:
    return DryRunLLMClient()


@pytest.fixture
def config() -> PipelineConfig:
    return PipelineConfig()


@pytest.fixture
def scripted():
    """Factory: scripted(["resp1", "resp2"]) -> ScriptedLLM."""
    return ScriptedLLM


@pytest.fixture
def trips_schema() -> TableSchema:
    return TableSchema(
        table_id="mobility.trips",
        description="Trips",
        columns=tuple(
            Column(name=name, type="varchar")
            for name in ["trip_id", "city", "status", "requested_at", "completed_at", "fare_amount"]
        ),
        partition_info="datestr",
    )
