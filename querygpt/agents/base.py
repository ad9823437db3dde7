"""
Robust agent protocol shared by every JSON-answering agent.

PROTOCOL
========
1. Build a prompt (task, candidates, question)
2. Call the model
3. Decode the first JSON object in the answer (Markdown fences and
   surrounding commentary are tolerated) into the agent's output model
4. On failure (bad JSON, wrong shape, or timeout) send exactly ONE
   repair request containing the invalid text
5. If the repair answer also fails, run the deterministic heuristic
   and mark the output reason "fallback"

Dry-run skips steps 1-5 and runs the heuristic directly (reason
"heuristic"). Worst case is 2 model calls per invocation; no path
retries more than once.
"""
import logging
import re
from abc import ABC, abstractmethod
from typing import List, Optional, Type

from querygpt.models import (
    AgentOutcome,
    AgentSource,
    BaseAgentOutput,
    ModelCall,
    FALLBACK_REASON,
    HEURISTIC_REASON,
)
from querygpt.orchestrator.json_utils import parse_agent_response
from querygpt.orchestrator.llm_client import LLMClient, LLMTimeoutError

logger = logging.getLogger(__name__)


def tokenize(question: str) -> List[str]:
    """Lowercase word tokens of a question; empty strings are dropped."""
    return [tok for tok in re.split(r"\W+", (question or "").lower()) if tok]


class RobustAgent(ABC):
    """
    Base class for agents that must always produce a usable answer.

    Subclasses provide the output model, the prompt, the heuristic, and
    optionally `finalize` to clamp a decoded model answer onto the
    candidates they were given.
    """

    name: str = "Agent"
    output_model: Type[BaseAgentOutput] = BaseAgentOutput
    required_keys: str = ""

    def __init__(self, llm: LLMClient):
        self.llm = llm

    @abstractmethod
    def heuristic(self, **context) -> BaseAgentOutput:
        """Deterministic answer used in dry-run and as final fallback."""
        pass

    def finalize(self, output: BaseAgentOutput, **context) -> BaseAgentOutput:
        """Post-process a decoded model answer. Identity by default."""
        return output

    def repair_prompt(self, raw: Optional[str]) -> str:
        previous = raw if raw is not None else "(no response: the call timed out)"
        keys = f" with keys {self.required_keys}" if self.required_keys else ""
        return (
            f"Return valid JSON only{keys}. "
            f"You previously responded with invalid JSON:\n{previous}"
        )

    # ============================================================
    # PROTOCOL
    # ============================================================

    def run(self, prompt: str, **context) -> AgentOutcome:
        if self.llm.dry_run:
            output = self.heuristic(**context).model_copy(update={"reason": HEURISTIC_REASON})
            logger.debug("%s: dry-run heuristic -> %s", self.name, output.model_dump())
            return self._outcome(AgentSource.HEURISTIC, output, [])

        calls: List[ModelCall] = []

        raw = self._call(prompt, "initial", calls)
        parsed = parse_agent_response(raw, self.output_model)
        if parsed.ok:
            return self._outcome(AgentSource.MODEL, self.finalize(parsed.value, **context), calls)
        calls[-1].error = calls[-1].error or parsed.error
        logger.info("%s: unusable response (%s), sending repair request", self.name, calls[-1].error)

        raw = self._call(self.repair_prompt(raw), "repair", calls)
        parsed = parse_agent_response(raw, self.output_model)
        if parsed.ok:
            return self._outcome(AgentSource.REPAIRED, self.finalize(parsed.value, **context), calls)
        calls[-1].error = calls[-1].error or parsed.error

        logger.warning("%s: repair failed (%s), using heuristic fallback", self.name, calls[-1].error)
        output = self.heuristic(**context).model_copy(update={"reason": FALLBACK_REASON})
        return self._outcome(AgentSource.FALLBACK, output, calls)

    def _call(self, prompt: str, kind: str, calls: List[ModelCall]) -> Optional[str]:
        """Call the model once. Timeouts return None; other LLMErrors propagate."""
        call = ModelCall(kind=kind, prompt=prompt)
        calls.append(call)
        try:
            call.raw = self.llm.chat([{"role": "user", "content": prompt}])
        except LLMTimeoutError as e:
            call.error = f"timeout: {e}"
            return None
        return call.raw

    def _outcome(self, source: AgentSource, output: BaseAgentOutput, calls: List[ModelCall]) -> AgentOutcome:
        return AgentOutcome(
            agent=self.name,
            source=source,
            output=output.model_dump(),
            calls=calls,
        )
