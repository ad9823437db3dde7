"""Prompt enhancer: rewrites the question into a more explicit form."""
import logging
from typing import Any, Dict

from querygpt.orchestrator.llm_client import LLMClient

logger = logging.getLogger(__name__)


class PromptEnhancer:
    """
    Expands an analytics question without changing its intent.

    Never fails: any error (transport, timeout, empty answer) yields the
    original question unchanged. Dry-run is an identity passthrough.
    """

    def __init__(self, llm: LLMClient):
        self.llm = llm

    def enhance(self, question: str) -> Dict[str, Any]:
        if self.llm.dry_run:
            return {"question": question, "expanded": question, "source": "heuristic"}

        prompt = (
            "Expand the following analytics question with additional helpful context, "
            "without changing its intent.\n"
            "Make the result concise and specific.\n"
            "Return only the enhanced question text.\n"
            f"Question: {question}\n"
        )
        try:
            raw = self.llm.chat([{"role": "user", "content": prompt}])
        except Exception as e:
            logger.warning("Question enhancement failed, using original question: %s", e)
            return {"question": question, "expanded": question, "source": "fallback",
                    "prompt": prompt, "error": str(e)}

        expanded = (raw or "").strip()
        if not expanded:
            return {"question": question, "expanded": question, "source": "fallback",
                    "prompt": prompt, "raw": raw, "error": "empty response"}
        return {"question": question, "expanded": expanded, "source": "model", "prompt": prompt, "raw": raw}
