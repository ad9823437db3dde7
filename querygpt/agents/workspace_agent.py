"""Workspace (intent) agent: picks the 1-2 workspaces a question belongs to."""
import re
from typing import Dict, List, Sequence

from querygpt.models import AgentOutcome, WorkspaceSelection
from .base import RobustAgent

# Keyword categories for the heuristic, checked in this order
WORKSPACE_KEYWORDS: Dict[str, re.Pattern] = {
    "Mobility": re.compile(r"\b(?:trip|driver|ride|fare)", re.IGNORECASE),
    "Ads": re.compile(r"\b(?:ads?\b|campaign|click|impression|spend|ctr\b)", re.IGNORECASE),
    "CoreServices": re.compile(r"\b(?:user|session|signup|cohort|retention)", re.IGNORECASE),
}


def _match_candidates(names: Sequence[str], candidates: Sequence[str]) -> List[str]:
    """Candidates (in candidate order) whose name case-insensitively matches one of `names`."""
    wanted = {n.lower() for n in names}
    return [c for c in candidates if c.lower() in wanted]


class WorkspaceAgent(RobustAgent):
    name = "WorkspaceAgent"
    output_model = WorkspaceSelection
    required_keys = '"workspaces" (array of strings) and "reason"'

    def __init__(self, llm, max_workspaces: int = 2):
        super().__init__(llm)
        self.max_workspaces = max_workspaces

    def select_workspaces(self, question: str, candidates: Sequence[str]) -> AgentOutcome:
        prompt = (
            "You are Intent Agent. Given a user question and available workspaces, "
            f"select the 1 or {self.max_workspaces} most relevant workspaces.\n"
            'Respond in strict JSON with keys "workspaces" (array of strings) and "reason".\n'
            f"Available workspaces: {', '.join(candidates)}\n"
            f"Question: {question}\n"
        )
        return self.run(prompt, question=question, candidates=list(candidates))

    def heuristic(self, question: str, candidates: List[str]) -> WorkspaceSelection:
        text = question or ""
        picks = [name for name, pattern in WORKSPACE_KEYWORDS.items() if pattern.search(text)]
        chosen = _match_candidates(picks, candidates)
        if not chosen:
            chosen = candidates[:1]
        return WorkspaceSelection(workspaces=chosen[:self.max_workspaces])

    def finalize(self, output: WorkspaceSelection, question: str, candidates: List[str]) -> WorkspaceSelection:
        # Model answers are mapped onto known names, in the model's order
        by_lower = {c.lower(): c for c in candidates}
        chosen = []
        for name in output.workspaces:
            canonical = by_lower.get(name.strip().lower())
            if canonical and canonical not in chosen:
                chosen.append(canonical)
        return output.model_copy(update={"workspaces": chosen[:self.max_workspaces]})
