"""Table agent: proposes up to top-K tables from the selected workspaces."""
from typing import List, Sequence

from querygpt.models import AgentOutcome, TableSelection
from .base import RobustAgent, tokenize

RESERVED_PREFIX = "__"


class TableAgent(RobustAgent):
    name = "TableAgent"
    output_model = TableSelection
    required_keys = '"tables" (array of table ids) and "reason"'

    def propose_tables(self, question: str, candidate_tables: Sequence[str], top_k: int = 3) -> AgentOutcome:
        prompt = (
            "You are Table Agent. Given a question and candidate tables, "
            f"pick up to {top_k} tables that best answer it.\n"
            'Respond in strict JSON with keys "tables" (array of table ids) and "reason".\n'
            f"Question: {question}\n"
            f"Candidate tables: {', '.join(candidate_tables)}\n"
        )
        return self.run(prompt, question=question, candidate_tables=list(candidate_tables), top_k=top_k)

    def heuristic(self, question: str, candidate_tables: List[str], top_k: int) -> TableSelection:
        """
        Score each table by how many question tokens occur in its id.

        Ties break on table id so the ranking is order-stable. Reserved
        tables (``__`` prefix) are never proposed by score.
        """
        tokens = tokenize(question)
        scored = [
            (sum(1 for tok in tokens if tok in table.lower()), table)
            for table in candidate_tables
        ]
        ordered = [table for _, table in sorted(scored, key=lambda st: (-st[0], st[1]))]
        picks = [t for t in ordered if not t.startswith(RESERVED_PREFIX)][:top_k]
        if not picks:
            picks = candidate_tables[:top_k]
        return TableSelection(tables=picks)

    def finalize(self, output: TableSelection, question: str, candidate_tables: List[str], top_k: int) -> TableSelection:
        allowed = set(candidate_tables)
        tables = []
        for table in output.tables:
            if table in allowed and table not in tables:
                tables.append(table)
        return output.model_copy(update={"tables": tables})
