"""
SQL generator and single-shot repair.

Unlike the JSON agents, generation has no heuristic: dry-run returns a
fixed stub query and transport errors propagate to the caller.
"""
import logging
from typing import List, Sequence

from querygpt.models import SQLGeneration, SqlExample, TableSchema
from querygpt.orchestrator.llm_client import LLMClient
from querygpt.utils.sql_text import extract_sql_and_explanation

logger = logging.getLogger(__name__)

BUSINESS_RULES = """\
- Dialect: PostgreSQL.
- Do not invent tables or columns. Use only provided schemas.
- Always include explicit column lists, avoid SELECT *.
- Include sensible date filters if question implies recency.
- Use partition columns in filters when present.
- Return two sections: "SQL:" then "Explanation:"."""

STUB_SQL = "SELECT city, count(*) AS trips FROM mobility.trips GROUP BY 1 ORDER BY 2 DESC;"
STUB_EXPLANATION = "Counts trips by city using stub generator"


def format_schemas(pruned_schemas: Sequence[TableSchema]) -> str:
    lines = []
    for schema in pruned_schemas:
        cols = ", ".join(f"{c.name} ({c.type})" for c in schema.columns)
        info = f" partition: {schema.partition_info}" if schema.partition_info else ""
        lines.append(f"- {schema.table_id}{info}\n  Columns: {cols}")
    return "\n".join(lines)


def format_examples(examples: Sequence[SqlExample]) -> str:
    if not examples:
        return "None"
    return "\n\n".join(
        f"Example {ex.id} ({ex.workspace}): {ex.description}\n{ex.sql}" for ex in examples
    )


class SQLGenerator:
    """Produces SQL + explanation from the pruned schemas and few-shot examples."""

    name = "SQLGenerator"

    def __init__(self, llm: LLMClient):
        self.llm = llm

    def generate(
        self,
        question: str,
        enhanced_question: str,
        pruned_schemas: Sequence[TableSchema],
        sql_examples: Sequence[SqlExample],
        workspaces: Sequence[str],
    ) -> SQLGeneration:
        if self.llm.dry_run:
            return SQLGeneration(sql=STUB_SQL, explanation=STUB_EXPLANATION, prompt="stub", raw="stub")

        prompt = self.build_prompt(question, enhanced_question, pruned_schemas, sql_examples, workspaces)
        raw = self.llm.chat([
            {"role": "system", "content": "You are SQL Generator."},
            {"role": "user", "content": prompt},
        ])
        sql, explanation = extract_sql_and_explanation(raw)
        return SQLGeneration(sql=sql, explanation=explanation, prompt=prompt, raw=raw)

    def repair(
        self,
        sql: str,
        explanation: str,
        errors: List[str],
        pruned_schemas: Sequence[TableSchema],
        question: str,
    ) -> SQLGeneration:
        """One repair attempt. The result is not re-validated here."""
        if self.llm.dry_run:
            return SQLGeneration(sql=sql, explanation=f"{explanation} (stub repair)", prompt="stub", raw="stub")

        prompt = (
            f"The previous SQL had issues: {'; '.join(errors)}.\n"
            "Fix the SQL. Use only provided schemas. Keep the same intent.\n"
            "Schemas:\n"
            f"{format_schemas(pruned_schemas)}\n"
            f"Question: {question}\n"
            "Return the same two sections: SQL: then Explanation:\n"
            "Previous SQL:\n"
            f"{sql}\n"
        )
        logger.info("Requesting SQL repair for %d validation error(s)", len(errors))
        raw = self.llm.chat([{"role": "user", "content": prompt}])
        fixed_sql, fixed_explanation = extract_sql_and_explanation(raw)
        return SQLGeneration(sql=fixed_sql, explanation=fixed_explanation, prompt=prompt, raw=raw)

    def build_prompt(
        self,
        question: str,
        enhanced_question: str,
        pruned_schemas: Sequence[TableSchema],
        sql_examples: Sequence[SqlExample],
        workspaces: Sequence[str],
    ) -> str:
        return (
            "You generate SQL for analytics questions.\n"
            f"Workspaces: {', '.join(workspaces)}\n"
            "Business rules:\n"
            f"{BUSINESS_RULES}\n\n"
            "Schemas (only these are allowed):\n"
            f"{format_schemas(pruned_schemas)}\n\n"
            "Few shot SQL examples (they may inspire style and joins):\n"
            f"{format_examples(sql_examples)}\n\n"
            f"Original question: {question}\n"
            f"Enhanced question: {enhanced_question}\n\n"
            "Produce:\n"
            "SQL: <query>\n"
            "Explanation: <short explanation of logic and filters>\n"
        )
