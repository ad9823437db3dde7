"""Column prune agent: keeps the columns of one table relevant to a question."""
from querygpt.models import AgentOutcome, ColumnPruneResult, TableSchema
from .base import RobustAgent, tokenize


class ColumnPruneAgent(RobustAgent):
    name = "ColumnPruneAgent"
    output_model = ColumnPruneResult
    required_keys = '"table_id", "keep_columns" (array of column names) and "reason"'

    def prune(self, question: str, table_schema: TableSchema, target_columns: int = 15) -> AgentOutcome:
        columns = ", ".join(table_schema.column_names)
        prompt = (
            "You are Column Prune Agent. Given a question and table schema, choose the most relevant columns.\n"
            'Respond in strict JSON with keys "table_id", "keep_columns" (array of column names), and "reason".\n'
            f"Table: {table_schema.table_id}\n"
            f"Columns: {columns}\n"
            f"Question: {question}\n"
            f"Keep at most {target_columns} columns.\n"
        )
        return self.run(prompt, question=question, table_schema=table_schema, target_columns=target_columns)

    def heuristic(self, question: str, table_schema: TableSchema, target_columns: int) -> ColumnPruneResult:
        tokens = tokenize(question)
        names = table_schema.column_names
        matched = [name for name in names if any(tok in name.lower() for tok in tokens)]
        keep = matched if matched else names
        return ColumnPruneResult(table_id=table_schema.table_id, keep_columns=keep[:target_columns])

    def finalize(self, output: ColumnPruneResult, question: str, table_schema: TableSchema,
                 target_columns: int) -> ColumnPruneResult:
        # Only exact names of this table survive, capped at the target
        known = set(table_schema.column_names)
        keep = []
        for name in output.keep_columns:
            if name in known and name not in keep:
                keep.append(name)
        return output.model_copy(update={
            "table_id": table_schema.table_id,
            "keep_columns": keep[:target_columns],
        })
