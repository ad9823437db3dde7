"""
Sequential NL -> SQL Pipeline.

EXECUTION FLOW:
===============
User question
-> PromptEnhancer              (falls back to the original question)
-> WorkspaceAgent              (skipped when a workspace is forced)
-> TableAgent                  (skipped when tables are forced)
-> ColumnPruneAgent per table  (unknown table ids are skipped)
-> Few-shot retrieval          (skipped when the workspaces have no examples)
-> SQLGenerator
-> SQLValidator                (against the PRUNED schemas)
-> if invalid and not dry-run:
     SQLGenerator.repair       (exactly once, result not re-validated)
-> PipelineResult

Every stage records what it sent and received in the debug trail,
keyed by stage name in execution order. Stages never retry beyond the
single repair their agent protocol allows.
"""
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from configs import PipelineConfig
from querygpt.agents import (
    ColumnPruneAgent,
    PromptEnhancer,
    SQLGenerator,
    TableAgent,
    WorkspaceAgent,
)
from querygpt.models import AgentSource, PipelineResult, SqlExample, TableSchema
from querygpt.tools import SQLValidator, WorkspaceStore
from querygpt.utils.vector_search import ExampleVectorIndex
from .llm_client import LLMClient, LLMError

logger = logging.getLogger(__name__)


class Stage:
    """Debug trail keys, in execution order."""
    ENHANCE = "enhance"
    WORKSPACE_SELECTION = "workspace_selection"
    TABLE_SELECTION = "table_selection"
    COLUMN_PRUNE = "column_prune"
    FEW_SHOT_EXAMPLES = "few_shot_examples"
    SQL_GENERATION = "sql_generation"
    VALIDATION = "validation"
    REPAIR = "repair"


def _forced(output: Dict[str, Any]) -> Dict[str, Any]:
    return {"source": AgentSource.FORCED.value, "output": output, "calls": []}


class QueryPipeline:
    """
    Orchestrates one question through every stage.

    The pipeline owns no state across runs apart from the read-only
    catalog; a fresh retrieval index is built per run from
    `index_factory`.
    """

    def __init__(
        self,
        store: WorkspaceStore,
        llm: LLMClient,
        config: Optional[PipelineConfig] = None,
        validator: Optional[SQLValidator] = None,
        index_factory: Callable[[], ExampleVectorIndex] = ExampleVectorIndex,
        prompt_enhancer: Optional[PromptEnhancer] = None,
        workspace_agent: Optional[WorkspaceAgent] = None,
        table_agent: Optional[TableAgent] = None,
        column_prune_agent: Optional[ColumnPruneAgent] = None,
        sql_generator: Optional[SQLGenerator] = None,
    ):
        self.store = store
        self.llm = llm
        self.config = config or PipelineConfig.from_env()
        self.validator = validator or SQLValidator()
        self.index_factory = index_factory

        self.prompt_enhancer = prompt_enhancer or PromptEnhancer(llm)
        self.workspace_agent = workspace_agent or WorkspaceAgent(llm, max_workspaces=self.config.max_workspaces)
        self.table_agent = table_agent or TableAgent(llm)
        self.column_prune_agent = column_prune_agent or ColumnPruneAgent(llm)
        self.sql_generator = sql_generator or SQLGenerator(llm)

    @property
    def dry_run(self) -> bool:
        return bool(getattr(self.llm, "dry_run", False))

    def run(
        self,
        question: str,
        forced_workspace: Optional[str] = None,
        forced_tables: Optional[Sequence[str]] = None,
    ) -> PipelineResult:
        """
        Run the full pipeline for one question.

        Raises:
            LLMError: If SQL generation or repair cannot reach the model.
        """
        question = question or ""
        debug: Dict[str, Any] = {}
        logger.info("Processing question: %s", question)

        # 1. Enhance
        enhanced = self.prompt_enhancer.enhance(question)
        debug[Stage.ENHANCE] = enhanced
        enhanced_question = enhanced.get("expanded") or question

        # 2. Workspaces
        intent, workspaces = self._select_workspaces(question, forced_workspace)
        debug[Stage.WORKSPACE_SELECTION] = intent
        logger.info("Selected workspaces: %s", workspaces)

        # 3. Tables
        candidate_tables = [t.table_id for t in self.store.tables_for(workspaces)]
        table_trace, proposed_tables = self._select_tables(question, candidate_tables, forced_tables)
        debug[Stage.TABLE_SELECTION] = table_trace
        logger.info("Proposed tables: %s", proposed_tables)

        # 4. Columns
        prune_traces: List[Dict[str, Any]] = []
        confirmed_tables, pruned_schemas = self._prune_tables(question, proposed_tables, prune_traces)
        debug[Stage.COLUMN_PRUNE] = prune_traces

        # 5. Few-shot examples
        examples = self._select_examples(question, workspaces, debug)

        # 6. Generate
        generation = self.sql_generator.generate(
            question=question,
            enhanced_question=enhanced_question,
            pruned_schemas=pruned_schemas,
            sql_examples=examples,
            workspaces=workspaces,
        )
        debug[Stage.SQL_GENERATION] = {"prompt": generation.prompt, "raw": generation.raw}

        # 7. Validate
        validation = self.validator.validate(generation.sql, pruned_schemas)
        debug[Stage.VALIDATION] = validation.model_dump()

        # 8. Repair, at most once
        sql, explanation = generation.sql, generation.explanation
        repaired = False
        if not validation.valid and not self.dry_run:
            logger.warning("Generated SQL failed validation: %s", validation.errors)
            fix = self.sql_generator.repair(
                sql=generation.sql,
                explanation=generation.explanation,
                errors=validation.errors,
                pruned_schemas=pruned_schemas,
                question=question,
            )
            sql, explanation = fix.sql, fix.explanation
            repaired = True
            debug[Stage.REPAIR] = {"prompt": fix.prompt, "raw": fix.raw}

        return PipelineResult(
            question=question,
            enhanced_question=enhanced_question,
            intent=intent,
            selected_workspaces=workspaces,
            proposed_tables=proposed_tables,
            confirmed_tables=confirmed_tables,
            pruned_schemas=pruned_schemas,
            few_shot_examples=[ex.id for ex in examples],
            generated_sql=sql,
            explanation=explanation,
            validation=validation,
            repaired=repaired,
            debug=debug,
        )

    # ============================================================
    # STAGES
    # ============================================================

    def _select_workspaces(self, question: str, forced_workspace: Optional[str]):
        if forced_workspace:
            workspace = self.store.workspace_by_name(forced_workspace)
            name = workspace.name if workspace else forced_workspace
            return _forced({"workspaces": [name]}), [name]

        names = self.store.workspace_names
        outcome = self.workspace_agent.select_workspaces(question, names)
        chosen = list(outcome.output.get("workspaces") or [])
        if not chosen:
            chosen = names[:1]
        return outcome.to_trace(), chosen

    def _select_tables(self, question: str, candidate_tables: List[str], forced_tables: Optional[Sequence[str]]):
        if forced_tables:
            tables = list(forced_tables)
            return _forced({"tables": tables}), tables

        top_k = self.config.table_top_k
        outcome = self.table_agent.propose_tables(question, candidate_tables, top_k=top_k)
        tables = list(outcome.output.get("tables") or [])
        if not tables:
            tables = candidate_tables[:top_k]
        return outcome.to_trace(), tables

    def _prune_tables(self, question: str, table_ids: List[str], traces: List[Dict[str, Any]]):
        confirmed: List[str] = []
        pruned: List[TableSchema] = []
        for table_id in table_ids:
            schema = self.store.table_by_id(table_id)
            if schema is None:
                logger.debug("Skipping unknown table %s", table_id)
                continue
            outcome = self.column_prune_agent.prune(question, schema, target_columns=self.config.column_limit)
            traces.append(outcome.to_trace())
            confirmed.append(table_id)
            pruned.append(schema.pruned(outcome.output.get("keep_columns") or []))
        return confirmed, pruned

    def _select_examples(self, question: str, workspaces: List[str], debug: Dict[str, Any]) -> List[SqlExample]:
        examples = self.store.sql_examples_for(workspaces)
        if not examples:
            debug[Stage.FEW_SHOT_EXAMPLES] = []
            return []

        vectors = self.llm.embed([question] + [ex.description for ex in examples])
        if len(vectors) != len(examples) + 1:
            raise LLMError(f"Expected {len(examples) + 1} embeddings, got {len(vectors)}")
        query_vector, example_vectors = vectors[0], vectors[1:]

        index = self.index_factory()
        for example, vector in zip(examples, example_vectors):
            index.add(example.id, vector, {"example": example})
        hits = index.query(query_vector, top_k=self.config.example_top_k)

        top = [hit.metadata["example"] for hit in hits]
        debug[Stage.FEW_SHOT_EXAMPLES] = [
            {"id": hit.id, "score": round(hit.score, 6)} for hit in hits
        ]
        return top
