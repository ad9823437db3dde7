"""End-to-end tests for QueryPipeline, offline and with a scripted model."""
import pytest
from pydantic import ValidationError

from querygpt.agents import STUB_SQL
from querygpt.orchestrator import QueryPipeline, Stage
from querygpt.orchestrator.llm_client import LLMError
from querygpt.tools import WorkspaceStore

SEATTLE = "How many trips were completed yesterday in Seattle?"


# ============================================================
# DRY RUN
# ============================================================

def test_dry_run_end_to_end(store, dry_llm, config):
    result = QueryPipeline(store, dry_llm, config).run(SEATTLE)

    assert result.selected_workspaces == ["Mobility"]
    assert "mobility.trips" in result.proposed_tables
    assert "mobility.trips" in result.confirmed_tables
    assert "SELECT" in result.generated_sql
    assert result.pruned_schemas
    assert result.explanation
    assert result.enhanced_question == SEATTLE
    assert result.validation.valid
    assert result.repaired is False


def test_dry_run_is_deterministic(store, config):
    from querygpt.orchestrator.llm_client import DryRunLLMClient

    first = QueryPipeline(store, DryRunLLMClient(), config).run(SEATTLE)
    second = QueryPipeline(store, DryRunLLMClient(), config).run(SEATTLE)

    assert first.generated_sql == second.generated_sql
    assert first.confirmed_tables == second.confirmed_tables
    assert [s.column_names for s in first.pruned_schemas] == [s.column_names for s in second.pruned_schemas]
    assert first.few_shot_examples == second.few_shot_examples


def test_debug_trail_is_keyed_by_stage_in_order(store, dry_llm, config):
    result = QueryPipeline(store, dry_llm, config).run(SEATTLE)
    assert list(result.debug) == [
        Stage.ENHANCE,
        Stage.WORKSPACE_SELECTION,
        Stage.TABLE_SELECTION,
        Stage.COLUMN_PRUNE,
        Stage.FEW_SHOT_EXAMPLES,
        Stage.SQL_GENERATION,
        Stage.VALIDATION,
    ]
    assert result.debug[Stage.WORKSPACE_SELECTION]["source"] == "heuristic"
    assert result.debug[Stage.SQL_GENERATION] == {"prompt": "stub", "raw": "stub"}
    assert result.intent["output"]["workspaces"] == ["Mobility"]


def test_pruned_columns_are_subsets_of_catalog(store, dry_llm, config):
    result = QueryPipeline(store, dry_llm, config).run(SEATTLE)
    for pruned in result.pruned_schemas:
        original = store.table_by_id(pruned.table_id)
        assert set(pruned.column_names) <= set(original.column_names)
        assert len(pruned.columns) <= config.column_limit


def test_few_shot_examples_come_from_selected_workspaces(store, dry_llm, config):
    result = QueryPipeline(store, dry_llm, config).run(SEATTLE)
    mobility_ids = {ex.id for ex in store.sql_examples_for(["Mobility"])}
    assert result.few_shot_examples
    assert set(result.few_shot_examples) <= mobility_ids
    assert dry_llm.embed_count == 1


def test_invalid_sql_is_not_repaired_in_dry_run(dry_llm, config):
    # The stub query reads mobility.trips, which this catalog does not have
    store = WorkspaceStore({
        "workspaces": [{"name": "Ads", "table_ids": ["ads.clicks"]}],
        "schemas": [{"table_id": "ads.clicks", "columns": [{"name": "click_id"}]}],
    })
    result = QueryPipeline(store, dry_llm, config).run("clicks")

    assert not result.validation.valid
    assert "Table mobility.trips not allowed" in result.validation.errors
    assert result.generated_sql == STUB_SQL
    assert result.repaired is False
    assert Stage.REPAIR not in result.debug


# ============================================================
# OVERRIDES
# ============================================================

def test_forced_workspace_and_tables_bypass_agents(store, dry_llm, config):
    result = QueryPipeline(store, dry_llm, config).run(
        SEATTLE, forced_workspace="coreservices", forced_tables=["core.users", "core.missing"],
    )

    assert result.selected_workspaces == ["CoreServices"]
    assert result.proposed_tables == ["core.users", "core.missing"]
    assert result.confirmed_tables == ["core.users"]
    assert [s.table_id for s in result.pruned_schemas] == ["core.users"]
    assert result.debug[Stage.WORKSPACE_SELECTION]["source"] == "forced"
    assert result.debug[Stage.TABLE_SELECTION]["source"] == "forced"


def test_no_examples_means_no_embedding_call(dry_llm, config):
    store = WorkspaceStore({
        "workspaces": [{"name": "Mobility", "table_ids": ["mobility.trips"]}],
        "schemas": [{"table_id": "mobility.trips", "columns": [{"name": "city"}]}],
    })
    result = QueryPipeline(store, dry_llm, config).run(SEATTLE)

    assert result.few_shot_examples == []
    assert dry_llm.embed_count == 0


# ============================================================
# MODEL PATH (SCRIPTED)
# ============================================================

def model_script(sql_answer, *extra):
    return [
        "Completed trips in Seattle on the previous day",
        '{"workspaces": ["Mobility"], "reason": "trips"}',
        '{"tables": ["mobility.trips"], "reason": "trip counts"}',
        '{"table_id": "mobility.trips", "keep_columns": ["city", "status", "completed_at"], "reason": "filters"}',
        sql_answer,
        *extra,
    ]


def test_model_path_valid_sql(store, scripted, config):
    llm = scripted(model_script(
        "SQL: SELECT count(*) FROM mobility.trips t WHERE t.city = 'Seattle' AND t.status = 'completed'\n"
        "Explanation: counts completed Seattle trips"
    ))
    result = QueryPipeline(store, llm, config).run(SEATTLE)

    assert result.enhanced_question == "Completed trips in Seattle on the previous day"
    assert result.confirmed_tables == ["mobility.trips"]
    assert result.pruned_schemas[0].column_names == ["city", "status", "completed_at"]
    assert result.validation.valid
    assert result.repaired is False
    assert llm.call_count == 5
    assert llm.embed_count == 1
    generation_prompt = result.debug[Stage.SQL_GENERATION]["prompt"]
    assert "Example ex_trips_daily_city" in generation_prompt
    assert "fare_amount" not in generation_prompt


def test_invalid_sql_is_repaired_exactly_once(store, scripted, config):
    llm = scripted(model_script(
        "SQL: SELECT t.fare_amount FROM mobility.trips t\nExplanation: fares",
        # The repaired SQL is still invalid; it is returned without re-validation
        "SQL: SELECT u.user_id FROM core.users u\nExplanation: still wrong",
    ))
    result = QueryPipeline(store, llm, config).run(SEATTLE)

    assert result.repaired is True
    assert result.generated_sql == "SELECT u.user_id FROM core.users u"
    assert result.explanation == "still wrong"
    assert result.validation.errors == ["Column mobility.trips.fare_amount not allowed"]
    assert llm.call_count == 6
    assert "Column mobility.trips.fare_amount not allowed" in result.debug[Stage.REPAIR]["prompt"]
    assert list(result.debug)[-1] == Stage.REPAIR


def test_enhancement_failure_does_not_abort(store, scripted, config):
    script = model_script("SQL: SELECT t.city FROM mobility.trips t\nExplanation: cities")
    script[0] = LLMError("enhancer down")
    result = QueryPipeline(store, scripted(script), config).run(SEATTLE)

    assert result.enhanced_question == SEATTLE
    assert result.debug[Stage.ENHANCE]["source"] == "fallback"
    assert result.generated_sql == "SELECT t.city FROM mobility.trips t"


def test_generation_transport_error_surfaces(store, scripted, config):
    script = model_script(LLMError("generator down"))
    with pytest.raises(LLMError):
        QueryPipeline(store, scripted(script), config).run(SEATTLE)


def test_empty_model_selections_fall_back_to_defaults(store, scripted, config):
    llm = scripted([
        "q",
        '{"workspaces": ["Nowhere"], "reason": "?"}',
        '{"tables": ["nowhere.table"], "reason": "?"}',
        '{"keep_columns": ["trip_id"], "reason": "id"}',
        '{"keep_columns": ["payment_id"], "reason": "id"}',
        "SQL: SELECT 1\nExplanation: one",
    ])
    result = QueryPipeline(store, llm, config).run("q")

    assert result.selected_workspaces == [store.workspace_names[0]]
    assert result.proposed_tables == ["mobility.trips", "mobility.driver_payments"]


def test_embedding_count_mismatch_is_a_model_error(store, scripted, config):
    llm = scripted(model_script("SQL: SELECT 1\nExplanation: one"), vectors=[[1.0, 0.0]])
    with pytest.raises(LLMError):
        QueryPipeline(store, llm, config).run(SEATTLE)


def test_each_run_gets_a_fresh_index(store, dry_llm, config):
    created = []

    def factory():
        from querygpt.utils.vector_search import ExampleVectorIndex
        index = ExampleVectorIndex()
        created.append(index)
        return index

    pipeline = QueryPipeline(store, dry_llm, config, index_factory=factory)
    pipeline.run(SEATTLE)
    pipeline.run("ad spend per campaign")

    assert len(created) == 2
    assert len(created[0]) == len(store.sql_examples_for(["Mobility"]))
    assert len(created[1]) == len(store.sql_examples_for(["Ads"]))


def test_result_fields_cannot_be_reassigned(store, dry_llm, config):
    result = QueryPipeline(store, dry_llm, config).run(SEATTLE)
    with pytest.raises(ValidationError):
        result.generated_sql = "SELECT 1"
    with pytest.raises(ValidationError):
        result.debug = {}
