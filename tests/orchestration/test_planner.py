"""Tests for planners."""

import json

import pytest

from scheme_match.exceptions import LLMError, PlannerError
from scheme_match.llm import MockLLM
from scheme_match.models import Dimension, LookupField
from scheme_match.orchestration import (
    AggregateProfile,
    Finalize,
    HeuristicPlanner,
    HybridSearchAction,
    LLMPlanner,
    Observation,
    OutputValidator,
    Outcome,
    PlanningState,
    ScriptedPlanner,
    StructuredLookup,
)


@pytest.fixture
def state(sample_profile, farmer_id):
    return PlanningState(
        profile_id=farmer_id,
        goal="schemes for sugarcane",
        profile=sample_profile,
        step=1,
    )


def _fill(state, records, dimensions):
    for record in records:
        for dimension in dimensions:
            state.add_candidate(record, 0.5, dimension)
    state.covered.update(dimensions)


class TestPlanningState:
    """Tests for the stopping rule inputs."""

    def test_coverage_needs_candidates_and_dimensions(self, state, sample_schemes):
        _fill(state, sample_schemes[:5], [Dimension.CROP, Dimension.LAND])
        assert not state.coverage_sufficient

        state.covered.add(Dimension.GEOGRAPHIC)
        assert state.coverage_sufficient

    def test_too_few_candidates(self, state, sample_schemes):
        _fill(state, sample_schemes[:4], list(Dimension))
        assert not state.coverage_sufficient

    def test_candidates_deduplicated(self, state, sample_schemes):
        record = sample_schemes[0]
        assert state.add_candidate(record, 0.4, Dimension.CROP)
        assert not state.add_candidate(record, 0.9, Dimension.LAND)

        entry = state.candidates[record.id]
        assert len(state.candidates) == 1
        assert entry.score == 0.9
        assert entry.dimensions == {Dimension.CROP, Dimension.LAND}
        assert entry.hits == 2

    def test_all_retrieval_failed(self, state):
        lookup = StructuredLookup(LookupField.NAME, "kisan")
        state.observations.append(Observation(2, lookup, Outcome.UNAVAILABLE))
        assert state.all_retrieval_failed

        state.observations.append(Observation(3, HybridSearchAction("q"), Outcome.OK))
        assert not state.all_retrieval_failed


class TestHeuristicPlanner:
    """Tests for the deterministic planner."""

    @pytest.mark.asyncio
    async def test_aggregates_when_profile_missing(self, farmer_id):
        planner = HeuristicPlanner()
        action = await planner.next_action(PlanningState(profile_id=farmer_id, goal="g"))
        assert action == AggregateProfile(farmer_id)

    @pytest.mark.asyncio
    async def test_first_action_is_geographic_search(self, state):
        action = await HeuristicPlanner().next_action(state)

        assert isinstance(action, HybridSearchAction)
        assert action.dimension == Dimension.GEOGRAPHIC
        assert "Maharashtra" in action.query
        assert "schemes for sugarcane" in action.query

    def test_plan_without_profile_is_planner_error(self, farmer_id):
        """Planning needs the aggregated profile; its absence is a planner error."""
        with pytest.raises(PlannerError, match="aggregated"):
            list(HeuristicPlanner().plan(PlanningState(profile_id=farmer_id, goal="g")))

    def test_queries_grounded_in_profile(self, sample_profile):
        queries = dict(HeuristicPlanner().queries(sample_profile, ""))

        assert set(queries) == set(Dimension)
        assert "Sugarcane, Soybean" in queries[Dimension.CROP]
        assert "4.5 acres" in queries[Dimension.LAND]
        assert "small" in queries[Dimension.LAND]
        assert "drip irrigation" in queries[Dimension.INFRASTRUCTURE]
        assert "aged 45" in queries[Dimension.DEMOGRAPHIC]

    @pytest.mark.asyncio
    async def test_skips_attempted_actions(self, state):
        planner = HeuristicPlanner()
        first = await planner.next_action(state)
        state.observations.append(Observation(2, first, Outcome.OK))

        second = await planner.next_action(state)
        assert second != first
        assert second.dimension == Dimension.CROP

    @pytest.mark.asyncio
    async def test_falls_back_to_lookups_when_search_unavailable(self, state):
        planner = HeuristicPlanner()
        first = await planner.next_action(state)
        state.observations.append(Observation(2, first, Outcome.UNAVAILABLE))

        action = await planner.next_action(state)

        assert action == StructuredLookup(LookupField.REGION, "Maharashtra", Dimension.GEOGRAPHIC)

    @pytest.mark.asyncio
    async def test_finalizes_when_coverage_sufficient(self, state, sample_schemes):
        _fill(state, sample_schemes[:6], [Dimension.CROP, Dimension.LAND, Dimension.GEOGRAPHIC])

        action = await HeuristicPlanner().next_action(state)

        assert isinstance(action, Finalize)
        assert len(action.suggestions) == state.max_suggestions
        assert len({s.scheme_id for s in action.suggestions}) == len(action.suggestions)

    @pytest.mark.asyncio
    async def test_finalize_prefers_schemes_for_farmer_state(self, state, sample_schemes, scheme_ids):
        """Schemes restricted to another state rank below nationwide and local ones."""
        _fill(state, sample_schemes, [Dimension.CROP, Dimension.LAND, Dimension.GEOGRAPHIC])

        action = await HeuristicPlanner().next_action(state)

        chosen = [s.scheme_id for s in action.suggestions]
        assert scheme_ids["rythu_bandhu"] not in chosen

    @pytest.mark.asyncio
    async def test_finalize_reasons_pass_validation(self, state, sample_schemes):
        _fill(state, sample_schemes[:5], [Dimension.CROP, Dimension.DEMOGRAPHIC, Dimension.INFRASTRUCTURE])

        action = await HeuristicPlanner().next_action(state)

        report = OutputValidator().validate(action.suggestions, state.working_set(), state.profile)
        assert report.accepted, report.summary()
        assert "Sugarcane" in action.suggestions[0].reason

    @pytest.mark.asyncio
    async def test_finalizes_on_last_step(self, state, sample_schemes):
        _fill(state, sample_schemes[:3], [Dimension.CROP])
        state.step = state.max_steps - 1

        assert isinstance(await HeuristicPlanner().next_action(state), Finalize)


class TestLLMPlanner:
    """Tests for the model-driven planner."""

    @pytest.mark.asyncio
    async def test_parses_model_action(self, state):
        llm = MockLLM(default_response=json.dumps({
            "reasoning": "start with location",
            "action": "lookup_by_region",
            "args": {"region": "Maharashtra"},
        }))

        action = await LLMPlanner(llm).next_action(state)

        assert action == StructuredLookup(LookupField.REGION, "Maharashtra")

    @pytest.mark.asyncio
    async def test_prompt_contains_state(self, state, sample_schemes):
        state.add_candidate(sample_schemes[0], 0.8, Dimension.GEOGRAPHIC)
        llm = MockLLM(default_response='{"action": "lookup_by_name", "args": {"name": "kisan"}}')

        await LLMPlanner(llm).next_action(state)

        call = llm.calls[0]
        prompt = call["messages"][0].content
        assert "schemes for sugarcane" in prompt
        assert "Maharashtra" in prompt
        assert sample_schemes[0].id in prompt
        assert "finalize" in call["system_prompt"]

    @pytest.mark.asyncio
    async def test_fenced_json_accepted(self, state):
        llm = MockLLM(default_response='Next:\n```json\n{"action": "getSchemeByName", "args": {"name": "bima"}}\n```')
        action = await LLMPlanner(llm).next_action(state)
        assert action == StructuredLookup(LookupField.NAME, "bima")

    @pytest.mark.asyncio
    async def test_non_json_output(self, state):
        llm = MockLLM(default_response="I think we should search for irrigation schemes.")
        with pytest.raises(PlannerError):
            await LLMPlanner(llm).next_action(state)

    @pytest.mark.asyncio
    async def test_model_failure_is_planner_error(self, state):
        class BrokenLLM(MockLLM):
            async def chat(self, messages, **kwargs):
                raise LLMError("rate limited")

        with pytest.raises(PlannerError) as exc_info:
            await LLMPlanner(BrokenLLM()).next_action(state)
        assert isinstance(exc_info.value.cause, LLMError)


class TestScriptedPlanner:
    """Tests for the scripted planner."""

    @pytest.mark.asyncio
    async def test_replays_then_exhausts(self, state):
        planner = ScriptedPlanner([
            StructuredLookup(LookupField.NAME, "kisan"),
            lambda s: Finalize(),
        ])

        assert await planner.next_action(state) == StructuredLookup(LookupField.NAME, "kisan")
        assert await planner.next_action(state) == Finalize()
        with pytest.raises(PlannerError):
            await planner.next_action(state)
