"""Planners choose the orchestrator's next action.

Planners are the only non-deterministic part of a run. The orchestrator
sees them through one method:

    async def next_action(state: PlanningState) -> PlannedAction

Implementations:
    - LLMPlanner: asks a chat model for a JSON action
    - HeuristicPlanner: walks the five matching dimensions with templated
      queries and finalizes once coverage is sufficient
    - ScriptedPlanner: replays a fixed list of actions (tests, demos)
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Iterator
from typing import Protocol, Union, runtime_checkable

from ..exceptions import LLMError, PlannerError
from ..llm.base import ChatMessage, LLMProvider, ModelTier
from ..models import Dimension, LookupField, Profile, SuggestionResult
from .actions import (
    AggregateProfile,
    Finalize,
    HybridSearchAction,
    PlannedAction,
    StructuredLookup,
    parse_action,
)
from .prompts import (
    LAST_STEP_NOTICE,
    PLANNER_STEP_PROMPT,
    PLANNER_SYSTEM_PROMPT,
    REJECTION_NOTICE,
)
from .state import CandidateEntry, Outcome, PlanningState

logger = logging.getLogger(__name__)


@runtime_checkable
class Planner(Protocol):
    """Chooses the next action from the current planning state."""

    async def next_action(self, state: PlanningState) -> PlannedAction:
        ...


# =============================================================================
# LLM planner
# =============================================================================


class LLMPlanner:
    """Model-driven planner.

    Each step sends the profile summary, the observations so far and the
    current candidates, and expects one JSON action back.
    """

    def __init__(
        self,
        llm: LLMProvider,
        temperature: float = 0.1,
        max_tokens: int = 1500,
        tier: ModelTier = ModelTier.COMPLEX,
        default_top_k: int = 10,
        max_observations: int = 10,
    ):
        self.llm = llm
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.tier = tier
        self.default_top_k = default_top_k
        self.max_observations = max_observations

    def build_system_prompt(self, state: PlanningState) -> str:
        return PLANNER_SYSTEM_PROMPT.format(
            min_dimensions=state.min_dimensions,
            default_top_k=self.default_top_k,
            min_suggestions=state.min_suggestions,
            max_suggestions=state.max_suggestions,
        )

    def build_prompt(self, state: PlanningState) -> str:
        observations = state.observations[-self.max_observations:]
        observation_lines = [json.dumps(o.to_dict(), default=str) for o in observations]

        candidate_lines = []
        for entry in state.ranked_candidates():
            record = entry.record
            dims = ",".join(sorted(d.value for d in entry.dimensions)) or "-"
            score = f"{entry.score:.3f}" if entry.score is not None else "-"
            candidate_lines.append(
                f"- {record.name} | id={record.id} | ministry={record.authority or '-'} | "
                f"regions={', '.join(record.regions) or '-'} | dims={dims} | score={score}"
            )

        rejection = ""
        if state.rejection is not None:
            rejection = REJECTION_NOTICE.format(violations=state.rejection.summary())
        if state.steps_remaining <= 1:
            rejection += LAST_STEP_NOTICE

        return PLANNER_STEP_PROMPT.format(
            goal=state.goal,
            profile=state.profile.summary() if state.profile else "(not loaded)",
            step=state.step + 1,
            max_steps=state.max_steps,
            steps_remaining=state.steps_remaining,
            covered=", ".join(sorted(d.value for d in state.covered)) or "none",
            coverage_sufficient="yes" if state.coverage_sufficient else "no",
            observations="\n".join(observation_lines) or "(none)",
            candidate_count=len(state.candidates),
            candidates="\n".join(candidate_lines) or "(none)",
            rejection=rejection,
        )

    async def next_action(self, state: PlanningState) -> PlannedAction:
        """Ask the model for the next action.

        Raises:
            PlannerError: Model call failed or returned no usable action
        """
        messages = [ChatMessage(role="user", content=self.build_prompt(state))]
        try:
            result = await self.llm.chat_json(
                messages,
                system_prompt=self.build_system_prompt(state),
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                tier=self.tier,
            )
        except LLMError as e:
            raise PlannerError("Planner model call failed", cause=e) from e

        parsed = result.get("parsed")
        if parsed is None:
            raise PlannerError(f"Planner returned non-JSON output: {result.get('content', '')[:200]}")

        action = parse_action(parsed)
        if isinstance(parsed, dict) and parsed.get("reasoning"):
            logger.debug(f"[PLANNER] reasoning: {parsed['reasoning']}")
        return action


# =============================================================================
# Heuristic planner
# =============================================================================

# Structured lookups used when semantic search is unavailable
FALLBACK_LOOKUPS: tuple[tuple[LookupField, str, Dimension], ...] = (
    (LookupField.AUTHORITY, "Agriculture", Dimension.CROP),
    (LookupField.NAME, "Kisan", Dimension.LAND),
    (LookupField.AUTHORITY, "Rural Development", Dimension.DEMOGRAPHIC),
    (LookupField.AUTHORITY, "Jal Shakti", Dimension.INFRASTRUCTURE),
)

_DIMENSION_ORDER = list(Dimension)


def land_class(acres: float | None) -> str:
    """Holding size class used by Indian farm schemes (1 ha ≈ 2.47 acres)."""
    if acres is None:
        return "small and marginal"
    if acres < 2.5:
        return "marginal"
    if acres < 5:
        return "small"
    if acres < 10:
        return "semi-medium"
    return "medium and large"


class HeuristicPlanner:
    """Deterministic planner built from the profile's attributes.

    Order of work:
        1. one hybrid search per matching dimension
        2. structured lookups (region, crop names, fallback ministries)
        3. finalize once coverage is sufficient, the plan is exhausted,
           or only one step remains

    When semantic search reports unavailable it skips straight to
    structured lookups.
    """

    def __init__(self, top_k: int = 10):
        self.top_k = top_k

    async def next_action(self, state: PlanningState) -> PlannedAction:
        if state.profile is None:
            return AggregateProfile(state.profile_id)

        if self._should_finalize(state):
            return self.finalize(state)

        for action in self.plan(state):
            if not state.attempted(action):
                return action
        return self.finalize(state)

    def _should_finalize(self, state: PlanningState) -> bool:
        if state.steps_remaining <= 1:
            return True
        if state.rejection is not None:
            # Keep searching only if the list was too short for want of candidates
            return not (
                "length" in state.rejection.rules
                and len(state.candidates) < state.min_suggestions
            )
        return state.coverage_sufficient

    def plan(self, state: PlanningState) -> Iterator[PlannedAction]:
        """All actions this planner would take, in order."""
        profile = state.profile
        if profile is None:
            raise PlannerError("Profile must be aggregated before planning")

        hybrid_down = any(
            isinstance(o.action, HybridSearchAction) and o.outcome == Outcome.UNAVAILABLE
            for o in state.observations
        )
        if not hybrid_down:
            for dimension, query in self.queries(profile, state.goal):
                yield HybridSearchAction(query=query, top_k=self.top_k, dimension=dimension)

        yield from self.lookups(profile)

    def queries(self, profile: Profile, goal: str) -> list[tuple[Dimension, str]]:
        """One free-text query per matching dimension."""
        core = profile.core
        goal = goal.strip()
        prefix = f"{goal}: " if goal else ""

        where = profile.location or "India"
        crops = ", ".join(profile.crop_names)
        acres = profile.total_land_acres
        demographic = " ".join(
            part for part in (
                core.gender,
                "farmer",
                f"aged {core.age}" if core.age is not None else "",
                f"with {core.education} education" if core.education else "",
            ) if part
        )
        infrastructure = ", ".join(
            [f"{m} irrigation" for m in profile.irrigation_methods]
            + [f"{s} soil" for s in profile.soil_types]
        )

        return [
            (Dimension.GEOGRAPHIC, f"{prefix}government schemes for farmers in {where}"),
            (
                Dimension.CROP,
                f"{prefix}schemes for {crops} growers: crop insurance, seeds, price support"
                if crops else f"{prefix}crop insurance and seed support schemes",
            ),
            (
                Dimension.LAND,
                f"{prefix}schemes for {land_class(acres)} farmers"
                + (f" with {acres:g} acres" if acres is not None else "")
                + (f" of {core.land_ownership} land" if core.land_ownership else ""),
            ),
            (Dimension.DEMOGRAPHIC, f"{prefix}welfare schemes for a {demographic}"),
            (
                Dimension.INFRASTRUCTURE,
                f"{prefix}subsidy for {infrastructure} and farm equipment"
                if infrastructure else f"{prefix}irrigation and farm equipment subsidy",
            ),
        ]

    def lookups(self, profile: Profile) -> Iterator[StructuredLookup]:
        if profile.core.state:
            yield StructuredLookup(LookupField.REGION, profile.core.state, Dimension.GEOGRAPHIC)
        for crop in profile.crop_names:
            yield StructuredLookup(LookupField.NAME, crop, Dimension.CROP)
        for field, value, dimension in FALLBACK_LOOKUPS:
            yield StructuredLookup(field, value, dimension)

    def finalize(self, state: PlanningState) -> Finalize:
        profile = state.profile
        state_name = profile.core.state if profile else ""

        def rank(entry: CandidateEntry) -> tuple:
            regional = not entry.record.regions or (
                bool(state_name) and entry.record.applies_to_region(state_name)
            )
            return (regional, len(entry.dimensions), entry.hits, entry.score or 0.0)

        entries = sorted(state.candidates.values(), key=rank, reverse=True)
        chosen = entries[: state.max_suggestions]
        return Finalize(tuple(
            SuggestionResult(
                scheme_name=e.record.name,
                scheme_id=e.record.id,
                reason=self.reason(e, profile),
            )
            for e in chosen
        ))

    def reason(self, entry: CandidateEntry, profile: Profile | None) -> str:
        """Justification citing the profile values behind each dimension."""
        dimensions = sorted(entry.dimensions, key=_DIMENSION_ORDER.index) or [Dimension.GEOGRAPHIC]
        phrases = [_reason_phrase(d, profile) for d in dimensions]
        return f"{entry.record.name} is recommended because " + "; ".join(phrases) + "."


def _reason_phrase(dimension: Dimension, profile: Profile | None) -> str:
    core = profile.core if profile else None

    if dimension == Dimension.GEOGRAPHIC:
        where = profile.location if profile and profile.location else "the farmer's state"
        return f"it is available to farmers in {where}"

    if dimension == Dimension.DEMOGRAPHIC:
        parts = []
        if core and core.age is not None:
            parts.append(f"{core.age}-year-old")
        if core and core.gender:
            parts.append(core.gender.lower())
        if parts:
            return f"its age and gender criteria suit a {' '.join(parts)} farmer"
        return "its eligibility matches the farmer's age and education"

    if dimension == Dimension.LAND:
        acres = profile.total_land_acres if profile else None
        if acres is not None:
            return f"it fits a {land_class(acres)} holding of {acres:g} acres of land"
        return "it fits the farmer's land holding"

    if dimension == Dimension.CROP:
        crops = ", ".join(profile.crop_names) if profile else ""
        if crops:
            return f"it supports cultivation of {crops}"
        return "it supports the farmer's crop cultivation"

    methods = ", ".join(profile.irrigation_methods) if profile else ""
    if methods:
        return f"it helps with {methods} irrigation and farm infrastructure"
    return "it helps improve farm irrigation and infrastructure"


# =============================================================================
# Scripted planner
# =============================================================================

ScriptStep = Union[PlannedAction, Callable[[PlanningState], PlannedAction]]


class ScriptedPlanner:
    """Replays a fixed sequence of actions.

    A step may be a callable taking the PlanningState, for actions that
    depend on what earlier steps found. Every state seen is recorded.

    Example:
        planner = ScriptedPlanner([
            StructuredLookup(LookupField.NAME, "ujjwala"),
            lambda state: Finalize(...),
        ])
    """

    def __init__(self, steps: Iterable[ScriptStep]):
        self.steps = list(steps)
        self.index = 0
        self.seen_steps: list[int] = []
        self.rejections: list = []

    async def next_action(self, state: PlanningState) -> PlannedAction:
        self.seen_steps.append(state.step)
        self.rejections.append(state.rejection)
        if self.index >= len(self.steps):
            raise PlannerError(f"Script exhausted after {len(self.steps)} actions")
        step = self.steps[self.index]
        self.index += 1
        return step(state) if callable(step) else step
