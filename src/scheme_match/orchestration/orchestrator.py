"""Retrieval orchestrator.

Runs the plan/act/observe loop for one farmer and one goal:

    aggregate profile
        │
        ▼
    ┌─► PLANNING ── planner.next_action(state)
    │       │
    │       ├── Finalize ──► FINALIZING ── validator ──► DONE
    │       │                     │ rejected (once)
    │       ▼                     │
    │    ACTING ── search / lookup (timeout per action)
    │       │                     │
    │       ▼                     │
    └── OBSERVING ◄───────────────┘

Each run builds its own PlanningState, so concurrent runs for different
farmers share nothing but the injected components.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any

from ..config import OrchestratorConfig
from ..exceptions import (
    ContractViolation,
    InvalidArgument,
    NotFound,
    PlannerError,
    RetrievalUnavailable,
    StepBudgetExceeded,
)
from ..models import Dimension, SuggestionResult
from ..profile.aggregator import ProfileAggregator
from ..retrieval.hybrid_search import HybridSearch
from ..retrieval.structured import StructuredQuery
from .actions import (
    AggregateProfile,
    Finalize,
    HybridSearchAction,
    PlannedAction,
    StructuredLookup,
    action_dimension,
)
from .planner import Planner
from .state import LoopState, Observation, Outcome, PlanningState
from .validator import OutputValidator

logger = logging.getLogger(__name__)


@dataclass
class OrchestrationResult:
    """Outcome of a successful run."""

    suggestions: list[SuggestionResult]
    steps: int
    observations: list[Observation] = field(default_factory=list)
    candidate_count: int = 0
    covered: set[Dimension] = field(default_factory=set)

    def to_list(self) -> list[dict[str, str]]:
        return [s.to_dict() for s in self.suggestions]

    def to_json(self) -> str:
        """The external output contract: a JSON array of suggestions."""
        return json.dumps(self.to_list(), ensure_ascii=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "suggestions": self.to_list(),
            "steps": self.steps,
            "candidate_count": self.candidate_count,
            "covered": sorted(d.value for d in self.covered),
            "observations": [o.to_dict() for o in self.observations],
        }


class RetrievalOrchestrator:
    """Drives a planner over hybrid search, structured lookups and validation.

    Example:
        orchestrator = RetrievalOrchestrator(
            planner=HeuristicPlanner(),
            aggregator=ProfileAggregator(store),
            search=HybridSearch(embedder, index),
            lookups=StructuredQuery(store),
        )
        result = await orchestrator.run(farmer_id, "schemes for my paddy farm")
        print(result.to_json())
    """

    def __init__(
        self,
        planner: Planner,
        aggregator: ProfileAggregator,
        search: HybridSearch,
        lookups: StructuredQuery,
        validator: OutputValidator | None = None,
        config: OrchestratorConfig | None = None,
    ):
        self.planner = planner
        self.aggregator = aggregator
        self.search = search
        self.lookups = lookups
        self.config = config or OrchestratorConfig()
        self.validator = validator or OutputValidator(
            min_items=self.config.min_suggestions,
            max_items=self.config.max_suggestions,
        )

    def _new_state(self, profile_id: str, goal: str) -> PlanningState:
        return PlanningState(
            profile_id=profile_id,
            goal=goal,
            max_steps=self.config.max_steps,
            min_candidates=self.config.min_candidates,
            min_dimensions=self.config.min_dimensions,
            min_suggestions=self.validator.min_items,
            max_suggestions=self.validator.max_items,
        )

    def _transition(self, state: PlanningState, new_state: LoopState) -> None:
        logger.debug(f"[ORCHESTRATOR] step {state.step}: {state.loop_state.value} → {new_state.value}")
        state.loop_state = new_state

    async def run(self, profile_id: str, goal: str) -> OrchestrationResult:
        """Produce a validated suggestion list for one farmer.

        Raises:
            InvalidArgument / NotFound: The profile cannot be loaded
            RetrievalUnavailable: Every retrieval attempt failed, or profile
                aggregation ran past the action timeout
            ContractViolation: The proposed list was rejected twice, or was
                rejected on the last step
            StepBudgetExceeded: No finalize within max_steps
            ConfigurationError: The embedding model does not match the index
        """
        state = self._new_state(profile_id, goal)
        logger.info(f"[ORCHESTRATOR] run for {profile_id}: '{goal[:80]}'")

        # The profile grounds every later query, so it is always step 1
        self._transition(state, LoopState.ACTING)
        state.step = 1
        try:
            state.profile = await asyncio.wait_for(
                self.aggregator.aggregate(profile_id),
                timeout=self.config.action_timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise RetrievalUnavailable(
                f"Profile aggregation timed out after {self.config.action_timeout_seconds}s",
                source="relational_store",
                cause=e,
            ) from e
        state.observations.append(Observation(
            step=1, action=AggregateProfile(profile_id), outcome=Outcome.OK,
        ))

        rejected_once = False
        while state.step < state.max_steps:
            self._transition(state, LoopState.PLANNING)
            try:
                action = await self.planner.next_action(state)
            except PlannerError as e:
                state.step += 1
                logger.warning(f"[ORCHESTRATOR] step {state.step}: planner error: {e}")
                state.observations.append(Observation(
                    step=state.step, action=None, outcome=Outcome.PLANNER_ERROR, detail=str(e),
                ))
                continue

            state.step += 1

            if isinstance(action, Finalize):
                self._transition(state, LoopState.FINALIZING)
                if state.all_retrieval_failed:
                    raise RetrievalUnavailable(
                        "Every retrieval action failed; refusing to finalize without evidence"
                    )

                report = self.validator.validate(
                    action.suggestions, state.working_set(), state.profile
                )
                if report.accepted:
                    self._transition(state, LoopState.DONE)
                    logger.info(
                        f"[ORCHESTRATOR] finalized {len(action.suggestions)} suggestions "
                        f"in {state.step} steps"
                    )
                    return OrchestrationResult(
                        suggestions=list(action.suggestions),
                        steps=state.step,
                        observations=list(state.observations),
                        candidate_count=len(state.candidates),
                        covered=set(state.covered),
                    )

                out_of_steps = state.step >= state.max_steps
                if rejected_once or out_of_steps or not self.config.replan_on_rejection:
                    raise ContractViolation(
                        f"Suggestion list rejected: {', '.join(report.rules)}",
                        report.violations,
                    )
                rejected_once = True
                state.rejection = report
                state.observations.append(Observation(
                    step=state.step, action=action, outcome=Outcome.REJECTED,
                    detail=report.summary(),
                ))
                continue

            await self._act(state, action)

        if state.all_retrieval_failed:
            raise RetrievalUnavailable(
                f"Every retrieval action failed within {state.max_steps} steps"
            )
        raise StepBudgetExceeded(state.max_steps)

    async def _act(self, state: PlanningState, action: PlannedAction) -> None:
        """Execute one non-final action and record what happened."""
        signature = action.signature()
        if signature in state.invalid_signatures:
            logger.info(f"[ORCHESTRATOR] step {state.step}: refusing repeat of invalid {action.kind}")
            state.observations.append(Observation(
                step=state.step, action=action, outcome=Outcome.REFUSED,
                detail="identical arguments already failed with invalid_argument",
            ))
            return

        self._transition(state, LoopState.ACTING)
        observation = Observation(step=state.step, action=action, outcome=Outcome.OK)
        try:
            observation.result_ids, observation.new_candidates = await asyncio.wait_for(
                self._dispatch(state, action),
                timeout=self.config.action_timeout_seconds,
            )
            dimension = action_dimension(action)
            # A dimension counts as covered only once it produced evidence
            if dimension is not None and observation.result_ids:
                state.covered.add(dimension)
        except asyncio.TimeoutError:
            observation.outcome = Outcome.UNAVAILABLE
            observation.detail = f"timed out after {self.config.action_timeout_seconds}s"
        except RetrievalUnavailable as e:
            observation.outcome = Outcome.UNAVAILABLE
            observation.detail = str(e)
        except InvalidArgument as e:
            observation.outcome = Outcome.INVALID_ARGUMENT
            observation.detail = str(e)
            state.invalid_signatures.add(signature)
        except NotFound as e:
            observation.outcome = Outcome.NOT_FOUND
            observation.detail = str(e)

        self._transition(state, LoopState.OBSERVING)
        state.observations.append(observation)
        logger.info(
            f"[ORCHESTRATOR] step {state.step}: {action.kind} → {observation.outcome.value} "
            f"({len(observation.result_ids)} results, {observation.new_candidates} new)"
        )

    async def _dispatch(self, state: PlanningState, action: PlannedAction) -> tuple[list[str], int]:
        """Run the action; returns (result ids, number of new candidates)."""
        dimension = action_dimension(action)

        if isinstance(action, AggregateProfile):
            if action.profile_id != state.profile_id:
                raise InvalidArgument(
                    f"This run is for profile {state.profile_id}, not {action.profile_id}",
                    argument="profile_id",
                )
            return [], 0

        if isinstance(action, HybridSearchAction):
            hits = await self.search.search(action.query, action.filters or None, action.top_k)
            new = sum(state.add_candidate(h.record, h.score, dimension) for h in hits)
            return [h.id for h in hits], new

        if isinstance(action, StructuredLookup):
            records = await self.lookups.lookup(action.field, action.value)
            new = sum(state.add_candidate(r, None, dimension) for r in records)
            return [r.id for r in records], new

        raise InvalidArgument(f"Unsupported action: {action!r}", argument="action")
