"""Per-run orchestration state.

A PlanningState is created for each orchestrator run and discarded when
the run ends; nothing in it is shared between runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from ..models import CatalogRecord, Dimension, Profile
from .actions import RETRIEVAL_ACTIONS, PlannedAction

if TYPE_CHECKING:
    from .validator import ValidationReport


class LoopState(str, Enum):
    """Orchestration loop states."""

    PLANNING = "planning"
    ACTING = "acting"
    OBSERVING = "observing"
    FINALIZING = "finalizing"
    DONE = "done"


class Outcome(str, Enum):
    """How a single step ended."""

    OK = "ok"
    UNAVAILABLE = "unavailable"
    INVALID_ARGUMENT = "invalid_argument"
    NOT_FOUND = "not_found"
    PLANNER_ERROR = "planner_error"
    REFUSED = "refused"
    REJECTED = "rejected"


@dataclass
class Observation:
    """Result of one step, as shown to the planner."""

    step: int
    action: PlannedAction | None
    outcome: Outcome
    detail: str = ""
    result_ids: list[str] = field(default_factory=list)
    new_candidates: int = 0

    @property
    def is_retrieval(self) -> bool:
        return isinstance(self.action, RETRIEVAL_ACTIONS)

    def to_dict(self) -> dict[str, Any]:
        return {
            "step": self.step,
            "action": self.action.kind if self.action is not None else None,
            "args": self.action.arguments() if self.action is not None else {},
            "outcome": self.outcome.value,
            "detail": self.detail,
            "results": len(self.result_ids),
            "new_candidates": self.new_candidates,
        }


@dataclass
class CandidateEntry:
    """A scheme in the working set with how it was found."""

    record: CatalogRecord
    score: float | None = None
    dimensions: set[Dimension] = field(default_factory=set)
    hits: int = 1

    def merge(self, score: float | None, dimension: Dimension | None) -> None:
        if score is not None and (self.score is None or score > self.score):
            self.score = score
        if dimension is not None:
            self.dimensions.add(dimension)
        self.hits += 1


@dataclass
class PlanningState:
    """Everything a planner may look at when choosing the next action."""

    profile_id: str
    goal: str
    max_steps: int = 12
    min_candidates: int = 5
    min_dimensions: int = 3
    min_suggestions: int = 3
    max_suggestions: int = 5

    profile: Profile | None = None
    step: int = 0
    loop_state: LoopState = LoopState.PLANNING
    candidates: dict[str, CandidateEntry] = field(default_factory=dict)
    covered: set[Dimension] = field(default_factory=set)
    observations: list[Observation] = field(default_factory=list)
    invalid_signatures: set[str] = field(default_factory=set)
    rejection: ValidationReport | None = None

    @property
    def steps_remaining(self) -> int:
        return self.max_steps - self.step

    @property
    def coverage_sufficient(self) -> bool:
        """Enough candidates found across enough matching dimensions."""
        return (
            len(self.candidates) >= self.min_candidates
            and len(self.covered) >= self.min_dimensions
        )

    @property
    def retrieval_unavailable(self) -> bool:
        """True once any retrieval attempt failed for lack of a backend."""
        return any(
            o.is_retrieval and o.outcome == Outcome.UNAVAILABLE for o in self.observations
        )

    @property
    def all_retrieval_failed(self) -> bool:
        """True when retrieval was attempted and every attempt was unavailable."""
        attempts = [
            o for o in self.observations
            if o.is_retrieval and o.outcome not in (Outcome.INVALID_ARGUMENT, Outcome.REFUSED)
        ]
        return bool(attempts) and all(o.outcome == Outcome.UNAVAILABLE for o in attempts)

    def attempted(self, action: PlannedAction) -> bool:
        signature = action.signature()
        return any(
            o.action is not None and o.action.signature() == signature
            for o in self.observations
        )

    def add_candidate(
        self,
        record: CatalogRecord,
        score: float | None = None,
        dimension: Dimension | None = None,
    ) -> bool:
        """Add or merge a record; returns True when it is new."""
        entry = self.candidates.get(record.id)
        if entry is not None:
            entry.merge(score, dimension)
            return False
        self.candidates[record.id] = CandidateEntry(
            record=record,
            score=score,
            dimensions={dimension} if dimension is not None else set(),
        )
        return True

    def ranked_candidates(self) -> list[CandidateEntry]:
        """Candidates by dimension breadth, then hits, then best score."""
        return sorted(
            self.candidates.values(),
            key=lambda c: (len(c.dimensions), c.hits, c.score or 0.0),
            reverse=True,
        )

    def working_set(self) -> dict[str, CatalogRecord]:
        return {record_id: entry.record for record_id, entry in self.candidates.items()}
