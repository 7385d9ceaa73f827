"""Orchestration module for scheme-match.

This module provides the plan/act/observe loop that turns a farmer
profile and a goal into a validated list of scheme suggestions:

- **RetrievalOrchestrator**: runs the loop and enforces the step bound
- **Planners**: LLM-driven, heuristic, or scripted action selection
- **Actions**: the closed set of typed actions a planner may return
- **OutputValidator**: the output contract checked before returning
"""

from .actions import (
    AggregateProfile,
    Finalize,
    HybridSearchAction,
    PlannedAction,
    StructuredLookup,
    action_dimension,
    parse_action,
)
from .orchestrator import OrchestrationResult, RetrievalOrchestrator
from .planner import HeuristicPlanner, LLMPlanner, Planner, ScriptedPlanner
from .state import CandidateEntry, LoopState, Observation, Outcome, PlanningState
from .validator import DIMENSION_KEYWORDS, OutputValidator, RuleViolation, ValidationReport

__all__ = [
    # Orchestrator
    "RetrievalOrchestrator",
    "OrchestrationResult",
    # Actions
    "PlannedAction",
    "AggregateProfile",
    "HybridSearchAction",
    "StructuredLookup",
    "Finalize",
    "action_dimension",
    "parse_action",
    # Planners
    "Planner",
    "LLMPlanner",
    "HeuristicPlanner",
    "ScriptedPlanner",
    # State
    "PlanningState",
    "CandidateEntry",
    "Observation",
    "Outcome",
    "LoopState",
    # Validation
    "OutputValidator",
    "ValidationReport",
    "RuleViolation",
    "DIMENSION_KEYWORDS",
]
