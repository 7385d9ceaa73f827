"""Planned actions.

The planner's output is one of a closed set of typed variants:

    PlannedAction = AggregateProfile | HybridSearchAction | StructuredLookup | Finalize

parse_action turns the loosely typed ``{"action": name, "args": {...}}``
object a model produces into one of these. Structural problems (unknown
action, missing argument) raise PlannerError; value problems such as a
non-positive top_k or a malformed id are left to the component that
executes the action, which raises InvalidArgument.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from ..exceptions import PlannerError
from ..models import Dimension, LookupField, SuggestionResult


@dataclass(frozen=True)
class AggregateProfile:
    """Fetch (or re-read) the composite profile."""

    profile_id: str

    kind = "aggregate_profile"

    def arguments(self) -> dict[str, Any]:
        return {"profile_id": self.profile_id}

    def signature(self) -> str:
        return _signature(self.kind, self.arguments())


@dataclass(frozen=True)
class HybridSearchAction:
    """Semantic search with an optional metadata filter."""

    query: str
    filters: dict[str, Any] = field(default_factory=dict, hash=False)
    top_k: Any = None
    dimension: Dimension | None = None

    kind = "hybrid_search"

    def arguments(self) -> dict[str, Any]:
        return {"query": self.query, "filters": self.filters, "top_k": self.top_k}

    def signature(self) -> str:
        return _signature(self.kind, self.arguments())


@dataclass(frozen=True)
class StructuredLookup:
    """Lookup by name, authority, region or identifier."""

    field: LookupField
    value: str
    dimension: Dimension | None = None

    kind = "structured_lookup"

    def arguments(self) -> dict[str, Any]:
        return {"field": self.field.value, "value": self.value}

    def signature(self) -> str:
        return _signature(self.kind, self.arguments())


@dataclass(frozen=True)
class Finalize:
    """Stop and propose the suggestion list."""

    suggestions: tuple[SuggestionResult, ...] = ()

    kind = "finalize"

    def arguments(self) -> dict[str, Any]:
        return {"suggestions": [s.to_dict() for s in self.suggestions]}

    def signature(self) -> str:
        return _signature(self.kind, self.arguments())


PlannedAction = Union[AggregateProfile, HybridSearchAction, StructuredLookup, Finalize]

RETRIEVAL_ACTIONS = (HybridSearchAction, StructuredLookup)


def _signature(kind: str, arguments: Mapping[str, Any]) -> str:
    return json.dumps({"action": kind, "args": arguments}, sort_keys=True, default=str)


def action_dimension(action: PlannedAction) -> Dimension | None:
    """Dimension an action explores; region lookups are geographic by nature."""
    dimension = getattr(action, "dimension", None)
    if dimension is not None:
        return dimension
    if isinstance(action, StructuredLookup) and action.field == LookupField.REGION:
        return Dimension.GEOGRAPHIC
    if isinstance(action, HybridSearchAction) and any(
        key in action.filters for key in ("state", "region")
    ):
        return Dimension.GEOGRAPHIC
    return None


# =============================================================================
# Parsing
# =============================================================================

# Accepted action names (snake case, kebab case and the agent tool names)
_ACTION_ALIASES = {
    "aggregate_profile": "aggregate_profile",
    "getfarmerprofile": "aggregate_profile",
    "hybrid_search": "hybrid_search",
    "searchschemeshybrid": "hybrid_search",
    "structured_lookup": "structured_lookup",
    "lookup_by_name": "lookup:name",
    "getschemebyname": "lookup:name",
    "lookup_by_authority": "lookup:authority",
    "getschemesbyministry": "lookup:authority",
    "lookup_by_region": "lookup:region",
    "getschemebystate": "lookup:region",
    "lookup_by_id": "lookup:id",
    "getschemebyid": "lookup:id",
    "finalize": "finalize",
}

_LOOKUP_ARG_NAMES = {
    LookupField.NAME: ("name", "value"),
    LookupField.AUTHORITY: ("authority", "ministry", "value"),
    LookupField.REGION: ("region", "state", "value"),
    LookupField.ID: ("id", "scheme_id", "identifier", "value"),
}


def _required_text(args: Mapping[str, Any], names: tuple[str, ...], action: str) -> str:
    for name in names:
        value = args.get(name)
        if value is not None:
            if not isinstance(value, str):
                raise PlannerError(f"Argument '{name}' of {action} must be text")
            return value
    raise PlannerError(f"Action {action} is missing argument '{names[0]}'")


def _parse_dimension(value: Any) -> Dimension | None:
    if value in (None, ""):
        return None
    try:
        return Dimension(str(value).lower())
    except ValueError as e:
        raise PlannerError(f"Unknown dimension: {value!r}", cause=e) from e


def _parse_lookup_field(value: Any) -> LookupField:
    aliases = {"ministry": "authority", "state": "region", "scheme_id": "id"}
    name = str(value).lower()
    try:
        return LookupField(aliases.get(name, name))
    except ValueError as e:
        raise PlannerError(f"Unknown lookup field: {value!r}", cause=e) from e


def parse_suggestions(value: Any) -> tuple[SuggestionResult, ...]:
    if not isinstance(value, list):
        raise PlannerError("finalize requires a list of suggestions")
    suggestions = []
    for item in value:
        if not isinstance(item, Mapping):
            raise PlannerError("Each suggestion must be an object")
        suggestions.append(SuggestionResult.from_dict(item))
    return tuple(suggestions)


def parse_action(payload: Any) -> PlannedAction:
    """Convert a planner's JSON object into a typed action.

    Accepts ``{"action": "...", "args": {...}}``; arguments may also sit at
    the top level next to ``action``.

    Raises:
        PlannerError: Unknown action or missing/ill-typed arguments
    """
    if not isinstance(payload, Mapping):
        raise PlannerError(f"Planner output must be an object, got {type(payload).__name__}")

    name_key = next((k for k in ("action", "tool") if payload.get(k)), None)
    raw_name = payload.get(name_key) if name_key else None
    if not isinstance(raw_name, str):
        raise PlannerError("Planner output has no action name")
    key = raw_name.strip().replace("-", "_")
    resolved = _ACTION_ALIASES.get(key.lower()) or _ACTION_ALIASES.get(key.lower().replace("_", ""))
    if resolved is None:
        raise PlannerError(f"Unknown action: {raw_name}")

    args = payload.get("args")
    if args is None:
        args = {k: v for k, v in payload.items() if k not in (name_key, "reasoning")}
    if not isinstance(args, Mapping):
        raise PlannerError(f"Arguments of {raw_name} must be an object")

    dimension = _parse_dimension(args.get("dimension"))

    if resolved == "aggregate_profile":
        return AggregateProfile(
            profile_id=_required_text(args, ("profile_id", "farmerId", "farmer_id"), raw_name)
        )

    if resolved == "hybrid_search":
        filters = args.get("filters") or {}
        if not isinstance(filters, Mapping):
            raise PlannerError("hybrid_search filters must be an object")
        top_k = next((args[k] for k in ("top_k", "topK", "k") if args.get(k) is not None), None)
        return HybridSearchAction(
            query=_required_text(args, ("query",), raw_name),
            filters=dict(filters),
            top_k=top_k,
            dimension=dimension,
        )

    if resolved == "structured_lookup":
        lookup_field = _parse_lookup_field(args.get("field"))
        return StructuredLookup(
            field=lookup_field,
            value=_required_text(args, _LOOKUP_ARG_NAMES[lookup_field], raw_name),
            dimension=dimension,
        )

    if resolved.startswith("lookup:"):
        lookup_field = LookupField(resolved.split(":", 1)[1])
        return StructuredLookup(
            field=lookup_field,
            value=_required_text(args, _LOOKUP_ARG_NAMES[lookup_field], raw_name),
            dimension=dimension,
        )

    return Finalize(suggestions=parse_suggestions(args.get("suggestions")))
