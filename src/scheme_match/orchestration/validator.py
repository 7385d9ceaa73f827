"""Output contract validation for proposed suggestion lists.

Rules (each violation names one):
    length            list size outside [min_items, max_items]
    duplicate_id      the same scheme_id appears twice
    unknown_id        scheme_id not in the run's working set
    name_mismatch     scheme_name differs from the resolved record's name
    empty_reason      blank justification
    ungrounded_reason justification cites no profile attribute

Grounding is a keyword heuristic: a reason passes if it mentions a
matching dimension (geographic, demographic, land, crop, infrastructure)
or a concrete value from the profile such as the state or a crop name.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from ..exceptions import ContractViolation
from ..models import CatalogRecord, Dimension, Profile, SuggestionResult

logger = logging.getLogger(__name__)

DIMENSION_KEYWORDS: dict[Dimension, tuple[str, ...]] = {
    Dimension.GEOGRAPHIC: (
        "state", "district", "village", "region", "rural", "location", "local",
    ),
    Dimension.DEMOGRAPHIC: (
        "age", "aged", "gender", "women", "woman", "female", "male", "youth",
        "young", "elderly", "education", "educated", "experience", "experienced",
        "family",
    ),
    Dimension.LAND: (
        "land", "acre", "acres", "hectare", "hectares", "plot", "plots",
        "holding", "landholding", "smallholder", "marginal", "tenant", "ownership",
    ),
    Dimension.CROP: (
        "crop", "crops", "harvest", "seed", "seeds", "cultivation", "yield",
        "sowing", "horticulture", "organic",
    ),
    Dimension.INFRASTRUCTURE: (
        "irrigation", "irrigated", "drip", "sprinkler", "borewell", "pump",
        "tractor", "machinery", "equipment", "storage", "warehouse",
        "electricity", "solar", "soil",
    ),
}


@dataclass(frozen=True)
class RuleViolation:
    """One failed rule, optionally pointing at a list position."""

    rule: str
    message: str
    index: int | None = None
    scheme_id: str | None = None


@dataclass
class ValidationReport:
    """Structured result of validating one suggestion list."""

    violations: list[RuleViolation] = field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return not self.violations

    @property
    def rules(self) -> list[str]:
        seen: list[str] = []
        for violation in self.violations:
            if violation.rule not in seen:
                seen.append(violation.rule)
        return seen

    def summary(self) -> str:
        if self.accepted:
            return "accepted"
        return "; ".join(f"{v.rule}: {v.message}" for v in self.violations)


class OutputValidator:
    """Checks a suggestion list against the output contract."""

    def __init__(
        self,
        min_items: int = 3,
        max_items: int = 5,
        keywords: Mapping[Dimension, Iterable[str]] | None = None,
    ):
        self.min_items = min_items
        self.max_items = max_items
        words = sorted({w.lower() for ws in (keywords or DIMENSION_KEYWORDS).values() for w in ws})
        self._keyword_pattern = re.compile(r"\b(" + "|".join(map(re.escape, words)) + r")\b")

    def is_grounded(self, reason: str, profile: Profile | None = None) -> bool:
        text = reason.lower()
        if self._keyword_pattern.search(text):
            return True
        if profile is not None:
            return any(term.lower() in text for term in profile.grounding_terms())
        return False

    def validate(
        self,
        suggestions: Sequence[SuggestionResult],
        working_set: Mapping[str, CatalogRecord],
        profile: Profile | None = None,
    ) -> ValidationReport:
        """Check every rule and collect all violations."""
        violations: list[RuleViolation] = []

        count = len(suggestions)
        if not self.min_items <= count <= self.max_items:
            violations.append(RuleViolation(
                rule="length",
                message=f"{count} suggestions, expected {self.min_items}-{self.max_items}",
            ))

        seen: set[str] = set()
        for i, suggestion in enumerate(suggestions):
            scheme_id = suggestion.scheme_id
            if scheme_id in seen:
                violations.append(RuleViolation(
                    "duplicate_id", f"{scheme_id} is suggested more than once", i, scheme_id,
                ))
            seen.add(scheme_id)

            record = working_set.get(scheme_id)
            if record is None:
                violations.append(RuleViolation(
                    "unknown_id", f"{scheme_id} was not retrieved in this run", i, scheme_id,
                ))
            elif suggestion.scheme_name != record.name:
                violations.append(RuleViolation(
                    "name_mismatch",
                    f"'{suggestion.scheme_name}' does not match '{record.name}'",
                    i,
                    scheme_id,
                ))

            if not suggestion.reason.strip():
                violations.append(RuleViolation("empty_reason", "reason is empty", i, scheme_id))
            elif not self.is_grounded(suggestion.reason, profile):
                violations.append(RuleViolation(
                    "ungrounded_reason",
                    "reason does not reference any profile attribute",
                    i,
                    scheme_id,
                ))

        report = ValidationReport(violations)
        if not report.accepted:
            logger.info(f"[VALIDATOR] rejected {count} suggestions: {', '.join(report.rules)}")
        return report

    def enforce(
        self,
        suggestions: Sequence[SuggestionResult],
        working_set: Mapping[str, CatalogRecord],
        profile: Profile | None = None,
    ) -> list[SuggestionResult]:
        """Validate and return the list, or raise ContractViolation."""
        report = self.validate(suggestions, working_set, profile)
        if not report.accepted:
            raise ContractViolation(
                f"Suggestion list violates: {', '.join(report.rules)}",
                report.violations,
            )
        return list(suggestions)
