"""Standard exception hierarchy for scheme-match.

All scheme-match exceptions inherit from SchemeMatchError, making it easy
to catch all library-specific errors.

Exception Hierarchy:
    SchemeMatchError (base)
    ├── ConfigurationError - Invalid configuration
    ├── ProviderError - Base for external service errors
    │   ├── RetrievalUnavailable - Embedding/index/store unreachable
    │   └── LLMError - Planner model errors
    ├── NotFound - Identifier lookup without a match
    ├── InvalidArgument - Malformed input to a component
    ├── ContractViolation - Final suggestion list rejected
    ├── StepBudgetExceeded - Orchestration loop did not converge
    └── PlannerError - Planner produced an unusable action
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from scheme_match.orchestration.validator import RuleViolation


class SchemeMatchError(Exception):
    """Base exception for all scheme-match errors.

    Catch this to handle any library-specific exception:
        try:
            result = await orchestrator.run(profile_id, goal)
        except SchemeMatchError as e:
            logger.error(f"Scheme matching failed: {e}")
    """

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause

    def __str__(self) -> str:
        if self.cause:
            return f"{super().__str__()} (caused by: {self.cause})"
        return super().__str__()


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(SchemeMatchError):
    """Invalid configuration.

    Raised when SchemeMatchConfig has invalid settings, missing required
    values, or incompatible options.
    """

    pass


# =============================================================================
# Provider Errors
# =============================================================================


class ProviderError(SchemeMatchError):
    """Base exception for external service errors."""

    pass


class RetrievalUnavailable(ProviderError):
    """A retrieval backend could not be reached.

    Raised when:
    - The embedding service is down or times out
    - The vector index is unreachable
    - The relational store connection fails

    Recoverable inside an orchestration run by switching to another
    retrieval action. Fatal only when every retrieval action fails.
    """

    def __init__(
        self,
        message: str,
        source: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause)
        self.source = source


class LLMError(ProviderError):
    """LLM provider error.

    Raised when:
    - LLM API call fails after retries
    - Provider client is missing or misconfigured
    """

    pass


# =============================================================================
# Lookup / Input Errors
# =============================================================================


class NotFound(SchemeMatchError):
    """An identifier lookup matched nothing.

    Not fatal inside an orchestration run: the identifier is simply
    excluded from the candidate set.
    """

    def __init__(self, message: str, identifier: str | None = None):
        super().__init__(message)
        self.identifier = identifier


class InvalidArgument(SchemeMatchError, ValueError):
    """Malformed input to a component.

    Fatal for the single call. Retrying with identical arguments will
    fail the same way.
    """

    def __init__(self, message: str, argument: str | None = None):
        super().__init__(message)
        self.argument = argument


# =============================================================================
# Orchestration Errors
# =============================================================================


class ContractViolation(SchemeMatchError):
    """The proposed suggestion list failed output validation."""

    def __init__(
        self,
        message: str,
        violations: list[RuleViolation] | None = None,
    ):
        super().__init__(message)
        self.violations = list(violations or [])

    @property
    def rules(self) -> list[str]:
        """Names of the violated rules, in report order, without repeats."""
        seen: list[str] = []
        for violation in self.violations:
            if violation.rule not in seen:
                seen.append(violation.rule)
        return seen


class StepBudgetExceeded(SchemeMatchError):
    """The orchestration loop hit its step bound without finalizing."""

    def __init__(self, steps: int):
        super().__init__(f"Orchestration did not finalize within {steps} steps")
        self.steps = steps


class PlannerError(SchemeMatchError):
    """The planner returned output that is not a valid action."""

    pass
