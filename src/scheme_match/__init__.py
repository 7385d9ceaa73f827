"""scheme-match - Match farmer profiles to government schemes.

A planner-driven retrieval loop combines semantic search over an indexed
scheme catalog with structured lookups, then validates a short list of
justified suggestions before returning it.

Example:
    from scheme_match import SchemeMatchConfig, SchemeMatchService

    async with SchemeMatchService(SchemeMatchConfig.from_env()) as service:
        for suggestion in await service.suggest(farmer_id):
            print(suggestion.scheme_name, suggestion.reason)
"""

__version__ = "0.1.0"

# Configuration
from scheme_match.config import (
    SchemeMatchConfig,
    LLMConfig,
    EmbeddingConfig,
    VectorIndexConfig,
    DatabaseConfig,
    RetryConfig,
    OrchestratorConfig,
)

# Exceptions
from scheme_match.exceptions import (
    SchemeMatchError,
    ConfigurationError,
    ProviderError,
    RetrievalUnavailable,
    LLMError,
    NotFound,
    InvalidArgument,
    ContractViolation,
    StepBudgetExceeded,
    PlannerError,
)

# Data model
from scheme_match.models import (
    CatalogRecord,
    ScoredRecord,
    Profile,
    ProfileCore,
    ContactRecord,
    Plot,
    PlotCrop,
    ActivityLogEntry,
    SuggestionResult,
    LookupField,
    Dimension,
)

# Components
from scheme_match.retrieval import HybridSearch, StructuredQuery, RetryPolicy
from scheme_match.profile import ProfileAggregator
from scheme_match.orchestration import (
    RetrievalOrchestrator,
    OrchestrationResult,
    OutputValidator,
    HeuristicPlanner,
    LLMPlanner,
    ScriptedPlanner,
)
from scheme_match.service import SchemeMatchService

__all__ = [
    "__version__",
    # Configuration
    "SchemeMatchConfig",
    "LLMConfig",
    "EmbeddingConfig",
    "VectorIndexConfig",
    "DatabaseConfig",
    "RetryConfig",
    "OrchestratorConfig",
    # Exceptions
    "SchemeMatchError",
    "ConfigurationError",
    "ProviderError",
    "RetrievalUnavailable",
    "LLMError",
    "NotFound",
    "InvalidArgument",
    "ContractViolation",
    "StepBudgetExceeded",
    "PlannerError",
    # Data model
    "CatalogRecord",
    "ScoredRecord",
    "Profile",
    "ProfileCore",
    "ContactRecord",
    "Plot",
    "PlotCrop",
    "ActivityLogEntry",
    "SuggestionResult",
    "LookupField",
    "Dimension",
    # Components
    "HybridSearch",
    "StructuredQuery",
    "RetryPolicy",
    "ProfileAggregator",
    "RetrievalOrchestrator",
    "OrchestrationResult",
    "OutputValidator",
    "HeuristicPlanner",
    "LLMPlanner",
    "ScriptedPlanner",
    # Service
    "SchemeMatchService",
]
