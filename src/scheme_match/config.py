"""Unified configuration for scheme-match.

SchemeMatchConfig provides a clean way to configure all components:
- Planner LLM provider and model
- Embedding provider
- Vector index connection and collection
- Relational store connection
- Retry/timeout policy for retrieval calls
- Orchestration limits and stopping rule
"""

from dataclasses import dataclass, field
from typing import Literal
import os

from .exceptions import ConfigurationError


@dataclass
class LLMConfig:
    """Configuration for the planner LLM.

    provider "none" selects the deterministic heuristic planner.
    """

    provider: Literal["groq", "ollama", "mock", "none"] = "groq"
    model: str = "llama-3.3-70b-versatile"
    api_key: str | None = None
    base_url: str | None = None
    temperature: float = 0.1
    max_tokens: int = 1500


@dataclass
class EmbeddingConfig:
    """Configuration for query embeddings."""

    provider: Literal["ollama"] = "ollama"
    model: str = "nomic-embed-text"
    url: str = "http://localhost:11434"
    dimensions: int = 768


@dataclass
class VectorIndexConfig:
    """Configuration for the scheme vector index."""

    provider: Literal["qdrant", "in_memory"] = "qdrant"
    url: str = "http://localhost:6333"
    api_key: str | None = None
    collection: str = "schemes-data"
    # Payload key holding scheme fields ("metadata" for LangChain-built collections)
    metadata_key: str | None = "metadata"
    content_key: str = "page_content"
    score_threshold: float | None = None
    timeout_seconds: float = 10.0


@dataclass
class DatabaseConfig:
    """Configuration for the relational store holding schemes and profiles."""

    url: str = "postgresql+asyncpg://localhost:5432/schemes"
    pool_size: int = 5
    echo: bool = False


@dataclass
class RetryConfig:
    """Retry and timeout policy for idempotent retrieval calls."""

    max_attempts: int = 3
    base_delay_seconds: float = 0.5
    max_delay_seconds: float = 4.0
    timeout_seconds: float = 15.0

    def worst_case_seconds(self) -> float:
        """Longest one retried call can take: every attempt times out."""
        backoff = sum(
            min(self.base_delay_seconds * (2 ** (attempt - 1)), self.max_delay_seconds)
            for attempt in range(1, self.max_attempts)
        )
        return self.max_attempts * self.timeout_seconds + backoff


@dataclass
class OrchestratorConfig:
    """Limits and stopping rule for the retrieval loop."""

    max_steps: int = 12
    min_candidates: int = 5
    min_dimensions: int = 3
    default_top_k: int = 10
    action_timeout_seconds: float = 120.0
    replan_on_rejection: bool = True
    min_suggestions: int = 3
    max_suggestions: int = 5


@dataclass
class SchemeMatchConfig:
    """Main configuration for scheme-match.

    Create from environment variables:
        config = SchemeMatchConfig.from_env()

    Or specify directly:
        config = SchemeMatchConfig(
            llm=LLMConfig(provider="groq", model="llama-3.3-70b-versatile"),
            vector_index=VectorIndexConfig(url="http://qdrant:6333"),
        )
    """

    llm: LLMConfig = field(default_factory=LLMConfig)
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    vector_index: VectorIndexConfig = field(default_factory=VectorIndexConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    orchestrator: OrchestratorConfig = field(default_factory=OrchestratorConfig)

    @classmethod
    def from_env(cls) -> "SchemeMatchConfig":
        """Load configuration from environment variables.

        Environment variables:
        - SCHEME_MATCH_LLM_PROVIDER: groq, ollama, mock, none
        - SCHEME_MATCH_LLM_MODEL: Planner model name
        - SCHEME_MATCH_LLM_API_KEY: API key (or GROQ_API_KEY)
        - SCHEME_MATCH_LLM_BASE_URL: Custom base URL
        - SCHEME_MATCH_EMBEDDING_MODEL: Embedding model name
        - SCHEME_MATCH_EMBEDDING_URL: Embedding service URL
        - SCHEME_MATCH_EMBEDDING_DIMENSIONS: Embedding size
        - SCHEME_MATCH_INDEX_PROVIDER: qdrant, in_memory
        - SCHEME_MATCH_INDEX_URL: Qdrant URL (or QDRANT_ENDPOINT)
        - SCHEME_MATCH_INDEX_API_KEY: Qdrant API key (or QDRANT_API_KEY)
        - SCHEME_MATCH_INDEX_COLLECTION: Collection name
        - SCHEME_MATCH_DATABASE_URL: SQLAlchemy URL (or DATABASE_URL)
        - SCHEME_MATCH_RETRY_ATTEMPTS / SCHEME_MATCH_RETRY_TIMEOUT
        - SCHEME_MATCH_MAX_STEPS / SCHEME_MATCH_MIN_CANDIDATES
        """
        llm_provider = os.getenv("SCHEME_MATCH_LLM_PROVIDER", "groq")
        api_key = os.getenv("SCHEME_MATCH_LLM_API_KEY")
        if not api_key and llm_provider == "groq":
            api_key = os.getenv("GROQ_API_KEY")

        return cls(
            llm=LLMConfig(
                provider=llm_provider,  # type: ignore
                model=os.getenv("SCHEME_MATCH_LLM_MODEL", "llama-3.3-70b-versatile"),
                api_key=api_key,
                base_url=os.getenv("SCHEME_MATCH_LLM_BASE_URL"),
            ),
            embedding=EmbeddingConfig(
                model=os.getenv("SCHEME_MATCH_EMBEDDING_MODEL", "nomic-embed-text"),
                url=os.getenv("SCHEME_MATCH_EMBEDDING_URL", "http://localhost:11434"),
                dimensions=int(os.getenv("SCHEME_MATCH_EMBEDDING_DIMENSIONS", "768")),
            ),
            vector_index=VectorIndexConfig(
                provider=os.getenv("SCHEME_MATCH_INDEX_PROVIDER", "qdrant"),  # type: ignore
                url=(
                    os.getenv("SCHEME_MATCH_INDEX_URL")
                    or os.getenv("QDRANT_ENDPOINT")
                    or "http://localhost:6333"
                ),
                api_key=os.getenv("SCHEME_MATCH_INDEX_API_KEY") or os.getenv("QDRANT_API_KEY"),
                collection=os.getenv("SCHEME_MATCH_INDEX_COLLECTION", "schemes-data"),
            ),
            database=DatabaseConfig(
                url=(
                    os.getenv("SCHEME_MATCH_DATABASE_URL")
                    or os.getenv("DATABASE_URL")
                    or "postgresql+asyncpg://localhost:5432/schemes"
                ),
            ),
            retry=RetryConfig(
                max_attempts=int(os.getenv("SCHEME_MATCH_RETRY_ATTEMPTS", "3")),
                timeout_seconds=float(os.getenv("SCHEME_MATCH_RETRY_TIMEOUT", "15.0")),
            ),
            orchestrator=OrchestratorConfig(
                max_steps=int(os.getenv("SCHEME_MATCH_MAX_STEPS", "12")),
                min_candidates=int(os.getenv("SCHEME_MATCH_MIN_CANDIDATES", "5")),
            ),
        )

    @classmethod
    def default(cls) -> "SchemeMatchConfig":
        """Create a default configuration (same as no-arg constructor)."""
        return cls()

    def validate(self) -> None:
        """Check cross-field constraints.

        Raises:
            ConfigurationError: If any setting is out of range
        """
        if self.llm.provider not in ("groq", "ollama", "mock", "none"):
            raise ConfigurationError(f"Unknown LLM provider: {self.llm.provider}")
        if self.vector_index.provider not in ("qdrant", "in_memory"):
            raise ConfigurationError(
                f"Unknown vector index provider: {self.vector_index.provider}"
            )
        if self.retry.max_attempts < 1:
            raise ConfigurationError("retry.max_attempts must be at least 1")
        if self.retry.timeout_seconds <= 0:
            raise ConfigurationError("retry.timeout_seconds must be positive")

        orch = self.orchestrator
        if orch.max_steps < 2:
            raise ConfigurationError("orchestrator.max_steps must allow aggregation plus one action")
        if orch.action_timeout_seconds <= 0:
            raise ConfigurationError("orchestrator.action_timeout_seconds must be positive")
        # Aggregation is a core read followed by a concurrent batch of reads
        aggregation_budget = 2 * self.retry.worst_case_seconds()
        if orch.action_timeout_seconds < aggregation_budget:
            raise ConfigurationError(
                f"orchestrator.action_timeout_seconds ({orch.action_timeout_seconds}s) must cover "
                f"profile aggregation under the retry policy ({aggregation_budget}s)"
            )
        if orch.default_top_k < 1:
            raise ConfigurationError("orchestrator.default_top_k must be a positive integer")
        if not 1 <= orch.min_suggestions <= orch.max_suggestions:
            raise ConfigurationError(
                "orchestrator suggestion bounds must satisfy 1 <= min <= max"
            )
