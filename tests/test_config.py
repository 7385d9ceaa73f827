"""Tests for SchemeMatchConfig."""

import pytest

from scheme_match.config import (
    SchemeMatchConfig,
    LLMConfig,
    OrchestratorConfig,
    RetryConfig,
    VectorIndexConfig,
)
from scheme_match.exceptions import ConfigurationError


ENV_VARS = [
    "SCHEME_MATCH_LLM_PROVIDER",
    "SCHEME_MATCH_LLM_MODEL",
    "SCHEME_MATCH_LLM_API_KEY",
    "SCHEME_MATCH_INDEX_URL",
    "SCHEME_MATCH_INDEX_API_KEY",
    "SCHEME_MATCH_INDEX_COLLECTION",
    "SCHEME_MATCH_DATABASE_URL",
    "SCHEME_MATCH_MAX_STEPS",
    "SCHEME_MATCH_MIN_CANDIDATES",
    "QDRANT_ENDPOINT",
    "QDRANT_API_KEY",
    "DATABASE_URL",
    "GROQ_API_KEY",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestDefaults:
    """Tests for default configuration."""

    def test_default_values(self):
        config = SchemeMatchConfig.default()
        assert config.vector_index.collection == "schemes-data"
        assert config.orchestrator.max_steps == 12
        assert config.orchestrator.min_candidates == 5
        assert config.orchestrator.min_dimensions == 3
        assert config.orchestrator.default_top_k == 10
        assert (config.orchestrator.min_suggestions, config.orchestrator.max_suggestions) == (3, 5)

    def test_default_validates(self):
        SchemeMatchConfig().validate()


class TestFromEnv:
    """Tests for environment loading."""

    def test_scheme_match_variables(self, clean_env):
        clean_env.setenv("SCHEME_MATCH_LLM_PROVIDER", "ollama")
        clean_env.setenv("SCHEME_MATCH_LLM_MODEL", "llama3.1:8b")
        clean_env.setenv("SCHEME_MATCH_INDEX_URL", "http://qdrant:6333")
        clean_env.setenv("SCHEME_MATCH_INDEX_COLLECTION", "schemes-v2")
        clean_env.setenv("SCHEME_MATCH_MAX_STEPS", "8")

        config = SchemeMatchConfig.from_env()

        assert config.llm.provider == "ollama"
        assert config.llm.model == "llama3.1:8b"
        assert config.vector_index.url == "http://qdrant:6333"
        assert config.vector_index.collection == "schemes-v2"
        assert config.orchestrator.max_steps == 8

    def test_deployment_fallback_names(self, clean_env):
        """QDRANT_ENDPOINT, QDRANT_API_KEY, DATABASE_URL and GROQ_API_KEY are honoured."""
        clean_env.setenv("QDRANT_ENDPOINT", "https://cluster.qdrant.io")
        clean_env.setenv("QDRANT_API_KEY", "qdrant-key")
        clean_env.setenv("DATABASE_URL", "postgresql+asyncpg://db/agri")
        clean_env.setenv("GROQ_API_KEY", "groq-key")

        config = SchemeMatchConfig.from_env()

        assert config.vector_index.url == "https://cluster.qdrant.io"
        assert config.vector_index.api_key == "qdrant-key"
        assert config.database.url == "postgresql+asyncpg://db/agri"
        assert config.llm.api_key == "groq-key"

    def test_prefixed_variable_wins(self, clean_env):
        clean_env.setenv("QDRANT_ENDPOINT", "https://fallback")
        clean_env.setenv("SCHEME_MATCH_INDEX_URL", "https://primary")
        assert SchemeMatchConfig.from_env().vector_index.url == "https://primary"


class TestValidate:
    """Tests for cross-field validation."""

    def test_unknown_llm_provider(self):
        config = SchemeMatchConfig(llm=LLMConfig(provider="openai"))  # type: ignore[arg-type]
        with pytest.raises(ConfigurationError):
            config.validate()

    def test_unknown_index_provider(self):
        config = SchemeMatchConfig(vector_index=VectorIndexConfig(provider="milvus"))  # type: ignore[arg-type]
        with pytest.raises(ConfigurationError):
            config.validate()

    def test_zero_attempts(self):
        with pytest.raises(ConfigurationError):
            SchemeMatchConfig(retry=RetryConfig(max_attempts=0)).validate()

    def test_step_budget_too_small(self):
        with pytest.raises(ConfigurationError):
            SchemeMatchConfig(orchestrator=OrchestratorConfig(max_steps=1)).validate()

    def test_suggestion_bounds(self):
        with pytest.raises(ConfigurationError):
            SchemeMatchConfig(
                orchestrator=OrchestratorConfig(min_suggestions=6, max_suggestions=5)
            ).validate()

    def test_action_timeout_must_cover_aggregation(self):
        """Aggregation runs two retried phases; a shorter action timeout cuts retries off."""
        retry = RetryConfig(max_attempts=3, timeout_seconds=15.0)
        assert retry.worst_case_seconds() == pytest.approx(45.0 + 0.5 + 1.0)
        with pytest.raises(ConfigurationError, match="action_timeout_seconds"):
            SchemeMatchConfig(
                retry=retry,
                orchestrator=OrchestratorConfig(action_timeout_seconds=60.0),
            ).validate()

    def test_non_positive_action_timeout(self):
        with pytest.raises(ConfigurationError):
            SchemeMatchConfig(orchestrator=OrchestratorConfig(action_timeout_seconds=0)).validate()
