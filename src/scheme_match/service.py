"""Scheme matching service.

Wires a SchemeMatchConfig into the full stack (stores, embedder, vector
index, planner, orchestrator) and exposes a single call:

    async with SchemeMatchService(SchemeMatchConfig.from_env()) as service:
        suggestions = await service.suggest(farmer_id)

Any component can be injected instead of being built from config.
"""

from __future__ import annotations

import logging

from .config import SchemeMatchConfig
from .llm.base import LLMProvider
from .llm.factory import create_llm_from_config
from .models import SuggestionResult
from .orchestration.orchestrator import OrchestrationResult, RetrievalOrchestrator
from .orchestration.planner import HeuristicPlanner, LLMPlanner, Planner
from .profile.aggregator import ProfileAggregator
from .retrieval.embedding import OllamaEmbeddingProvider
from .retrieval.hybrid_search import HybridSearch
from .retrieval.memory_index import InMemoryVectorIndex
from .retrieval.protocols import CatalogStore, EmbeddingProvider, ProfileStore, VectorIndex
from .retrieval.qdrant_index import QdrantVectorIndex
from .retrieval.retry import RetryPolicy
from .retrieval.structured import StructuredQuery
from .storage.sql import SqlStore

logger = logging.getLogger(__name__)

DEFAULT_GOAL = (
    "Suggest the most suitable government agricultural schemes for this farmer"
)


class SchemeMatchService:
    """Facade over the retrieval orchestrator."""

    def __init__(
        self,
        config: SchemeMatchConfig | None = None,
        *,
        catalog_store: CatalogStore | None = None,
        profile_store: ProfileStore | None = None,
        embedder: EmbeddingProvider | None = None,
        index: VectorIndex | None = None,
        llm: LLMProvider | None = None,
        planner: Planner | None = None,
    ):
        """Initialize the service.

        Args:
            config: Configuration (default: SchemeMatchConfig())
            catalog_store: Scheme lookups (default: SqlStore from config)
            profile_store: Farmer profile reads (default: same SqlStore)
            embedder: Query embeddings (default: Ollama from config)
            index: Vector index (default: Qdrant or in-memory from config)
            llm: Planner model (default: from config; None → heuristic)
            planner: Overrides planner selection entirely
        """
        self.config = config or SchemeMatchConfig()
        self.config.validate()

        self._sql_store: SqlStore | None = None
        if catalog_store is None or profile_store is None:
            self._sql_store = SqlStore.from_config(self.config.database)
        self.catalog_store = catalog_store or self._sql_store
        self.profile_store = profile_store or self._sql_store

        self.embedder = embedder or OllamaEmbeddingProvider.from_config(self.config.embedding)

        self._qdrant: QdrantVectorIndex | None = None
        if index is None:
            if self.config.vector_index.provider == "qdrant":
                self._qdrant = QdrantVectorIndex(self.config.vector_index)
                index = self._qdrant
            else:
                index = InMemoryVectorIndex()
        self.index = index

        self.planner = planner or self._build_planner(llm)

        retry = RetryPolicy.from_config(self.config.retry)
        self.orchestrator = RetrievalOrchestrator(
            planner=self.planner,
            aggregator=ProfileAggregator(self.profile_store, retry),
            search=HybridSearch(
                self.embedder,
                self.index,
                retry,
                default_top_k=self.config.orchestrator.default_top_k,
            ),
            lookups=StructuredQuery(self.catalog_store, retry),
            config=self.config.orchestrator,
        )

    def _build_planner(self, llm: LLMProvider | None) -> Planner:
        llm = llm or create_llm_from_config(self.config.llm)
        top_k = self.config.orchestrator.default_top_k
        if llm is None:
            logger.info("No planner LLM configured, using heuristic planner")
            return HeuristicPlanner(top_k=top_k)
        return LLMPlanner(
            llm,
            temperature=self.config.llm.temperature,
            max_tokens=self.config.llm.max_tokens,
            default_top_k=top_k,
        )

    async def run(self, profile_id: str, goal: str = DEFAULT_GOAL) -> OrchestrationResult:
        """Full orchestration result including the observation trace."""
        return await self.orchestrator.run(profile_id, goal)

    async def suggest(self, profile_id: str, goal: str = DEFAULT_GOAL) -> list[SuggestionResult]:
        """Validated list of 3-5 scheme suggestions for a farmer."""
        result = await self.run(profile_id, goal)
        return result.suggestions

    async def close(self) -> None:
        """Release connections this service created."""
        if self._qdrant is not None:
            await self._qdrant.close()
        if self._sql_store is not None:
            await self._sql_store.close()

    async def __aenter__(self) -> "SchemeMatchService":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
