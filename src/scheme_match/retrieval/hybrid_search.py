"""Hybrid semantic search over the scheme catalog.

Embeds a free-text query, runs a nearest-neighbour search restricted by an
optional exact-match metadata filter, and returns the best-scoring schemes.

Pipeline:
    query → [validate] → [embed] → [index query + filter] → [rank + dedupe] → top_k
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from ..exceptions import InvalidArgument
from ..models import ScoredRecord
from .protocols import EmbeddingProvider, VectorIndex
from .retry import RetryPolicy, call_with_retry

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 10

_SCALAR_TYPES = (str, int, bool)


def validate_top_k(top_k: Any) -> int:
    """Return top_k if it is a positive int, else raise InvalidArgument."""
    if isinstance(top_k, bool) or not isinstance(top_k, int) or top_k < 1:
        raise InvalidArgument(f"top_k must be a positive integer, got {top_k!r}", argument="top_k")
    return top_k


def validate_filters(filters: Any) -> dict[str, Any]:
    """Normalize a metadata filter map.

    Keys must be non-empty strings; values a scalar (str/int/bool) or a
    non-empty list of scalars meaning "any of".
    """
    if filters is None:
        return {}
    if not isinstance(filters, Mapping):
        raise InvalidArgument("filters must be a key-value mapping", argument="filters")

    normalized: dict[str, Any] = {}
    for key, value in filters.items():
        if not isinstance(key, str) or not key.strip():
            raise InvalidArgument(f"Invalid filter key: {key!r}", argument="filters")
        if isinstance(value, (list, tuple)):
            if not value or not all(isinstance(v, _SCALAR_TYPES) for v in value):
                raise InvalidArgument(
                    f"Filter '{key}' must list one or more scalar values",
                    argument="filters",
                )
            normalized[key] = list(value)
        elif isinstance(value, _SCALAR_TYPES):
            normalized[key] = value
        else:
            raise InvalidArgument(
                f"Filter '{key}' has unsupported value type {type(value).__name__}",
                argument="filters",
            )
    return normalized


def rank_hits(hits: list[ScoredRecord], top_k: int) -> list[ScoredRecord]:
    """Order hits by descending score and keep the best hit per scheme.

    sorted() is stable, so equal scores keep the index's original order.
    """
    ranked = sorted(hits, key=lambda h: h.score, reverse=True)
    seen: set[str] = set()
    unique: list[ScoredRecord] = []
    for hit in ranked:
        if hit.id in seen:
            continue
        seen.add(hit.id)
        unique.append(hit)
        if len(unique) == top_k:
            break
    return unique


class HybridSearch:
    """Semantic scheme search with optional metadata filtering.

    Example:
        search = HybridSearch(embedder, QdrantVectorIndex(config))
        hits = await search.search(
            "drip irrigation subsidy for cotton growers",
            filters={"state": "Maharashtra"},
            top_k=5,
        )
    """

    def __init__(
        self,
        embedder: EmbeddingProvider,
        index: VectorIndex,
        retry: RetryPolicy | None = None,
        default_top_k: int = DEFAULT_TOP_K,
    ):
        """Initialize hybrid search.

        Args:
            embedder: Query embedding capability
            index: Vector index capability
            retry: Retry/timeout policy for both calls
            default_top_k: Result bound when the caller gives none
        """
        self.embedder = embedder
        self.index = index
        self.retry = retry or RetryPolicy()
        self.default_top_k = validate_top_k(default_top_k)

    async def search(
        self,
        query: str,
        filters: Mapping[str, Any] | None = None,
        top_k: int | None = None,
    ) -> list[ScoredRecord]:
        """Run a filtered similarity search.

        Args:
            query: Free-text query
            filters: Optional exact-match metadata filter
            top_k: Maximum number of results (default 10)

        Returns:
            Up to top_k distinct schemes, best score first

        Raises:
            InvalidArgument: Empty query, bad filter or non-positive top_k
            RetrievalUnavailable: Embedding or index service unreachable
            ConfigurationError: Embedding size does not match the index
        """
        if not isinstance(query, str) or not query.strip():
            raise InvalidArgument("query must be non-empty text", argument="query")
        limit = self.default_top_k if top_k is None else validate_top_k(top_k)
        filter_map = validate_filters(filters)

        vector = await call_with_retry(
            lambda: self.embedder.embed(query.strip()),
            self.retry,
            "query embedding",
            source="embedding",
        )
        hits = await call_with_retry(
            lambda: self.index.query(vector, filters=filter_map or None, limit=limit),
            self.retry,
            "vector index query",
            source="vector_index",
        )

        ranked = rank_hits(list(hits), limit)
        logger.info(
            f"[HYBRID SEARCH] '{query[:60]}' filters={filter_map or {}} "
            f"→ {len(ranked)}/{limit} results"
        )
        return ranked
