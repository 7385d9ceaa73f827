"""Retrieval module for scheme-match.

- **HybridSearch**: embed a query and search the vector index with an
  optional metadata filter
- **StructuredQuery**: name / ministry / state / id lookups in the catalog
- **Protocols**: the injected capabilities (embedding, index, stores)

Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │  HybridSearch:  query → [embed] → [ANN + filter] → rank  │
    │  StructuredQuery: field, value → [SQL LIKE / exact id]   │
    │                                                          │
    │  every call → call_with_retry (timeout + backoff)        │
    └──────────────────────────────────────────────────────────┘
"""

from .hybrid_search import HybridSearch, DEFAULT_TOP_K, rank_hits
from .memory_index import InMemoryVectorIndex, cosine_similarity
from .protocols import CatalogStore, EmbeddingProvider, ProfileStore, VectorIndex
from .retry import RetryPolicy, call_with_retry
from .structured import StructuredQuery, validate_identifier

__all__ = [
    # Search
    "HybridSearch",
    "DEFAULT_TOP_K",
    "rank_hits",
    "StructuredQuery",
    "validate_identifier",
    # Indexes
    "InMemoryVectorIndex",
    "cosine_similarity",
    # Retry
    "RetryPolicy",
    "call_with_retry",
    # Protocols
    "CatalogStore",
    "EmbeddingProvider",
    "ProfileStore",
    "VectorIndex",
]
