"""Protocol definitions for retrieval capabilities.

These protocols define the external services the retrieval components
depend on. Orchestration, search, lookups and validation only ever see
these interfaces, never a concrete client.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from ..models import (
    ActivityLogEntry,
    CatalogRecord,
    ContactRecord,
    LookupField,
    Plot,
    PlotCrop,
    ProfileCore,
    ScoredRecord,
)


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Protocol for query embedding.

    Implementations should raise RetrievalUnavailable when the embedding
    service cannot be reached.
    """

    async def embed(self, text: str) -> list[float]:
        """Generate embedding for text."""
        ...


@runtime_checkable
class VectorIndex(Protocol):
    """Protocol for approximate nearest-neighbour search over schemes."""

    async def query(
        self,
        vector: list[float],
        *,
        filters: Mapping[str, Any] | None = None,
        limit: int = 10,
    ) -> list[ScoredRecord]:
        """Return up to ``limit`` records matching every filter entry.

        Args:
            vector: Query embedding
            filters: Exact-match metadata filter (list values mean "any of")
            limit: Maximum number of hits

        Returns:
            Hits in index order (normally by descending score)
        """
        ...


@runtime_checkable
class CatalogStore(Protocol):
    """Protocol for relational scheme lookups."""

    async def search_schemes(self, field: LookupField, text: str) -> list[CatalogRecord]:
        """Case-insensitive substring match on one catalog column."""
        ...

    async def get_scheme(self, scheme_id: str) -> CatalogRecord | None:
        """Exact identifier lookup."""
        ...


@runtime_checkable
class ProfileStore(Protocol):
    """Protocol for reading a farmer profile and its sub-records."""

    async def fetch_profile(self, profile_id: str) -> ProfileCore | None:
        ...

    async def fetch_contact(self, profile_id: str) -> ContactRecord | None:
        ...

    async def fetch_plots(self, profile_id: str) -> list[Plot]:
        ...

    async def fetch_crops(self, profile_id: str) -> list[PlotCrop]:
        ...

    async def fetch_activity_logs(self, profile_id: str) -> list[ActivityLogEntry]:
        ...
