"""In-memory vector index.

Cosine similarity over CatalogRecords that carry an embedding. Used for
local runs against a small catalog and as the index in tests.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from typing import Any

from ..models import CatalogRecord, ScoredRecord


def cosine_similarity(a: list[float] | tuple[float, ...], b: list[float] | tuple[float, ...]) -> float:
    """Cosine similarity; 0.0 when either vector is all zeros."""
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


def _field_value(record: CatalogRecord, key: str) -> Any:
    if key in record.metadata:
        return record.metadata[key]
    aliases = {
        "id": record.id,
        "scheme_id": record.id,
        "scheme_name": record.name,
        "name": record.name,
        "ministry": record.authority,
        "authority": record.authority,
        "category": record.category,
    }
    if key in aliases:
        return aliases[key]
    if key in ("state", "region", "regions"):
        return list(record.regions)
    return None


def matches_filters(record: CatalogRecord, filters: Mapping[str, Any] | None) -> bool:
    """Exact-match every filter entry; list filter values mean "any of"."""
    for key, expected in (filters or {}).items():
        actual = _field_value(record, key)
        wanted = expected if isinstance(expected, list) else [expected]
        have = actual if isinstance(actual, (list, tuple)) else [actual]
        if not any(value in wanted for value in have):
            return False
    return True


class InMemoryVectorIndex:
    """VectorIndex over a fixed list of embedded records."""

    def __init__(self, records: Iterable[CatalogRecord] = ()):
        self._records: list[CatalogRecord] = [r for r in records if r.embedding]

    def add(self, record: CatalogRecord) -> None:
        if not record.embedding:
            raise ValueError(f"Record {record.id} has no embedding")
        self._records.append(record)

    def __len__(self) -> int:
        return len(self._records)

    async def query(
        self,
        vector: list[float],
        *,
        filters: Mapping[str, Any] | None = None,
        limit: int = 10,
    ) -> list[ScoredRecord]:
        scored = [
            ScoredRecord(record=r, score=cosine_similarity(vector, r.embedding or ()))
            for r in self._records
            if matches_filters(r, filters)
        ]
        scored.sort(key=lambda h: h.score, reverse=True)
        return scored[:limit]
