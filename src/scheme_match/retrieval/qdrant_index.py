"""Qdrant-backed vector index for the scheme catalog.

Reads an existing collection (populated by a separate ingestion job) and
turns its points back into CatalogRecords.

Requires:
- qdrant-client package
- Running Qdrant instance with the scheme collection

Example:
    from scheme_match.retrieval.qdrant_index import QdrantVectorIndex

    index = QdrantVectorIndex(VectorIndexConfig(url="http://qdrant:6333"))
    hits = await index.query(vector, filters={"state": "Punjab"}, limit=5)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from qdrant_client import AsyncQdrantClient
from qdrant_client.http.models import FieldCondition, Filter, MatchAny, MatchValue

from ..config import VectorIndexConfig
from ..exceptions import InvalidArgument, RetrievalUnavailable
from ..models import CatalogRecord, ScoredRecord

logger = logging.getLogger(__name__)


class QdrantVectorIndex:
    """VectorIndex implementation over a Qdrant collection.

    Payload Schema (either layout):
        - flat: id, scheme_name, ministry, state, description, ...
        - nested: {"page_content": str, "metadata": {id, scheme_name, ...}}
    """

    def __init__(
        self,
        config: VectorIndexConfig | None = None,
        client: AsyncQdrantClient | None = None,
    ):
        """Initialize the index.

        Args:
            config: Connection and payload layout settings
            client: Pre-built async client (tests inject a fake)
        """
        self.config = config or VectorIndexConfig()
        self._client = client

    @property
    def client(self) -> AsyncQdrantClient:
        """Lazy-create the async client."""
        if self._client is None:
            self._client = AsyncQdrantClient(
                url=self.config.url,
                api_key=self.config.api_key,
                timeout=int(self.config.timeout_seconds),
            )
            logger.info(f"Qdrant index connected: {self.config.url}/{self.config.collection}")
        return self._client

    def build_filter(self, filters: Mapping[str, Any] | None) -> Filter | None:
        """Translate a filter map into a Qdrant must-filter."""
        if not filters:
            return None

        prefix = f"{self.config.metadata_key}." if self.config.metadata_key else ""
        must = []
        for key, value in filters.items():
            if isinstance(value, list):
                match = MatchAny(any=value)
            elif isinstance(value, (str, int, bool)):
                match = MatchValue(value=value)
            else:
                raise InvalidArgument(
                    f"Qdrant cannot match filter '{key}' of type {type(value).__name__}",
                    argument="filters",
                )
            must.append(FieldCondition(key=f"{prefix}{key}", match=match))
        return Filter(must=must)

    async def query(
        self,
        vector: list[float],
        *,
        filters: Mapping[str, Any] | None = None,
        limit: int = 10,
    ) -> list[ScoredRecord]:
        """Search the collection by similarity."""
        query_filter = self.build_filter(filters)

        try:
            response = await self.client.query_points(
                collection_name=self.config.collection,
                query=vector,
                query_filter=query_filter,
                limit=limit,
                score_threshold=self.config.score_threshold,
                with_payload=True,
            )
        except Exception as e:
            raise RetrievalUnavailable(
                f"Qdrant query on '{self.config.collection}' failed",
                source="vector_index",
                cause=e,
            ) from e

        return [
            ScoredRecord(
                record=CatalogRecord.from_payload(
                    point.payload or {},
                    point_id=str(point.id),
                    metadata_key=self.config.metadata_key,
                    content_key=self.config.content_key,
                ),
                score=float(point.score),
            )
            for point in response.points
        ]

    async def close(self) -> None:
        """Close the client connection."""
        if self._client is not None:
            await self._client.close()
            self._client = None
