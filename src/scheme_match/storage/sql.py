"""Relational store for schemes and farmer profiles.

Uses SQLAlchemy's async engine with plain ``text()`` queries against the
tables maintained by the external farm-management system:

    schemes          id, scheme_name, ministry, state, description, ...
    farmers          id, name, state, district, village, age, ...
    farmer_contacts  farmer_id, phone, email, address
    farmer_plots     id, farmer_id, name, area_acres, soil_type, ...
    plot_crops       id, farmer_id, plot_id, crop_name, variety, ...
    activity_logs    id, farmer_id, activity_type, description, created_at

Example:
    store = SqlStore.from_url("postgresql+asyncpg://user:pw@db:5432/agri")
    schemes = await store.search_schemes(LookupField.NAME, "ujjwala")
    await store.close()
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from ..config import DatabaseConfig
from ..exceptions import InvalidArgument, RetrievalUnavailable
from ..models import (
    ActivityLogEntry,
    CatalogRecord,
    ContactRecord,
    LookupField,
    Plot,
    PlotCrop,
    ProfileCore,
)

logger = logging.getLogger(__name__)

# Only these columns are ever interpolated into SQL
_SEARCH_COLUMNS = {
    LookupField.NAME: "scheme_name",
    LookupField.AUTHORITY: "ministry",
    LookupField.REGION: "state",
}


def like_pattern(value: str) -> str:
    """Build a substring LIKE pattern with wildcards in ``value`` escaped."""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class SqlStore:
    """CatalogStore and ProfileStore over one async SQLAlchemy engine."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    @classmethod
    def from_url(cls, url: str, pool_size: int = 5, echo: bool = False) -> SqlStore:
        kwargs: dict[str, Any] = {"echo": echo}
        if not url.startswith("sqlite"):
            kwargs.update(pool_size=pool_size, pool_pre_ping=True)
        return cls(create_async_engine(url, **kwargs))

    @classmethod
    def from_config(cls, config: DatabaseConfig) -> SqlStore:
        return cls.from_url(config.url, pool_size=config.pool_size, echo=config.echo)

    async def _fetch(self, sql: str, params: Mapping[str, Any]) -> list[dict[str, Any]]:
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(text(sql), dict(params))
                return [dict(row) for row in result.mappings().all()]
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Database query failed: {e}")
            raise RetrievalUnavailable(
                "Relational store query failed",
                source="relational_store",
                cause=e,
            ) from e

    # =========================================================================
    # Catalog
    # =========================================================================

    async def search_schemes(self, field: LookupField, text_value: str) -> list[CatalogRecord]:
        column = _SEARCH_COLUMNS.get(field)
        if column is None:
            raise InvalidArgument(f"Field '{field}' does not support substring search", argument="field")

        rows = await self._fetch(
            f"SELECT * FROM schemes WHERE LOWER({column}) LIKE LOWER(:pattern) ESCAPE '\\'",
            {"pattern": like_pattern(text_value)},
        )
        return [CatalogRecord.from_row(row) for row in rows]

    async def get_scheme(self, scheme_id: str) -> CatalogRecord | None:
        rows = await self._fetch("SELECT * FROM schemes WHERE id = :id", {"id": scheme_id})
        return CatalogRecord.from_row(rows[0]) if rows else None

    # =========================================================================
    # Profile
    # =========================================================================

    async def fetch_profile(self, profile_id: str) -> ProfileCore | None:
        rows = await self._fetch("SELECT * FROM farmers WHERE id = :id", {"id": profile_id})
        return ProfileCore.from_row(rows[0]) if rows else None

    async def fetch_contact(self, profile_id: str) -> ContactRecord | None:
        rows = await self._fetch(
            "SELECT * FROM farmer_contacts WHERE farmer_id = :id", {"id": profile_id}
        )
        return ContactRecord.from_row(rows[0]) if rows else None

    async def fetch_plots(self, profile_id: str) -> list[Plot]:
        rows = await self._fetch(
            "SELECT * FROM farmer_plots WHERE farmer_id = :id", {"id": profile_id}
        )
        return [Plot.from_row(row) for row in rows]

    async def fetch_crops(self, profile_id: str) -> list[PlotCrop]:
        rows = await self._fetch(
            "SELECT * FROM plot_crops WHERE farmer_id = :id", {"id": profile_id}
        )
        return [PlotCrop.from_row(row) for row in rows]

    async def fetch_activity_logs(self, profile_id: str) -> list[ActivityLogEntry]:
        rows = await self._fetch(
            "SELECT * FROM activity_logs WHERE farmer_id = :id ORDER BY created_at",
            {"id": profile_id},
        )
        return [ActivityLogEntry.from_row(row) for row in rows]

    async def close(self) -> None:
        """Dispose of the connection pool."""
        await self.engine.dispose()
