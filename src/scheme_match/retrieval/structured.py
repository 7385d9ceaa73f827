"""Structured filter queries against the scheme catalog.

Name, authority and region lookups are case-insensitive substring matches
returning zero or more schemes; identifier lookup is exact and returns at
most one. An empty result is a normal outcome, not an error.
"""

from __future__ import annotations

import logging
import re

from ..exceptions import InvalidArgument, NotFound
from ..models import CatalogRecord, LookupField
from .protocols import CatalogStore
from .retry import RetryPolicy, call_with_retry

logger = logging.getLogger(__name__)

UUID_PATTERN = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)


def validate_identifier(identifier: object) -> str:
    """Return the identifier if it is UUID-shaped, else raise InvalidArgument."""
    if not isinstance(identifier, str) or not UUID_PATTERN.match(identifier.strip()):
        raise InvalidArgument(
            f"Scheme identifier must be a UUID, got {identifier!r}",
            argument="scheme_id",
        )
    return identifier.strip()


def _validate_text(value: object, argument: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgument(f"{argument} must be non-empty text", argument=argument)
    return value.strip()


class StructuredQuery:
    """Exact and substring lookups over a CatalogStore.

    Example:
        lookups = StructuredQuery(SqlStore.from_url(url))
        await lookups.by_name("ujjwala")   # → [Pradhan Mantri Ujjwala Yojana]
        await lookups.by_region("Punjab")
    """

    def __init__(self, store: CatalogStore, retry: RetryPolicy | None = None):
        self.store = store
        self.retry = retry or RetryPolicy()

    async def _search(self, field: LookupField, text: str) -> list[CatalogRecord]:
        records = await call_with_retry(
            lambda: self.store.search_schemes(field, text),
            self.retry,
            f"scheme lookup by {field.value}",
            source="catalog_store",
        )
        logger.info(f"[LOOKUP] {field.value}='{text}' → {len(records)} schemes")
        return list(records)

    async def by_name(self, name: str) -> list[CatalogRecord]:
        """Schemes whose name contains ``name`` (case-insensitive)."""
        return await self._search(LookupField.NAME, _validate_text(name, "name"))

    async def by_authority(self, authority: str) -> list[CatalogRecord]:
        """Schemes whose owning ministry contains ``authority``."""
        return await self._search(LookupField.AUTHORITY, _validate_text(authority, "authority"))

    async def by_region(self, region: str) -> list[CatalogRecord]:
        """Schemes whose state/region label contains ``region``."""
        return await self._search(LookupField.REGION, _validate_text(region, "region"))

    async def by_id(self, identifier: str) -> CatalogRecord | None:
        """Exact identifier lookup; None when no scheme has this id."""
        scheme_id = validate_identifier(identifier)
        return await call_with_retry(
            lambda: self.store.get_scheme(scheme_id),
            self.retry,
            "scheme lookup by id",
            source="catalog_store",
        )

    async def get(self, identifier: str) -> CatalogRecord:
        """Exact identifier lookup.

        Raises:
            NotFound: If no scheme has this id
        """
        record = await self.by_id(identifier)
        if record is None:
            raise NotFound(f"No scheme with id {identifier}", identifier=identifier)
        return record

    async def lookup(self, field: LookupField, value: str) -> list[CatalogRecord]:
        """Dispatch a lookup by field.

        Identifier lookups raise NotFound instead of returning an empty list.
        """
        if field == LookupField.NAME:
            return await self.by_name(value)
        if field == LookupField.AUTHORITY:
            return await self.by_authority(value)
        if field == LookupField.REGION:
            return await self.by_region(value)
        return [await self.get(value)]
