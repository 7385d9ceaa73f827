"""In-memory catalog and profile stores.

Mirror SqlStore's matching rules in Python for local runs and tests.
"""

from __future__ import annotations

from collections.abc import Iterable

from ..exceptions import InvalidArgument
from ..models import (
    ActivityLogEntry,
    CatalogRecord,
    ContactRecord,
    LookupField,
    Plot,
    PlotCrop,
    ProfileCore,
)


class InMemoryCatalogStore:
    """CatalogStore over a list of records, kept in insertion order."""

    def __init__(self, records: Iterable[CatalogRecord] = ()):
        self._records: list[CatalogRecord] = list(records)
        self.calls: list[tuple[str, str]] = []

    def add(self, record: CatalogRecord) -> None:
        self._records.append(record)

    @property
    def records(self) -> list[CatalogRecord]:
        return list(self._records)

    async def search_schemes(self, field: LookupField, text: str) -> list[CatalogRecord]:
        self.calls.append((field.value, text))
        needle = text.lower()
        if field == LookupField.NAME:
            return [r for r in self._records if needle in r.name.lower()]
        if field == LookupField.AUTHORITY:
            return [r for r in self._records if needle in r.authority.lower()]
        if field == LookupField.REGION:
            return [
                r for r in self._records
                if r.applies_to_region(text, include_nationwide=False)
            ]
        raise InvalidArgument(f"Field '{field}' does not support substring search", argument="field")

    async def get_scheme(self, scheme_id: str) -> CatalogRecord | None:
        self.calls.append(("id", scheme_id))
        for record in self._records:
            if record.id == scheme_id:
                return record
        return None


class InMemoryProfileStore:
    """ProfileStore backed by per-farmer dicts."""

    def __init__(self):
        self.profiles: dict[str, ProfileCore] = {}
        self.contacts: dict[str, ContactRecord] = {}
        self.plots: dict[str, list[Plot]] = {}
        self.crops: dict[str, list[PlotCrop]] = {}
        self.logs: dict[str, list[ActivityLogEntry]] = {}

    def add_profile(
        self,
        core: ProfileCore,
        contact: ContactRecord | None = None,
        plots: Iterable[Plot] = (),
        crops: Iterable[PlotCrop] = (),
        logs: Iterable[ActivityLogEntry] = (),
    ) -> None:
        self.profiles[core.id] = core
        if contact is not None:
            self.contacts[core.id] = contact
        self.plots[core.id] = list(plots)
        self.crops[core.id] = list(crops)
        self.logs[core.id] = list(logs)

    async def fetch_profile(self, profile_id: str) -> ProfileCore | None:
        return self.profiles.get(profile_id)

    async def fetch_contact(self, profile_id: str) -> ContactRecord | None:
        return self.contacts.get(profile_id)

    async def fetch_plots(self, profile_id: str) -> list[Plot]:
        return list(self.plots.get(profile_id, []))

    async def fetch_crops(self, profile_id: str) -> list[PlotCrop]:
        return list(self.crops.get(profile_id, []))

    async def fetch_activity_logs(self, profile_id: str) -> list[ActivityLogEntry]:
        return list(self.logs.get(profile_id, []))
