"""Profile aggregation.

Joins a farmer's core row with contact details, plots, crops and the
activity log into one read-only Profile. Only the core row is required;
every dependent record falls back to an empty default.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from ..exceptions import InvalidArgument, NotFound
from ..models import ActivityLogEntry, ContactRecord, Profile
from ..retrieval.protocols import ProfileStore
from ..retrieval.retry import RetryPolicy, call_with_retry

logger = logging.getLogger(__name__)


def sort_logs(entries: list[ActivityLogEntry]) -> list[ActivityLogEntry]:
    """Chronological order; undated entries first, ties keep store order."""
    return sorted(
        entries,
        key=lambda e: (e.created_at is not None, _timestamp(e.created_at)),
    )


def _timestamp(value: datetime | None) -> float:
    if value is None:
        return 0.0
    # Naive timestamps are stored as UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


class ProfileAggregator:
    """Builds composite Profile views from a ProfileStore.

    Example:
        aggregator = ProfileAggregator(SqlStore.from_config(config.database))
        profile = await aggregator.aggregate("7d8f...")
        profile.crop_names  # → ["Paddy", "Wheat"]
    """

    def __init__(self, store: ProfileStore, retry: RetryPolicy | None = None):
        self.store = store
        self.retry = retry or RetryPolicy()

    async def aggregate(self, profile_id: str) -> Profile:
        """Fetch the full profile.

        Raises:
            InvalidArgument: If profile_id is blank
            NotFound: If no core profile row exists
            RetrievalUnavailable: If the store cannot be reached
        """
        if not isinstance(profile_id, str) or not profile_id.strip():
            raise InvalidArgument("profile_id must be non-empty text", argument="profile_id")
        profile_id = profile_id.strip()

        core = await call_with_retry(
            lambda: self.store.fetch_profile(profile_id),
            self.retry,
            "profile fetch",
            source="relational_store",
        )
        if core is None:
            raise NotFound(f"No farmer profile with id {profile_id}", identifier=profile_id)

        reads = [
            ("contact fetch", self.store.fetch_contact),
            ("plots fetch", self.store.fetch_plots),
            ("crops fetch", self.store.fetch_crops),
            ("activity log fetch", self.store.fetch_activity_logs),
        ]
        tasks = [
            asyncio.ensure_future(call_with_retry(
                lambda fetch=fetch: fetch(profile_id),
                self.retry, description, source="relational_store",
            ))
            for description, fetch in reads
        ]
        try:
            contact, plots, crops, logs = await asyncio.gather(*tasks)
        except BaseException:
            # First failure wins; sibling reads must not outlive the call
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        profile = Profile(
            core=core,
            contact=contact or ContactRecord(),
            plots=list(plots or []),
            crops=list(crops or []),
            logs=sort_logs(list(logs or [])),
        )
        logger.info(
            f"[PROFILE] {profile_id}: {len(profile.plots)} plots, "
            f"{len(profile.crops)} crops, {len(profile.logs)} log entries"
        )
        return profile
