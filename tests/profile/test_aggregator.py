"""Tests for ProfileAggregator."""

import asyncio
from datetime import datetime, timezone

import pytest

from scheme_match.exceptions import InvalidArgument, NotFound, RetrievalUnavailable
from scheme_match.models import ActivityLogEntry, ContactRecord
from scheme_match.profile import ProfileAggregator, sort_logs


class TestAggregate:
    """Tests for the composite profile."""

    @pytest.mark.asyncio
    async def test_full_profile(self, aggregator, farmer_id):
        profile = await aggregator.aggregate(farmer_id)

        assert profile.id == farmer_id
        assert profile.contact.phone == "+91-9800000001"
        assert [p.id for p in profile.plots] == ["plot-1", "plot-2"]
        assert profile.crop_names == ["Sugarcane", "Soybean"]

    @pytest.mark.asyncio
    async def test_logs_in_chronological_order(self, aggregator, farmer_id):
        profile = await aggregator.aggregate(farmer_id)
        assert [e.id for e in profile.logs] == ["log-1", "log-2"]

    @pytest.mark.asyncio
    async def test_zero_sub_units_is_not_an_error(self, aggregator, empty_farmer_id):
        """A profile with no plots, crops, logs or contact aggregates to empty defaults."""
        profile = await aggregator.aggregate(empty_farmer_id)

        assert profile.plots == []
        assert profile.crops == []
        assert profile.logs == []
        assert profile.contact == ContactRecord()
        assert profile.contact.is_empty

    @pytest.mark.asyncio
    async def test_missing_core_row(self, aggregator):
        with pytest.raises(NotFound):
            await aggregator.aggregate("does-not-exist")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("profile_id", ["", "  ", None])
    async def test_blank_id(self, aggregator, profile_id):
        with pytest.raises(InvalidArgument):
            await aggregator.aggregate(profile_id)

    @pytest.mark.asyncio
    async def test_collections_fetched_concurrently(self, profile_store, fast_retry, farmer_id):
        """Sub-record reads overlap rather than run one after another."""
        in_flight = 0
        peak = 0
        original = {
            name: getattr(profile_store, name)
            for name in ("fetch_contact", "fetch_plots", "fetch_crops", "fetch_activity_logs")
        }

        def tracked(fetch):
            async def wrapper(profile_id):
                nonlocal in_flight, peak
                in_flight += 1
                peak = max(peak, in_flight)
                await asyncio.sleep(0.01)
                in_flight -= 1
                return await fetch(profile_id)
            return wrapper

        for name, fetch in original.items():
            setattr(profile_store, name, tracked(fetch))

        await ProfileAggregator(profile_store, fast_retry).aggregate(farmer_id)
        assert peak == 4

    @pytest.mark.asyncio
    async def test_store_down(self, profile_store, fast_retry, farmer_id):
        async def down(profile_id):
            raise ConnectionError("db down")

        profile_store.fetch_plots = down
        with pytest.raises(RetrievalUnavailable):
            await ProfileAggregator(profile_store, fast_retry).aggregate(farmer_id)

    @pytest.mark.asyncio
    async def test_failed_read_cancels_siblings(self, profile_store, fast_retry, farmer_id):
        """Once one read gives up, the others are cancelled instead of left running."""
        completed = []

        async def down(profile_id):
            raise ConnectionError("db down")

        async def slow_plots(profile_id):
            await asyncio.sleep(0.3)
            completed.append(profile_id)
            return []

        profile_store.fetch_contact = down
        profile_store.fetch_plots = slow_plots
        with pytest.raises(RetrievalUnavailable):
            await ProfileAggregator(profile_store, fast_retry).aggregate(farmer_id)

        await asyncio.sleep(0.4)
        assert completed == []


class TestSortLogs:
    """Tests for log ordering."""

    def test_undated_first_and_stable(self):
        entries = [
            ActivityLogEntry(id="b", created_at=datetime(2024, 5, 1)),
            ActivityLogEntry(id="x"),
            ActivityLogEntry(id="a", created_at=datetime(2024, 1, 1)),
            ActivityLogEntry(id="c", created_at=datetime(2024, 5, 1)),
        ]
        assert [e.id for e in sort_logs(entries)] == ["x", "a", "b", "c"]

    def test_mixed_timezones(self):
        entries = [
            ActivityLogEntry(id="late", created_at=datetime(2024, 5, 1, 12, tzinfo=timezone.utc)),
            ActivityLogEntry(id="early", created_at=datetime(2024, 5, 1, 6)),
        ]
        assert [e.id for e in sort_logs(entries)] == ["early", "late"]
