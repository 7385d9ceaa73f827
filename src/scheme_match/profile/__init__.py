"""Farmer profile aggregation."""

from .aggregator import ProfileAggregator, sort_logs

__all__ = ["ProfileAggregator", "sort_logs"]
