"""Catalog and profile storage backends."""

from .in_memory import InMemoryCatalogStore, InMemoryProfileStore
from .sql import SqlStore, like_pattern

__all__ = [
    "InMemoryCatalogStore",
    "InMemoryProfileStore",
    "SqlStore",
    "like_pattern",
]
