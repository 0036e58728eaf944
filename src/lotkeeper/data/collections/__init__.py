"""
Collection backends for lotkeeper.

Provides a pluggable interface for the persistence layer behind the stores.
"""

from lotkeeper.data.collections.base import (
    Collection,
    CollectionError,
    ListResult,
    Subscription,
)
from lotkeeper.data.collections.memory import InMemoryCollection
from lotkeeper.data.collections.file import JsonFileCollection, open_collections

__all__ = [
    "Collection",
    "CollectionError",
    "ListResult",
    "Subscription",
    "InMemoryCollection",
    "JsonFileCollection",
    "open_collections",
]
