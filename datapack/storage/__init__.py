"""Relationship storage for data packages."""

from datapack.storage.interfaces import RelationshipStoreInterface
from datapack.storage.memory import InMemoryRelationshipStore

__all__ = [
    "RelationshipStoreInterface",
    "InMemoryRelationshipStore",
]
