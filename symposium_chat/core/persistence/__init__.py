"""Persistence layer: key-value stores and the versioned chat snapshot."""

from ._base import JsonStore
from .state import StatePersistence
from .store import JsonFileStore, KeyValueStore, MemoryStore

__all__ = [
    "JsonFileStore",
    "JsonStore",
    "KeyValueStore",
    "MemoryStore",
    "StatePersistence",
]
