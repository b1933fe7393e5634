"""Storage module for key-value persistence."""

from .base import KeyValueStore
from .locking import ReadWriteLock
from .memory import InMemoryKeyValueStore
from .shared import SharedState

__all__ = ["KeyValueStore", "InMemoryKeyValueStore", "ReadWriteLock", "SharedState"]
