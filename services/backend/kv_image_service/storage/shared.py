"""Shared, lock-guarded access to a key-value store backend."""

import logging
from typing import Optional

from kv_image_service.models import StoredValue

from .base import KeyValueStore
from .locking import ReadWriteLock
from .memory import InMemoryKeyValueStore

logger = logging.getLogger(__name__)


class SharedState:
    """The single store instance shared by all request handlers.

    Wraps a ``KeyValueStore`` backend in one coarse readers-writer lock:
    reads run concurrently, a write excludes everything else. Created once
    by the application factory and injected into handlers.
    """

    def __init__(
        self,
        backend: Optional[KeyValueStore] = None,
        lock_timeout: Optional[float] = None,
    ):
        """Initialize shared state.

        Args:
            backend: Storage backend. Defaults to a new in-memory store.
            lock_timeout: Seconds to wait for the lock before failing.
        """
        self.backend = backend if backend is not None else InMemoryKeyValueStore()
        self.lock = ReadWriteLock(timeout=lock_timeout)
        logger.info(
            f"Initialized SharedState with {type(self.backend).__name__} "
            f"(lock timeout: {lock_timeout})"
        )

    def read(self, key: str) -> StoredValue:
        """Read a value under the shared lock.

        Raises:
            KeyNotFoundError: If the key is absent.
            StoreUnavailableError: If the lock cannot be acquired.
        """
        with self.lock.read_locked():
            return self.backend.read(key)

    def write(self, key: str, value: StoredValue) -> None:
        """Write a value under the exclusive lock.

        Raises:
            ValueError: If the key is empty.
            StoreUnavailableError: If the lock cannot be acquired.
        """
        # Rejected before locking so invalid input cannot poison the lock
        if not key:
            raise ValueError("Key cannot be empty")

        with self.lock.write_locked():
            self.backend.write(key, value)
