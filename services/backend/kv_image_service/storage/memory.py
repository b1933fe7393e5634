"""In-memory implementation of KeyValueStore."""

import logging

from kv_image_service.errors import KeyNotFoundError
from kv_image_service.models import StoredValue

from .base import KeyValueStore

logger = logging.getLogger(__name__)


class InMemoryKeyValueStore(KeyValueStore):
    """Dictionary-backed key-value store.

    Data is not persisted and is lost when the process exits. This class
    does no locking of its own; wrap it in ``SharedState`` before sharing
    it between threads.
    """

    def __init__(self):
        """Initialize the in-memory store."""
        self._storage: dict[str, StoredValue] = {}
        logger.info("Initialized InMemoryKeyValueStore")

    def read(self, key: str) -> StoredValue:
        """Read the value stored under a key.

        Raises:
            KeyNotFoundError: If the key has never been written.
        """
        try:
            value = self._storage[key]
        except KeyError:
            raise KeyNotFoundError() from None

        logger.debug(f"Read key {key!r}: {type(value).__name__}")
        return value

    def write(self, key: str, value: StoredValue) -> None:
        """Insert or replace the value stored under a key.

        Raises:
            ValueError: If the key is empty.
        """
        if not key:
            raise ValueError("Key cannot be empty")

        replaced = key in self._storage
        self._storage[key] = value
        logger.debug(
            f"{'Replaced' if replaced else 'Added'} key {key!r}: {type(value).__name__}"
        )

    def exists(self, key: str) -> bool:
        return key in self._storage

    def count(self) -> int:
        return len(self._storage)
