"""Key-value store interface."""

from typing import Protocol, runtime_checkable

from kv_image_service.models import StoredValue


@runtime_checkable
class KeyValueStore(Protocol):
    """Abstract interface for key-value storage backends.

    Backends map string keys to stored values. They are not required to be
    thread-safe: concurrent access is coordinated by ``SharedState``, which
    wraps a backend in a single readers-writer lock.
    """

    def read(self, key: str) -> StoredValue:
        """Read the value stored under a key.

        Args:
            key: Key to look up.

        Returns:
            StoredValue: The current value for the key.

        Raises:
            KeyNotFoundError: If the key has never been written.
        """
        ...

    def write(self, key: str, value: StoredValue) -> None:
        """Insert or replace the value stored under a key.

        Args:
            key: Non-empty key.
            value: Value to store. Replaces any previous value entirely.

        Raises:
            ValueError: If the key is empty.
        """
        ...

    def exists(self, key: str) -> bool:
        """Check if a key has a value."""
        ...

    def count(self) -> int:
        """Get the number of stored keys."""
        ...
