"""Readers-writer lock guarding the shared store."""

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Optional

from kv_image_service.errors import StoreUnavailableError

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """A readers-writer lock with writer preference and poisoning.

    Any number of readers may hold the lock at once, while a writer holds
    it exclusively. Readers arriving while a writer waits are queued behind
    it so writes are not starved.

    If an exception escapes a write section the lock becomes poisoned: the
    protected data may be half-updated, so every later acquisition fails
    with ``StoreUnavailableError`` instead of exposing it.
    """

    def __init__(self, timeout: Optional[float] = None):
        """Initialize the lock.

        Args:
            timeout: Seconds to wait for an acquisition before failing with
                ``StoreUnavailableError``. ``None`` waits indefinitely.
        """
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0
        self._poisoned = False
        self.timeout = timeout

    @property
    def poisoned(self) -> bool:
        """Whether a write section has failed while holding the lock."""
        return self._poisoned

    def _check_poisoned(self) -> None:
        if self._poisoned:
            raise StoreUnavailableError()

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        """Hold the lock in shared mode for the duration of the block.

        Raises:
            StoreUnavailableError: If the lock is poisoned or the timeout
                expires.
        """
        with self._cond:
            self._check_poisoned()
            acquired = self._cond.wait_for(
                lambda: self._poisoned
                or (not self._writer and self._writers_waiting == 0),
                timeout=self.timeout,
            )
            if not acquired:
                logger.error(f"Timed out after {self.timeout}s waiting for read lock")
                raise StoreUnavailableError("Timed out waiting for the store")
            self._check_poisoned()
            self._readers += 1

        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        """Hold the lock exclusively for the duration of the block.

        An exception raised inside the block poisons the lock and is
        re-raised unchanged.

        Raises:
            StoreUnavailableError: If the lock is poisoned or the timeout
                expires.
        """
        with self._cond:
            self._check_poisoned()
            self._writers_waiting += 1
            try:
                acquired = self._cond.wait_for(
                    lambda: self._poisoned
                    or (not self._writer and self._readers == 0),
                    timeout=self.timeout,
                )
            finally:
                self._writers_waiting -= 1
                # Readers queued behind this writer may proceed if it gives up
                self._cond.notify_all()
            if not acquired:
                logger.error(f"Timed out after {self.timeout}s waiting for write lock")
                raise StoreUnavailableError("Timed out waiting for the store")
            self._check_poisoned()
            self._writer = True

        try:
            yield
        except BaseException:
            with self._cond:
                self._poisoned = True
            logger.error("Write to the store failed, lock is now poisoned")
            raise
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()
