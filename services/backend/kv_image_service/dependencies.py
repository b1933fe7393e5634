"""FastAPI dependency injection configuration."""

import logging

from fastapi import Depends, Request

from config import Settings, get_settings
from kv_image_service.service import KVService
from kv_image_service.storage import InMemoryKeyValueStore, KeyValueStore, SharedState

logger = logging.getLogger(__name__)


def create_shared_state(
    settings: Settings,
    backend: KeyValueStore | None = None,
) -> SharedState:
    """Create the shared store for an application instance.

    Args:
        settings: Application settings providing the lock timeout.
        backend: Storage backend to wrap. Defaults to an in-memory store.

    Returns:
        SharedState: The store shared by every request handler.
    """
    if backend is None:
        backend = InMemoryKeyValueStore()
        logger.info("Created in-memory key-value store")
    return SharedState(backend, lock_timeout=settings.lock_timeout)


def get_app_settings(request: Request) -> Settings:
    """Get the settings the running application was created with."""
    return getattr(request.app.state, "settings", None) or get_settings()


def get_shared_state(request: Request) -> SharedState:
    """Get the shared store attached to the running application.

    The store is created once by the application factory and kept on
    ``app.state``; handlers never construct their own.
    """
    return request.app.state.shared_state


def get_kv_service(
    state: SharedState = Depends(get_shared_state),
    settings: Settings = Depends(get_app_settings),
) -> KVService:
    """Get a KVService bound to the shared store and current settings."""
    return KVService(
        state,
        thumbnail_size=settings.thumbnail_size,
        max_blur_sigma=settings.max_blur_sigma,
    )
