"""Persistence for the baseline and alert state."""

from .base import StateStore
from .file_store import FileStateStore
from .redis_store import RedisStateStore

__all__ = ["StateStore", "FileStateStore", "RedisStateStore", "build_store"]


def build_store() -> StateStore:
    """Build the store selected by STATE_BACKEND."""
    from ..config import settings

    if settings.state_backend == "redis":
        store = RedisStateStore()
        store.connect()
        return store
    if settings.state_backend == "file":
        return FileStateStore()
    raise ValueError(f"Unknown STATE_BACKEND: {settings.state_backend!r} (expected 'file' or 'redis')")
