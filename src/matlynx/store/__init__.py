"""
Persistent store.

Key-value backends (memory, file, redis) and the collection store that
reads and rewrites whole collections under fixed keys.
"""

from matlynx.store.backends import (
    FileBackend,
    KeyValueBackend,
    MemoryBackend,
    RedisBackend,
    backend_from_url,
)
from matlynx.store.collections import (
    CURRENT_USER_KEY,
    MATERIALS_KEY,
    PROFILES_KEY,
    USERS_KEY,
    Store,
)

__all__ = [
    "FileBackend",
    "KeyValueBackend",
    "MemoryBackend",
    "RedisBackend",
    "backend_from_url",
    "CURRENT_USER_KEY",
    "MATERIALS_KEY",
    "PROFILES_KEY",
    "USERS_KEY",
    "Store",
    "open_store",
]


def open_store(url: str | None = None) -> Store:
    """Open the store at url (defaults to settings.STORE_URL)."""
    from matlynx.settings import get_settings

    return Store(backend_from_url(url or get_settings().STORE_URL))
