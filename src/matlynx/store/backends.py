"""
Key-value backends for the store.

Each backend maps a string key to a string value. The store above them
only ever reads or replaces a whole value, so backends need no partial
update support.
"""

import functools
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

import redis

logger = logging.getLogger(__name__)


class KeyValueBackend(ABC):
    """String key -> string value persistence."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the value under key, or None when absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Replace the value under key."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key. Removing an absent key is not an error."""


class MemoryBackend(KeyValueBackend):
    """In-process dict. Contents are lost when the process exits."""

    def __init__(self):
        self._data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class FileBackend(KeyValueBackend):
    """
    One file per key inside a directory.

    Writes go to a temporary file in the same directory and are moved
    into place with os.replace, so readers never see a half-written value.
    """

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        # Session keys carry a ":<sid>" suffix
        return self.directory / f"{key.replace(':', '__')}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=".tmp-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_name, self._path(key))
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


@functools.lru_cache()
def get_redis_client(url: str) -> redis.Redis:
    """
    Get Redis client for url (cached).

    The client connects lazily on first command, so creating it has no
    network side effects.
    """
    return redis.from_url(url, decode_responses=True)


class RedisBackend(KeyValueBackend):
    """Redis strings: GET / SET / DEL."""

    def __init__(self, client: redis.Redis):
        self.client = client

    def get(self, key: str) -> str | None:
        return self.client.get(key)

    def set(self, key: str, value: str) -> None:
        self.client.set(key, value)

    def delete(self, key: str) -> None:
        self.client.delete(key)


def backend_from_url(url: str) -> KeyValueBackend:
    """
    Build a backend from a store URL.

    Supported:
    - memory://
    - file://<directory>  (relative or absolute)
    - redis://... / rediss://...
    """
    if url.startswith("memory://"):
        return MemoryBackend()
    if url.startswith("file://"):
        directory = url[len("file://"):] or "."
        logger.info(f"Using file store at {directory}")
        return FileBackend(directory)
    if url.startswith(("redis://", "rediss://")):
        logger.info("Using redis store")
        return RedisBackend(get_redis_client(url))
    raise ValueError(f"Unsupported store URL: {url}")
