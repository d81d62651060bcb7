"""
Key-value cache providers used to keep access tokens and the default
store and user ids between requests.

Any object with ``get(key)`` and ``set(key, value)`` methods can be passed
to the client; the classes below cover the common cases.
"""

import json
import os
from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional

from .log import create_logger


class Cache(ABC):
    """Interface every cache provider implements."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the entry stored under ``key`` or ``None``."""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``, replacing any previous entry."""


class MemoryCache(Cache):
    """A dict-backed cache living as long as the process."""

    def __init__(self):
        self._store = {}

    def get(self, key: str) -> Optional[Any]:
        return self._store.get(key)

    def set(self, key: str, value: Any) -> None:
        self._store[key] = value


class DiskCache(Cache):
    """
    A cache keeping one JSON file per entry in ``directory``.

    The directory must exist. Some serverless environments restrict write
    access, so write failures are logged instead of raised. Pass the
    client's logger to have them follow its level.
    """

    def __init__(self, directory: str, logger=None):
        self.directory = directory
        self.logger = logger if logger is not None else create_logger(component="cache")

    def _path(self, key: str) -> str:
        return os.path.join(self.directory, key)

    def get(self, key: str) -> Optional[Any]:
        try:
            with open(self._path(key), encoding='utf-8') as fh:
                return json.load(fh)
        except (OSError, ValueError):
            return None

    def set(self, key: str, value: Any) -> None:
        try:
            with open(self._path(key), 'w', encoding='utf-8') as fh:
                json.dump(value, fh)
        except OSError as exc:
            self.logger.warning("cache write failed", key=key, error=str(exc))


class MixedCache(Cache):
    """
    Aggregates other caches: reads from the first one holding the key,
    writes to all of them.

    Example:
        MixedCache([MemoryCache(), DiskCache("/tmp")])
    """

    def __init__(self, caches: Iterable[Cache] = ()):
        self._caches = list(caches)

    def get(self, key: str) -> Optional[Any]:
        for cache in self._caches:
            value = cache.get(key)
            if value is not None:
                return value
        return None

    def set(self, key: str, value: Any) -> None:
        for cache in self._caches:
            cache.set(key, value)
