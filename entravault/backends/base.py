"""
Base class for secret backends.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterator, Optional

from ..errors import CorruptedError

logger = logging.getLogger(__name__)


class SecretCache:
    """
    Plaintext values already read or written by one backend instance.

    Lives only as long as the backend object. Nothing here is ever written
    to disk.
    """

    def __init__(self):
        self._values: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def put(self, key: str, value: str) -> None:
        self._values[key] = value

    def invalidate(self, key: str) -> None:
        self._values.pop(key, None)

    def clear(self) -> None:
        self._values.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)


class SecretBackend(ABC):
    """
    Abstract base class for secret storage backends.

    Subclasses implement the raw _read/_write/_remove hooks. The public
    store/retrieve/delete/exists methods add the per-instance cache and the
    corruption policy: a value that exists but cannot be decrypted reads
    as absent so the caller can prompt for it again.
    """

    name: str = "base"

    def __init__(self):
        self._cache = SecretCache()

    @classmethod
    @abstractmethod
    def is_available(cls) -> bool:
        """Check if this backend is available on the current system."""
        pass

    @abstractmethod
    def _read(self, key: str) -> Optional[str]:
        """Return the stored value, None if absent. Raise CorruptedError if unreadable."""
        pass

    @abstractmethod
    def _write(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def _remove(self, key: str) -> None:
        """Remove a value. Must not fail when the key does not exist."""
        pass

    def store(self, key: str, value: str) -> None:
        """Store a secret, replacing any previous value."""
        self._cache.invalidate(key)
        self._write(key, value)
        self._cache.put(key, value)

    def retrieve(self, key: str) -> Optional[str]:
        """Retrieve a secret by key. Returns None if absent or unreadable."""
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        try:
            value = self._read(key)
        except CorruptedError as e:
            logger.warning("Stored value for '%s' in %s backend is unreadable: %s", key, self.name, e)
            return None

        if value is not None:
            self._cache.put(key, value)
        return value

    def delete(self, key: str) -> None:
        """Delete a secret. Deleting a missing key is not an error."""
        self._cache.invalidate(key)
        self._remove(key)

    def exists(self, key: str) -> bool:
        if key in self._cache:
            return True
        return self.retrieve(key) is not None

    def clear_cache(self) -> None:
        """Drop every cached plaintext value held by this instance."""
        self._cache.clear()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
