"""
Persistence hook for the authentication library's token cache.

The cache is an opaque blob. It is stored base64-encoded in the secret
backend under `token-cache:{kind}:{profileName}`, so public and
confidential clients of the same profile, and different profiles, never
share an entry.
"""

import base64
import binascii
import logging
from enum import Enum
from typing import Optional, Union

from .backends.base import SecretBackend
from .config import TOKEN_CACHE_PREFIX

logger = logging.getLogger(__name__)


class ClientKind(str, Enum):
    PUBLIC = "public"
    CONFIDENTIAL = "confidential"


class TokenCacheAdapter:
    """
    Load and save one serialized token cache.

    Call before_access() before the library touches its cache and
    after_access() when it is done.
    """

    def __init__(self, backend: SecretBackend, cache_key: str):
        self.backend = backend
        self.cache_key = cache_key
        self.storage_key = f"{TOKEN_CACHE_PREFIX}:{cache_key}"

    @classmethod
    def for_profile(cls, backend: SecretBackend, profile_name: str, kind: ClientKind) -> "TokenCacheAdapter":
        return cls(backend, f"{ClientKind(kind).value}:{profile_name}")

    def before_access(self) -> Optional[bytes]:
        """The last saved blob, or None if there is none or it is unreadable."""
        stored = self.backend.retrieve(self.storage_key)
        if not stored or not stored.strip():
            return None

        try:
            return base64.b64decode(stored, validate=True)
        except (binascii.Error, ValueError):
            logger.warning("Token cache '%s' is unreadable; starting with an empty cache", self.cache_key)
            return None

    def after_access(self, blob: Union[bytes, str], changed: bool) -> None:
        """Save the blob, but only if the library reports its state changed."""
        if not changed:
            return
        if isinstance(blob, str):
            blob = blob.encode("utf-8")
        self.backend.store(self.storage_key, base64.b64encode(blob).decode("ascii"))

    def clear(self) -> None:
        self.backend.delete(self.storage_key)
