"""
Windows backend using DPAPI (CryptProtectData) in the current-user scope.

Requires: pywin32 (installed automatically on Windows)

Each secret is a file under %APPDATA%\\entratool\\secure. Only the same
Windows account can decrypt it; the key material never leaves the OS.
"""

import sys

from .file import FileSecretBackend
from ..errors import CorruptedError

DESCRIPTION = "entratool"


def _protect(data: bytes) -> bytes:
    import win32crypt
    return win32crypt.CryptProtectData(data, DESCRIPTION, None, None, None, 0)


def _unprotect(data: bytes) -> bytes:
    import pywintypes
    import win32crypt
    try:
        _, plaintext = win32crypt.CryptUnprotectData(data, None, None, None, 0)
    except pywintypes.error as e:
        # Encrypted by another account, or damaged on disk
        raise CorruptedError(f"DPAPI could not decrypt value: {e.strerror}") from e
    return plaintext


class DpapiBackend(FileSecretBackend):
    """DPAPI-encrypted files, one per key."""

    name = "dpapi"

    @classmethod
    def is_available(cls) -> bool:
        """Available on Windows with pywin32 installed."""
        if sys.platform != "win32":
            return False
        try:
            import win32crypt  # noqa: F401
        except ImportError:
            return False
        return True

    def _encode(self, plaintext: bytes) -> bytes:
        return _protect(plaintext)

    def _decode(self, stored: bytes) -> bytes:
        return _unprotect(stored)
