"""
Fallback file backend for hosts without a usable keystore (Linux and other
POSIX systems).

WARNING: this is obfuscation, not encryption. Values are XORed with a fixed
byte before being written, which only stops casual inspection. Anyone who
can read the files can recover the secrets. Do not rely on it for
production credentials.
"""

import logging
import os

from .file import FileSecretBackend

logger = logging.getLogger(__name__)

# Fixed for compatibility with secrets already stored by earlier releases.
XOR_KEY = 0xAA


def obfuscate(data: bytes, key: int = XOR_KEY) -> bytes:
    """XOR every byte with `key`. Applying it twice returns the input."""
    return bytes(b ^ key for b in data)


class ObfuscatedFileBackend(FileSecretBackend):
    """
    XOR-obfuscated files under the secure directory.

    Always available; selected only where nothing better exists.
    """

    name = "obfuscated_file"

    def __init__(self, directory):
        super().__init__(directory)
        self._warned = False

    @classmethod
    def is_available(cls) -> bool:
        """Always available on POSIX hosts."""
        return os.name == "posix"

    def _warn_once(self):
        if not self._warned:
            logger.warning(
                "Secrets in %s are obfuscated, not encrypted. "
                "Do not store production credentials on this host.",
                self.directory,
            )
            self._warned = True

    def _encode(self, plaintext: bytes) -> bytes:
        self._warn_once()
        return obfuscate(plaintext)

    def _decode(self, stored: bytes) -> bytes:
        return obfuscate(stored)
