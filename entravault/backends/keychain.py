"""
macOS Keychain backend.

Uses the `security` CLI tool to interact with Keychain.
No additional setup required on macOS.
"""

import shutil
import subprocess
from typing import List, Optional

from .base import SecretBackend
from ..errors import BackendUnavailableError

# errSecItemNotFound, returned by find/delete when there is no such entry
ITEM_NOT_FOUND = 44


class KeychainBackend(SecretBackend):
    """
    macOS Keychain backend using the `security` CLI.

    Secrets are stored as generic passwords in the login keychain with
    service name "entratool" and the logical key as the account name.
    """

    name = "keychain"
    service = "entratool"
    DEFAULT_TIMEOUT = 30

    def __init__(self, service: Optional[str] = None, timeout: Optional[int] = None):
        super().__init__()
        self.service = service or self.service
        self.timeout = timeout or self.DEFAULT_TIMEOUT

    @classmethod
    def is_available(cls) -> bool:
        """Available on macOS with security CLI."""
        return shutil.which("security") is not None

    def _run(self, args: List[str]) -> subprocess.CompletedProcess:
        try:
            return subprocess.run(
                ["security"] + args,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise BackendUnavailableError("macOS `security` CLI not found") from e
        except subprocess.TimeoutExpired as e:
            raise BackendUnavailableError(f"Keychain did not respond within {self.timeout}s") from e
        except OSError as e:
            raise BackendUnavailableError(f"Cannot run `security`: {e.strerror}") from e

    def _read(self, key: str) -> Optional[str]:
        """Retrieve secret from Keychain."""
        result = self._run([
            "find-generic-password",
            "-s", self.service,
            "-a", key,
            "-w",  # Output password only
        ])
        if result.returncode == ITEM_NOT_FOUND:
            return None
        if result.returncode != 0:
            # Don't expose stderr (might contain sensitive info)
            raise BackendUnavailableError(
                f"Keychain lookup failed (exit {result.returncode}). "
                "Check that the login keychain is unlocked."
            )
        return result.stdout.rstrip("\r\n")

    def _write(self, key: str, value: str) -> None:
        """Store secret in Keychain."""
        # add-generic-password fails on an existing entry, so clear it first
        self._remove(key)

        result = self._run([
            "add-generic-password",
            "-s", self.service,
            "-a", key,
            "-w", value,
            "-U",  # Update if exists
        ])
        if result.returncode != 0:
            raise BackendUnavailableError(
                f"Failed to store value in Keychain (exit {result.returncode})."
            )

    def _remove(self, key: str) -> None:
        """Delete secret from Keychain."""
        result = self._run([
            "delete-generic-password",
            "-s", self.service,
            "-a", key,
        ])
        if result.returncode not in (0, ITEM_NOT_FOUND):
            raise BackendUnavailableError(
                f"Failed to delete value from Keychain (exit {result.returncode})."
            )
