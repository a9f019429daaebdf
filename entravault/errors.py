"""
Error types raised by the vault.

Everything derives from VaultError so the CLI layer can catch one type and
print a message without a traceback.
"""

from typing import List, Optional


class VaultError(Exception):
    """Base class for vault errors."""
    pass


class ValidationError(VaultError):
    """Profile fields failed validation. Carries every violation, not just the first."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Profile is invalid")


class NotFoundError(VaultError):
    """A profile or secret does not exist."""
    pass


class ProfileNotFoundError(NotFoundError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Profile '{name}' not found.")


class SecretNotFoundError(NotFoundError):
    """Secret not found in backend."""
    pass


class ProfileExistsError(VaultError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Profile '{name}' already exists. Choose a different name.")


class BackendUnavailableError(VaultError):
    """Backend is not available or refused access."""
    pass


class UnsupportedPlatformError(BackendUnavailableError):
    """No secret backend exists for this host OS."""

    def __init__(self, platform: str):
        self.platform = platform
        super().__init__(f"Secure storage is not supported on this platform: {platform}")


class DecryptionError(VaultError):
    """
    An exported profile could not be decrypted.

    The message is deliberately the same for a wrong passphrase and for
    damaged data.
    """

    MESSAGE = "Decryption failed. Check the passphrase and the exported data."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.MESSAGE)


class CorruptedError(VaultError):
    """Stored data exists but cannot be read back."""
    pass
