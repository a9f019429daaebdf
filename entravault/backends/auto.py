"""
Selection of the secret backend for the current host.

Exactly one backend per OS family, decided once at startup and handed to
everything downstream. There is no fallback chain: if the backend for this
OS is unusable, startup fails instead of silently storing secrets somewhere
weaker.
"""

import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, Type, Union

from .base import SecretBackend
from .dpapi import DpapiBackend
from .keychain import KeychainBackend
from .obfuscated_file import ObfuscatedFileBackend
from ..config import VaultConfig
from ..errors import BackendUnavailableError, UnsupportedPlatformError

logger = logging.getLogger(__name__)

BACKENDS: Dict[str, Type[SecretBackend]] = {
    DpapiBackend.name: DpapiBackend,
    KeychainBackend.name: KeychainBackend,
    ObfuscatedFileBackend.name: ObfuscatedFileBackend,
}

# File-based backends take the secure directory; the keychain does not
_FILE_BACKENDS = (DpapiBackend, ObfuscatedFileBackend)


def backend_name_for_platform(platform: Optional[str] = None) -> str:
    """Map a sys.platform value to the backend used there."""
    platform = platform or sys.platform
    if platform == "win32":
        return DpapiBackend.name
    if platform == "darwin":
        return KeychainBackend.name
    if platform.startswith(("linux", "freebsd", "openbsd", "netbsd", "sunos", "aix", "cygwin")):
        return ObfuscatedFileBackend.name
    raise UnsupportedPlatformError(platform)


def list_available_backends() -> List[str]:
    """List all backends that are available on this system."""
    return [name for name, cls in BACKENDS.items() if cls.is_available()]


def _instantiate(cls: Type[SecretBackend], secure_dir: Optional[Union[str, Path]]) -> SecretBackend:
    if issubclass(cls, _FILE_BACKENDS):
        directory = secure_dir or VaultConfig.from_env().secure_dir
        return cls(directory)
    return cls()


def get_backend(
    name: Optional[str] = None,
    secure_dir: Optional[Union[str, Path]] = None,
    platform: Optional[str] = None,
) -> SecretBackend:
    """
    Get a secret backend instance.

    Args:
        name: Specific backend name, or None for the one this OS uses
        secure_dir: Directory for file-based backends (default: from config)
        platform: Override sys.platform, for tests

    Returns:
        SecretBackend instance

    Raises:
        UnsupportedPlatformError if the OS has no backend
        BackendUnavailableError if the backend can't run on this system

    Examples:
        backend = get_backend()
        backend = get_backend("obfuscated_file", secure_dir="/tmp/vault")
    """
    if name is None:
        name = backend_name_for_platform(platform)

    if name not in BACKENDS:
        raise BackendUnavailableError(
            f"Unknown backend '{name}'. Known: {sorted(BACKENDS)}"
        )

    cls = BACKENDS[name]
    if not cls.is_available():
        raise BackendUnavailableError(
            f"Backend '{name}' is not available on this system. "
            f"Available backends: {list_available_backends()}"
        )

    backend = _instantiate(cls, secure_dir)
    logger.debug("Using %s secret backend", backend.name)
    return backend



def select_backend(
    platform: Optional[str] = None,
    secure_dir: Optional[Union[str, Path]] = None,
) -> SecretBackend:
    """The one backend this OS uses. No fallback if it is unavailable."""
    return get_backend(None, secure_dir=secure_dir, platform=platform)

if __name__ == "__main__":
    print("Secret backends")
    print("-" * 40)
    try:
        print(f"  Selected for {sys.platform}: {backend_name_for_platform()}")
    except UnsupportedPlatformError as e:
        print(f"  {e}")
    print(f"  Available: {', '.join(list_available_backends()) or 'none'}")
