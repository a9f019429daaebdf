"""
Wiring for one process: pick the backend once and hand it to everything.
"""

from dataclasses import dataclass
from typing import Optional

from .backends.auto import select_backend
from .backends.base import SecretBackend
from .config import VaultConfig
from .exchange import ProfileExchange
from .profiles import ProfileRepository
from .token_cache import ClientKind, TokenCacheAdapter


@dataclass
class Vault:
    config: VaultConfig
    backend: SecretBackend
    profiles: ProfileRepository
    exchange: ProfileExchange

    def token_cache(self, profile_name: str, kind: ClientKind) -> TokenCacheAdapter:
        return TokenCacheAdapter.for_profile(self.backend, profile_name, kind)


def open_vault(
    config: Optional[VaultConfig] = None,
    backend: Optional[SecretBackend] = None,
) -> Vault:
    """
    Build the vault for this process.

    Raises:
        UnsupportedPlatformError / BackendUnavailableError if the host has
        no usable secret backend
    """
    config = config or VaultConfig.from_env()
    config.ensure_dirs()
    backend = backend or select_backend(secure_dir=config.secure_dir)
    profiles = ProfileRepository(config.profiles_path, backend)
    return Vault(
        config=config,
        backend=backend,
        profiles=profiles,
        exchange=ProfileExchange(profiles),
    )
