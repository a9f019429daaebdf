"""
entravault: profile and secret storage for the entratool CLI.

    from entravault import open_vault

    vault = open_vault()
    profile = vault.profiles.get("svc")
    secret = vault.profiles.get_client_secret(profile.name)
"""

from .errors import (
    VaultError,
    ValidationError,
    NotFoundError,
    ProfileNotFoundError,
    SecretNotFoundError,
    ProfileExistsError,
    BackendUnavailableError,
    UnsupportedPlatformError,
    DecryptionError,
    CorruptedError,
)
from .models import AuthProfile, AuthMethod, OAuth2Flow, SecretType
from .config import VaultConfig
from .backends import SecretBackend, get_backend, list_available_backends, select_backend
from .profiles import ProfileRepository, secret_key
from .validator import ValidationResult
from .exchange import ProfileExchange, ExportedProfileBundle, encrypt_payload, decrypt_payload
from .token_cache import TokenCacheAdapter, ClientKind
from .sanitizer import SecretSanitizer, SecretFilter, configure_logging
from .vault import Vault, open_vault

__version__ = "0.1.0"

__all__ = [
    'VaultError',
    'ValidationError',
    'NotFoundError',
    'ProfileNotFoundError',
    'SecretNotFoundError',
    'ProfileExistsError',
    'BackendUnavailableError',
    'UnsupportedPlatformError',
    'DecryptionError',
    'CorruptedError',
    'AuthProfile',
    'AuthMethod',
    'OAuth2Flow',
    'SecretType',
    'VaultConfig',
    'SecretBackend',
    'get_backend',
    'select_backend',
    'list_available_backends',
    'ProfileRepository',
    'secret_key',
    'ValidationResult',
    'ProfileExchange',
    'ExportedProfileBundle',
    'encrypt_payload',
    'decrypt_payload',
    'TokenCacheAdapter',
    'ClientKind',
    'SecretSanitizer',
    'SecretFilter',
    'configure_logging',
    'Vault',
    'open_vault',
]
