"""
Platform secret backends.

Supports:
- Windows DPAPI (per-user encrypted files)
- macOS Keychain (via the `security` CLI)
- XOR-obfuscated files (Linux and other hosts without a keystore; not encryption)
"""

from .base import SecretBackend, SecretCache
from .auto import get_backend, list_available_backends, backend_name_for_platform, select_backend
from .dpapi import DpapiBackend
from .keychain import KeychainBackend
from .obfuscated_file import ObfuscatedFileBackend

__all__ = [
    'SecretBackend',
    'SecretCache',
    'get_backend',
    'list_available_backends',
    'backend_name_for_platform',
    'select_backend',
    'DpapiBackend',
    'KeychainBackend',
    'ObfuscatedFileBackend',
]
