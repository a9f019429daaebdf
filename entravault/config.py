"""
Locations and constants shared by the vault.

The config directory can be moved with ENTRATOOL_CONFIG_DIR, which is
mostly useful for tests and portable installs.
"""

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

APP_NAME = "entratool"
CONFIG_DIR_ENV = "ENTRATOOL_CONFIG_DIR"

PROFILES_FILE = "profiles.json"
LAST_TOKEN_FILE = "last-token.txt"
SECURE_DIR = "secure"

# Prefix of per-profile secret keys: profile:{name}:{secret|cert-password}
PROFILE_SECRET_SERVICE = "profile"
TOKEN_CACHE_PREFIX = "token-cache"


def default_config_dir(platform: Optional[str] = None) -> Path:
    """Per-user application data directory for the current OS."""
    platform = platform or sys.platform
    if platform == "win32":
        appdata = os.environ.get("APPDATA")
        base = Path(appdata) if appdata else Path.home() / "AppData" / "Roaming"
        return base / APP_NAME
    # macOS and Linux
    return Path.home() / ".config" / APP_NAME


@dataclass(frozen=True)
class VaultConfig:
    """Resolved file locations for one process."""
    config_dir: Path

    @classmethod
    def from_env(cls, platform: Optional[str] = None) -> "VaultConfig":
        override = os.environ.get(CONFIG_DIR_ENV)
        if override:
            return cls(config_dir=Path(override).expanduser())
        return cls(config_dir=default_config_dir(platform))

    @property
    def profiles_path(self) -> Path:
        return self.config_dir / PROFILES_FILE

    @property
    def secure_dir(self) -> Path:
        return self.config_dir / SECURE_DIR

    @property
    def last_token_path(self) -> Path:
        return self.config_dir / LAST_TOKEN_FILE

    def ensure_dirs(self) -> None:
        self.config_dir.mkdir(parents=True, exist_ok=True)
