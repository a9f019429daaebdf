"""
Profile repository: plaintext JSON metadata plus per-profile secrets.

profiles.json holds one record per profile and never a secret value.
Client secrets and certificate passwords are kept in the SecretBackend
under `profile:{name}:{secret|cert-password}`.
"""

import json
import logging
import os
import tempfile
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Union

from .backends.base import SecretBackend
from .config import PROFILE_SECRET_SERVICE
from .errors import CorruptedError, ProfileNotFoundError, SecretNotFoundError
from .models import AuthProfile, SecretType, utcnow
from .validator import ValidationResult, ensure_valid, validate_profile

logger = logging.getLogger(__name__)


def secret_key(profile_name: str, secret_type: SecretType) -> str:
    """Backend key for one of a profile's secrets."""
    return f"{PROFILE_SECRET_SERVICE}:{profile_name}:{SecretType(secret_type).value}"


def _stamp(profile: AuthProfile, name: str, created_at: datetime, updated_at: datetime) -> AuthProfile:
    # Only ProfileRepository.save sets timestamps.
    return replace(profile, name=name, created_at=created_at, updated_at=updated_at)


class ProfileRepository:
    """
    CRUD over profiles.json and the secrets each profile owns.

    One CLI invocation is assumed to be the only writer; there is no file
    locking between processes.
    """

    def __init__(
        self,
        path: Union[str, Path],
        backend: SecretBackend,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.path = Path(path).expanduser()
        self.backend = backend
        self._clock = clock

    # ------------------------------------------------------------------
    # Metadata

    def _read_records(self) -> List[AuthProfile]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []

        if not text.strip():
            return []

        try:
            data = json.loads(text)
            if data is None:
                return []
            if not isinstance(data, list):
                raise CorruptedError("top-level JSON value is not a list")
            return [AuthProfile.from_dict(item) for item in data]
        except (ValueError, CorruptedError) as e:
            # json.JSONDecodeError is a ValueError
            logger.warning(
                "Profile file %s is unreadable and will be treated as empty: %s", self.path, e
            )
            return []

    def _write_records(self, profiles: List[AuthProfile]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps([p.to_dict() for p in profiles], indent=2)

        fd, tmp_name = tempfile.mkstemp(dir=str(self.path.parent), prefix=".profiles-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, self.path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise

    def load_all(self) -> List[AuthProfile]:
        """All profiles in file order. Missing or malformed file gives []."""
        return self._read_records()

    def list_names(self) -> List[str]:
        return [p.name for p in self._read_records()]

    def get(self, name: str) -> Optional[AuthProfile]:
        """Case-insensitive lookup by name."""
        wanted = name.casefold()
        for profile in self._read_records():
            if profile.name.casefold() == wanted:
                return profile
        return None

    def exists(self, name: str) -> bool:
        return self.get(name) is not None

    def save(self, profile: AuthProfile) -> AuthProfile:
        """
        Insert or replace a profile.

        A profile with the same name (any case) is replaced. Its stored name
        and created_at are carried over, so the secrets filed under that
        name stay attached. updated_at is always set to now.

        Returns:
            The profile as stored
        """
        now = self._clock()
        profiles = self._read_records()
        wanted = profile.name.casefold()

        existing = next((p for p in profiles if p.name.casefold() == wanted), None)
        if existing is not None:
            stored = _stamp(profile, existing.name, existing.created_at, now)
            profiles = [p for p in profiles if p is not existing]
        else:
            stored = _stamp(profile, profile.name, now, now)

        profiles.append(stored)
        self._write_records(profiles)
        logger.info("Saved profile '%s'", stored.name)
        return stored

    def delete(self, name: str) -> bool:
        """
        Remove a profile and every secret it could own.

        Secrets are deleted first so a failure leaves the profile listed and
        the delete can be retried. Both secret keys are always deleted,
        whether or not they were ever set.

        Returns:
            True if a metadata record was removed
        """
        profiles = self._read_records()
        wanted = name.casefold()
        existing = next((p for p in profiles if p.name.casefold() == wanted), None)

        names = {name}
        if existing is not None:
            names.add(existing.name)
        for profile_name in names:
            for secret_type in SecretType:
                self.backend.delete(secret_key(profile_name, secret_type))

        if existing is None:
            return False

        self._write_records([p for p in profiles if p is not existing])
        logger.info("Deleted profile '%s'", existing.name)
        return True

    # ------------------------------------------------------------------
    # Secrets

    def store_secret(self, profile_name: str, secret_type: SecretType, value: str) -> None:
        self.backend.store(secret_key(profile_name, secret_type), value)

    def get_secret(self, profile_name: str, secret_type: SecretType) -> Optional[str]:
        return self.backend.retrieve(secret_key(profile_name, secret_type))

    def require_secret(self, profile_name: str, secret_type: SecretType) -> str:
        """get_secret() that raises SecretNotFoundError when nothing usable is stored."""
        value = self.get_secret(profile_name, secret_type)
        if value is None:
            raise SecretNotFoundError(
                f"No {SecretType(secret_type).value} stored for profile '{profile_name}'."
            )
        return value

    def has_secret(self, profile_name: str, secret_type: SecretType) -> bool:
        return self.backend.exists(secret_key(profile_name, secret_type))

    def delete_secret(self, profile_name: str, secret_type: SecretType) -> None:
        self.backend.delete(secret_key(profile_name, secret_type))

    def store_client_secret(self, profile_name: str, secret: str) -> None:
        self.store_secret(profile_name, SecretType.CLIENT_SECRET, secret)

    def get_client_secret(self, profile_name: str) -> Optional[str]:
        return self.get_secret(profile_name, SecretType.CLIENT_SECRET)

    def store_certificate_password(self, profile_name: str, password: str) -> None:
        self.store_secret(profile_name, SecretType.CERTIFICATE_PASSWORD, password)

    def get_certificate_password(self, profile_name: str) -> Optional[str]:
        return self.get_secret(profile_name, SecretType.CERTIFICATE_PASSWORD)

    # ------------------------------------------------------------------
    # Validation

    def _has_client_secret(self, profile_name: str) -> bool:
        secret = self.get_client_secret(profile_name)
        return bool(secret and secret.strip())

    def validate(self, profile: AuthProfile) -> ValidationResult:
        """Check a profile before use. Collects every violation."""
        return validate_profile(profile, self._has_client_secret)

    def ensure_valid(self, profile: AuthProfile) -> ValidationResult:
        """Like validate(), but raise ValidationError if anything is wrong."""
        return ensure_valid(profile, self._has_client_secret)

    def require(self, name: str) -> AuthProfile:
        """get() that raises ProfileNotFoundError instead of returning None."""
        profile = self.get(name)
        if profile is None:
            raise ProfileNotFoundError(name)
        return profile
