"""
Passphrase-protected export and import of profiles.

Wire format (base64 text):

    salt (32 bytes) || iv (16 bytes) || AES-256-CBC(PKCS#7(json))

The key is PBKDF2-HMAC-SHA256(passphrase, salt, 100000 iterations, 32 bytes).
Salt and IV are fresh for every export. Decryption never says *why* it
failed, so the error can't be used to tell a wrong passphrase from damaged
data.
"""

import base64
import binascii
import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .errors import CorruptedError, DecryptionError, ProfileExistsError
from .models import AuthProfile, SecretType, format_timestamp, parse_timestamp, utcnow
from .profiles import ProfileRepository

logger = logging.getLogger(__name__)

SALT_SIZE = 32
IV_SIZE = 16
KEY_SIZE = 32
BLOCK_SIZE = 16
PBKDF2_ITERATIONS = 100_000
HEADER_SIZE = SALT_SIZE + IV_SIZE


def derive_key(passphrase: str, salt: bytes, iterations: int = PBKDF2_ITERATIONS) -> bytes:
    """PBKDF2-HMAC-SHA256 over the UTF-8 passphrase."""
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_SIZE,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(passphrase.encode("utf-8"))


def encrypt_payload(plaintext: bytes, passphrase: str) -> str:
    """Encrypt bytes into the base64 export format."""
    salt = os.urandom(SALT_SIZE)
    iv = os.urandom(IV_SIZE)
    key = derive_key(passphrase, salt)

    padder = padding.PKCS7(BLOCK_SIZE * 8).padder()
    padded = padder.update(plaintext) + padder.finalize()

    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()

    return base64.b64encode(salt + iv + ciphertext).decode("ascii")


def decrypt_payload(data: str, passphrase: str) -> bytes:
    """
    Decrypt the base64 export format.

    Raises:
        DecryptionError: for any failure, whatever the cause
    """
    try:
        raw = base64.b64decode("".join(data.split()), validate=True)
    except (binascii.Error, ValueError, AttributeError, TypeError) as e:
        raise DecryptionError() from e

    ciphertext = raw[HEADER_SIZE:]
    if not ciphertext or len(ciphertext) % BLOCK_SIZE:
        raise DecryptionError()

    salt, iv = raw[:SALT_SIZE], raw[SALT_SIZE:HEADER_SIZE]
    key = derive_key(passphrase, salt)

    try:
        decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()
        unpadder = padding.PKCS7(BLOCK_SIZE * 8).unpadder()
        return unpadder.update(padded) + unpadder.finalize()
    except ValueError as e:
        # Bad padding: wrong key or damaged ciphertext
        raise DecryptionError() from e


@dataclass
class ExportedProfileBundle:
    """
    Plaintext content of an export. Only ever held in memory.
    """
    profile: AuthProfile
    client_secret: Optional[str] = None
    certificate_password: Optional[str] = None
    exported_at: Optional[datetime] = None

    def to_json(self) -> str:
        return json.dumps(
            {
                "Profile": self.profile.to_dict(),
                "ClientSecret": self.client_secret,
                "CertificatePassword": self.certificate_password,
                "ExportedAt": format_timestamp(self.exported_at or utcnow()),
            },
            indent=2,
        )

    @classmethod
    def from_json(cls, text: Union[str, bytes]) -> "ExportedProfileBundle":
        """
        Raises:
            CorruptedError: if the document is not a bundle
        """
        try:
            data = json.loads(text)
        except (ValueError, TypeError) as e:
            raise CorruptedError("Bundle is not valid JSON") from e
        if not isinstance(data, dict):
            raise CorruptedError("Bundle is not a JSON object")

        fields: Dict[str, Any] = {str(k).lower(): v for k, v in data.items()}
        if not fields.get("profile"):
            raise CorruptedError("Bundle has no profile")

        exported_at = None
        if isinstance(fields.get("exportedat"), str):
            try:
                exported_at = parse_timestamp(fields["exportedat"])
            except ValueError:
                exported_at = None

        return cls(
            profile=AuthProfile.from_dict(fields["profile"]),
            client_secret=_optional_text(fields.get("clientsecret")),
            certificate_password=_optional_text(fields.get("certificatepassword")),
            exported_at=exported_at,
        )

    def secrets(self) -> List[Tuple[SecretType, str]]:
        """Secrets carried by the bundle; blank values count as absent."""
        found = []
        if self.client_secret and self.client_secret.strip():
            found.append((SecretType.CLIENT_SECRET, self.client_secret))
        if self.certificate_password and self.certificate_password.strip():
            found.append((SecretType.CERTIFICATE_PASSWORD, self.certificate_password))
        return found


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise CorruptedError("Bundle secret fields must be strings")
    return value


def seal_bundle(bundle: ExportedProfileBundle, passphrase: str) -> str:
    return encrypt_payload(bundle.to_json().encode("utf-8"), passphrase)


def open_bundle(data: str, passphrase: str) -> ExportedProfileBundle:
    """
    Decrypt and parse an export.

    A successful decryption that yields something other than a bundle is
    reported exactly like a wrong passphrase.
    """
    plaintext = decrypt_payload(data, passphrase)
    try:
        return ExportedProfileBundle.from_json(plaintext.decode("utf-8"))
    except (UnicodeDecodeError, CorruptedError) as e:
        raise DecryptionError() from e


class ProfileExchange:
    """Export profiles from, and import them into, a ProfileRepository."""

    def __init__(self, repository: ProfileRepository):
        self.repository = repository

    def export_profile(self, name: str, passphrase: str, include_secrets: bool = False) -> str:
        """
        Export one profile as an encrypted string.

        Args:
            name: Profile name (case-insensitive)
            passphrase: Encryption passphrase, must not be empty
            include_secrets: Also export the client secret and, if the
                profile caches it, the certificate password

        Raises:
            ProfileNotFoundError: if there is no such profile
        """
        if not passphrase:
            raise ValueError("Passphrase must not be empty")

        profile = self.repository.require(name)
        bundle = ExportedProfileBundle(profile=profile, exported_at=utcnow())

        if include_secrets:
            bundle.client_secret = self.repository.get_client_secret(profile.name)
            if profile.cache_certificate_password:
                bundle.certificate_password = self.repository.get_certificate_password(profile.name)

        logger.info(
            "Exporting profile '%s' (%s secrets)",
            profile.name, "with" if include_secrets else "without",
        )
        return seal_bundle(bundle, passphrase)

    def import_profile(self, data: str, passphrase: str, new_name: Optional[str] = None) -> AuthProfile:
        """
        Import an exported profile.

        Secrets are written before the profile metadata. If a secret write
        or the metadata write fails, secrets already written are removed.

        Args:
            data: Export string
            passphrase: Passphrase used at export
            new_name: Store under this name instead of the embedded one

        Returns:
            The saved profile

        Raises:
            DecryptionError: wrong passphrase or damaged data
            ProfileExistsError: a profile with the final name exists
        """
        bundle = open_bundle(data, passphrase)

        profile = bundle.profile
        if new_name and new_name.strip():
            profile = profile.renamed(new_name.strip())

        if self.repository.exists(profile.name):
            raise ProfileExistsError(profile.name)

        written: List[SecretType] = []
        try:
            for secret_type, value in bundle.secrets():
                self.repository.store_secret(profile.name, secret_type, value)
                written.append(secret_type)
            saved = self.repository.save(profile)
        except BaseException:
            for secret_type in written:
                self.repository.delete_secret(profile.name, secret_type)
            raise

        logger.info("Imported profile '%s' with %d secret(s)", saved.name, len(written))
        return saved


def write_export_file(path: Union[str, Path], data: str) -> Path:
    """Write an export string to a file readable only by the owner."""
    path = Path(path).expanduser()
    fd = os.open(str(path), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="ascii") as f:
        f.write(data)
    return path


def read_export_file(path: Union[str, Path]) -> str:
    return Path(path).expanduser().read_text(encoding="utf-8").strip()
