"""
Shared storage for backends that keep one file per secret.

File names are the SHA-256 of the logical key, so profile names never
appear on disk. Subclasses only decide how bytes are protected.
"""

import hashlib
import os
import tempfile
from abc import abstractmethod
from pathlib import Path
from typing import Optional, Union

from .base import SecretBackend
from ..errors import BackendUnavailableError, CorruptedError


class FileSecretBackend(SecretBackend):
    """One `<sha256>.dat` file per key inside a private directory."""

    name = "file"
    suffix = ".dat"

    def __init__(self, directory: Union[str, Path]):
        super().__init__()
        self.directory = Path(directory).expanduser()

    @abstractmethod
    def _encode(self, plaintext: bytes) -> bytes:
        pass

    @abstractmethod
    def _decode(self, stored: bytes) -> bytes:
        """Reverse _encode. Raise CorruptedError if the data cannot be recovered."""
        pass

    def path_for(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self.directory / f"{digest}{self.suffix}"

    def _ensure_dir(self):
        """Create secrets directory if needed."""
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            if os.name == "posix":
                os.chmod(self.directory, 0o700)
        except OSError as e:
            raise BackendUnavailableError(f"Cannot create secure storage directory {self.directory}: {e.strerror}") from e

    def _read(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        try:
            stored = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise BackendUnavailableError(f"Cannot read {path}: {e.strerror}") from e

        plaintext = self._decode(stored)
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CorruptedError(f"{path.name} does not decode to UTF-8") from e

    def _write(self, key: str, value: str) -> None:
        self._ensure_dir()
        path = self.path_for(key)
        data = self._encode(value.encode("utf-8"))

        # Write beside the target and rename, so an interrupted write never
        # leaves a truncated secret behind.
        fd, tmp_name = tempfile.mkstemp(dir=str(self.directory), prefix=".tmp-", suffix=self.suffix)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, path)
        except OSError as e:
            _silent_unlink(tmp_name)
            raise BackendUnavailableError(f"Cannot write {path}: {e.strerror}") from e
        except BaseException:
            _silent_unlink(tmp_name)
            raise

    def _remove(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise BackendUnavailableError(f"Cannot delete {path}: {e.strerror}") from e


def _silent_unlink(name: str) -> None:
    try:
        os.unlink(name)
    except OSError:
        pass
