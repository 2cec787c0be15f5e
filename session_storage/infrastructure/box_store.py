"""File-backed named key/value collections ("boxes").

Each box is a JSON object of string keys to string values kept in
``<directory>/<name>.box``. When an encryption key is given the file holds
the Fernet token of that JSON document instead of the plain text. Boxes
are opened on first access through a :class:`BoxRegistry` and stay open
for the lifetime of the process.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Dict, List, Optional

from cryptography.fernet import Fernet, InvalidToken

from session_storage.config import settings
from session_storage.infrastructure.exceptions import (
    BoxClosedError,
    BoxCorruptedError,
    BoxDecryptionError,
    BoxKeyMismatchError,
)
from session_storage.infrastructure.log_utils import log_message

BOX_SUFFIX = ".box"
_TAG = "BOX"


def generate_encryption_key() -> str:
    """Return a fresh key suitable for ``SESSION_ENCRYPTION_KEY``."""
    return Fernet.generate_key().decode("ascii")


class Box:
    """A single named collection persisted to one file."""

    def __init__(self, name: str, path: Path | str, encryption_key: Optional[str] = None) -> None:
        self._name = name
        self._path = Path(path)
        self._encryption_key = encryption_key
        self._fernet: Optional[Fernet] = None
        if encryption_key is not None:
            try:
                self._fernet = Fernet(encryption_key)
            except (TypeError, ValueError) as exc:
                raise BoxDecryptionError(f"Invalid encryption key for box '{name}'") from exc
        self._data: Optional[Dict[str, str]] = None
        self._closed = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def path(self) -> Path:
        return self._path

    @property
    def is_encrypted(self) -> bool:
        return self._fernet is not None

    @property
    def is_open(self) -> bool:
        return self._data is not None

    def matches_key(self, encryption_key: Optional[str]) -> bool:
        return self._encryption_key == encryption_key

    def open(self) -> "Box":
        """Load the box contents from disk. Opening an open box is a no-op."""
        if self._data is None:
            self._data = self._read()
            self._closed = False
            log_message(
                f"Opened box '{self._name}' with {len(self._data)} entries", "DEBUG", tag=_TAG
            )
        return self

    def close(self) -> None:
        self._data = None
        self._closed = True

    # ------------------------------------------------------------------
    # Key/value operations
    # ------------------------------------------------------------------

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._entries().get(key, default)

    def contains_key(self, key: str) -> bool:
        return key in self._entries()

    def put(self, key: str, value: str) -> None:
        if not isinstance(key, str):
            raise TypeError(f"Box keys must be str, got {type(key).__name__}")
        if not isinstance(value, str):
            raise TypeError(f"Box values must be str, got {type(value).__name__}")
        entries = dict(self._entries())
        entries[key] = value
        self._commit(entries)

    def delete(self, key: str) -> None:
        if key not in self._entries():
            return
        entries = dict(self._entries())
        del entries[key]
        self._commit(entries)

    def clear(self) -> None:
        self._commit({})

    def keys(self) -> List[str]:
        return list(self._entries())

    def __len__(self) -> int:
        return len(self._entries())

    def flush(self) -> None:
        """Write the in-memory contents to disk atomically."""
        self._write(self._entries())

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _commit(self, entries: Dict[str, str]) -> None:
        # The cached mapping only changes once the file on disk matches it.
        self._write(entries)
        self._data = entries

    def _write(self, entries: Dict[str, str]) -> None:
        payload = json.dumps(entries, sort_keys=True).encode("utf-8")
        if self._fernet is not None:
            payload = self._fernet.encrypt(payload)

        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
            os.replace(tmp_path, self._path)
        except OSError:
            log_message(f"Failed to write box '{self._name}' to {self._path}", "ERROR", tag=_TAG)
            tmp_path.unlink(missing_ok=True)
            raise

    def _entries(self) -> Dict[str, str]:
        if self._data is None:
            if self._closed:
                raise BoxClosedError(f"Box '{self._name}' is closed")
            self.open()
        return self._data

    def _read(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}

        raw = self._path.read_bytes()
        if not raw:
            return {}

        if self._fernet is not None:
            try:
                raw = self._fernet.decrypt(raw)
            except InvalidToken as exc:
                log_message(
                    f"Unable to decrypt box '{self._name}' at {self._path}", "ERROR", tag=_TAG
                )
                raise BoxDecryptionError(
                    f"Box '{self._name}' could not be decrypted with the configured key"
                ) from exc

        try:
            data = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            log_message(f"Box '{self._name}' at {self._path} is corrupted: {exc}", "ERROR", tag=_TAG)
            raise BoxCorruptedError(f"Box '{self._name}' is not valid JSON") from exc

        if not isinstance(data, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in data.items()
        ):
            log_message(f"Box '{self._name}' at {self._path} has an unexpected shape", "ERROR", tag=_TAG)
            raise BoxCorruptedError(f"Box '{self._name}' must map strings to strings")

        return data

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        return f"Box(name={self._name!r}, path={str(self._path)!r}, {state})"


class BoxRegistry:
    """Opens boxes by name under one directory and caches the handles."""

    def __init__(self, directory: Path | str) -> None:
        self._directory = Path(directory)
        self._boxes: Dict[str, Box] = {}

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, name: str) -> Path:
        return self._directory / f"{name}{BOX_SUFFIX}"

    def box(self, name: str, encryption_key: Optional[str] = None) -> Box:
        """Return the open box called ``name``, opening it on first access."""
        existing = self._boxes.get(name)
        if existing is not None:
            if not existing.matches_key(encryption_key):
                log_message(
                    f"Refusing to reopen box '{name}' with a different encryption key",
                    "WARN",
                    tag=_TAG,
                )
                raise BoxKeyMismatchError(
                    f"Box '{name}' is already open with a different encryption key"
                )
            return existing.open()

        box = Box(name, self.path_for(name), encryption_key=encryption_key)
        box.open()
        self._boxes[name] = box
        return box

    def is_open(self, name: str) -> bool:
        box = self._boxes.get(name)
        return box is not None and box.is_open

    def close_all(self) -> None:
        for box in self._boxes.values():
            box.close()
        self._boxes.clear()


_DEFAULT_REGISTRY: Optional[BoxRegistry] = None


def default_registry() -> BoxRegistry:
    """Return the process-wide registry rooted at ``SESSION_STORAGE_DIR``."""
    global _DEFAULT_REGISTRY
    if _DEFAULT_REGISTRY is None:
        _DEFAULT_REGISTRY = BoxRegistry(settings.SESSION_STORAGE_DIR)
    return _DEFAULT_REGISTRY


def reset_default_registry() -> None:
    """Close every box in the default registry and forget it."""
    global _DEFAULT_REGISTRY
    if _DEFAULT_REGISTRY is not None:
        _DEFAULT_REGISTRY.close_all()
    _DEFAULT_REGISTRY = None


__all__ = [
    "BOX_SUFFIX",
    "Box",
    "BoxRegistry",
    "default_registry",
    "generate_encryption_key",
    "reset_default_registry",
]
