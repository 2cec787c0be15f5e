"""Exception hierarchy raised by the on-disk box store."""

from __future__ import annotations


class BoxError(Exception):
    """Base exception for box store failures."""


class BoxClosedError(BoxError):
    """Raised when reading or writing a box that has been closed."""


class BoxCorruptedError(BoxError):
    """Raised when a box file cannot be read or decoded."""


class BoxDecryptionError(BoxError):
    """Raised when a box cannot be decrypted with the configured key."""


class BoxKeyMismatchError(BoxError):
    """Raised when an open box is requested with a different encryption key."""


__all__ = [
    "BoxError",
    "BoxClosedError",
    "BoxCorruptedError",
    "BoxDecryptionError",
    "BoxKeyMismatchError",
]
