"""Domain-level contracts for persisting the auth session on the device.

See also:

* :class:`session_storage.infrastructure.empty_storage.EmptyLocalStorage`,
  used to disable session persistence.
* :class:`session_storage.infrastructure.box_storage.BoxLocalStorage`,
  which keeps the session in a named box on disk.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

SUPABASE_PERSIST_SESSION_KEY = "SUPABASE_PERSIST_SESSION_KEY"


class LocalStorage(ABC):
    """Abstract interface used to persist the user session in the device."""

    @abstractmethod
    async def initialize(self) -> None:
        """Prepare the storage to persist sessions. Safe to call repeatedly."""

    @abstractmethod
    async def has_access_token(self) -> bool:
        """Return ``True`` if there is a persisted session."""

    @abstractmethod
    async def access_token(self) -> Optional[str]:
        """Return the persisted session string, or ``None``."""

    @abstractmethod
    async def persist_session(self, persist_session_string: str) -> None:
        """Persist a session in the device, replacing any previous one."""

    @abstractmethod
    async def remove_persisted_session(self) -> None:
        """Remove the persisted session. No-op when nothing is stored."""


class GotrueAsyncStorage(ABC):
    """Key/value storage for PKCE flow code verifiers."""

    @abstractmethod
    async def get_item(self, key: str) -> Optional[str]:
        """Return the value stored under ``key``, or ``None``."""

    @abstractmethod
    async def set_item(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``."""

    @abstractmethod
    async def remove_item(self, key: str) -> None:
        """Delete ``key`` if present."""


__all__ = ["SUPABASE_PERSIST_SESSION_KEY", "LocalStorage", "GotrueAsyncStorage"]
