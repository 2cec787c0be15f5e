"""Box-backed implementations of the session and PKCE verifier storages."""

from __future__ import annotations

from typing import Optional

from session_storage.domain.local_storage import (
    SUPABASE_PERSIST_SESSION_KEY,
    GotrueAsyncStorage,
    LocalStorage,
)
from session_storage.infrastructure.box_store import Box, BoxRegistry, default_registry
from session_storage.infrastructure.log_utils import log_message

SESSION_BOX_NAME = "supabase_authentication"
VERIFIER_BOX_NAME = "gotrue"


class BoxLocalStorage(LocalStorage):
    """Persist the session string under a single key of the session box.

    The encryption key is fixed at construction. Boxes written with one key
    cannot be read with another.
    """

    def __init__(
        self,
        encryption_key: Optional[str] = None,
        *,
        registry: Optional[BoxRegistry] = None,
    ) -> None:
        self._encryption_key = encryption_key
        self._registry = registry

    @property
    def encryption_key(self) -> Optional[str]:
        return self._encryption_key

    @property
    def box(self) -> Box:
        registry = self._registry or default_registry()
        return registry.box(SESSION_BOX_NAME, encryption_key=self._encryption_key)

    async def initialize(self) -> None:
        box = self.box
        log_message(
            f"Session box ready at {box.path} (encrypted={box.is_encrypted})", "DEBUG", tag="AUTH"
        )

    async def has_access_token(self) -> bool:
        return self.box.contains_key(SUPABASE_PERSIST_SESSION_KEY)

    async def access_token(self) -> Optional[str]:
        return self.box.get(SUPABASE_PERSIST_SESSION_KEY)

    async def persist_session(self, persist_session_string: str) -> None:
        self.box.put(SUPABASE_PERSIST_SESSION_KEY, persist_session_string)
        log_message("Persisted session", "DEBUG", tag="AUTH")

    async def remove_persisted_session(self) -> None:
        self.box.delete(SUPABASE_PERSIST_SESSION_KEY)
        log_message("Removed persisted session", "DEBUG", tag="AUTH")


class BoxGotrueAsyncStorage(GotrueAsyncStorage):
    """Store PKCE code verifiers in their own, unencrypted box."""

    def __init__(self, *, registry: Optional[BoxRegistry] = None) -> None:
        self._registry = registry

    @property
    def box(self) -> Box:
        registry = self._registry or default_registry()
        return registry.box(VERIFIER_BOX_NAME)

    async def get_item(self, key: str) -> Optional[str]:
        return self.box.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self.box.put(key, value)

    async def remove_item(self, key: str) -> None:
        self.box.delete(key)


__all__ = [
    "SESSION_BOX_NAME",
    "VERIFIER_BOX_NAME",
    "BoxLocalStorage",
    "BoxGotrueAsyncStorage",
]
