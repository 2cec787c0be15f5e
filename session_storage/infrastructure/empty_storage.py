"""A :class:`LocalStorage` that does nothing. Use it to disable persistence."""

from __future__ import annotations

from typing import Optional

from session_storage.domain.local_storage import LocalStorage


class EmptyLocalStorage(LocalStorage):
    """Keeps sessions in memory only by never storing anything."""

    async def initialize(self) -> None:
        pass

    async def has_access_token(self) -> bool:
        return False

    async def access_token(self) -> Optional[str]:
        return None

    async def persist_session(self, persist_session_string: str) -> None:
        pass

    async def remove_persisted_session(self) -> None:
        pass


__all__ = ["EmptyLocalStorage"]
