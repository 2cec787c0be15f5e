import pytest

from session_storage.domain.local_storage import LocalStorage
from session_storage.infrastructure.empty_storage import EmptyLocalStorage


def test_empty_storage_is_a_local_storage():
    assert isinstance(EmptyLocalStorage(), LocalStorage)


@pytest.mark.asyncio
async def test_empty_storage_ignores_writes():
    storage = EmptyLocalStorage()

    await storage.initialize()
    assert await storage.has_access_token() is False

    await storage.persist_session("x")
    assert await storage.has_access_token() is False
    assert await storage.access_token() is None


@pytest.mark.asyncio
async def test_empty_storage_never_fails_on_any_sequence():
    storage = EmptyLocalStorage()

    for _ in range(3):
        await storage.remove_persisted_session()
        await storage.initialize()
        await storage.persist_session("a")
        await storage.persist_session("b")
        assert await storage.access_token() is None
        assert await storage.has_access_token() is False

