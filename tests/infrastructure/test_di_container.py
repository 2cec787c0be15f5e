import pytest

from session_storage.config.config import Settings
from session_storage.domain.local_storage import GotrueAsyncStorage, LocalStorage
from session_storage.infrastructure.box_storage import BoxGotrueAsyncStorage, BoxLocalStorage
from session_storage.infrastructure.box_store import BoxRegistry, generate_encryption_key
from session_storage.infrastructure.di_container import Container, build_container
from session_storage.infrastructure.empty_storage import EmptyLocalStorage


def _settings(tmp_path, **overrides) -> Settings:
    values = {"SESSION_STORAGE_DIR": tmp_path / "boxes"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_persistent_storage_is_default(tmp_path):
    container = build_container(config=_settings(tmp_path))

    storage = container.resolve(LocalStorage)

    assert isinstance(storage, BoxLocalStorage)
    assert storage.encryption_key is None
    assert isinstance(container.resolve(GotrueAsyncStorage), BoxGotrueAsyncStorage)


def test_disabling_persistence_selects_empty_storage(tmp_path):
    container = build_container(config=_settings(tmp_path, SESSION_PERSIST=False))

    assert isinstance(container.resolve(LocalStorage), EmptyLocalStorage)


def test_encryption_key_flows_into_session_storage(tmp_path):
    key = generate_encryption_key()
    container = build_container(config=_settings(tmp_path, SESSION_ENCRYPTION_KEY=key))

    assert container.resolve(LocalStorage).encryption_key == key


@pytest.mark.asyncio
async def test_storages_share_the_configured_registry(tmp_path):
    container = build_container(config=_settings(tmp_path))
    registry = container.resolve(BoxRegistry)

    await container.resolve(LocalStorage).persist_session("tok")
    await container.resolve(GotrueAsyncStorage).set_item("flow", "verifier")

    assert registry.directory == tmp_path / "boxes"
    assert sorted(p.name for p in registry.directory.glob("*.box")) == [
        "gotrue.box",
        "supabase_authentication.box",
    ]


def test_overrides_replace_registrations(tmp_path):
    container = build_container({LocalStorage: EmptyLocalStorage}, config=_settings(tmp_path))

    assert isinstance(container.resolve(LocalStorage), EmptyLocalStorage)


def test_register_requires_factory_or_instance():
    container = Container()

    with pytest.raises(ValueError):
        container.register(LocalStorage)
    with pytest.raises(KeyError):
        container.resolve(LocalStorage)
