# session_storage/infrastructure/di_container.py
"""Dependency injection container wiring the storage backends."""
from __future__ import annotations

from functools import lru_cache
import inspect
from typing import Any, Callable, Dict, Optional, Type

from session_storage.config import Settings, settings as app_settings
from session_storage.domain.local_storage import GotrueAsyncStorage, LocalStorage
from session_storage.infrastructure.box_storage import BoxGotrueAsyncStorage, BoxLocalStorage
from session_storage.infrastructure.box_store import BoxRegistry, default_registry
from session_storage.infrastructure.empty_storage import EmptyLocalStorage
from session_storage.infrastructure.log_utils import log_message

ServiceType = Type[Any]
Factory = Callable[["Container"], Any]


class Container:
    """Minimal service container supporting factories and instances."""

    def __init__(self) -> None:
        self._factories: Dict[ServiceType, Factory] = {}
        self._instances: Dict[ServiceType, Any] = {}

    def register(
        self,
        service: ServiceType,
        *,
        factory: Factory | None = None,
        instance: Any | None = None,
    ) -> None:
        if instance is not None:
            self._instances[service] = instance
            self._factories.pop(service, None)
            return
        if factory is None:
            raise ValueError("Either factory or instance must be provided.")
        self._factories[service] = factory
        self._instances.pop(service, None)

    def resolve(self, service: ServiceType) -> Any:
        if service in self._instances:
            return self._instances[service]
        try:
            factory = self._factories[service]
        except KeyError as exc:
            raise KeyError(f"No provider registered for {service!r}") from exc
        return factory(self)


def _session_storage_factory(config: Settings) -> Factory:
    def _build(c: Container) -> LocalStorage:
        if not config.SESSION_PERSIST:
            log_message("Session persistence disabled; using EmptyLocalStorage", "INFO", tag="CFG")
            return EmptyLocalStorage()
        return BoxLocalStorage(
            encryption_key=config.encryption_key,
            registry=c.resolve(BoxRegistry),
        )

    return _build


def _register_defaults(container: Container, config: Settings) -> None:
    """Register the production storage graph with the container."""
    if config is app_settings:
        container.register(BoxRegistry, factory=lambda _c: default_registry())
    else:
        container.register(BoxRegistry, instance=BoxRegistry(config.SESSION_STORAGE_DIR))
    container.register(LocalStorage, factory=_session_storage_factory(config))
    container.register(
        GotrueAsyncStorage,
        factory=lambda c: BoxGotrueAsyncStorage(registry=c.resolve(BoxRegistry)),
    )


def _wrap_override(provider: Any) -> Factory:
    if inspect.isfunction(provider) or inspect.ismethod(provider):
        signature = inspect.signature(provider)
        if len(signature.parameters) == 0:
            return lambda _c, fn=provider: fn()
        return lambda c, fn=provider: fn(c)
    if isinstance(provider, type):
        return lambda _c, cls=provider: cls()
    return lambda _c, value=provider: value


def build_container(
    overrides: Dict[ServiceType, Any] | None = None,
    *,
    config: Optional[Settings] = None,
) -> Container:
    """Create a new container with optional dependency overrides."""
    container = Container()
    _register_defaults(container, config or app_settings)

    if overrides:
        for service, provider in overrides.items():
            factory = _wrap_override(provider)
            if isinstance(provider, (type,)) or inspect.isfunction(provider) or inspect.ismethod(provider):
                container.register(service, factory=factory)
            else:
                container.register(service, instance=factory(container))

    return container


@lru_cache(maxsize=1)
def get_container() -> Container:
    """Return a cached container instance for application use."""
    return build_container()


__all__ = ["Container", "build_container", "get_container"]
