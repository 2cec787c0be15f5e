"""
Centralised config for session storage.

This module consolidates the storage settings, loading sensitive values
from environment variables and providing typed, validated access to them
through a singleton `settings` object.
"""

import os
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

from cryptography.fernet import Fernet
from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

CONFIG_FILE = Path(__file__).resolve()


def _discover_project_root(config_file: Path) -> tuple[Path, Path]:
    """Return a project root and env file path without assuming ``.env`` exists.

    Walk the parents looking for a ``.env`` file and fall back to the
    repository root (detected via common project markers) when it is missing.
    """

    parents = list(config_file.parents)

    for parent in parents:
        env_file = parent / ".env"
        if env_file.exists():
            return parent, env_file

    for marker in ("pyproject.toml", ".git"):
        for parent in parents:
            if (parent / marker).exists():
                return parent, parent / ".env"

    fallback_root = parents[1] if len(parents) > 1 else parents[0]
    return fallback_root, fallback_root / ".env"


PROJECT_ROOT, ENV_FILE_PATH = _discover_project_root(CONFIG_FILE)


T = TypeVar("T")


class Settings(BaseSettings):
    """
    Centralised and validated storage settings.
    """
    model_config = SettingsConfigDict(
        env_file=ENV_FILE_PATH, env_file_encoding="utf-8", extra="ignore", case_sensitive=False
    )

    # --- STORAGE LOCATION ---
    SESSION_STORAGE_DIR: Path = Path.home() / ".session_storage"

    # --- SESSION PERSISTENCE ---
    # Must stay the same for the lifetime of the stored data, otherwise the
    # persisted session cannot be read back.
    SESSION_ENCRYPTION_KEY: Optional[SecretStr] = None
    SESSION_PERSIST: bool = True

    # --- LOGGING ---
    SESSION_STORAGE_LOG_LEVEL: str = "INFO"
    SESSION_STORAGE_LOG_TO_CONSOLE: bool = True

    @field_validator("SESSION_ENCRYPTION_KEY")
    @classmethod
    def validate_encryption_key(cls, value: Optional[SecretStr]) -> Optional[SecretStr]:
        """Reject keys Fernet cannot use before anything is written with them."""
        if value is None:
            return value
        raw = value.get_secret_value()
        if not raw:
            return None
        try:
            Fernet(raw.encode("utf-8"))
        except ValueError as exc:
            raise ValueError(
                "SESSION_ENCRYPTION_KEY must be 32 url-safe base64-encoded bytes"
            ) from exc
        return value

    @property
    def encryption_key(self) -> Optional[str]:
        """Plain-text encryption key, or ``None`` when boxes are unencrypted."""
        if self.SESSION_ENCRYPTION_KEY is None:
            return None
        return self.SESSION_ENCRYPTION_KEY.get_secret_value()

    @property
    def log_path(self) -> Path:
        """Path for the storage log file, next to the boxes."""
        return self.SESSION_STORAGE_DIR / "logs" / "session_storage.log"


# Create a single, importable instance of the settings for the entire package.
settings = Settings()


def _coerce_secret(value: Any) -> Any:
    if isinstance(value, SecretStr):
        return value.get_secret_value()
    return value


def _to_bool(raw: str) -> bool:
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _coerce_type(raw: str, template: Any) -> Any:
    if isinstance(template, bool):
        return _to_bool(raw)
    if isinstance(template, Path):
        return Path(raw)
    return raw


def get_env(
    name: str,
    default: T | None = None,
    *,
    parser: Callable[[str], T] | None = None,
) -> T | Any | None:
    """Return a configuration value resolving environment overrides consistently.

    The resolution order is:

    1. Explicit environment variable overrides at runtime.
    2. Typed values provided by the Pydantic ``settings`` object.
    3. The supplied ``default`` value.

    When an override is read directly from :mod:`os.environ`, ``parser`` (or the
    inferred type from ``settings``) is used to coerce the string into the
    expected type.
    """

    if name in os.environ:
        raw_value = os.environ[name]
        if parser is not None:
            return parser(raw_value)
        if hasattr(settings, name):
            template = _coerce_secret(getattr(settings, name))
            return _coerce_type(raw_value, template)
        return raw_value

    if hasattr(settings, name):
        return _coerce_secret(getattr(settings, name))

    return default
