"""
Base configuration for the InceptionDB client.

Settings are read from INCEPTIONDB_* environment variables, optionally loaded
from a .env file named by LOAD_ENV_FILE.
"""

from __future__ import annotations

import os
import pathlib
from typing import TypeVar

import lazy_object_proxy
import pydantic
import pydantic_settings

T = TypeVar('T', bound='BaseClientSettings')


class BaseClientSettings(pydantic_settings.BaseSettings):
    """Connection settings shared by the library and the CLI."""

    model_config = pydantic_settings.SettingsConfigDict(
        env_prefix='INCEPTIONDB_',
        env_file_encoding='utf-8',
        case_sensitive=True,  # Fail fast on misconfiguration
        extra='ignore',  # .env files may hold unrelated variables
    )

    BASE_URL: str = 'https://inceptiondb.io'
    API_KEY: str | None = None
    API_SECRET: str | None = None
    TIMEOUT: float = 30.0  # Seconds, applied to connect/read/write/pool

    @pydantic.field_validator('TIMEOUT')
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError('TIMEOUT must be greater than 0')
        return v


def get_settings(settings_class: type[T], env_file: str | None = None) -> T:
    """
    Factory for creating settings with dynamic .env file loading.

    LOAD_ENV_FILE environment variable specifies custom .env file path.
    When unset, loads from environment variables only.

    Args:
        settings_class: Settings class to instantiate
        env_file: Optional path to .env file (overrides LOAD_ENV_FILE)

    Returns:
        Settings instance

    Raises:
        FileNotFoundError: If specified .env file doesn't exist
    """
    env_file_path = env_file or os.getenv('LOAD_ENV_FILE')

    if not env_file_path:
        return settings_class()  # No .env file, load from environment only

    resolved_path = pathlib.Path(env_file_path).resolve()
    if not resolved_path.exists():
        raise FileNotFoundError(f'Environment file not found: {resolved_path}')

    return settings_class(_env_file=resolved_path)


def lazy_settings(settings_class: type[T]) -> T:
    """
    Lazy settings - defers instantiation until first access.

    Args:
        settings_class: Settings class to instantiate

    Returns:
        Proxy that instantiates settings on first access
    """
    return lazy_object_proxy.Proxy(lambda: get_settings(settings_class))
