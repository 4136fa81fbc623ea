"""
Client configuration.

Extends base configuration with settings used by the command line client.
"""

from __future__ import annotations

from inceptiondb.config.base import BaseClientSettings, lazy_settings


class ClientSettings(BaseClientSettings):
    """Settings for InceptionDBClient.from_settings() and the CLI."""

    VERBOSE: bool = False  # CLI prints request logs to stderr


# Module-level singleton (lazy-loaded)
settings = lazy_settings(ClientSettings)
