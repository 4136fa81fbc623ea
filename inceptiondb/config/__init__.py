"""Configuration for the InceptionDB client."""

from inceptiondb.config.base import BaseClientSettings, get_settings, lazy_settings
from inceptiondb.config.client import ClientSettings, settings

__all__ = ['BaseClientSettings', 'ClientSettings', 'get_settings', 'lazy_settings', 'settings']
