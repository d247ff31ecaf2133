"""Configuration package."""

from .settings import settings, Settings, DatabaseSettings, APISettings, StorageSettings

__all__ = ["settings", "Settings", "DatabaseSettings", "APISettings", "StorageSettings"]
