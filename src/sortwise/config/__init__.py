"""Configuration for sortwise."""

from .settings import (
    Settings,
    EnsembleSettings,
    DatabaseSettings,
    StorageSettings,
    ReportSettings,
    LoggingSettings,
    LogLevel,
    get_settings,
    set_settings,
)
from .loader import ConfigurationLoader, configure_from_cli

__all__ = [
    "Settings",
    "EnsembleSettings",
    "DatabaseSettings",
    "StorageSettings",
    "ReportSettings",
    "LoggingSettings",
    "LogLevel",
    "get_settings",
    "set_settings",
    "ConfigurationLoader",
    "configure_from_cli",
]
