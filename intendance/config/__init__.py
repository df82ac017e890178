"""Configuration module."""

from intendance.config.logging import configure_logging, get_logger
from intendance.config.settings import (
    LedgerSettings,
    Settings,
    StorageSettings,
    get_settings,
    reset_settings,
)

__all__ = [
    "Settings",
    "StorageSettings",
    "LedgerSettings",
    "get_settings",
    "reset_settings",
    "configure_logging",
    "get_logger",
]
