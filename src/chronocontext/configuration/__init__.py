"""Configuration loading utilities for chronocontext."""

from .settings import (
    DEFAULT_CONFIG_PATH,
    DucklingSettings,
    ExtractionSettings,
    LoggingSettings,
    Settings,
    bootstrap_settings,
    load_settings,
    resolve_settings,
    save_settings,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "DucklingSettings",
    "ExtractionSettings",
    "LoggingSettings",
    "Settings",
    "bootstrap_settings",
    "load_settings",
    "resolve_settings",
    "save_settings",
]
