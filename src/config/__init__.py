# src/config/__init__.py
# Exports the process-wide settings object

from .settings import settings, Settings, DatabaseConfig, ProbeConfig, AppConfig

__all__ = [
    "settings",
    "Settings",
    "DatabaseConfig",
    "ProbeConfig",
    "AppConfig",
]
