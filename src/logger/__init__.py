# src/logger/__init__.py
# Exports the logging helpers the rest of the application uses
# Named 'logger' instead of 'logging' to avoid clashing with the stdlib module

from .logging import setup_logging, get_logger

__all__ = [
    "setup_logging",
    "get_logger",
]
