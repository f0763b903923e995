# marketplace_api/core/__init__.py
"""
Core package for configuration, logging, and shared exceptions.
"""

from marketplace_api.core.config import Settings, settings
from marketplace_api.core.logging import configure_structlog, get_structlog_logger

__all__ = [
    "Settings",
    "settings",
    "configure_structlog",
    "get_structlog_logger",
]
