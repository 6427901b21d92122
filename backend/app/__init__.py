"""
osu! Tournament Rating Backend Application Package.

This package contains the REST API and background sync workers for the
osu! tournament match-rating platform.
"""

from .core import get_global_settings, db_manager, get_db

__version__ = "0.1.0"

__all__ = [
    "get_global_settings",
    "db_manager",
    "get_db",
]
