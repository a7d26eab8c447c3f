"""
Configuration module for the care events service.

Provides centralized configuration for:
- Database connection
- Recurrence expansion bounds
- Listing page sizes
"""

from care_events.src.config.settings import AppSettings, get_settings

__all__ = [
    "AppSettings",
    "get_settings",
]
