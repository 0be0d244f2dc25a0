"""
privlink configuration.

Pydantic-based settings loaded from PRIVLINK_* environment variables or a
.env file.
"""

from privlink.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
