"""Configuration package."""

from wiwo.config.settings import Settings, settings

__all__ = [
    "Settings",
    "settings",
]
