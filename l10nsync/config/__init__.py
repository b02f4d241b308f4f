"""Configuration schema and validation for l10nsync."""

from .schema import AndroidConfig, IOSConfig, SyncConfig

__all__ = [
    "AndroidConfig",
    "IOSConfig",
    "SyncConfig",
]
