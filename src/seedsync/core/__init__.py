"""
Core exceptions and logging helpers shared by all seedsync modules.
"""

from .exceptions import (
    SeedSyncError,
    RegistryError,
    StoreError,
    SnapshotExportError,
    SnapshotImportError,
    BackupError,
    ConfigError,
)
from .logging import configure_logging, get_logger

__all__ = [
    "SeedSyncError",
    "RegistryError",
    "StoreError",
    "SnapshotExportError",
    "SnapshotImportError",
    "BackupError",
    "ConfigError",
    "configure_logging",
    "get_logger",
]
