"""
seedsync: keeps the OKR tracker's SQLite store and its JSON seed files in sync.

The relational store is authoritative at runtime. The seeds directory is a
canonical, diff-friendly snapshot of it that can rebuild the store on a
fresh checkout.
"""

from .bootstrap import SyncRuntime, bootstrap_sync
from .config import SyncConfig, load_config
from .core.exceptions import (
    BackupError,
    ConfigError,
    RegistryError,
    SeedSyncError,
    SnapshotExportError,
    SnapshotImportError,
    StoreError,
)
from .registry import DEFAULT_REGISTRY, EXCLUDED_TABLES, TableRegistry, TableSpec
from .scheduler import AutoExportScheduler, ExportState
from .schema_check import SchemaInfo, validate_schema
from .snapshot import (
    ExportResult,
    ImportResult,
    SnapshotLoader,
    SnapshotWriter,
    export_store,
    import_snapshot,
    seeds_exist,
)
from .store import SqliteStore
from .tracking import ChangeTracker, SyncState

__version__ = "0.1.0"

__all__ = [
    "AutoExportScheduler",
    "BackupError",
    "ChangeTracker",
    "ConfigError",
    "DEFAULT_REGISTRY",
    "EXCLUDED_TABLES",
    "ExportResult",
    "ExportState",
    "ImportResult",
    "RegistryError",
    "SchemaInfo",
    "SeedSyncError",
    "SnapshotExportError",
    "SnapshotImportError",
    "SnapshotLoader",
    "SnapshotWriter",
    "SqliteStore",
    "StoreError",
    "SyncConfig",
    "SyncRuntime",
    "SyncState",
    "TableRegistry",
    "TableSpec",
    "bootstrap_sync",
    "export_store",
    "import_snapshot",
    "load_config",
    "seeds_exist",
    "validate_schema",
]
