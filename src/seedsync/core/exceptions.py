"""
Custom exceptions for the seed synchronization engine.
"""


class SeedSyncError(Exception):
    """Base exception for all seedsync errors."""
    pass


class RegistryError(SeedSyncError):
    """
    Error in the table registry definition.

    Raised when:
    - A table name is registered twice
    - A table name is empty
    """
    pass


class StoreError(SeedSyncError):
    """
    Error opening or talking to the relational store.

    Raised when:
    - The database file cannot be opened
    - An operation is attempted on a closed store
    """
    pass


class SnapshotExportError(SeedSyncError):
    """
    Error writing the JSON snapshot.

    Raised when a table file or the metadata file cannot be written.
    The store is never modified by an export, so a failed export only
    affects freshness.
    """

    def __init__(self, message: str, table: str = None):
        super().__init__(message)
        self.table = table


class SnapshotImportError(SeedSyncError):
    """
    Error restoring the relational store from a JSON snapshot.

    Raised when:
    - The snapshot directory is missing or unreadable
    - A row cannot be inserted (constraint violation, unknown column)
    - A table declared as auto-increment has no managed sequence

    Any failure inside the import transaction rolls back the whole import.
    """

    def __init__(self, message: str, table: str = None):
        super().__init__(message)
        self.table = table


class BackupError(SeedSyncError):
    """Error producing the daily database copy."""
    pass


class ConfigError(SeedSyncError):
    """
    Error in seedsync configuration.

    Raised when:
    - The configuration file is missing or not a mapping
    - A value is out of its valid range
    """
    pass
