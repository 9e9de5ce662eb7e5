"""
Relational store access for the sync engine.
"""

from .sqlite_store import SqliteStore
from .introspection import ColumnInfo, TableSchema, quote_identifier

__all__ = [
    "SqliteStore",
    "ColumnInfo",
    "TableSchema",
    "quote_identifier",
]
