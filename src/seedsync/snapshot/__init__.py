"""
Snapshot module for SQLite ⇄ JSON seed interchange.

This module provides:
- Canonical row rendering: stable key and row order for diff-friendly files
- SnapshotWriter: store → seeds export, writing only changed files
- SnapshotLoader: seeds → store import in one transaction
- SnapshotMeta: the ``_meta.json`` document
"""

from .canonical import stable_row, render_rows
from .meta import SnapshotMeta, META_FILENAME
from .writer import SnapshotWriter, ExportResult, export_store
from .loader import SnapshotLoader, ImportResult, import_snapshot, seeds_exist

__all__ = [
    "stable_row",
    "render_rows",
    "SnapshotMeta",
    "META_FILENAME",
    "SnapshotWriter",
    "ExportResult",
    "export_store",
    "SnapshotLoader",
    "ImportResult",
    "import_snapshot",
    "seeds_exist",
]
