"""
Snapshot writer: SQLite → JSON seed export.

Dumps every synchronized table into one canonical JSON file, rewriting only
the files whose content actually changed, plus a ``_meta.json`` document.
Files are written to a temporary path and renamed over the destination so a
reader never observes a half-written snapshot file.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..core.exceptions import SnapshotExportError
from ..registry import DEFAULT_REGISTRY, TableRegistry
from ..store.sqlite_store import SqliteStore
from .canonical import render_json, render_rows
from .meta import META_FILENAME, SCHEMA_VERSION, SnapshotMeta, utc_timestamp

logger = logging.getLogger(__name__)


@dataclass
class ExportResult:
    """Outcome of one export pass."""

    changed_file_count: int = 0
    tables: list[str] = field(default_factory=list)
    row_counts: dict[str, int] = field(default_factory=dict)
    changed_tables: list[str] = field(default_factory=list)
    meta_path: Optional[Path] = None


def table_file(seeds_dir: Path, table: str) -> Path:
    """Path of the seed file for a table."""
    return Path(seeds_dir) / f"{table}.json"


def atomic_write(path: Path, content: str) -> None:
    """Write content to a sibling temp file and rename it over path."""
    tmp = path.with_name(path.name + ".tmp")
    with open(tmp, "w", encoding="utf-8", newline="\n") as f:
        f.write(content)
    os.replace(tmp, path)


def write_file_if_changed(path: Path, content: str) -> bool:
    """
    Write a file only when its content differs from what is on disk.

    Args:
        path: Destination file
        content: Full new file content

    Returns:
        True if the file was written, False if it was already identical
    """
    # Byte comparison, so a corrupt file on disk is simply overwritten
    if path.exists() and path.read_bytes() == content.encode("utf-8"):
        return False
    atomic_write(path, content)
    return True


class SnapshotWriter:
    """
    Exports the relational store to a seeds directory.

    Never mutates the store and never touches the sync state; clearing the
    dirty flag after a successful export is the caller's job.
    """

    def __init__(
        self,
        store: SqliteStore,
        seeds_dir: Path,
        registry: Optional[TableRegistry] = None,
        schema_version: int = SCHEMA_VERSION,
    ):
        """
        Initialize the snapshot writer.

        Args:
            store: Store to read from
            seeds_dir: Directory holding one JSON file per table
            registry: Table registry (defaults to the OKR registry)
            schema_version: Value recorded in ``_meta.json``
        """
        self.store = store
        self.seeds_dir = Path(seeds_dir)
        self.registry = registry or DEFAULT_REGISTRY
        self.schema_version = schema_version

    def export(self) -> ExportResult:
        """
        Export every synchronized table in forward order.

        Returns:
            ExportResult; ``changed_file_count`` counts table files only,
            so a repeated export with no intervening change reports zero

        Raises:
            SnapshotExportError: If a file cannot be written
        """
        try:
            self.seeds_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SnapshotExportError(f"Cannot create seeds directory {self.seeds_dir}: {e}") from e

        result = ExportResult()

        # Hold the store lock so the pass reads one consistent state
        with self.store.lock:
            tables = self.registry.ordered_tables(self.store.list_tables())
            for table in tables:
                schema = self.store.table_schema(table)
                rows = self.store.select_rows(table, schema.order_by_clause())
                content = render_rows(rows)

                path = table_file(self.seeds_dir, table)
                try:
                    changed = write_file_if_changed(path, content)
                except OSError as e:
                    raise SnapshotExportError(f"Failed to write {path}: {e}", table=table) from e

                if changed:
                    result.changed_file_count += 1
                    result.changed_tables.append(table)
                    logger.debug(f"Wrote {path.name} ({len(rows)} rows)")

                result.tables.append(table)
                result.row_counts[table] = len(rows)

        meta = SnapshotMeta(
            schema=self.schema_version,
            exported_at=utc_timestamp(),
            tables=result.tables,
            row_counts=result.row_counts,
        )
        meta_path = self.seeds_dir / META_FILENAME
        try:
            atomic_write(meta_path, render_json(meta.to_dict()))
        except OSError as e:
            raise SnapshotExportError(f"Failed to write {meta_path}: {e}") from e
        result.meta_path = meta_path

        logger.info(
            f"Exported JSON seeds ({result.changed_file_count} file write(s)).",
            extra={"operation": "export", "changed_files": result.changed_file_count},
        )
        return result


def export_store(
    store: SqliteStore,
    seeds_dir: Path,
    registry: Optional[TableRegistry] = None,
) -> ExportResult:
    """Export a store to a seeds directory in one call."""
    return SnapshotWriter(store, seeds_dir, registry).export()
