"""
Snapshot loader: JSON seeds → SQLite import.

Restores the relational store from a seeds directory inside one transaction.
Tables are cleared children-first and refilled parents-first, so a snapshot
that respects foreign keys never trips a constraint. Change tracking is
suspended and its triggers removed for the duration, so the import does not
mark the store dirty.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from ..core.exceptions import SnapshotImportError
from ..registry import DEFAULT_REGISTRY, TableRegistry
from ..store.introspection import TableSchema, quote_identifier
from ..store.sqlite_store import SqliteStore
from ..tracking import ChangeTracker
from .writer import table_file

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    """Outcome of one import."""

    rows_inserted: dict[str, int] = field(default_factory=dict)
    skipped_tables: list[str] = field(default_factory=list)

    @property
    def total_rows(self) -> int:
        return sum(self.rows_inserted.values())


def seeds_exist(seeds_dir: Path, registry: Optional[TableRegistry] = None) -> bool:
    """
    Check whether a seeds directory holds a snapshot.

    A directory counts as seeded when it contains the file of the first
    table in the registry's forward order.
    """
    registry = registry or DEFAULT_REGISTRY
    seeds_dir = Path(seeds_dir)
    if not seeds_dir.is_dir() or registry.first_table is None:
        return False
    return table_file(seeds_dir, registry.first_table).exists()


def read_table_rows(path: Path) -> Optional[list[Any]]:
    """
    Read a table's seed file.

    Returns:
        The row list, or None when the file is missing, unparsable or
        not a JSON array
    """
    if not path.exists():
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning(f"Unreadable seed file {path.name}: {e}")
        return None
    if not isinstance(data, list):
        logger.warning(f"Seed file {path.name} is not a JSON array; skipping")
        return None
    return data


class SnapshotLoader:
    """
    Loads a seeds directory into the store, replacing its contents.
    """

    def __init__(
        self,
        store: SqliteStore,
        seeds_dir: Path,
        registry: Optional[TableRegistry] = None,
        tracker: Optional[ChangeTracker] = None,
    ):
        """
        Initialize the snapshot loader.

        Args:
            store: Store to restore into
            seeds_dir: Directory holding one JSON file per table
            registry: Table registry (defaults to the OKR registry)
            tracker: Change tracker bound to the same store
        """
        self.store = store
        self.seeds_dir = Path(seeds_dir)
        self.registry = registry or DEFAULT_REGISTRY
        self.tracker = tracker or ChangeTracker(store, self.registry)

    def _check_seeds_dir(self) -> None:
        """Fail before touching the store if the directory is unusable."""
        if not self.seeds_dir.exists():
            raise SnapshotImportError(f"Seeds directory not found: {self.seeds_dir}")
        if not self.seeds_dir.is_dir():
            raise SnapshotImportError(f"Seeds path is not a directory: {self.seeds_dir}")
        try:
            next(self.seeds_dir.iterdir(), None)
        except OSError as e:
            raise SnapshotImportError(f"Cannot read seeds directory {self.seeds_dir}: {e}") from e

    def load(self) -> ImportResult:
        """
        Replace the store contents with the snapshot.

        Returns:
            ImportResult with per-table insert counts

        Raises:
            SnapshotImportError: If the directory is unreadable or any row
                fails to insert. The transaction is rolled back and change
                tracking stays suspended.
        """
        self._check_seeds_dir()

        result = ImportResult()

        with self.store.lock:
            tables = self.registry.ordered_tables(self.store.list_tables())

            self.tracker.ensure_state_table()
            self.tracker.set_suspended(True)
            self.tracker.remove_triggers()

            try:
                with self.store.transaction() as conn:
                    # Clear children first
                    for table in reversed(tables):
                        conn.execute(f"DELETE FROM {quote_identifier(table)}")

                    # Insert parents first
                    for table in tables:
                        rows = read_table_rows(table_file(self.seeds_dir, table))
                        if not rows:
                            result.skipped_tables.append(table)
                            continue
                        schema = self.store.table_schema(table)
                        result.rows_inserted[table] = self._insert_rows(conn, schema, rows)

                    self._reset_sequences(conn, tables, result)
            except sqlite3.Error as e:
                logger.error(f"Import failed, transaction rolled back: {e}")
                raise SnapshotImportError(f"Failed to import seeds from {self.seeds_dir}: {e}") from e

            self.tracker.set_suspended(False)
            self.tracker.install_triggers()
            self.tracker.clear_dirty()

        logger.info(
            f"Imported JSON seeds into SQLite ({result.total_rows} rows, "
            f"{len(result.rows_inserted)} tables).",
            extra={"operation": "import"},
        )
        return result

    def _insert_rows(self, conn: sqlite3.Connection, schema: TableSchema, rows: list[Any]) -> int:
        """Insert seed rows, caching one statement per column set."""
        statements: dict[tuple[str, ...], str] = {}
        table = schema.table_name

        for i, row in enumerate(rows):
            if not isinstance(row, dict):
                raise SnapshotImportError(
                    f"Row {i + 1} of {table}.json is not an object", table=table
                )

            columns = tuple(row.keys())
            unknown = [c for c in columns if c not in schema.columns]
            if unknown:
                raise SnapshotImportError(
                    f"Unknown columns in {table}.json: {', '.join(sorted(unknown))}",
                    table=table,
                )

            sql = statements.get(columns)
            if sql is None:
                columns_str = ", ".join(quote_identifier(c) for c in columns)
                placeholders = ", ".join("?" for _ in columns)
                sql = f"INSERT INTO {quote_identifier(table)} ({columns_str}) VALUES ({placeholders})"
                statements[columns] = sql

            try:
                conn.execute(sql, [row[c] for c in columns])
            except sqlite3.Error as e:
                logger.error(f"Insert failed for {table} row {i + 1}: {e}")
                raise SnapshotImportError(
                    f"Failed to insert row {i + 1} into {table}: {e}", table=table
                ) from e

        return len(rows)

    def _reset_sequences(
        self, conn: sqlite3.Connection, tables: list[str], result: ImportResult
    ) -> None:
        """
        Advance AUTOINCREMENT counters past the imported ids.

        Only tables the registry declares as auto-increment are touched.
        """
        live = set(tables)
        for table in sorted(self.registry.autoincrement_tables() & live):
            schema = self.store.table_schema(table)
            if not schema.has_autoincrement:
                raise SnapshotImportError(
                    f"Table {table} is registered as auto-increment but its id "
                    f"column is not AUTOINCREMENT",
                    table=table,
                )
            if not result.rows_inserted.get(table):
                continue

            max_id = conn.execute(
                f"SELECT MAX(id) FROM {quote_identifier(table)}"
            ).fetchone()[0]
            if max_id is None:
                continue

            updated = conn.execute(
                "UPDATE sqlite_sequence SET seq = ? WHERE name = ?", (max_id, table)
            ).rowcount
            if not updated:
                conn.execute(
                    "INSERT INTO sqlite_sequence (name, seq) VALUES (?, ?)", (table, max_id)
                )
            logger.debug(f"Sequence for {table} set to {max_id}")


def import_snapshot(
    store: SqliteStore,
    seeds_dir: Path,
    registry: Optional[TableRegistry] = None,
) -> ImportResult:
    """Import a seeds directory into a store in one call."""
    return SnapshotLoader(store, seeds_dir, registry).load()
