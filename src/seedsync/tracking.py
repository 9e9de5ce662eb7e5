"""
Change tracking via store-native triggers.

Every tracked table carries AFTER INSERT/UPDATE/DELETE triggers that set the
``dirty`` flag of the one-row ``sync_state`` table, unless ``suspended`` is
set. The suspend check runs inside the same transaction as the write, so
there is no window between checking the flag and marking the store dirty.

Each trigger also bumps ``version``. An export captures the version before
reading and clears ``dirty`` only if the version is unchanged, so a write
that lands during an export is never lost.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

from .registry import DEFAULT_REGISTRY, TableRegistry
from .store.introspection import list_triggers, quote_identifier
from .store.sqlite_store import SqliteStore

logger = logging.getLogger(__name__)


TRIGGER_PREFIX = "tr_sync_"
TRACKED_OPERATIONS = ("INSERT", "UPDATE", "DELETE")


@dataclass(frozen=True)
class SyncState:
    """Point-in-time view of the ``sync_state`` row."""

    suspended: bool
    dirty: bool
    version: int


def trigger_name(table: str, operation: str) -> str:
    return f"{TRIGGER_PREFIX}{table}_{operation.lower()}"


class ChangeTracker:
    """
    Synchronization context bound to one store.

    Owns the ``sync_state`` control table and the change-tracking triggers.
    """

    def __init__(self, store: SqliteStore, registry: Optional[TableRegistry] = None):
        self.store = store
        self.registry = registry or DEFAULT_REGISTRY
        self._state_ready = False

    def ensure_state_table(self) -> None:
        """Create ``sync_state`` and its single row if missing."""
        if self._state_ready:
            return
        with self.store.transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS sync_state (
                    id INTEGER PRIMARY KEY CHECK (id = 1),
                    suspended INTEGER NOT NULL DEFAULT 0,
                    dirty INTEGER NOT NULL DEFAULT 0,
                    version INTEGER NOT NULL DEFAULT 0
                )
                """
            )
            conn.execute(
                "INSERT OR IGNORE INTO sync_state (id, suspended, dirty, version) VALUES (1, 0, 0, 0)"
            )
        self._state_ready = True

    def tracked_tables(self) -> list[str]:
        return self.registry.ordered_tables(self.store.list_tables())

    def install_triggers(self) -> int:
        """
        Install INSERT/UPDATE/DELETE triggers on every tracked table.

        Installing twice is a no-op.

        Returns:
            Number of tracked tables
        """
        self.ensure_state_table()
        tables = self.tracked_tables()

        with self.store.transaction() as conn:
            for table in tables:
                for operation in TRACKED_OPERATIONS:
                    conn.execute(
                        f"""
                        CREATE TRIGGER IF NOT EXISTS {quote_identifier(trigger_name(table, operation))}
                        AFTER {operation} ON {quote_identifier(table)}
                        WHEN (SELECT suspended = 0 FROM sync_state WHERE id = 1)
                        BEGIN
                            UPDATE sync_state SET dirty = 1, version = version + 1 WHERE id = 1;
                        END
                        """
                    )

        logger.debug(f"Change tracking installed on {len(tables)} table(s)")
        return len(tables)

    def remove_triggers(self) -> int:
        """Drop every change-tracking trigger. Returns the number dropped."""
        with self.store.transaction() as conn:
            names = list_triggers(conn, TRIGGER_PREFIX)
            for name in names:
                conn.execute(f"DROP TRIGGER IF EXISTS {quote_identifier(name)}")

        logger.debug(f"Removed {len(names)} change-tracking trigger(s)")
        return len(names)

    def get_state(self) -> SyncState:
        self.ensure_state_table()
        row = self.store.fetch_one(
            "SELECT suspended, dirty, version FROM sync_state WHERE id = 1"
        )
        return SyncState(
            suspended=bool(row["suspended"]),
            dirty=bool(row["dirty"]),
            version=row["version"],
        )

    def is_dirty(self) -> bool:
        return self.get_state().dirty

    def mark_dirty(self) -> None:
        """Flag an untracked write path as a pending change (ignored while suspended)."""
        self.ensure_state_table()
        self.store.execute(
            "UPDATE sync_state SET dirty = 1, version = version + 1 "
            "WHERE id = 1 AND suspended = 0"
        )

    def clear_dirty(self, expected_version: Optional[int] = None) -> bool:
        """
        Clear the dirty flag.

        Args:
            expected_version: If given, clear only when no tracked mutation
                happened since this version was read.

        Returns:
            True if the flag was cleared
        """
        self.ensure_state_table()
        if expected_version is None:
            cursor = self.store.execute("UPDATE sync_state SET dirty = 0 WHERE id = 1")
        else:
            cursor = self.store.execute(
                "UPDATE sync_state SET dirty = 0 WHERE id = 1 AND version = ?",
                (expected_version,),
            )
        return cursor.rowcount > 0

    def set_suspended(self, suspended: bool) -> None:
        self.ensure_state_table()
        self.store.execute(
            "UPDATE sync_state SET suspended = ? WHERE id = 1",
            (1 if suspended else 0,),
        )

    @contextmanager
    def suspended(self) -> Iterator["ChangeTracker"]:
        """
        Suspend change tracking for the duration of a block.

        The previous suspended value is restored on exit, including when
        the block raises.
        """
        previous = self.get_state().suspended
        self.set_suspended(True)
        try:
            yield self
        finally:
            self.set_suspended(previous)


def install_triggers(store: SqliteStore, registry: Optional[TableRegistry] = None) -> int:
    return ChangeTracker(store, registry).install_triggers()


def remove_triggers(store: SqliteStore) -> int:
    return ChangeTracker(store).remove_triggers()


def is_dirty(store: SqliteStore) -> bool:
    return ChangeTracker(store).is_dirty()


def clear_dirty(store: SqliteStore) -> bool:
    return ChangeTracker(store).clear_dirty()
