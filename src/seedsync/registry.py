"""
Table registry for seed synchronization.

Holds the static, ordered catalog of synchronized tables. The order encodes
foreign-key topology by construction: every table appears after all tables it
references. Forward order is used for inserts, reverse order for deletes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .core.exceptions import RegistryError


# Tables that are never synchronized (SQLite internals and our own control table)
EXCLUDED_TABLES = frozenset({
    "sqlite_sequence",
    "sqlite_master",
    "sqlite_temp_master",
    "sync_state",
})


@dataclass(frozen=True)
class TableSpec:
    """A synchronized table and whether its id is a store-managed sequence."""

    name: str
    autoincrement: bool = False


class TableRegistry:
    """
    Ordered catalog of synchronized tables (parents before children).

    Changing the registry is a code change, not a migration: the order is
    the single source of truth for both insert and delete order.
    """

    def __init__(
        self,
        tables: Iterable[TableSpec | str],
        excluded: Iterable[str] = EXCLUDED_TABLES,
    ):
        specs = []
        seen: set[str] = set()
        for table in tables:
            spec = TableSpec(table) if isinstance(table, str) else table
            if not spec.name:
                raise RegistryError("Table name must not be empty")
            if spec.name in seen:
                raise RegistryError(f"Table registered twice: {spec.name}")
            seen.add(spec.name)
            specs.append(spec)

        self._tables: tuple[TableSpec, ...] = tuple(specs)
        self.excluded = frozenset(excluded)

    def __iter__(self):
        return iter(self._tables)

    def __len__(self) -> int:
        return len(self._tables)

    def __repr__(self) -> str:
        return f"TableRegistry({self.forward_order()!r})"

    @property
    def first_table(self) -> str | None:
        """Root table whose seed file marks a directory as seeded."""
        return self._tables[0].name if self._tables else None

    def forward_order(self) -> list[str]:
        """Table names parents-first (insert order)."""
        return [spec.name for spec in self._tables]

    def reverse_order(self) -> list[str]:
        """Table names children-first (delete order)."""
        return list(reversed(self.forward_order()))

    def is_registered(self, table: str) -> bool:
        return any(spec.name == table for spec in self._tables)

    def is_tracked(self, table: str) -> bool:
        """True unless the table is internal to SQLite or to seedsync."""
        return table not in self.excluded and not table.startswith("sqlite_")

    def autoincrement_tables(self) -> set[str]:
        return {spec.name for spec in self._tables if spec.autoincrement}

    def ordered_tables(self, live_tables: Iterable[str]) -> list[str]:
        """
        Order the tables that actually exist in the store.

        Registered tables come first in registry order. Live tables the
        registry does not know about are appended at the end, sorted by
        name, which is the safest position for an unknown dependency.

        Args:
            live_tables: Table names present in the store.

        Returns:
            Ordered list of tracked table names.
        """
        remaining = {t for t in live_tables if self.is_tracked(t)}
        ordered = []

        for name in self.forward_order():
            if name in remaining:
                ordered.append(name)
                remaining.discard(name)

        ordered.extend(sorted(remaining))
        return ordered


# Static load order for the OKR tracker schema.
# Level 0 tables have no FK dependencies; later levels depend on earlier ones.
DEFAULT_TABLES = [
    # Level 0
    TableSpec("organizations"),
    # Level 1
    TableSpec("functions"),
    TableSpec("teams"),
    # Level 2
    TableSpec("pods"),
    TableSpec("individuals"),
    TableSpec("objectives"),
    # Level 3
    TableSpec("krs"),
    TableSpec("objective_teams"),
    TableSpec("baselines"),
    # Level 4: per-week values
    TableSpec("baseline_plan_values"),
    TableSpec("plan_values"),
    TableSpec("actual_values"),
    TableSpec("initiatives"),
    TableSpec("initiative_weekly"),
    # Independent key/value settings
    TableSpec("app_settings"),
]

DEFAULT_REGISTRY = TableRegistry(DEFAULT_TABLES)
