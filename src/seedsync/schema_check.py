"""
Schema drift detection.

Compares the tables that exist in the store against the table registry.
Detection only: drift is reported and logged, never raised, and fixing it
means updating the registry by hand.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from .registry import DEFAULT_REGISTRY, TableRegistry
from .store.sqlite_store import SqliteStore

logger = logging.getLogger(__name__)


@dataclass
class SchemaInfo:
    """Result of comparing the live schema with the registry."""

    current_tables: list[str] = field(default_factory=list)
    ordered_tables: list[str] = field(default_factory=list)
    unknown_tables: list[str] = field(default_factory=list)
    missing_tables: list[str] = field(default_factory=list)

    @property
    def has_new_tables(self) -> bool:
        return bool(self.unknown_tables)

    def summary(self) -> str:
        lines = [
            "Schema check",
            f"  Tracked tables: {len(self.current_tables)}",
            f"  Unregistered tables: {', '.join(self.unknown_tables) or 'none'}",
            f"  Registered but missing: {', '.join(self.missing_tables) or 'none'}",
        ]
        return "\n".join(lines)


def validate_schema(store: SqliteStore, registry: Optional[TableRegistry] = None) -> SchemaInfo:
    """
    Report tables present in the store but absent from the registry.

    Args:
        store: Store to inspect (read-only)
        registry: Table registry (defaults to the OKR registry)

    Returns:
        SchemaInfo; ``has_new_tables`` is True when drift was found
    """
    registry = registry or DEFAULT_REGISTRY
    live = store.list_tables()
    current = [t for t in live if registry.is_tracked(t)]

    info = SchemaInfo(
        current_tables=current,
        ordered_tables=registry.ordered_tables(live),
        unknown_tables=[t for t in current if not registry.is_registered(t)],
        missing_tables=[t for t in registry.forward_order() if t not in current],
    )

    if info.unknown_tables:
        logger.warning(f"New tables detected: {', '.join(info.unknown_tables)}")
        logger.warning("These will be synced but added at the end of dependency order.")
        logger.warning("Consider adding them to the table registry if they have dependencies.")

    return info
