"""
Database introspection utilities for seed synchronization.

Provides functions to query table and column metadata from SQLite.
"""

from __future__ import annotations

import re
import sqlite3
from dataclasses import dataclass, field


_AUTOINCREMENT_RE = re.compile(r"\bAUTOINCREMENT\b", re.IGNORECASE)


def quote_identifier(name: str) -> str:
    """Quote a table or column name for safe use in SQL text."""
    return '"' + name.replace('"', '""') + '"'


@dataclass
class ColumnInfo:
    """Information about a table column."""

    name: str
    data_type: str
    is_nullable: bool
    primary_key_position: int
    column_ordinal: int

    @property
    def is_primary_key(self) -> bool:
        return self.primary_key_position > 0


@dataclass
class TableSchema:
    """Schema information for a table."""

    table_name: str
    columns: dict[str, ColumnInfo] = field(default_factory=dict)
    create_sql: str = ""

    @property
    def has_id_column(self) -> bool:
        return "id" in self.columns

    @property
    def primary_key_columns(self) -> list[str]:
        """Primary key columns in key order."""
        pk = [c for c in self.columns.values() if c.is_primary_key]
        return [c.name for c in sorted(pk, key=lambda c: c.primary_key_position)]

    @property
    def has_autoincrement(self) -> bool:
        """True if the DDL declares a store-managed AUTOINCREMENT sequence."""
        return bool(_AUTOINCREMENT_RE.search(self.create_sql or ""))

    def order_by_columns(self) -> list[str]:
        """
        Columns that give a deterministic row order.

        Sort by ``id`` when the table has one, otherwise by every column
        in lexicographic name order (association tables with composite keys).
        """
        if self.has_id_column:
            return ["id"]
        return sorted(self.columns)

    def order_by_clause(self) -> str:
        columns = self.order_by_columns()
        if not columns:
            return ""
        return "ORDER BY " + ", ".join(quote_identifier(c) for c in columns)


def list_user_tables(conn: sqlite3.Connection) -> list[str]:
    """
    List user tables in the database, sorted by name.

    SQLite internal tables (``sqlite_%``) are excluded.
    """
    cursor = conn.execute(
        """
        SELECT name FROM sqlite_master
        WHERE type = 'table'
          AND name NOT LIKE 'sqlite_%'
        ORDER BY name
        """
    )
    return [row[0] for row in cursor.fetchall()]


def check_table_exists(conn: sqlite3.Connection, table_name: str) -> bool:
    cursor = conn.execute(
        "SELECT COUNT(*) FROM sqlite_master WHERE type = 'table' AND name = ?",
        (table_name,),
    )
    return cursor.fetchone()[0] > 0


def get_table_schema(conn: sqlite3.Connection, table_name: str) -> TableSchema:
    """
    Query PRAGMA table_info and sqlite_master for a table.

    Args:
        conn: Open SQLite connection.
        table_name: Table name.

    Returns:
        TableSchema with column information (empty if the table is missing).
    """
    table_schema = TableSchema(table_name=table_name)

    cursor = conn.execute(f"PRAGMA table_info({quote_identifier(table_name)})")
    for row in cursor.fetchall():
        # cid, name, type, notnull, dflt_value, pk
        col_info = ColumnInfo(
            name=row[1],
            data_type=row[2] or "",
            is_nullable=not row[3],
            primary_key_position=row[5],
            column_ordinal=row[0],
        )
        table_schema.columns[col_info.name] = col_info

    cursor = conn.execute(
        "SELECT sql FROM sqlite_master WHERE type = 'table' AND name = ?",
        (table_name,),
    )
    found = cursor.fetchone()
    if found and found[0]:
        table_schema.create_sql = found[0]

    return table_schema


def list_triggers(conn: sqlite3.Connection, prefix: str) -> list[str]:
    """List trigger names starting with the given prefix."""
    cursor = conn.execute(
        "SELECT name FROM sqlite_master "
        "WHERE type = 'trigger' AND name LIKE ? ESCAPE '\\' ORDER BY name",
        (prefix.replace("_", "\\_") + "%",),
    )
    return [row[0] for row in cursor.fetchall()]
