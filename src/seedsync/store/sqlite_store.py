"""
SQLite-backed relational store used as the authoritative runtime database.

The store wraps one sqlite3 connection opened in autocommit mode; multi-
statement work runs inside explicit transactions via ``transaction()``.
All access goes through a re-entrant lock so the auto-export thread and
request-handling code never interleave inside a transaction.
"""

import logging
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

from ..core.exceptions import StoreError
from .introspection import (
    TableSchema,
    get_table_schema,
    list_user_tables,
    quote_identifier,
)


logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"


class SqliteStore:
    """
    Embedded relational store.

    Provides the operations the sync engine relies on: table and column
    enumeration, ordered row selection, parameterized statements inside a
    transaction, and trigger DDL.
    """

    def __init__(self, db_path: Union[str, Path] = MEMORY_PATH, foreign_keys: bool = True):
        """
        Open the store.

        Args:
            db_path: Path to the SQLite database file, or ":memory:"
            foreign_keys: Whether to enforce foreign key constraints
        """
        self.db_path = db_path if db_path == MEMORY_PATH else Path(db_path)
        self.foreign_keys = foreign_keys
        self.lock = threading.RLock()
        self._conn: Optional[sqlite3.Connection] = None
        self._connect()

    def _connect(self) -> None:
        """Establish database connection."""
        if self.is_memory:
            target = MEMORY_PATH
        else:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            target = str(self.db_path)

        try:
            self._conn = sqlite3.connect(
                target,
                check_same_thread=False,
                isolation_level=None,
            )
        except sqlite3.Error as e:
            raise StoreError(f"Could not open database {target}: {e}") from e

        self._conn.row_factory = sqlite3.Row
        self._conn.execute(f"PRAGMA foreign_keys = {'ON' if self.foreign_keys else 'OFF'}")
        logger.debug(f"Connected to SQLite store: {target}")

    @property
    def is_memory(self) -> bool:
        return self.db_path == MEMORY_PATH

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreError("Store is closed")
        return self._conn

    def close(self) -> None:
        """Close the database connection."""
        with self.lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                logger.debug("SQLite store closed")

    def __enter__(self) -> "SqliteStore":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """
        Run a block inside one write transaction.

        Commits on success and rolls back on any exception. Nested calls
        join the outer transaction.
        """
        with self.lock:
            conn = self.conn
            if conn.in_transaction:
                yield conn
                return

            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                logger.debug("Transaction rolled back")
                raise
            else:
                conn.execute("COMMIT")

    def execute(self, sql: str, params: Sequence[Any] = ()) -> sqlite3.Cursor:
        with self.lock:
            return self.conn.execute(sql, params)

    def executescript(self, script: str) -> None:
        with self.lock:
            self.conn.executescript(script)

    def fetch_one(self, sql: str, params: Sequence[Any] = ()) -> Optional[sqlite3.Row]:
        with self.lock:
            return self.conn.execute(sql, params).fetchone()

    def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> List[sqlite3.Row]:
        with self.lock:
            return self.conn.execute(sql, params).fetchall()

    def list_tables(self) -> List[str]:
        """User tables present in the store, sorted by name."""
        with self.lock:
            return list_user_tables(self.conn)

    def table_schema(self, table: str) -> TableSchema:
        with self.lock:
            return get_table_schema(self.conn, table)

    def select_rows(self, table: str, order_by: str = "") -> List[Dict[str, Any]]:
        """
        Read every row of a table as plain dictionaries.

        Args:
            table: Table name
            order_by: Optional ORDER BY clause

        Returns:
            List of rows keyed by column name
        """
        sql = f"SELECT * FROM {quote_identifier(table)} {order_by}".rstrip()
        with self.lock:
            rows = self.conn.execute(sql).fetchall()
        return [dict(row) for row in rows]

    def count_rows(self, table: str) -> int:
        row = self.fetch_one(f"SELECT COUNT(*) FROM {quote_identifier(table)}")
        return row[0]

    def checkpoint(self) -> None:
        """Flush the write-ahead log into the main database file."""
        with self.lock:
            self.conn.execute("PRAGMA wal_checkpoint(TRUNCATE)")
