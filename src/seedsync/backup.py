"""
Serialized backup job: seed export plus a daily copy of the database file.

Backups are queued behind a lock so two callers never run an export or a
file copy at the same time.
"""

from __future__ import annotations

import logging
import shutil
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from .core.exceptions import BackupError
from .registry import TableRegistry
from .snapshot.writer import SnapshotWriter
from .store.sqlite_store import SqliteStore

logger = logging.getLogger(__name__)


SNAPSHOT_SUFFIX = ".bak-"


@dataclass
class BackupResult:
    """Outcome of one backup run."""

    exported_tables: int
    updated_seed_files: int
    snapshot_path: Path
    snapshot_created: bool
    duration_ms: int


class BackupService:
    """
    Runs seed export and keeps one database copy per calendar day.

    The copy is named ``<db file>.bak-YYYYMMDD`` and written once per day;
    later runs on the same day only refresh the seeds.
    """

    def __init__(
        self,
        store: SqliteStore,
        seeds_dir: Path,
        registry: Optional[TableRegistry] = None,
        backup_dir: Optional[Path] = None,
    ):
        if store.is_memory:
            raise BackupError("Cannot back up an in-memory store")

        self.store = store
        self.writer = SnapshotWriter(store, seeds_dir, registry)
        self.backup_dir = Path(backup_dir) if backup_dir else store.db_path.parent
        self._job_lock = threading.Lock()

    def snapshot_path_for(self, day: datetime) -> Path:
        name = f"{self.store.db_path.name}{SNAPSHOT_SUFFIX}{day.strftime('%Y%m%d')}"
        return self.backup_dir / name

    def run_backup(self, now: Optional[datetime] = None) -> BackupResult:
        """
        Export seeds, then ensure today's database copy exists.

        Args:
            now: Override for the current time (used to pick the day)

        Returns:
            BackupResult

        Raises:
            SnapshotExportError: If the seed export fails
            BackupError: If the database copy fails
        """
        with self._job_lock:
            started = time.monotonic()
            try:
                export_result = self.writer.export()
                snapshot_path, created = self._ensure_daily_snapshot(now or datetime.now())
            except Exception:
                logger.exception("Backup failed")
                raise

            duration_ms = int((time.monotonic() - started) * 1000)
            logger.info(
                f"Backup complete in {duration_ms}ms; "
                f"{export_result.changed_file_count} seed file(s) updated; "
                f"snapshot {'written' if created else 'already current'}."
            )
            return BackupResult(
                exported_tables=len(export_result.tables),
                updated_seed_files=export_result.changed_file_count,
                snapshot_path=snapshot_path,
                snapshot_created=created,
                duration_ms=duration_ms,
            )

    def _ensure_daily_snapshot(self, now: datetime) -> tuple[Path, bool]:
        snapshot_path = self.snapshot_path_for(now)
        if snapshot_path.exists():
            return snapshot_path, False

        with self.store.lock:
            try:
                self.store.checkpoint()
            except Exception as e:
                logger.warning(f"Failed to checkpoint WAL before snapshot: {e}")

            try:
                self.backup_dir.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(self.store.db_path, snapshot_path)
            except OSError as e:
                raise BackupError(f"Could not copy database to {snapshot_path}: {e}") from e

        return snapshot_path, True
