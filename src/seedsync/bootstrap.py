"""
Process bootstrap for the sync engine.

Decides once at startup whether the store is restored from the seeds
directory or seeded by the application and exported, then turns on change
tracking and the auto-export scheduler for the rest of the process.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from .config.config_loader import SyncConfig
from .core.exceptions import SnapshotImportError
from .okr_schema import create_schema, seed_if_empty
from .registry import DEFAULT_REGISTRY, TableRegistry
from .scheduler import AutoExportScheduler
from .snapshot.loader import SnapshotLoader, seeds_exist
from .snapshot.writer import SnapshotWriter
from .store.sqlite_store import SqliteStore
from .tracking import ChangeTracker

logger = logging.getLogger(__name__)


@dataclass
class SyncRuntime:
    """Handles to the running sync machinery."""

    tracker: ChangeTracker
    writer: SnapshotWriter
    scheduler: AutoExportScheduler
    imported: bool
    import_error: Optional[SnapshotImportError] = None

    def shutdown(self) -> None:
        self.scheduler.stop()


def bootstrap_sync(
    store: SqliteStore,
    config: SyncConfig,
    registry: Optional[TableRegistry] = None,
    seed_fn: Optional[Callable[[SqliteStore], int]] = None,
    create_tables: bool = True,
    start_scheduler: Optional[bool] = None,
) -> SyncRuntime:
    """
    Bring the store and the seeds directory in line, then start syncing.

    Args:
        store: Open store
        config: Sync configuration (seeds dir, debounce, auto-export)
        registry: Table registry (defaults to the OKR registry)
        seed_fn: Seeds an empty store when no snapshot exists
        create_tables: Create the OKR schema before syncing
        start_scheduler: Override ``config.auto_export``

    Returns:
        SyncRuntime with the tracker, writer and scheduler
    """
    registry = registry or DEFAULT_REGISTRY
    seed_fn = seed_fn or seed_if_empty

    if create_tables:
        create_schema(store)

    tracker = ChangeTracker(store, registry)
    tracker.ensure_state_table()
    writer = SnapshotWriter(store, config.seeds_dir, registry, config.schema_version)

    imported = False
    import_error = None
    if seeds_exist(config.seeds_dir, registry):
        logger.info(f"Loading store from seeds: {config.seeds_dir}")
        try:
            SnapshotLoader(store, config.seeds_dir, registry, tracker).load()
            imported = True
        except SnapshotImportError as e:
            # Keep whatever is in the store; the import rolled back
            logger.error(f"Seed import failed, continuing with existing data: {e}")
            import_error = e
            tracker.set_suspended(False)
    else:
        logger.info("No seeds found; seeding store and exporting")
        seed_fn(store)
        writer.export()
        tracker.clear_dirty()

    tracker.install_triggers()

    scheduler = AutoExportScheduler(writer, tracker, config.poll_interval)
    run_scheduler = config.auto_export if start_scheduler is None else start_scheduler
    if run_scheduler:
        scheduler.start()

    return SyncRuntime(
        tracker=tracker,
        writer=writer,
        scheduler=scheduler,
        imported=imported,
        import_error=import_error,
    )
