"""
Debounced auto-export scheduler.

Polls the store's dirty flag on a fixed interval and runs the snapshot
writer when it is set. Bursts of writes are coalesced:
- at most one export runs at a time
- any export request that arrives while a pass is running is folded into
  exactly one follow-up pass (trailing edge, single pending)
- a failed export leaves the store dirty, so the next tick retries it
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Dict, Optional

from .snapshot.writer import ExportResult, SnapshotWriter
from .tracking import ChangeTracker

logger = logging.getLogger(__name__)


# Poll interval bounds in seconds
MIN_POLL_INTERVAL = 0.5
MAX_POLL_INTERVAL = 2.0


def poll_interval_for(debounce_seconds: float) -> float:
    """Clamp a debounce window to the supported poll interval range."""
    return max(MIN_POLL_INTERVAL, min(debounce_seconds, MAX_POLL_INTERVAL))


class ExportState(str, Enum):
    """Export state machine."""
    IDLE = "idle"
    RUNNING = "running"
    RUNNING_WITH_PENDING = "running_with_pending"


class AutoExportScheduler:
    """
    Background exporter driven by the change-tracking dirty flag.

    ``tick()`` and ``run_export()`` can be called directly (tests, one-shot
    flushes); ``start()`` drives ``tick()`` from a daemon thread.
    """

    def __init__(
        self,
        writer: SnapshotWriter,
        tracker: ChangeTracker,
        poll_interval: float = 1.5,
    ):
        """
        Initialize the scheduler.

        Args:
            writer: Snapshot writer bound to the tracked store
            tracker: Change tracker bound to the same store
            poll_interval: Seconds between dirty-flag polls
        """
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")

        self.writer = writer
        self.tracker = tracker
        self.poll_interval = poll_interval

        self._state = ExportState.IDLE
        self._state_lock = threading.Lock()
        self._shutdown_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self.export_count = 0
        self.failure_count = 0
        self.last_result: Optional[ExportResult] = None

    @property
    def state(self) -> ExportState:
        with self._state_lock:
            return self._state

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def tick(self) -> bool:
        """
        Poll the dirty flag once.

        Returns:
            True if an export was requested
        """
        try:
            dirty = self.tracker.is_dirty()
        except Exception as e:
            logger.error(f"Could not read sync state: {e}")
            return False

        if not dirty:
            return False

        self.run_export()
        return True

    def run_export(self) -> None:
        """
        Run an export pass, or fold the request into the running one.

        If a pass is already in flight the request only marks a pending
        follow-up and returns immediately.
        """
        with self._state_lock:
            if self._state is not ExportState.IDLE:
                self._state = ExportState.RUNNING_WITH_PENDING
                logger.debug("Export in flight; follow-up pass scheduled")
                return
            self._state = ExportState.RUNNING

        while True:
            self._export_once()

            with self._state_lock:
                if self._state is ExportState.RUNNING_WITH_PENDING:
                    self._state = ExportState.RUNNING
                    continue
                self._state = ExportState.IDLE
                return

    def _export_once(self) -> None:
        """One export pass; failures are logged and left for the next tick."""
        try:
            version = self.tracker.get_state().version
            result = self.writer.export()
            cleared = self.tracker.clear_dirty(expected_version=version)
        except Exception as e:
            self.failure_count += 1
            logger.error(f"Auto-export failed, will retry on next tick: {e}")
            return

        self.export_count += 1
        self.last_result = result
        if not cleared:
            logger.debug("Store changed during export; leaving dirty flag set")

    # =========================================================================
    # Background loop
    # =========================================================================

    def start(self) -> None:
        """Start polling on a daemon thread. Calling twice is a no-op."""
        if self.is_running:
            return

        self._shutdown_event.clear()
        self._thread = threading.Thread(
            target=self._poll_loop,
            name="seedsync-auto-export",
            daemon=True,
        )
        self._thread.start()
        logger.info("Auto-export on change is active.")

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop polling and wait for an in-flight pass to finish."""
        self._shutdown_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Auto-export stopped.")

    def _poll_loop(self) -> None:
        while not self._shutdown_event.wait(self.poll_interval):
            try:
                self.tick()
            except Exception as e:
                logger.exception(f"Auto-export tick crashed: {e}")

    def get_status(self) -> Dict:
        return {
            "state": self.state.value,
            "running": self.is_running,
            "poll_interval": self.poll_interval,
            "export_count": self.export_count,
            "failure_count": self.failure_count,
            "last_changed_files": (
                self.last_result.changed_file_count if self.last_result else None
            ),
        }
