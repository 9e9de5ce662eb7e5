"""
Shared test fixtures and configuration for pytest.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Generator

import pytest

# Add src directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from seedsync.okr_schema import create_schema  # noqa: E402
from seedsync.registry import TableRegistry, TableSpec  # noqa: E402
from seedsync.store.sqlite_store import SqliteStore  # noqa: E402
from seedsync.tracking import ChangeTracker  # noqa: E402


TEAMS_PODS_SCHEMA = """
CREATE TABLE teams (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL
);
CREATE TABLE pods (
    id TEXT PRIMARY KEY,
    teamId TEXT NOT NULL REFERENCES teams(id),
    name TEXT NOT NULL
);
CREATE TABLE notes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    body TEXT NOT NULL
);
"""


# ============================================================================
# Pytest hooks
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "slow: Tests that take a long time to run")


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def clean_seedsync_env(monkeypatch):
    """Keep SEEDSYNC_* variables from the developer's shell out of tests."""
    for name in (
        "SEEDSYNC_DB_PATH",
        "SEEDSYNC_SEEDS_DIR",
        "SEEDSYNC_DEBOUNCE_SECONDS",
        "SEEDSYNC_AUTO_EXPORT",
        "SEEDSYNC_BACKUP_DIR",
        "SEEDSYNC_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def reset_seedsync_logging():
    """Drop handlers the CLI attaches so each test starts unconfigured."""
    yield
    package_logger = logging.getLogger("seedsync")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def seeds_dir(tmp_path: Path) -> Path:
    """Empty seeds directory path (not created)."""
    return tmp_path / "seeds"


@pytest.fixture
def small_registry() -> TableRegistry:
    """Registry for the teams/pods/notes schema."""
    return TableRegistry([
        TableSpec("teams"),
        TableSpec("pods"),
        TableSpec("notes", autoincrement=True),
    ])


@pytest.fixture
def small_store(tmp_path: Path) -> Generator[SqliteStore, None, None]:
    """File-backed store with teams, pods (FK to teams) and notes."""
    store = SqliteStore(tmp_path / "small.sqlite")
    store.executescript(TEAMS_PODS_SCHEMA)
    yield store
    store.close()


@pytest.fixture
def small_tracker(small_store, small_registry) -> ChangeTracker:
    tracker = ChangeTracker(small_store, small_registry)
    tracker.ensure_state_table()
    return tracker


@pytest.fixture
def okr_store(tmp_path: Path) -> Generator[SqliteStore, None, None]:
    """File-backed store with the full OKR schema and no rows."""
    store = SqliteStore(tmp_path / "kr.sqlite")
    create_schema(store)
    yield store
    store.close()


@pytest.fixture
def write_seed():
    """Return a helper that writes one table seed file."""
    def _write(seeds_dir: Path, table: str, rows) -> Path:
        seeds_dir.mkdir(parents=True, exist_ok=True)
        path = seeds_dir / f"{table}.json"
        path.write_text(json.dumps(rows, indent=2) + "\n", encoding="utf-8")
        return path
    return _write


@pytest.fixture
def populate_small(small_store) -> SqliteStore:
    """Small store with two teams and one pod."""
    with small_store.transaction() as conn:
        conn.execute("INSERT INTO teams (id, name) VALUES ('t2', 'Support')")
        conn.execute("INSERT INTO teams (id, name) VALUES ('t1', 'Ops')")
        conn.execute("INSERT INTO pods (id, teamId, name) VALUES ('p1', 't1', 'Handoff')")
    return small_store


@pytest.fixture
def make_small_store(tmp_path: Path):
    """Factory for additional teams/pods/notes stores, closed at teardown."""
    stores = []

    def _make(name: str) -> SqliteStore:
        store = SqliteStore(tmp_path / f"{name}.sqlite")
        store.executescript(TEAMS_PODS_SCHEMA)
        stores.append(store)
        return store

    yield _make
    for store in stores:
        store.close()
