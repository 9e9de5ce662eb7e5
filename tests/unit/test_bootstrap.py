"""
Unit tests for process bootstrap.
"""

import json

import pytest

from seedsync.bootstrap import bootstrap_sync
from seedsync.config.config_loader import SyncConfig
from seedsync.okr_schema import DEFAULT_SEED
from seedsync.snapshot.meta import META_FILENAME
from seedsync.store.introspection import list_triggers
from seedsync.store.sqlite_store import SqliteStore
from seedsync.tracking import TRIGGER_PREFIX


@pytest.fixture
def config(tmp_path, seeds_dir):
    return SyncConfig(db_path=tmp_path / "kr.sqlite", seeds_dir=seeds_dir, auto_export=False)


class TestBootstrapSync:

    def test_empty_seeds_dir_seeds_and_exports(self, okr_store, config, seeds_dir):
        runtime = bootstrap_sync(okr_store, config)

        assert runtime.imported is False
        assert runtime.import_error is None
        assert okr_store.count_rows("teams") == len(DEFAULT_SEED["teams"])
        assert (seeds_dir / "organizations.json").exists()
        assert (seeds_dir / META_FILENAME).exists()
        assert runtime.tracker.is_dirty() is False
        assert len(list_triggers(okr_store.conn, TRIGGER_PREFIX)) == 15 * 3

    def test_existing_seeds_are_imported(self, okr_store, config, seeds_dir, tmp_path):
        bootstrap_sync(okr_store, config)
        expected = okr_store.select_rows("krs")

        fresh = SqliteStore(tmp_path / "fresh.sqlite")
        try:
            runtime = bootstrap_sync(fresh, config, seed_fn=lambda store: pytest.fail("seeded"))

            assert runtime.imported is True
            assert fresh.select_rows("krs") == expected
            assert runtime.tracker.is_dirty() is False
        finally:
            fresh.close()

    def test_writes_after_bootstrap_mark_dirty(self, okr_store, config):
        runtime = bootstrap_sync(okr_store, config)

        okr_store.execute("INSERT INTO teams (id, name) VALUES ('team-new', 'New')")

        assert runtime.tracker.is_dirty() is True
        runtime.scheduler.tick()
        assert runtime.tracker.is_dirty() is False

    def test_failed_import_keeps_store_and_tracks(self, okr_store, config, seeds_dir, write_seed):
        okr_store.execute("INSERT INTO teams (id, name) VALUES ('team-keep', 'Keep')")
        write_seed(seeds_dir, "organizations", [])
        write_seed(seeds_dir, "pods", [{"id": "pod-x", "teamId": "team-missing", "name": "X"}])

        runtime = bootstrap_sync(okr_store, config)

        assert runtime.imported is False
        assert runtime.import_error is not None
        assert [r["id"] for r in okr_store.select_rows("teams")] == ["team-keep"]
        assert runtime.tracker.get_state().suspended is False
        okr_store.execute("UPDATE teams SET name = 'Kept' WHERE id = 'team-keep'")
        assert runtime.tracker.is_dirty() is True

    def test_scheduler_started_when_auto_export(self, okr_store, config):
        config.auto_export = True
        runtime = bootstrap_sync(okr_store, config)
        try:
            assert runtime.scheduler.is_running is True
        finally:
            runtime.shutdown()

        assert runtime.scheduler.is_running is False

    def test_exported_seed_matches_default_rows(self, okr_store, config, seeds_dir):
        bootstrap_sync(okr_store, config)

        teams = json.loads((seeds_dir / "teams.json").read_text(encoding="utf-8"))
        assert [t["id"] for t in teams] == sorted(t["id"] for t in DEFAULT_SEED["teams"])
