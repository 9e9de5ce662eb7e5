"""
Unit tests for the snapshot loader (JSON seeds -> store).
"""

import pytest

from seedsync.core.exceptions import SnapshotImportError
from seedsync.registry import TableRegistry, TableSpec
from seedsync.snapshot.loader import SnapshotLoader, read_table_rows, seeds_exist
from seedsync.snapshot.meta import META_FILENAME
from seedsync.snapshot.writer import SnapshotWriter
from seedsync.store.introspection import list_triggers
from seedsync.tracking import TRIGGER_PREFIX, ChangeTracker


def _snapshot_bytes(seeds_dir):
    return {
        p.name: p.read_bytes()
        for p in seeds_dir.glob("*.json")
        if p.name != META_FILENAME
    }


class TestSeedsExist:

    def test_missing_directory(self, seeds_dir, small_registry):
        assert seeds_exist(seeds_dir, small_registry) is False

    def test_first_table_file_marks_seeded(self, seeds_dir, small_registry, write_seed):
        write_seed(seeds_dir, "pods", [])
        assert seeds_exist(seeds_dir, small_registry) is False

        write_seed(seeds_dir, "teams", [])
        assert seeds_exist(seeds_dir, small_registry) is True


class TestReadTableRows:

    def test_missing_file(self, tmp_path):
        assert read_table_rows(tmp_path / "teams.json") is None

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "teams.json"
        path.write_text("[{not json", encoding="utf-8")

        assert read_table_rows(path) is None

    def test_not_an_array(self, tmp_path):
        path = tmp_path / "teams.json"
        path.write_text('{"id": "t1"}', encoding="utf-8")

        assert read_table_rows(path) is None

    def test_invalid_utf8(self, tmp_path):
        path = tmp_path / "teams.json"
        path.write_bytes(b"[\xff\xfe]")

        assert read_table_rows(path) is None


class TestSnapshotLoader:
    """Tests for SnapshotLoader.load()."""

    def test_round_trip_is_fixpoint(self, populate_small, small_registry, make_small_store, tmp_path):
        first = tmp_path / "first"
        second = tmp_path / "second"
        SnapshotWriter(populate_small, first, small_registry).export()

        fresh = make_small_store("fresh")
        SnapshotLoader(fresh, first, small_registry).load()
        SnapshotWriter(fresh, second, small_registry).export()

        assert _snapshot_bytes(first) == _snapshot_bytes(second)

    def test_replaces_existing_rows(self, populate_small, small_registry, seeds_dir, write_seed):
        write_seed(seeds_dir, "teams", [{"id": "t9", "name": "New"}])
        write_seed(seeds_dir, "pods", [])

        result = SnapshotLoader(populate_small, seeds_dir, small_registry).load()

        assert [r["id"] for r in populate_small.select_rows("teams")] == ["t9"]
        assert populate_small.count_rows("pods") == 0
        assert result.rows_inserted == {"teams": 1}
        assert "pods" in result.skipped_tables

    def test_foreign_key_violation_rolls_back(self, populate_small, small_registry, seeds_dir, write_seed):
        write_seed(seeds_dir, "teams", [{"id": "t1", "name": "Ops"}])
        write_seed(seeds_dir, "pods", [{"id": "p1", "teamId": "nope", "name": "Orphan"}])

        with pytest.raises(SnapshotImportError) as exc_info:
            SnapshotLoader(populate_small, seeds_dir, small_registry).load()

        assert exc_info.value.table == "pods"
        # Prior contents survive
        assert sorted(r["id"] for r in populate_small.select_rows("teams")) == ["t1", "t2"]
        assert populate_small.count_rows("pods") == 1

    def test_missing_and_malformed_files_tolerated(self, populate_small, small_registry, seeds_dir, write_seed):
        write_seed(seeds_dir, "teams", [{"id": "t1", "name": "Ops"}])
        (seeds_dir / "pods.json").write_text("not json", encoding="utf-8")

        result = SnapshotLoader(populate_small, seeds_dir, small_registry).load()

        assert populate_small.count_rows("teams") == 1
        assert populate_small.count_rows("pods") == 0
        assert result.skipped_tables == ["pods", "notes"]

    def test_invalid_utf8_file_skipped(self, populate_small, small_registry, seeds_dir, write_seed):
        tracker = ChangeTracker(populate_small, small_registry)
        tracker.install_triggers()
        write_seed(seeds_dir, "teams", [{"id": "t1", "name": "Ops"}])
        (seeds_dir / "pods.json").write_bytes(b"[\xff\xfe garbage]")

        result = SnapshotLoader(populate_small, seeds_dir, small_registry, tracker).load()

        assert populate_small.count_rows("teams") == 1
        assert populate_small.count_rows("pods") == 0
        assert "pods" in result.skipped_tables
        assert tracker.get_state().suspended is False
        assert len(list_triggers(populate_small.conn, TRIGGER_PREFIX)) == 9

    def test_unknown_column_fails(self, populate_small, small_registry, seeds_dir, write_seed):
        write_seed(seeds_dir, "teams", [{"id": "t1", "name": "Ops", "mascot": "owl"}])

        with pytest.raises(SnapshotImportError):
            SnapshotLoader(populate_small, seeds_dir, small_registry).load()

        assert populate_small.count_rows("teams") == 2

    def test_non_object_row_fails(self, populate_small, small_registry, seeds_dir, write_seed):
        write_seed(seeds_dir, "teams", ["t1"])

        with pytest.raises(SnapshotImportError):
            SnapshotLoader(populate_small, seeds_dir, small_registry).load()

    def test_missing_directory_fails_without_touching_store(self, populate_small, small_registry, tmp_path):
        tracker = ChangeTracker(populate_small, small_registry)
        tracker.install_triggers()

        with pytest.raises(SnapshotImportError):
            SnapshotLoader(populate_small, tmp_path / "absent", small_registry, tracker).load()

        assert populate_small.count_rows("teams") == 2
        assert tracker.get_state().suspended is False
        assert len(list_triggers(populate_small.conn, TRIGGER_PREFIX)) == 9

    def test_path_is_a_file_fails(self, populate_small, small_registry, tmp_path):
        path = tmp_path / "seeds"
        path.write_text("", encoding="utf-8")

        with pytest.raises(SnapshotImportError):
            SnapshotLoader(populate_small, path, small_registry).load()

    def test_tracking_restored_and_clean(self, populate_small, small_registry, seeds_dir, write_seed):
        tracker = ChangeTracker(populate_small, small_registry)
        tracker.install_triggers()
        tracker.mark_dirty()
        write_seed(seeds_dir, "teams", [{"id": "t1", "name": "Ops"}])

        SnapshotLoader(populate_small, seeds_dir, small_registry, tracker).load()

        state = tracker.get_state()
        assert state.dirty is False
        assert state.suspended is False
        assert len(list_triggers(populate_small.conn, TRIGGER_PREFIX)) == 9

        populate_small.execute("INSERT INTO teams (id, name) VALUES ('t3', 'After')")
        assert tracker.is_dirty() is True

    def test_autoincrement_sequence_advanced(self, small_store, small_registry, seeds_dir, write_seed):
        write_seed(seeds_dir, "teams", [])
        write_seed(seeds_dir, "notes", [{"id": 5, "body": "a"}, {"id": 9, "body": "b"}])

        SnapshotLoader(small_store, seeds_dir, small_registry).load()

        cursor = small_store.execute("INSERT INTO notes (body) VALUES ('next')")
        assert cursor.lastrowid == 10
        seq = small_store.fetch_one("SELECT seq FROM sqlite_sequence WHERE name = 'notes'")
        assert seq["seq"] == 10

    def test_autoincrement_sequence_lowered_to_snapshot(self, small_store, small_registry, seeds_dir, write_seed):
        small_store.execute("INSERT INTO notes (id, body) VALUES (50, 'old')")
        write_seed(seeds_dir, "teams", [])
        write_seed(seeds_dir, "notes", [{"id": 3, "body": "a"}])

        SnapshotLoader(small_store, seeds_dir, small_registry).load()

        seq = small_store.fetch_one("SELECT seq FROM sqlite_sequence WHERE name = 'notes'")
        assert seq["seq"] == 3

    def test_misdeclared_autoincrement_fails(self, populate_small, seeds_dir, write_seed):
        registry = TableRegistry([TableSpec("teams", autoincrement=True), TableSpec("pods")])
        write_seed(seeds_dir, "teams", [{"id": "t1", "name": "Ops"}])

        with pytest.raises(SnapshotImportError) as exc_info:
            SnapshotLoader(populate_small, seeds_dir, registry).load()

        assert exc_info.value.table == "teams"
        assert populate_small.count_rows("teams") == 2
