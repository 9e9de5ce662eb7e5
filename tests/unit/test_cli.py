"""
Unit tests for the seed CLI.
"""

import json

from seedsync.seed_cli import main, parse_args


class TestParseArgs:

    def test_subcommand_options(self, tmp_path):
        args = parse_args(["import", "--db", str(tmp_path / "a.sqlite"), "--seeds-dir", "s", "-v"])

        assert args.command == "import"
        assert args.db == tmp_path / "a.sqlite"
        assert str(args.seeds_dir) == "s"
        assert args.verbose is True

    def test_no_command(self):
        assert parse_args([]).command is None


class TestMain:
    """End-to-end runs of the CLI against a temp database."""

    def test_no_command_fails(self):
        assert main([]) == 1

    def test_export_then_import(self, okr_store, tmp_path, seeds_dir, capsys):
        db = str(okr_store.db_path)
        okr_store.execute("INSERT INTO teams (id, name) VALUES ('t1', 'Ops')")

        assert main(["export", "--db", db, "--seeds-dir", str(seeds_dir)]) == 0
        assert json.loads((seeds_dir / "teams.json").read_text(encoding="utf-8")) == [
            {"id": "t1", "color": None, "name": "Ops"},
        ]

        okr_store.execute("DELETE FROM teams")
        assert main(["import", "--db", db, "--seeds-dir", str(seeds_dir), "--json"]) == 0

        assert okr_store.count_rows("teams") == 1
        out = capsys.readouterr().out
        assert '"teams": 1' in out

    def test_import_failure_exits_1(self, okr_store, seeds_dir, write_seed):
        write_seed(seeds_dir, "pods", [{"id": "p1", "teamId": "missing", "name": "X"}])

        code = main(["import", "--db", str(okr_store.db_path), "--seeds-dir", str(seeds_dir)])

        assert code == 1

    def test_validate_reports_drift_but_succeeds(self, okr_store, capsys):
        okr_store.execute("CREATE TABLE audit_log (id INTEGER PRIMARY KEY)")

        assert main(["validate", "--db", str(okr_store.db_path)]) == 0
        assert "audit_log" in capsys.readouterr().out

    def test_validate_in_sync(self, okr_store, capsys):
        assert main(["validate", "--db", str(okr_store.db_path)]) == 0
        assert "in sync" in capsys.readouterr().out

    def test_missing_database_fails(self, tmp_path):
        db = tmp_path / "absent.sqlite"

        assert main(["validate", "--db", str(db)]) == 1
        assert not db.exists()

    def test_backup(self, okr_store, seeds_dir, tmp_path):
        code = main([
            "backup",
            "--db", str(okr_store.db_path),
            "--seeds-dir", str(seeds_dir),
            "--backup-dir", str(tmp_path / "bak"),
        ])

        assert code == 0
        assert len(list((tmp_path / "bak").glob("kr.sqlite.bak-*"))) == 1

    def test_config_file_paths(self, okr_store, seeds_dir, tmp_path):
        config = tmp_path / "config.yaml"
        config.write_text(
            f"sync:\n  db_path: '{okr_store.db_path}'\n  seeds_dir: '{seeds_dir}'\n",
            encoding="utf-8",
        )

        assert main(["export", "--config", str(config)]) == 0
        assert (seeds_dir / "teams.json").exists()
