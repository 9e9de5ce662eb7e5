#!/usr/bin/env python3
"""
CLI for seed export/import/validate/backup operations.

Usage:
    python -m seedsync.seed_cli export   [--db server/kr.sqlite] [--seeds-dir server/seeds/json]
    python -m seedsync.seed_cli import   [--db ...] [--seeds-dir ...]
    python -m seedsync.seed_cli validate [--db ...]
    python -m seedsync.seed_cli backup   [--db ...] [--seeds-dir ...] [--backup-dir ...]

Each command opens the store, performs one call, closes the store and exits
0 on success or 1 on failure.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from seedsync.backup import BackupService
from seedsync.config.config_loader import SyncConfig, load_config
from seedsync.core.exceptions import SeedSyncError, StoreError
from seedsync.core.logging import configure_logging
from seedsync.schema_check import validate_schema
from seedsync.snapshot.loader import SnapshotLoader
from seedsync.snapshot.writer import SnapshotWriter
from seedsync.store.sqlite_store import SqliteStore


logger = logging.getLogger("seedsync.cli")


def build_config(args: argparse.Namespace) -> SyncConfig:
    """Load config, then apply command-line overrides."""
    config = load_config(args.config)
    if args.db:
        config.db_path = args.db
    if getattr(args, "seeds_dir", None):
        config.seeds_dir = args.seeds_dir
    if getattr(args, "backup_dir", None):
        config.backup_dir = args.backup_dir
    return config


def open_store(config: SyncConfig) -> SqliteStore:
    """Open the configured database, which must already exist."""
    if not Path(config.db_path).exists():
        raise StoreError(f"Database not found: {config.db_path}")
    return SqliteStore(config.db_path)


def cmd_export(args: argparse.Namespace, config: SyncConfig) -> int:
    """Export the store to JSON seeds."""
    with open_store(config) as store:
        writer = SnapshotWriter(store, config.seeds_dir, schema_version=config.schema_version)
        result = writer.export()

    print(f"Exported {len(result.tables)} table(s) to {config.seeds_dir} "
          f"({result.changed_file_count} file write(s)).")
    if args.json:
        print(json.dumps({
            "changedFiles": result.changed_file_count,
            "changedTables": result.changed_tables,
            "rowCounts": result.row_counts,
        }, indent=2))
    return 0


def cmd_import(args: argparse.Namespace, config: SyncConfig) -> int:
    """Import JSON seeds into the store."""
    with open_store(config) as store:
        result = SnapshotLoader(store, config.seeds_dir).load()

    print(f"Imported {result.total_rows} row(s) into {len(result.rows_inserted)} table(s) "
          f"from {config.seeds_dir}.")
    if result.skipped_tables:
        print(f"Tables without seed rows: {', '.join(result.skipped_tables)}")
    if args.json:
        print(json.dumps({
            "rowsInserted": result.rows_inserted,
            "skippedTables": result.skipped_tables,
        }, indent=2))
    return 0


def cmd_validate(args: argparse.Namespace, config: SyncConfig) -> int:
    """Report tables missing from the registry."""
    with open_store(config) as store:
        info = validate_schema(store)

    print(info.summary())
    if info.has_new_tables:
        print("Schema changes detected - update the table registry if the new tables have dependencies.")
    else:
        print("Database schema is in sync")
    return 0


def cmd_backup(args: argparse.Namespace, config: SyncConfig) -> int:
    """Export seeds and write today's database copy."""
    with open_store(config) as store:
        result = BackupService(store, config.seeds_dir, backup_dir=config.backup_dir).run_backup()

    status = "written" if result.snapshot_created else "already current"
    print(f"Backup complete in {result.duration_ms}ms; {result.updated_seed_files} seed file(s) "
          f"updated; snapshot {status}: {result.snapshot_path}")
    return 0


COMMANDS = {
    "export": cmd_export,
    "import": cmd_import,
    "validate": cmd_validate,
    "backup": cmd_backup,
}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="OKR tracker seed synchronization CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Write the database out as JSON seeds
    python -m seedsync.seed_cli export

    # Replace the database contents with the JSON seeds
    python -m seedsync.seed_cli import --seeds-dir server/seeds/json

    # Check for tables the registry does not know about
    python -m seedsync.seed_cli validate
        """,
    )

    # Shared options live on every subcommand so the per-command entry points accept them
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose/debug logging",
    )
    common.add_argument("--config", type=Path, help="Path to a YAML config file")
    common.add_argument("--db", type=Path, help="Path to the SQLite database")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    export_parser = subparsers.add_parser("export", parents=[common], help="Export SQLite to JSON seeds")
    export_parser.add_argument("--seeds-dir", type=Path, help="Seeds directory")
    export_parser.add_argument("--json", action="store_true", help="Also print a JSON report")

    import_parser = subparsers.add_parser("import", parents=[common], help="Import JSON seeds into SQLite")
    import_parser.add_argument("--seeds-dir", type=Path, help="Seeds directory")
    import_parser.add_argument("--json", action="store_true", help="Also print a JSON report")

    subparsers.add_parser("validate", parents=[common], help="Check the schema against the table registry")

    backup_parser = subparsers.add_parser("backup", parents=[common], help="Export seeds and copy the database")
    backup_parser.add_argument("--seeds-dir", type=Path, help="Seeds directory")
    backup_parser.add_argument("--backup-dir", type=Path, help="Directory for database copies")

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    load_dotenv()
    args = parse_args(argv)

    handler = COMMANDS.get(args.command)
    if handler is None:
        print("No command specified. Use --help for usage.", file=sys.stderr)
        return 1

    try:
        config = build_config(args)
        level = logging.DEBUG if args.verbose else logging.getLevelName(config.log_level.upper())
        configure_logging(level=level, log_dir=config.log_dir, log_name=f"seedsync_{args.command}")
        return handler(args, config)
    except SeedSyncError as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"{args.command.capitalize()} failed: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1


def export_main() -> int:
    return main(["export"] + sys.argv[1:])


def import_main() -> int:
    return main(["import"] + sys.argv[1:])


def validate_main() -> int:
    return main(["validate"] + sys.argv[1:])


if __name__ == "__main__":
    sys.exit(main())
