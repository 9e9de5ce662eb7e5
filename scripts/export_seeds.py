#!/usr/bin/env python3
"""
Export the SQLite store to JSON seed files.

Usage:
    python scripts/export_seeds.py [--db server/kr.sqlite] [--config config.yaml]
"""

import sys
from pathlib import Path

# Add src directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from seedsync.seed_cli import export_main  # noqa: E402


if __name__ == "__main__":
    sys.exit(export_main())
