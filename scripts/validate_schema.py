#!/usr/bin/env python3
"""
Report tables missing from the seed table registry.

Usage:
    python scripts/validate_schema.py [--db server/kr.sqlite] [--config config.yaml]
"""

import sys
from pathlib import Path

# Add src directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from seedsync.seed_cli import validate_main  # noqa: E402


if __name__ == "__main__":
    sys.exit(validate_main())
