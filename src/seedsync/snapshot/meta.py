"""
Snapshot metadata (``_meta.json``).
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional


META_FILENAME = "_meta.json"

# Bumped when the seed file layout changes
SCHEMA_VERSION = 1


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class SnapshotMeta:
    """Schema version, export time, exported tables and their row counts."""

    schema: int = SCHEMA_VERSION
    exported_at: str = ""
    tables: List[str] = field(default_factory=list)
    row_counts: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema": self.schema,
            "exportedAt": self.exported_at,
            "tables": list(self.tables),
            "rowCounts": dict(self.row_counts),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SnapshotMeta":
        return cls(
            schema=int(data.get("schema", SCHEMA_VERSION)),
            exported_at=data.get("exportedAt", ""),
            tables=list(data.get("tables", [])),
            row_counts=dict(data.get("rowCounts", {})),
        )

    @classmethod
    def load(cls, seeds_dir: Path) -> Optional["SnapshotMeta"]:
        """Load ``_meta.json`` from a seeds directory, or None if absent."""
        path = Path(seeds_dir) / META_FILENAME
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))
