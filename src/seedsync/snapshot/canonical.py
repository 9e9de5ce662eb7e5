"""
Canonical row serialization for seed snapshots.

The seed files are meant to be diffed under version control, so the same
logical row set must always render to the same bytes:
- ``id`` is the first key of every row, remaining keys are sorted
- rows are ordered by the table's stable ordering key (applied at read time)
- pretty-printed with two-space indentation and one trailing newline
"""

import json
from typing import Any, Dict, Iterable, List


def stable_row(row: Dict[str, Any]) -> Dict[str, Any]:
    """
    Re-key a row with ``id`` first and the other columns alphabetically.

    Args:
        row: Row mapping as read from the store

    Returns:
        New dict with canonical key order
    """
    ordered: Dict[str, Any] = {}
    if "id" in row:
        ordered["id"] = row["id"]
    for key in sorted(k for k in row if k != "id"):
        ordered[key] = row[key]
    return ordered


def render_json(value: Any) -> str:
    """Pretty-print a JSON value terminated by a single newline."""
    return json.dumps(value, indent=2, ensure_ascii=False, default=_json_default) + "\n"


def render_rows(rows: Iterable[Dict[str, Any]]) -> str:
    """Render rows as the canonical content of a table's seed file."""
    ordered: List[Dict[str, Any]] = [stable_row(row) for row in rows]
    return render_json(ordered)


def _json_default(obj: Any) -> Any:
    """Serialize the few non-JSON scalars SQLite can hand back."""
    if isinstance(obj, (bytes, bytearray, memoryview)):
        return bytes(obj).hex()
    if hasattr(obj, "isoformat"):
        return obj.isoformat()
    return str(obj)
