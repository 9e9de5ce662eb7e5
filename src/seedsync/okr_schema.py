"""
OKR tracker application schema and default seed data.

The sync engine never originates row content; this module is the
application-side collaborator that bootstrap uses to create the tables and
seed a fresh store when no snapshot exists yet.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from .store.sqlite_store import SqliteStore

logger = logging.getLogger(__name__)


OKR_SCHEMA = """
CREATE TABLE IF NOT EXISTS organizations (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS functions (
    id TEXT PRIMARY KEY,
    organizationId TEXT REFERENCES organizations(id),
    name TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS teams (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    color TEXT
);
CREATE TABLE IF NOT EXISTS pods (
    id TEXT PRIMARY KEY,
    teamId TEXT NOT NULL REFERENCES teams(id),
    name TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS individuals (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    email TEXT,
    teamId TEXT NOT NULL REFERENCES teams(id),
    podId TEXT REFERENCES pods(id),
    role TEXT NOT NULL,
    discipline TEXT
);
CREATE TABLE IF NOT EXISTS objectives (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS krs (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    unit TEXT NOT NULL,
    aggregation TEXT NOT NULL,
    objectiveId TEXT REFERENCES objectives(id),
    teamId TEXT REFERENCES teams(id),
    podId TEXT REFERENCES pods(id),
    driId TEXT REFERENCES individuals(id)
);
CREATE TABLE IF NOT EXISTS objective_teams (
    objectiveId TEXT NOT NULL REFERENCES objectives(id),
    teamId TEXT NOT NULL REFERENCES teams(id),
    PRIMARY KEY (objectiveId, teamId)
);
CREATE TABLE IF NOT EXISTS baselines (
    id TEXT PRIMARY KEY,
    version INTEGER NOT NULL,
    lockedAt TEXT NOT NULL,
    lockedBy TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS baseline_plan_values (
    baselineId TEXT NOT NULL REFERENCES baselines(id),
    krId TEXT NOT NULL REFERENCES krs(id),
    weekKey TEXT NOT NULL,
    value REAL,
    PRIMARY KEY (baselineId, krId, weekKey)
);
CREATE TABLE IF NOT EXISTS plan_values (
    krId TEXT NOT NULL REFERENCES krs(id),
    weekKey TEXT NOT NULL,
    value REAL,
    lastModifiedAt TEXT,
    lastModifiedBy TEXT,
    PRIMARY KEY (krId, weekKey)
);
CREATE TABLE IF NOT EXISTS actual_values (
    krId TEXT NOT NULL REFERENCES krs(id),
    weekKey TEXT NOT NULL,
    value REAL,
    lastModifiedAt TEXT,
    lastModifiedBy TEXT,
    PRIMARY KEY (krId, weekKey)
);
CREATE TABLE IF NOT EXISTS initiatives (
    id TEXT PRIMARY KEY,
    krId TEXT NOT NULL REFERENCES krs(id),
    name TEXT NOT NULL,
    impact REAL NOT NULL,
    confidence REAL NOT NULL,
    isPlaceholder INTEGER NOT NULL,
    status TEXT
);
CREATE TABLE IF NOT EXISTS initiative_weekly (
    initiativeId TEXT NOT NULL REFERENCES initiatives(id),
    weekKey TEXT NOT NULL,
    impact REAL,
    confidence REAL,
    lastModifiedAt TEXT,
    lastModifiedBy TEXT,
    PRIMARY KEY (initiativeId, weekKey)
);
CREATE TABLE IF NOT EXISTS app_settings (
    key TEXT PRIMARY KEY,
    value TEXT
);
"""


# Minimal default organization, mirroring the app's first-run defaults
DEFAULT_SEED: dict[str, list[dict[str, Any]]] = {
    "organizations": [
        {"id": "org-merchant", "name": "Merchant"},
    ],
    "teams": [
        {"id": "team-live-order-experience", "name": "Live Order Experience", "color": "#2E86AB"},
        {"id": "team-go-to-market", "name": "Go-To-Market", "color": "#8E44AD"},
        {"id": "team-support", "name": "Support", "color": "#27AE60"},
    ],
    "pods": [
        {"id": "pod-dasher-handoff", "teamId": "team-live-order-experience", "name": "Dasher Handoff Pod"},
        {"id": "pod-cancellations", "teamId": "team-live-order-experience", "name": "Cancellations Pod"},
        {"id": "pod-workforce-management", "teamId": "team-support", "name": "Workforce Management Pod"},
        {"id": "pod-menu", "teamId": "team-go-to-market", "name": "Menu Pod"},
    ],
    "individuals": [
        {"id": "ind-ashley-tran", "name": "Ashley Tran", "email": "ashley.tran@example.com",
         "teamId": "team-live-order-experience", "podId": None, "role": "team_lead",
         "discipline": "product"},
        {"id": "ind-jamie-li", "name": "Jamie Li", "email": None,
         "teamId": "team-live-order-experience", "podId": "pod-dasher-handoff",
         "role": "pod_lead", "discipline": "engineering"},
    ],
    "objectives": [
        {"id": "obj-loe", "name": "Deliver reliable live order flows"},
        {"id": "obj-support", "name": "Elevate support efficiency & quality"},
    ],
    "objective_teams": [
        {"objectiveId": "obj-loe", "teamId": "team-live-order-experience"},
        {"objectiveId": "obj-support", "teamId": "team-support"},
    ],
    "krs": [
        {"id": "kr-handoff-failure-rate", "name": "Reduce handoff failure rate: 3.5 → 2.0 (%)",
         "unit": "percent", "aggregation": "snapshot", "objectiveId": "obj-loe",
         "teamId": "team-live-order-experience", "podId": "pod-dasher-handoff",
         "driId": "ind-jamie-li"},
    ],
    "initiatives": [
        {"id": "i-loe-handoff-retries", "krId": "kr-handoff-failure-rate",
         "name": "Optimize retries & backoff", "impact": -0.6, "confidence": 0.8,
         "isPlaceholder": 0, "status": "at_risk"},
    ],
    "app_settings": [
        {"key": "period", "value": json.dumps({"startISO": "2025-09-01", "endISO": "2025-11-30"})},
        {"key": "phase", "value": json.dumps("execution")},
        {"key": "reportingDateISO", "value": json.dumps("2025-09-13")},
    ],
}


def create_schema(store: SqliteStore) -> None:
    """Create the OKR tables if they do not exist."""
    store.executescript(OKR_SCHEMA)
    logger.debug("OKR schema ensured")


def seed_if_empty(store: SqliteStore) -> int:
    """
    Insert the default organization when the store has no teams.

    Returns:
        Number of rows inserted (0 if the store was already populated)
    """
    if store.count_rows("teams") > 0:
        return 0

    inserted = 0
    with store.transaction() as conn:
        # DEFAULT_SEED keys are already parents-first
        for table, rows in DEFAULT_SEED.items():
            for row in rows:
                columns = list(row)
                conn.execute(
                    f"INSERT INTO {table} ({', '.join(columns)}) "
                    f"VALUES ({', '.join('?' for _ in columns)})",
                    [row[c] for c in columns],
                )
                inserted += 1

    logger.info(f"Seeded empty store with {inserted} default rows")
    return inserted
