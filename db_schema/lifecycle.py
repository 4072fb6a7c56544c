# db_schema/lifecycle.py
"""SQLite SSOT schema: lifecycle intervals.

This module introduces:
  - lifecycle_intervals (append-only audit trail of employment, suspension,
    injury, retirement and activation spans)

Notes
-----
* Owners are polymorphic (owner_type, owner_id), so there is no foreign key.
* Rows are never deleted. Once ended_at is set the row is immutable.
* The partial unique index enforces "at most one open interval per
  (owner, kind)" at the storage level; the engine checks it first.
"""

from __future__ import annotations


def ddl(*, now: str, schema_version: str) -> str:  # noqa: ARG001
    """Return DDL SQL for lifecycle tables (as a single executescript string)."""

    return """

                CREATE TABLE IF NOT EXISTS lifecycle_intervals (
                    interval_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    owner_type TEXT NOT NULL
                        CHECK(owner_type IN ('wrestler', 'manager', 'referee', 'tag_team', 'stable', 'title')),
                    owner_id INTEGER NOT NULL,
                    kind TEXT NOT NULL
                        CHECK(kind IN ('employment', 'suspension', 'injury', 'retirement', 'activation')),

                    started_at TEXT NOT NULL,
                    ended_at TEXT,

                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,

                    CHECK(ended_at IS NULL OR ended_at >= started_at)
                );

                CREATE UNIQUE INDEX IF NOT EXISTS ux_lifecycle_intervals_open
                    ON lifecycle_intervals(owner_type, owner_id, kind)
                    WHERE ended_at IS NULL;

                CREATE INDEX IF NOT EXISTS idx_lifecycle_intervals_owner_kind_start
                    ON lifecycle_intervals(owner_type, owner_id, kind, started_at);

"""


def migrate(cur, *, ensure_columns) -> None:  # noqa: ARG001
    """No additive migrations yet."""
    return None
