# db_schema/membership.py
"""SQLite SSOT schema: composite membership (tag teams, stables).

A membership row is current while left_at is NULL. A member can be in at most
one current composite of each composite_type (one tag team, one stable).
"""

from __future__ import annotations


def ddl(*, now: str, schema_version: str) -> str:  # noqa: ARG001
    """Return DDL SQL for membership tables (as a single executescript string)."""

    return """

                CREATE TABLE IF NOT EXISTS memberships (
                    membership_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    composite_type TEXT NOT NULL
                        CHECK(composite_type IN ('tag_team', 'stable')),
                    composite_id INTEGER NOT NULL,
                    member_type TEXT NOT NULL
                        CHECK(member_type IN ('wrestler', 'manager', 'tag_team')),
                    member_id INTEGER NOT NULL,

                    joined_at TEXT NOT NULL,
                    left_at TEXT,

                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,

                    CHECK(left_at IS NULL OR left_at >= joined_at)
                );

                CREATE UNIQUE INDEX IF NOT EXISTS ux_memberships_current_member
                    ON memberships(composite_type, member_type, member_id)
                    WHERE left_at IS NULL;

                CREATE INDEX IF NOT EXISTS idx_memberships_composite
                    ON memberships(composite_type, composite_id, left_at);

"""


def migrate(cur, *, ensure_columns) -> None:  # noqa: ARG001
    """No additive migrations yet."""
    return None
