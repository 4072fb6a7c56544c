# db_schema/core.py
"""SQLite SSOT schema: roster entity tables.

This module contains *only* DDL and schema migrations.
It must not import RosterRepo (to avoid circular imports).

Every roster entity table shares the same lifecycle columns:
- status: derived projection of lifecycle_intervals (never authoritative)
- deleted_at: soft-delete marker (NULL while the row is live)
"""

from __future__ import annotations

import sqlite3
from typing import Callable, Dict, Mapping, Tuple


# Signature compatible with RosterRepo._ensure_table_columns(cur, table, columns)
EnsureColumnsFn = Callable[[sqlite3.Cursor, str, Mapping[str, str]], None]

# table -> descriptive columns (besides id/name/status/deleted_at/created_at/updated_at)
ENTITY_FIELDS: Dict[str, Tuple[Tuple[str, str], ...]] = {
    "wrestlers": (
        ("height_in", "INTEGER"),
        ("weight_lb", "INTEGER"),
        ("hometown", "TEXT"),
        ("signature_move", "TEXT"),
    ),
    "managers": (
        ("first_name", "TEXT"),
        ("last_name", "TEXT"),
    ),
    "referees": (
        ("first_name", "TEXT"),
        ("last_name", "TEXT"),
    ),
    "tag_teams": (("signature_move", "TEXT"),),
    "stables": (),
    "titles": (),
}


def _entity_table_ddl(table: str, fields: Tuple[Tuple[str, str], ...]) -> str:
    extra = "".join(f"\n                    {col} {typ}," for col, typ in fields)
    return f"""
                CREATE TABLE IF NOT EXISTS {table} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,{extra}
                    status TEXT NOT NULL,
                    deleted_at TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE UNIQUE INDEX IF NOT EXISTS ux_{table}_name ON {table}(name);
                CREATE INDEX IF NOT EXISTS idx_{table}_status ON {table}(status);
"""


def ddl(*, now: str, schema_version: str) -> str:
    """Return DDL SQL for core tables (as a single executescript string)."""
    meta = f"""
                CREATE TABLE IF NOT EXISTS meta (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );

                INSERT INTO meta(key, value) VALUES ('schema_version', '{schema_version}')
                ON CONFLICT(key) DO UPDATE SET value=excluded.value;
                INSERT OR IGNORE INTO meta(key, value) VALUES ('created_at', '{now}');
"""
    tables = [_entity_table_ddl(t, fields) for t, fields in ENTITY_FIELDS.items()]
    return meta + "\n".join(tables)


def migrate(cur: sqlite3.Cursor, *, ensure_columns: EnsureColumnsFn) -> None:
    """Apply post-DDL schema migrations.

    Databases created before soft delete existed lack deleted_at; descriptive
    columns added later are backfilled the same way.
    """
    for table, fields in ENTITY_FIELDS.items():
        cols = {"deleted_at": "TEXT"}
        cols.update({col: typ for col, typ in fields})
        ensure_columns(cur, table, cols)
