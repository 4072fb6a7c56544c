# db_schema/init.py
"""Public entrypoint for applying the SQLite schema.

Each schema module exposes ``ddl(now=..., schema_version=...) -> str``; a
``migrate(cur, ensure_columns=...)`` hook is optional and covers additive
changes that ``CREATE TABLE IF NOT EXISTS`` cannot express.
"""

from __future__ import annotations

import sqlite3
from types import ModuleType
from typing import Iterable

from . import core, lifecycle, matches, membership
from .core import EnsureColumnsFn


# No cross-module foreign keys (owners are polymorphic), so the order is only
# entity tables first, then the tables that point at them, then seed data.
DEFAULT_MODULES = (
    core,
    lifecycle,
    membership,
    matches,
)


def apply_schema(
    cur: sqlite3.Cursor,
    *,
    now: str,
    schema_version: str,
    ensure_columns: EnsureColumnsFn,
    modules: Iterable[ModuleType] = DEFAULT_MODULES,
) -> None:
    """Create tables, seed the match catalogue and run migrations (idempotent).

    Migrations run only after every module's DDL, since a migration may touch a
    table another module creates.
    """
    mods = tuple(modules)
    for m in mods:
        cur.executescript(m.ddl(now=now, schema_version=schema_version))

    for m in mods:
        migrate = getattr(m, "migrate", None)
        if migrate is not None:
            migrate(cur, ensure_columns=ensure_columns)
