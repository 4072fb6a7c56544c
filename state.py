"""Process-level state for the API server.

Only the database location and the clock live here. Roster data is never
cached in memory: SQLite is the single source of truth and every request opens
its own repo.
"""

from __future__ import annotations

from typing import Optional

from roster_time import Clock, wall_clock_ts

_DB_PATH: Optional[str] = None
_CLOCK: Clock = wall_clock_ts


def set_db_path(db_path: str) -> None:
    global _DB_PATH
    s = str(db_path or "").strip()
    if not s:
        raise ValueError("db_path must be a non-empty path")
    _DB_PATH = s


def get_db_path() -> str:
    if not _DB_PATH:
        raise RuntimeError("db_path is not configured (call state.set_db_path first)")
    return _DB_PATH


def reset_db_path() -> None:
    global _DB_PATH
    _DB_PATH = None


def set_clock(clock: Clock) -> None:
    """Override the request clock (tests, replays)."""
    global _CLOCK
    _CLOCK = clock


def get_clock() -> Clock:
    return _CLOCK


def reset_clock() -> None:
    global _CLOCK
    _CLOCK = wall_clock_ts
