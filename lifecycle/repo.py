from __future__ import annotations

"""DB access layer for lifecycle intervals (the temporal interval store).

This module is intentionally *pure DB I/O*:
- no imports from the engine or membership (avoid circular dependencies)
- no business logic besides the store's own invariants:
    * at most one open interval per (owner, kind)
    * closing requires an open interval, and ended_at >= started_at
    * closed intervals are never modified

All timestamps are stored as ``YYYY-MM-DD HH:MM:SS`` strings.
"""

import logging
import sqlite3
from typing import List, Optional

from roster_time import require_ts

from .errors import ConflictError, NotFoundError
from .types import EntityRef, Interval, IntervalKind

logger = logging.getLogger(__name__)

_COLUMNS = "interval_id, owner_type, owner_id, kind, started_at, ended_at"


def _row_to_interval(r) -> Interval:
    return Interval(
        interval_id=int(r[0]),
        owner_type=str(r[1]),
        owner_id=int(r[2]),
        kind=IntervalKind(str(r[3])),
        started_at=str(r[4]),
        ended_at=str(r[5]) if r[5] is not None else None,
    )


def _kind(kind: IntervalKind | str) -> IntervalKind:
    return kind if isinstance(kind, IntervalKind) else IntervalKind(str(kind))


def list_intervals(
    cur: sqlite3.Cursor,
    owner: EntityRef,
    *,
    kind: IntervalKind | str | None = None,
) -> List[Interval]:
    """Return the owner's audit trail ordered by started_at (then insertion)."""
    sql = f"SELECT {_COLUMNS} FROM lifecycle_intervals WHERE owner_type=? AND owner_id=?"
    params: list = [owner.entity_type, int(owner.entity_id)]
    if kind is not None:
        sql += " AND kind=?"
        params.append(_kind(kind).value)
    sql += " ORDER BY started_at ASC, interval_id ASC;"
    return [_row_to_interval(r) for r in cur.execute(sql, params).fetchall()]


def current_interval(cur: sqlite3.Cursor, owner: EntityRef, kind: IntervalKind | str) -> Optional[Interval]:
    """The open interval for (owner, kind), or None."""
    row = cur.execute(
        f"""
        SELECT {_COLUMNS}
        FROM lifecycle_intervals
        WHERE owner_type=? AND owner_id=? AND kind=? AND ended_at IS NULL
        ORDER BY started_at DESC, interval_id DESC
        LIMIT 1;
        """,
        (owner.entity_type, int(owner.entity_id), _kind(kind).value),
    ).fetchone()
    return _row_to_interval(row) if row is not None else None


def previous_interval(cur: sqlite3.Cursor, owner: EntityRef, kind: IntervalKind | str) -> Optional[Interval]:
    """The most recently closed interval for (owner, kind), or None."""
    row = cur.execute(
        f"""
        SELECT {_COLUMNS}
        FROM lifecycle_intervals
        WHERE owner_type=? AND owner_id=? AND kind=? AND ended_at IS NOT NULL
        ORDER BY ended_at DESC, interval_id DESC
        LIMIT 1;
        """,
        (owner.entity_type, int(owner.entity_id), _kind(kind).value),
    ).fetchone()
    return _row_to_interval(row) if row is not None else None


def has_future_open(cur: sqlite3.Cursor, owner: EntityRef, kind: IntervalKind | str, *, as_of: str) -> bool:
    """True iff the open interval for (owner, kind) starts after ``as_of`` (pending)."""
    row = cur.execute(
        """
        SELECT 1
        FROM lifecycle_intervals
        WHERE owner_type=? AND owner_id=? AND kind=? AND ended_at IS NULL AND started_at > ?
        LIMIT 1;
        """,
        (owner.entity_type, int(owner.entity_id), _kind(kind).value, require_ts(as_of, field="as_of")),
    ).fetchone()
    return row is not None


def open_interval(
    cur: sqlite3.Cursor,
    owner: EntityRef,
    kind: IntervalKind | str,
    *,
    started_at: str,
    now: str,
) -> Interval:
    """Create a new open interval. Raises ConflictError if one is already open."""
    k = _kind(kind)
    start = require_ts(started_at, field="started_at")
    existing = current_interval(cur, owner, k)
    if existing is not None:
        raise ConflictError(
            f"{owner} already has an open {k.value} interval",
            details={"owner": str(owner), "kind": k.value, "interval_id": existing.interval_id},
        )
    try:
        cur.execute(
            """
            INSERT INTO lifecycle_intervals(owner_type, owner_id, kind, started_at, ended_at, created_at, updated_at)
            VALUES (?, ?, ?, ?, NULL, ?, ?);
            """,
            (owner.entity_type, int(owner.entity_id), k.value, start, str(now), str(now)),
        )
    except sqlite3.IntegrityError as exc:
        # Only reachable when the check above raced another writer.
        logger.warning("LIFECYCLE_OPEN_INTERVAL_CONFLICT owner=%s kind=%s", owner, k.value, exc_info=True)
        raise ConflictError(
            f"{owner} already has an open {k.value} interval",
            details={"owner": str(owner), "kind": k.value},
        ) from exc
    return Interval(
        interval_id=int(cur.lastrowid),
        owner_type=owner.entity_type,
        owner_id=int(owner.entity_id),
        kind=k,
        started_at=start,
        ended_at=None,
    )


def close_interval(
    cur: sqlite3.Cursor,
    owner: EntityRef,
    kind: IntervalKind | str,
    *,
    ended_at: str,
    now: str,
) -> Interval:
    """Set ended_at on the open interval. Raises NotFoundError if none is open."""
    k = _kind(kind)
    end = require_ts(ended_at, field="ended_at")
    cur_iv = current_interval(cur, owner, k)
    if cur_iv is None:
        raise NotFoundError(
            f"{owner} has no open {k.value} interval",
            details={"owner": str(owner), "kind": k.value},
        )
    if end < cur_iv.started_at:
        raise ValueError(
            f"{k.value} for {owner} cannot end at {end}; it started at {cur_iv.started_at}"
        )
    cur.execute(
        "UPDATE lifecycle_intervals SET ended_at=?, updated_at=? WHERE interval_id=? AND ended_at IS NULL;",
        (end, str(now), int(cur_iv.interval_id)),
    )
    return Interval(
        interval_id=cur_iv.interval_id,
        owner_type=cur_iv.owner_type,
        owner_id=cur_iv.owner_id,
        kind=k,
        started_at=cur_iv.started_at,
        ended_at=end,
    )


def redate_open_interval(
    cur: sqlite3.Cursor,
    owner: EntityRef,
    kind: IntervalKind | str,
    *,
    started_at: str,
    now: str,
) -> Interval:
    """Move the start of the open interval (used for re-dating a pending interval)."""
    k = _kind(kind)
    start = require_ts(started_at, field="started_at")
    cur_iv = current_interval(cur, owner, k)
    if cur_iv is None:
        raise NotFoundError(
            f"{owner} has no open {k.value} interval",
            details={"owner": str(owner), "kind": k.value},
        )
    cur.execute(
        "UPDATE lifecycle_intervals SET started_at=?, updated_at=? WHERE interval_id=? AND ended_at IS NULL;",
        (start, str(now), int(cur_iv.interval_id)),
    )
    return Interval(
        interval_id=cur_iv.interval_id,
        owner_type=cur_iv.owner_type,
        owner_id=cur_iv.owner_id,
        kind=k,
        started_at=start,
        ended_at=None,
    )


def count_open_duplicates(cur: sqlite3.Cursor) -> int:
    """Number of (owner, kind) pairs with more than one open interval (integrity check)."""
    row = cur.execute(
        """
        SELECT COUNT(*) FROM (
            SELECT owner_type, owner_id, kind
            FROM lifecycle_intervals
            WHERE ended_at IS NULL
            GROUP BY owner_type, owner_id, kind
            HAVING COUNT(*) > 1
        );
        """
    ).fetchone()
    return int(row[0] or 0)
