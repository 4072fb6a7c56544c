from __future__ import annotations

"""DB access layer for composite memberships.

Pure DB I/O (no lifecycle rules). A membership is current while ``left_at`` is
NULL; rows are never deleted, so the table doubles as the membership history.
"""

import sqlite3
from typing import Any, Dict, List, Optional

from lifecycle.errors import InvalidMembershipError
from lifecycle.types import EntityRef
from roster_time import require_ts

_COLUMNS = "membership_id, composite_type, composite_id, member_type, member_id, joined_at, left_at"


def _row_to_dict(r) -> Dict[str, Any]:
    return {
        "membership_id": int(r[0]),
        "composite_type": str(r[1]),
        "composite_id": int(r[2]),
        "member_type": str(r[3]),
        "member_id": int(r[4]),
        "joined_at": str(r[5]),
        "left_at": str(r[6]) if r[6] is not None else None,
    }


def current_members(cur: sqlite3.Cursor, composite: EntityRef) -> List[EntityRef]:
    rows = cur.execute(
        """
        SELECT member_type, member_id
        FROM memberships
        WHERE composite_type=? AND composite_id=? AND left_at IS NULL
        ORDER BY joined_at ASC, membership_id ASC;
        """,
        (composite.entity_type, int(composite.entity_id)),
    ).fetchall()
    return [EntityRef(str(r[0]), int(r[1])) for r in rows]


def current_composites(cur: sqlite3.Cursor, member: EntityRef) -> List[EntityRef]:
    """Composites the member currently belongs to (at most one per composite type)."""
    rows = cur.execute(
        """
        SELECT composite_type, composite_id
        FROM memberships
        WHERE member_type=? AND member_id=? AND left_at IS NULL
        ORDER BY composite_type ASC, membership_id ASC;
        """,
        (member.entity_type, int(member.entity_id)),
    ).fetchall()
    return [EntityRef(str(r[0]), int(r[1])) for r in rows]


def current_composite(cur: sqlite3.Cursor, member: EntityRef, composite_type: str) -> Optional[EntityRef]:
    for ref in current_composites(cur, member):
        if ref.entity_type == composite_type:
            return ref
    return None


def add_member(
    cur: sqlite3.Cursor,
    composite: EntityRef,
    member: EntityRef,
    *,
    joined_at: str,
    now: str,
) -> int:
    existing = current_composite(cur, member, composite.entity_type)
    if existing is not None:
        raise InvalidMembershipError(
            f"{member} is already a current member of {existing}",
            details={"member": str(member), "composite": str(existing)},
        )
    try:
        cur.execute(
            """
            INSERT INTO memberships(composite_type, composite_id, member_type, member_id, joined_at, left_at, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, NULL, ?, ?);
            """,
            (
                composite.entity_type,
                int(composite.entity_id),
                member.entity_type,
                int(member.entity_id),
                require_ts(joined_at, field="joined_at"),
                str(now),
                str(now),
            ),
        )
    except sqlite3.IntegrityError as exc:
        raise InvalidMembershipError(
            f"{member} cannot join {composite}",
            details={"member": str(member), "composite": str(composite)},
        ) from exc
    return int(cur.lastrowid)


def remove_member(
    cur: sqlite3.Cursor,
    composite: EntityRef,
    member: EntityRef,
    *,
    left_at: str,
    now: str,
) -> None:
    left = require_ts(left_at, field="left_at")
    row = cur.execute(
        """
        SELECT membership_id, joined_at
        FROM memberships
        WHERE composite_type=? AND composite_id=? AND member_type=? AND member_id=? AND left_at IS NULL;
        """,
        (composite.entity_type, int(composite.entity_id), member.entity_type, int(member.entity_id)),
    ).fetchone()
    if row is None:
        raise InvalidMembershipError(
            f"{member} is not a current member of {composite}",
            details={"member": str(member), "composite": str(composite)},
        )
    if left < str(row[1]):
        raise ValueError(f"{member} cannot leave {composite} at {left}; joined at {row[1]}")
    cur.execute(
        "UPDATE memberships SET left_at=?, updated_at=? WHERE membership_id=?;",
        (left, str(now), int(row[0])),
    )


def list_memberships(cur: sqlite3.Cursor, composite: EntityRef) -> List[Dict[str, Any]]:
    """Full membership history of a composite, oldest first."""
    rows = cur.execute(
        f"""
        SELECT {_COLUMNS}
        FROM memberships
        WHERE composite_type=? AND composite_id=?
        ORDER BY joined_at ASC, membership_id ASC;
        """,
        (composite.entity_type, int(composite.entity_id)),
    ).fetchall()
    return [_row_to_dict(r) for r in rows]
