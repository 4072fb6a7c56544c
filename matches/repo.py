from __future__ import annotations

"""DB access layer for the match type catalogue (pure DB I/O)."""

import sqlite3
from typing import List

from .types import MatchTypeTemplate

_COLUMNS = "match_type_id, name, slug, number_of_sides, number_of_competitors"


def _row_to_template(r) -> MatchTypeTemplate:
    return MatchTypeTemplate(
        match_type_id=int(r[0]),
        name=str(r[1]),
        slug=str(r[2]),
        number_of_sides=int(r[3]) if r[3] is not None else None,
        number_of_competitors=int(r[4]) if r[4] is not None else None,
    )


def list_match_types(cur: sqlite3.Cursor) -> List[MatchTypeTemplate]:
    rows = cur.execute(f"SELECT {_COLUMNS} FROM match_types ORDER BY match_type_id ASC;").fetchall()
    return [_row_to_template(r) for r in rows]


def get_match_type(cur: sqlite3.Cursor, key: int | str) -> MatchTypeTemplate:
    """Look a match type up by id (int or digit string) or slug. KeyError if unknown."""
    s = str(key).strip()
    if s.isdigit():
        row = cur.execute(f"SELECT {_COLUMNS} FROM match_types WHERE match_type_id=?;", (int(s),)).fetchone()
    else:
        row = cur.execute(f"SELECT {_COLUMNS} FROM match_types WHERE slug=?;", (s.lower(),)).fetchone()
    if row is None:
        raise KeyError(f"match type not found: {key}")
    return _row_to_template(row)
