# db_schema/matches.py
"""SQLite SSOT schema: match type catalogue.

number_of_sides / number_of_competitors are NULL for free-for-all formats
(battle royal, rumble, gauntlet), which leaves composition unconstrained.
"""

from __future__ import annotations

# (name, slug, number_of_sides, number_of_competitors)
MATCH_TYPE_SEED = (
    ("Singles", "singles", 2, 2),
    ("Tag Team", "tagteam", 2, 4),
    ("Triple Threat", "triple", 3, 3),
    ("Triangle", "triangle", 3, 3),
    ("Fatal 4 Way", "fatal4way", 4, 4),
    ("6 Man Tag Team", "6man", 2, 6),
    ("8 Man Tag Team", "8man", 2, 8),
    ("10 Man Tag Team", "10man", 2, 10),
    ("Two On One Handicap", "21handicap", 2, 3),
    ("Three On Two Handicap", "32handicap", 2, 5),
    ("Battle Royal", "battleroyal", None, None),
    ("Royal Rumble", "royalrumble", None, None),
    ("Tornado Tag Team", "tornadotag", 2, 4),
    ("Gauntlet", "gauntlet", None, None),
)


def _sql_int(v) -> str:
    return "NULL" if v is None else str(int(v))


def ddl(*, now: str, schema_version: str) -> str:  # noqa: ARG001
    """Return DDL SQL for match tables (as a single executescript string)."""
    seed = "\n".join(
        f"                INSERT OR IGNORE INTO match_types(name, slug, number_of_sides, number_of_competitors, created_at)"
        f" VALUES ('{name}', '{slug}', {_sql_int(sides)}, {_sql_int(comp)}, '{now}');"
        for name, slug, sides, comp in MATCH_TYPE_SEED
    )
    return f"""

                CREATE TABLE IF NOT EXISTS match_types (
                    match_type_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    slug TEXT NOT NULL UNIQUE,
                    number_of_sides INTEGER
                        CHECK(number_of_sides IS NULL OR number_of_sides >= 1),
                    number_of_competitors INTEGER
                        CHECK(number_of_competitors IS NULL OR number_of_competitors >= 1),
                    created_at TEXT NOT NULL
                );

{seed}

"""


def migrate(cur, *, ensure_columns) -> None:  # noqa: ARG001
    """No additive migrations yet."""
    return None
