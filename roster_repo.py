# roster_repo.py
# Developer note:
# - SQLite DB is the single source of truth (SSOT) for roster data (tables managed here).
# - Excel files are import/export only (no runtime reads/writes).
# - The status column on entity tables is a cached projection; lifecycle_intervals are authoritative.
# - Entity ids are SQLite INTEGER PRIMARY KEYs; never reuse DataFrame indices as ids.
"""
RosterRepository: persisted-data SSOT (SQLite)

Goal:
- Excel is import/export only.
- All persisted roster reads/writes go through SQLite (via RosterRepo).
- Lifecycle rules live in lifecycle/ (LifecycleEngine); this module only stores rows.

Usage (CLI):
  python roster_repo.py init --db <db_path>
  python roster_repo.py import_roster --db <db_path> --excel roster.xlsx
  python roster_repo.py validate --db <db_path>
  python roster_repo.py export_roster --db <db_path> --excel roster_export.xlsx
  python roster_repo.py refresh_statuses --db <db_path>

Python:
  from roster_repo import RosterRepo
  repo = RosterRepo("<db_path>")
  repo.init_db()
  wrestlers = repo.list_entities("wrestler", status="bookable")
"""

from __future__ import annotations

import argparse
import contextlib
import logging
import re
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import config
from db_schema.core import ENTITY_FIELDS
from lifecycle import repo as lifecycle_repo
from lifecycle.config import DEFAULT_LIFECYCLE_CONFIG
from lifecycle.types import ENTITY_TYPES, EntityRef, EntityType, get_entity_type
from roster_time import Clock, require_ts, wall_clock_ts


# ----------------------------
# Helpers
# ----------------------------

_HEIGHT_RE = re.compile(r"^\s*(\d+)\s*'\s*(\d+)\s*\"?\s*$")
_WEIGHT_RE = re.compile(r"^\s*(\d+)\s*(?:lbs?)?\s*$", re.IGNORECASE)

logger = logging.getLogger(__name__)
_WARN_COUNTS: Dict[str, int] = {}


def _warn_limited(code: str, msg: str, *, limit: int = 5) -> None:
    n = _WARN_COUNTS.get(code, 0)
    if n < limit:
        logger.warning("%s %s", code, msg, exc_info=True)
    _WARN_COUNTS[code] = n + 1


def parse_height_in(value: Any) -> Optional[int]:
    """Convert \"6' 5\"\" (or a plain number of inches) to inches. If unknown, return None."""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        if isinstance(value, float) and value != value:
            return None
        return int(value)
    s = str(value).strip()
    if not s:
        return None
    m = _HEIGHT_RE.match(s)
    if m:
        return int(m.group(1)) * 12 + int(m.group(2))
    if s.isdigit():
        return int(s)
    _warn_limited("HEIGHT_PARSE_FAILED", f"value={value!r}", limit=3)
    return None


def parse_weight_lb(value: Any) -> Optional[int]:
    """Convert \"235 lbs\" to 235. If unknown, return None."""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        if isinstance(value, float) and value != value:
            return None
        return int(value)
    s = str(value).strip()
    if not s:
        return None
    m = _WEIGHT_RE.match(s)
    if m:
        return int(m.group(1))
    _warn_limited("WEIGHT_PARSE_FAILED", f"value={value!r}", limit=3)
    return None


def _clean_cell(value: Any) -> Any:
    # numpy scalars -> python scalars (sqlite3 cannot bind numpy.int64)
    if hasattr(value, "item") and not isinstance(value, (str, bytes)):
        value = value.item()
    # pandas NaN check without importing numpy directly
    if isinstance(value, float) and value != value:
        return None
    if isinstance(value, str):
        s = value.strip()
        return s or None
    return value


_FIELD_PARSERS = {
    "height_in": parse_height_in,
    "weight_lb": parse_weight_lb,
}


def _require_columns(cols: Sequence[str], required: Sequence[str], *, sheet: str) -> None:
    missing = [c for c in required if c not in cols]
    if missing:
        raise ValueError(f"Excel sheet {sheet!r} missing required columns: {missing}. Found: {list(cols)}")


def _field_names(et: EntityType) -> Tuple[str, ...]:
    return tuple(col for col, _ in ENTITY_FIELDS[et.table])


# ----------------------------
# Repository
# ----------------------------

class RosterRepo:
    def __init__(self, db_path: str | Path, *, now: Optional[Clock] = None, timeout: Optional[float] = None):
        self.db_path = str(db_path)
        self._now: Clock = now or wall_clock_ts
        self._conn = sqlite3.connect(
            self.db_path,
            timeout=float(config.DB_TIMEOUT_SEC if timeout is None else timeout),
        )
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON;")
        self._conn.execute("PRAGMA journal_mode = WAL;")  # readers do not block the single writer
        # Nested transaction support (SAVEPOINT) for lifecycle cascades.
        # (SQLite raises if BEGIN is issued while a transaction is already active.)
        self._savepoint_seq = 0

    def close(self) -> None:
        try:
            self._conn.close()
        except sqlite3.Error:
            logger.warning("ROSTER_REPO_CLOSE_FAILED db=%s", self.db_path, exc_info=True)

    @property
    def in_transaction(self) -> bool:
        """True while a ``transaction()`` block is open; a new one would be a SAVEPOINT."""
        return bool(getattr(self._conn, "in_transaction", False))

    @contextlib.contextmanager
    def transaction(self):
        """
        Atomic transaction helper.

        Supports nesting via SAVEPOINT:
        - outermost: BEGIN IMMEDIATE ... COMMIT/ROLLBACK
          (IMMEDIATE takes the write lock up front, so lifecycle guards are
          evaluated against state no other writer can change before commit)
        - nested: SAVEPOINT ... RELEASE (or ROLLBACK TO + RELEASE on error)
        """
        cur = self._conn.cursor()
        nested = bool(getattr(self._conn, "in_transaction", False))
        sp_name = None
        try:
            if nested:
                self._savepoint_seq += 1
                sp_name = f"sp_{self._savepoint_seq}"
                cur.execute(f"SAVEPOINT {sp_name};")
            else:
                self._conn.execute("BEGIN IMMEDIATE;")

            yield cur

            if nested and sp_name:
                cur.execute(f"RELEASE SAVEPOINT {sp_name};")
            else:
                self._conn.commit()
        except Exception:
            if nested and sp_name:
                # Roll back to the savepoint only; do NOT rollback the outer transaction here.
                try:
                    cur.execute(f"ROLLBACK TO SAVEPOINT {sp_name};")
                finally:
                    cur.execute(f"RELEASE SAVEPOINT {sp_name};")
            else:
                self._conn.rollback()
            raise
        finally:
            cur.close()

    # ------------------------
    # Schema
    # ------------------------

    def _ensure_table_columns(self, cur: sqlite3.Cursor, table: str, columns: Mapping[str, str]) -> None:
        """SQLite has no ADD COLUMN IF NOT EXISTS; check PRAGMA table_info first."""
        rows = cur.execute(f"PRAGMA table_info({table});").fetchall()
        existing = {r["name"] for r in rows}
        for col, ddl in columns.items():
            if col in existing:
                continue
            cur.execute(f"ALTER TABLE {table} ADD COLUMN {col} {ddl};")

    def init_db(self) -> None:
        """Apply SQLite schema (DDL + seed rows + migrations) via db_schema."""
        from db_schema import apply_schema

        now = require_ts(self._now(), field="now")
        with self.transaction() as cur:
            apply_schema(
                cur,
                now=now,
                schema_version=config.SCHEMA_VERSION,
                ensure_columns=self._ensure_table_columns,
            )

    # ------------------------
    # Entity rows
    # ------------------------

    def insert_entity(
        self,
        cur: sqlite3.Cursor,
        entity_type: str,
        *,
        name: str,
        fields: Optional[Mapping[str, Any]] = None,
        now: str,
    ) -> int:
        et = get_entity_type(entity_type)
        nm = str(name or "").strip()
        if not nm:
            raise ValueError(f"{et.name} name is required")
        allowed = _field_names(et)
        extra = dict(fields or {})
        unknown = sorted(set(extra) - set(allowed))
        if unknown:
            raise ValueError(f"unknown {et.name} fields: {unknown}")

        cols = ["name", *allowed, "status", "created_at", "updated_at"]
        vals = [nm, *[extra.get(c) for c in allowed], et.label(et.initial_status), now, now]
        try:
            cur.execute(
                f"INSERT INTO {et.table}({', '.join(cols)}) VALUES ({', '.join('?' for _ in cols)});",
                vals,
            )
        except sqlite3.IntegrityError as exc:
            raise ValueError(f"{et.name} name already exists: {nm!r}") from exc
        return int(cur.lastrowid)

    def update_entity(
        self,
        cur: sqlite3.Cursor,
        ref: EntityRef,
        *,
        name: Optional[str] = None,
        fields: Optional[Mapping[str, Any]] = None,
        now: str,
    ) -> None:
        et = ref.type
        sets: Dict[str, Any] = {}
        if name is not None:
            nm = str(name).strip()
            if not nm:
                raise ValueError(f"{et.name} name cannot be empty")
            sets["name"] = nm
        allowed = set(_field_names(et))
        for k, v in (fields or {}).items():
            if k not in allowed:
                raise ValueError(f"unknown {et.name} field: {k}")
            sets[k] = v
        if not sets:
            return
        sets["updated_at"] = now
        assignments = ", ".join(f"{k}=?" for k in sets)
        try:
            cur.execute(
                f"UPDATE {et.table} SET {assignments} WHERE id=? AND deleted_at IS NULL;",
                [*sets.values(), int(ref.entity_id)],
            )
        except sqlite3.IntegrityError as exc:
            raise ValueError(f"{et.name} name already exists: {sets.get('name')!r}") from exc
        if cur.rowcount == 0:
            raise KeyError(f"{et.name} not found: {ref.entity_id}")

    def lock_entity(self, cur: sqlite3.Cursor, ref: EntityRef, *, now: str) -> None:
        """Touch the owner row inside the current transaction; KeyError if missing or deleted."""
        et = ref.type
        cur.execute(
            f"UPDATE {et.table} SET updated_at=? WHERE id=? AND deleted_at IS NULL;",
            (str(now), int(ref.entity_id)),
        )
        if cur.rowcount == 0:
            raise KeyError(f"{et.name} not found: {ref.entity_id}")

    def set_status(self, cur: sqlite3.Cursor, ref: EntityRef, label: str, *, now: str) -> None:
        et = ref.type
        cur.execute(
            f"UPDATE {et.table} SET status=?, updated_at=? WHERE id=?;",
            (str(label), str(now), int(ref.entity_id)),
        )

    def list_status_labels(self, cur: sqlite3.Cursor, entity_type: str) -> List[Tuple[int, str]]:
        et = get_entity_type(entity_type)
        rows = cur.execute(
            f"SELECT id, status FROM {et.table} WHERE deleted_at IS NULL ORDER BY id ASC;"
        ).fetchall()
        return [(int(r["id"]), str(r["status"])) for r in rows]

    def soft_delete(self, cur: sqlite3.Cursor, ref: EntityRef, *, now: str) -> None:
        et = ref.type
        cur.execute(
            f"UPDATE {et.table} SET deleted_at=?, updated_at=? WHERE id=? AND deleted_at IS NULL;",
            (str(now), str(now), int(ref.entity_id)),
        )
        if cur.rowcount == 0:
            raise KeyError(f"{et.name} not found: {ref.entity_id}")

    def restore(self, cur: sqlite3.Cursor, ref: EntityRef, *, now: str) -> None:
        et = ref.type
        cur.execute(
            f"UPDATE {et.table} SET deleted_at=NULL, updated_at=? WHERE id=? AND deleted_at IS NOT NULL;",
            (str(now), int(ref.entity_id)),
        )
        if cur.rowcount == 0:
            raise KeyError(f"deleted {et.name} not found: {ref.entity_id}")

    # ------------------------
    # Reads
    # ------------------------

    def _row_to_entity(self, et: EntityType, row: sqlite3.Row) -> Dict[str, Any]:
        d = dict(row)
        d["id"] = int(d["id"])
        d["entity_type"] = et.name
        return d

    def get_entity(self, entity_type: str, entity_id: int, *, include_deleted: bool = False) -> Dict[str, Any]:
        et = get_entity_type(entity_type)
        sql = f"SELECT * FROM {et.table} WHERE id=?"
        if not include_deleted:
            sql += " AND deleted_at IS NULL"
        row = self._conn.execute(sql + ";", (int(entity_id),)).fetchone()
        if not row:
            raise KeyError(f"{et.name} not found: {entity_id}")
        return self._row_to_entity(et, row)

    def list_entities(
        self,
        entity_type: str,
        *,
        status: Optional[str] = None,
        include_deleted: bool = False,
    ) -> List[Dict[str, Any]]:
        et = get_entity_type(entity_type)
        sql = f"SELECT * FROM {et.table} WHERE 1=1"
        params: List[Any] = []
        if not include_deleted:
            sql += " AND deleted_at IS NULL"
        if status is not None:
            label = str(status).strip().lower()
            if label not in et.labels():
                raise ValueError(f"unknown {et.name} status: {status!r} (expected one of {list(et.labels())})")
            sql += " AND status=?"
            params.append(label)
        sql += " ORDER BY name ASC, id ASC;"
        return [self._row_to_entity(et, r) for r in self._conn.execute(sql, params).fetchall()]

    # ------------------------
    # Excel import/export
    # ------------------------

    def import_roster_excel(self, excel_path: str | Path, *, mode: str = "upsert") -> Dict[str, int]:
        """
        Import roster records (one sheet per entity table) into SQLite.

        mode:
          - replace: wipe entities, intervals and memberships, then insert
          - upsert: update rows matched by name, insert new, keep missing rows

        Only descriptive columns are imported. Lifecycle state is never read from
        Excel; new rows start unemployed / unactivated.
        """
        import pandas as pd  # local import so repo can be used without pandas in non-import contexts

        if mode not in ("replace", "upsert"):
            raise ValueError("mode must be 'replace' or 'upsert'")

        sheets = pd.read_excel(str(excel_path), sheet_name=None)
        parsed: Dict[str, List[Tuple[str, Dict[str, Any]]]] = {}
        for sheet_name, df in sheets.items():
            try:
                et = get_entity_type(str(sheet_name))
            except KeyError:
                _warn_limited("EXCEL_SHEET_IGNORED", f"sheet={sheet_name!r}", limit=5)
                continue
            df_columns = [str(c) for c in df.columns]
            _require_columns(df_columns, ["name"], sheet=str(sheet_name))

            seen: set[str] = set()
            rows: List[Tuple[str, Dict[str, Any]]] = []
            for _, row in df.iterrows():
                name = _clean_cell(row.get("name"))
                if name is None:
                    continue
                name = str(name)
                if name in seen:
                    raise ValueError(f"duplicate {et.name} name in Excel: {name!r}")
                seen.add(name)
                fields: Dict[str, Any] = {}
                for col in _field_names(et):
                    if col not in df_columns:
                        continue
                    v = _clean_cell(row.get(col))
                    parser = _FIELD_PARSERS.get(col)
                    fields[col] = parser(v) if parser is not None else v
                rows.append((name, fields))
            parsed[et.name] = rows

        # Ensure schema exists before transactional import
        self.init_db()
        now = require_ts(self._now(), field="now")
        counts: Dict[str, int] = {}
        with self.transaction() as cur:
            if mode == "replace":
                cur.execute("DELETE FROM memberships;")
                cur.execute("DELETE FROM lifecycle_intervals;")
                for et in ENTITY_TYPES.values():
                    cur.execute(f"DELETE FROM {et.table};")

            for type_name, rows in parsed.items():
                et = ENTITY_TYPES[type_name]
                for name, fields in rows:
                    existing = cur.execute(
                        f"SELECT id FROM {et.table} WHERE name=?;", (name,)
                    ).fetchone()
                    if existing is None:
                        self.insert_entity(cur, et.name, name=name, fields=fields, now=now)
                    elif fields:
                        assignments = ", ".join(f"{k}=?" for k in fields)
                        cur.execute(
                            f"UPDATE {et.table} SET {assignments}, updated_at=? WHERE id=?;",
                            [*fields.values(), now, int(existing["id"])],
                        )
                counts[et.name] = len(rows)

        # Validate after import
        self.validate_integrity()
        return counts

    def export_roster_excel(self, excel_path: str | Path) -> None:
        """Export live entity rows to Excel (one sheet per entity table)."""
        import pandas as pd

        with pd.ExcelWriter(str(excel_path)) as writer:
            for et in ENTITY_TYPES.values():
                cols = ["id", "name", *_field_names(et), "status"]
                rows = self._conn.execute(
                    f"SELECT {', '.join(cols)} FROM {et.table} WHERE deleted_at IS NULL ORDER BY id ASC;"
                ).fetchall()
                df = pd.DataFrame([dict(r) for r in rows], columns=cols)
                df.to_excel(writer, sheet_name=et.table, index=False)

    # ------------------------
    # Integrity
    # ------------------------

    def validate_integrity(self) -> None:
        """
        Fail fast on lifecycle / membership corruption.
        Run this after imports and after manual DB edits.
        """
        # schema version check
        row = self._conn.execute("SELECT value FROM meta WHERE key='schema_version';").fetchone()
        if not row:
            raise ValueError("DB meta.schema_version missing (run init_db)")
        if row["value"] != config.SCHEMA_VERSION:
            raise ValueError(f"DB schema_version {row['value']} != expected {config.SCHEMA_VERSION}")

        cur = self._conn.cursor()
        try:
            # at most one open interval per (owner, kind); the partial unique index enforces it,
            # but databases restored from older dumps may predate the index.
            dupes = lifecycle_repo.count_open_duplicates(cur)
            if dupes:
                raise ValueError(f"lifecycle_intervals has {dupes} (owner, kind) pairs with several open intervals")

            for et in ENTITY_TYPES.values():
                # stored labels must belong to the type's label set
                labels = set(et.labels())
                rows = cur.execute(f"SELECT id, status FROM {et.table};").fetchall()
                bad = [(int(r["id"]), r["status"]) for r in rows if r["status"] not in labels]
                if bad:
                    raise ValueError(f"{et.table} has invalid status labels: {bad[:10]}")

                # intervals must reference existing owners
                orphans = cur.execute(
                    f"""
                    SELECT DISTINCT li.owner_id
                    FROM lifecycle_intervals li
                    LEFT JOIN {et.table} e ON e.id = li.owner_id
                    WHERE li.owner_type=? AND e.id IS NULL;
                    """,
                    (et.name,),
                ).fetchall()
                if orphans:
                    raise ValueError(
                        f"lifecycle_intervals reference missing {et.table}: {[int(r[0]) for r in orphans]}"
                    )

            # current memberships must reference live rows on both sides
            for side in ("composite", "member"):
                for et in ENTITY_TYPES.values():
                    dangling = cur.execute(
                        f"""
                        SELECT m.membership_id
                        FROM memberships m
                        LEFT JOIN {et.table} e ON e.id = m.{side}_id AND e.deleted_at IS NULL
                        WHERE m.{side}_type=? AND m.left_at IS NULL AND e.id IS NULL;
                        """,
                        (et.name,),
                    ).fetchall()
                    if dangling:
                        raise ValueError(
                            f"current memberships reference missing or deleted {et.table}: "
                            f"{[int(r[0]) for r in dangling]}"
                        )

            # tag teams never hold more than tag_team_size current wrestlers
            oversized = cur.execute(
                """
                SELECT composite_id, COUNT(*) AS n
                FROM memberships
                WHERE composite_type='tag_team' AND left_at IS NULL
                GROUP BY composite_id
                HAVING COUNT(*) > ?;
                """,
                (int(DEFAULT_LIFECYCLE_CONFIG.tag_team_size),),
            ).fetchall()
            if oversized:
                raise ValueError(f"tag teams with too many current members: {[int(r[0]) for r in oversized]}")
        finally:
            cur.close()

    # ------------------------
    # Convenience
    # ------------------------

    def __enter__(self) -> "RosterRepo":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


# ----------------------------
# CLI
# ----------------------------

def _cmd_init(args) -> None:
    with RosterRepo(args.db) as repo:
        repo.init_db()
    print(f"OK: initialized {args.db}")

def _cmd_import_roster(args) -> None:
    with RosterRepo(args.db) as repo:
        counts = repo.import_roster_excel(args.excel, mode=args.mode)
    print(f"OK: imported {sum(counts.values())} rows from {args.excel} into {args.db} ({counts})")

def _cmd_export_roster(args) -> None:
    with RosterRepo(args.db) as repo:
        repo.export_roster_excel(args.excel)
    print(f"OK: exported roster to {args.excel}")

def _cmd_validate(args) -> None:
    with RosterRepo(args.db) as repo:
        repo.validate_integrity()
    print(f"OK: validation passed for {args.db}")

def _cmd_refresh_statuses(args) -> None:
    from lifecycle import LifecycleEngine

    with RosterRepo(args.db) as repo:
        changed = LifecycleEngine(repo, now=wall_clock_ts).recompute_all()
    print(f"OK: recomputed statuses in {args.db} ({changed} changed)")

def main(argv: Optional[Sequence[str]] = None) -> None:
    p = argparse.ArgumentParser(description="RosterRepo (SQLite single source of truth)")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_init = sub.add_parser("init", help="initialize DB schema")
    p_init.add_argument("--db", required=True, help="path to sqlite db file")
    p_init.set_defaults(func=_cmd_init)

    p_imp = sub.add_parser("import_roster", help="import roster excel into DB")
    p_imp.add_argument("--db", required=True, help="path to sqlite db file")
    p_imp.add_argument("--excel", required=True, help="path to roster excel file")
    p_imp.add_argument("--mode", choices=["replace", "upsert"], default="upsert")
    p_imp.set_defaults(func=_cmd_import_roster)

    p_exp = sub.add_parser("export_roster", help="export roster from DB to excel")
    p_exp.add_argument("--db", required=True, help="path to sqlite db file")
    p_exp.add_argument("--excel", required=True, help="output excel path")
    p_exp.set_defaults(func=_cmd_export_roster)

    p_val = sub.add_parser("validate", help="validate DB integrity")
    p_val.add_argument("--db", required=True, help="path to sqlite db file")
    p_val.set_defaults(func=_cmd_validate)

    p_ref = sub.add_parser("refresh_statuses", help="re-derive every cached status column")
    p_ref.add_argument("--db", required=True, help="path to sqlite db file")
    p_ref.set_defaults(func=_cmd_refresh_statuses)

    args = p.parse_args(argv)
    args.func(args)

if __name__ == "__main__":
    main()
