from __future__ import annotations

"""Lifecycle engine: guard -> mutate intervals -> cascade -> persist status.

One engine serves every roster entity type; the per-type differences live in
``lifecycle.types`` descriptors. The engine never reads the host clock: ``now``
is injected at construction and evaluated once per public call, and every
nested step (auto-reinstate, member cascades, composite refreshes) shares that
same instant.

Transaction model
-----------------
Each public call opens one ``BEGIN IMMEDIATE`` transaction through the repo,
touches the owner row (fails with KeyError when missing or soft-deleted) and
only then evaluates the guard, so concurrent callers serialize and the second
one sees the first one's intervals. Cascaded member transitions run in
SAVEPOINTs of the same transaction.
"""

import logging
import sqlite3
from typing import Any, Dict, List, Optional, Tuple

from membership import repo as membership_repo
from roster_time import Clock, require_ts

from . import repo as lifecycle_repo
from .cascade import cascade_down, cascade_up
from .config import DEFAULT_LIFECYCLE_CONFIG, LifecycleConfig
from .errors import ERROR_BY_TRANSITION, UnsupportedTransitionError
from .guards import allows
from .status import LifecycleFacts, MemberView, collect_facts, derive_status_from_facts
from .types import (
    BASIS_ACTIVATION,
    ENTITY_TYPES,
    SCHEDULABLE_TRANSITIONS,
    EntityRef,
    Interval,
    IntervalKind,
    Status,
    Transition,
    TransitionResult,
    get_entity_type,
)

logger = logging.getLogger(__name__)

_PAST_TENSE = {
    Transition.EMPLOY: "employed",
    Transition.RELEASE: "released",
    Transition.SUSPEND: "suspended",
    Transition.REINSTATE: "reinstated",
    Transition.INJURE: "injured",
    Transition.CLEAR_INJURY: "cleared from injury",
    Transition.RETIRE: "retired",
    Transition.UNRETIRE: "unretired",
    Transition.ACTIVATE: "activated",
    Transition.DEACTIVATE: "deactivated",
}

# Refresh order for bulk recomputation: members before the composites built from them.
_RECOMPUTE_ORDER = ("wrestler", "manager", "referee", "tag_team", "stable", "title")


def _coerce_transition(value: Transition | str) -> Transition:
    if isinstance(value, Transition):
        return value
    key = str(value or "").strip().lower().replace("_", "-")
    try:
        return Transition(key)
    except ValueError as exc:
        raise ValueError(f"unknown transition: {value!r}") from exc


class LifecycleEngine:
    def __init__(self, repo: Any, *, now: Clock, config: LifecycleConfig = DEFAULT_LIFECYCLE_CONFIG):
        self.repo = repo
        self._now = now
        self.config = config

    def now_ts(self) -> str:
        return require_ts(self._now(), field="now")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def transition(
        self,
        entity_type: str,
        entity_id: int,
        transition: Transition | str,
        *,
        at: Any = None,
    ) -> TransitionResult:
        et = get_entity_type(entity_type)
        tr = _coerce_transition(transition)
        ref = EntityRef(et.name, int(entity_id))
        if tr not in et.transitions:
            raise UnsupportedTransitionError(
                f"{et.name} does not support {tr.value}",
                details={"entity_type": et.name, "transition": tr.value},
            )

        now = self.now_ts()
        when = now if at is None else require_ts(at, field="at")
        if when > now and tr not in SCHEDULABLE_TRANSITIONS:
            raise ValueError(f"{tr.value} cannot be scheduled in the future (at={when}, now={now})")

        trail: List[EntityRef] = []
        # Inside a caller's transaction nothing is committed yet; that caller logs the outcome.
        staged = self.repo.in_transaction
        with self.repo.transaction() as cur:
            self.repo.lock_entity(cur, ref, now=now)
            status = self._apply(cur, ref, tr, at=when, now=now, trail=trail)

        label = et.label(status)
        logger.log(
            logging.DEBUG if staged else logging.INFO,
            "%s type=%s id=%s transition=%s at=%s status=%s cascaded=%d",
            "LIFECYCLE_TRANSITION_STAGED" if staged else "LIFECYCLE_TRANSITION",
            et.name,
            ref.entity_id,
            tr.value,
            when,
            label,
            len(trail),
        )
        return TransitionResult(
            entity_type=et.name,
            entity_id=ref.entity_id,
            transition=tr,
            at=when,
            status=label,
            cascaded=tuple(dict.fromkeys(str(m) for m in trail)),
        )

    def employ(self, entity_type: str, entity_id: int, *, at: Any = None) -> TransitionResult:
        return self.transition(entity_type, entity_id, Transition.EMPLOY, at=at)

    def release(self, entity_type: str, entity_id: int, *, at: Any = None) -> TransitionResult:
        return self.transition(entity_type, entity_id, Transition.RELEASE, at=at)

    def suspend(self, entity_type: str, entity_id: int, *, at: Any = None) -> TransitionResult:
        return self.transition(entity_type, entity_id, Transition.SUSPEND, at=at)

    def reinstate(self, entity_type: str, entity_id: int, *, at: Any = None) -> TransitionResult:
        return self.transition(entity_type, entity_id, Transition.REINSTATE, at=at)

    def injure(self, entity_type: str, entity_id: int, *, at: Any = None) -> TransitionResult:
        return self.transition(entity_type, entity_id, Transition.INJURE, at=at)

    def clear_injury(self, entity_type: str, entity_id: int, *, at: Any = None) -> TransitionResult:
        return self.transition(entity_type, entity_id, Transition.CLEAR_INJURY, at=at)

    def retire(self, entity_type: str, entity_id: int, *, at: Any = None) -> TransitionResult:
        return self.transition(entity_type, entity_id, Transition.RETIRE, at=at)

    def unretire(self, entity_type: str, entity_id: int, *, at: Any = None) -> TransitionResult:
        return self.transition(entity_type, entity_id, Transition.UNRETIRE, at=at)

    def activate(self, entity_type: str, entity_id: int, *, at: Any = None) -> TransitionResult:
        return self.transition(entity_type, entity_id, Transition.ACTIVATE, at=at)

    def deactivate(self, entity_type: str, entity_id: int, *, at: Any = None) -> TransitionResult:
        return self.transition(entity_type, entity_id, Transition.DEACTIVATE, at=at)

    def recompute_status(self, entity_type: str, entity_id: int) -> str:
        """Re-derive and persist one entity's status (repair tooling)."""
        ref = EntityRef(get_entity_type(entity_type).name, int(entity_id))
        now = self.now_ts()
        with self.repo.transaction() as cur:
            self.repo.lock_entity(cur, ref, now=now)
            status = self.refresh(cur, ref, now=now)
        return ref.type.label(status)

    def recompute_all(self) -> int:
        """Re-derive every live entity. Returns how many stored labels changed."""
        now = self.now_ts()
        changed = 0
        with self.repo.transaction() as cur:
            for name in _RECOMPUTE_ORDER:
                et = ENTITY_TYPES[name]
                for entity_id, stored in self.repo.list_status_labels(cur, et.name):
                    ref = EntityRef(et.name, int(entity_id))
                    status = self.refresh(cur, ref, now=now)
                    if et.label(status) != stored:
                        changed += 1
        if changed:
            logger.warning("LIFECYCLE_STATUS_DRIFT_REPAIRED count=%d", changed)
        return changed

    def status_of(self, entity_type: str, entity_id: int, *, as_of: Any = None) -> str:
        """Derived status label at ``as_of`` (defaults to now). Read-only."""
        ref = EntityRef(get_entity_type(entity_type).name, int(entity_id))
        when = require_ts(self._now() if as_of is None else as_of, field="as_of")
        self.repo.get_entity(ref.entity_type, ref.entity_id)
        with self.repo.transaction() as cur:
            status = self.derive(cur, ref, when)
        return ref.type.label(status)

    def history(self, entity_type: str, entity_id: int) -> List[Dict[str, Any]]:
        ref = EntityRef(get_entity_type(entity_type).name, int(entity_id))
        self.repo.get_entity(ref.entity_type, ref.entity_id)
        with self.repo.transaction() as cur:
            return [iv.to_row() for iv in lifecycle_repo.list_intervals(cur, ref)]

    # ------------------------------------------------------------------
    # Derivation
    # ------------------------------------------------------------------

    def derive(self, cur: sqlite3.Cursor, ref: EntityRef, as_of: str) -> Status:
        return self._evaluate(cur, ref, as_of)[1]

    def _evaluate(self, cur: sqlite3.Cursor, ref: EntityRef, as_of: str) -> Tuple[LifecycleFacts, Status]:
        facts = collect_facts(lifecycle_repo.list_intervals(cur, ref), as_of=as_of)
        members: Optional[List[MemberView]] = None
        if ref.type.is_composite:
            # Member statuses come from their intervals, not from the cached column.
            members = [
                MemberView(m.entity_type, m.entity_id, self.derive(cur, m, as_of))
                for m in membership_repo.current_members(cur, ref)
            ]
        return facts, derive_status_from_facts(ref.type, facts, members, config=self.config)

    def refresh(self, cur: sqlite3.Cursor, ref: EntityRef, *, now: str) -> Status:
        """Derive ``ref`` at ``now`` and persist its label."""
        status = self.derive(cur, ref, now)
        self.repo.set_status(cur, ref, ref.type.label(status), now=now)
        return status

    def allowed(self, cur: sqlite3.Cursor, ref: EntityRef, transition: Transition, *, now: str) -> bool:
        facts, status = self._evaluate(cur, ref, now)
        return allows(ref.type, transition, facts, status)

    # ------------------------------------------------------------------
    # Transition core
    # ------------------------------------------------------------------

    def _apply(
        self,
        cur: sqlite3.Cursor,
        ref: EntityRef,
        tr: Transition,
        *,
        at: str,
        now: str,
        trail: List[EntityRef],
    ) -> Status:
        et = ref.type
        facts, status = self._evaluate(cur, ref, now)
        if not allows(et, tr, facts, status):
            label = et.label(status)
            raise ERROR_BY_TRANSITION[tr](
                f"{et.name} {ref.entity_id} cannot be {_PAST_TENSE[tr]} (status: {label})",
                details={"entity": str(ref), "transition": tr.value, "status": label},
            )

        self._mutate(cur, ref, tr, facts, at=at, now=now, trail=trail)

        trail.extend(
            cascade_down(
                cur,
                ref,
                tr,
                allows=lambda m: self.allowed(cur, m, tr, now=now),
                apply=lambda m: self._apply_nested(cur, m, tr, at=at, now=now, trail=trail),
            )
        )

        new_status = self.refresh(cur, ref, now=now)
        cascade_up(cur, ref, refresh=lambda owner: self.refresh(cur, owner, now=now))
        return new_status

    def _apply_nested(
        self,
        cur: sqlite3.Cursor,
        ref: EntityRef,
        tr: Transition,
        *,
        at: str,
        now: str,
        trail: List[EntityRef],
    ) -> Status:
        with self.repo.transaction() as sp:
            self.repo.lock_entity(sp, ref, now=now)
            return self._apply(sp, ref, tr, at=at, now=now, trail=trail)

    def _mutate(
        self,
        cur: sqlite3.Cursor,
        ref: EntityRef,
        tr: Transition,
        facts: LifecycleFacts,
        *,
        at: str,
        now: str,
        trail: List[EntityRef],
    ) -> None:
        et = ref.type
        if tr in (Transition.EMPLOY, Transition.ACTIVATE):
            kind = et.base_kind
            if lifecycle_repo.has_future_open(cur, ref, kind, as_of=now):
                self._check_after_previous(cur, ref, kind, at=at)
                lifecycle_repo.redate_open_interval(cur, ref, kind, started_at=at, now=now)
            else:
                self._open(cur, ref, kind, at=at, now=now)
        elif tr == Transition.RELEASE:
            self._clear_holds(cur, ref, facts, at=at, now=now, trail=trail)
            lifecycle_repo.close_interval(cur, ref, IntervalKind.EMPLOYMENT, ended_at=at, now=now)
        elif tr == Transition.SUSPEND:
            self._check_within_employment(cur, ref, tr, at=at)
            self._open(cur, ref, IntervalKind.SUSPENSION, at=at, now=now)
        elif tr == Transition.REINSTATE:
            lifecycle_repo.close_interval(cur, ref, IntervalKind.SUSPENSION, ended_at=at, now=now)
        elif tr == Transition.INJURE:
            self._check_within_employment(cur, ref, tr, at=at)
            self._open(cur, ref, IntervalKind.INJURY, at=at, now=now)
        elif tr == Transition.CLEAR_INJURY:
            lifecycle_repo.close_interval(cur, ref, IntervalKind.INJURY, ended_at=at, now=now)
        elif tr == Transition.RETIRE:
            if et.basis != BASIS_ACTIVATION:
                self._clear_holds(cur, ref, facts, at=at, now=now, trail=trail)
            lifecycle_repo.close_interval(cur, ref, et.base_kind, ended_at=at, now=now)
            self._open(cur, ref, IntervalKind.RETIREMENT, at=at, now=now)
        elif tr == Transition.UNRETIRE:
            lifecycle_repo.close_interval(cur, ref, IntervalKind.RETIREMENT, ended_at=at, now=now)
            self._open(cur, ref, et.base_kind, at=at, now=now)
        elif tr == Transition.DEACTIVATE:
            lifecycle_repo.close_interval(cur, ref, IntervalKind.ACTIVATION, ended_at=at, now=now)
        else:  # pragma: no cover
            raise UnsupportedTransitionError(f"unhandled transition: {tr.value}")

    def _clear_holds(
        self,
        cur: sqlite3.Cursor,
        ref: EntityRef,
        facts: LifecycleFacts,
        *,
        at: str,
        now: str,
        trail: List[EntityRef],
    ) -> None:
        # Leaving employment ends any suspension or injury at the same instant.
        if facts.suspended:
            self._apply(cur, ref, Transition.REINSTATE, at=at, now=now, trail=trail)
        if facts.injured:
            self._apply(cur, ref, Transition.CLEAR_INJURY, at=at, now=now, trail=trail)

    def _check_after_previous(self, cur: sqlite3.Cursor, ref: EntityRef, kind: IntervalKind, *, at: str) -> None:
        prev = lifecycle_repo.previous_interval(cur, ref, kind)
        if prev is not None and prev.ended_at is not None and at < prev.ended_at:
            raise ValueError(
                f"{kind.value} for {ref} cannot start at {at}; the previous one ended at {prev.ended_at}"
            )

    def _check_within_employment(self, cur: sqlite3.Cursor, ref: EntityRef, tr: Transition, *, at: str) -> None:
        # A hold only exists inside an employment, so it cannot predate the current one.
        employment = lifecycle_repo.current_interval(cur, ref, IntervalKind.EMPLOYMENT)
        if employment is not None and at < employment.started_at:
            raise ValueError(
                f"{ref} cannot be {_PAST_TENSE[tr]} at {at}; the current employment started at {employment.started_at}"
            )

    def _open(self, cur: sqlite3.Cursor, ref: EntityRef, kind: IntervalKind, *, at: str, now: str) -> Interval:
        self._check_after_previous(cur, ref, kind, at=at)
        return lifecycle_repo.open_interval(cur, ref, kind, started_at=at, now=now)
