from __future__ import annotations

"""Composite membership business logic (tag teams and stables).

Every public entrypoint runs in a single repo transaction and ends by
re-deriving the composite's status through the lifecycle engine, so a change
of members is visible in the cached ``status`` column immediately.

Joining rules
-------------
- tag team: exactly ``tag_team_size`` distinct wrestlers; a wrestler that is
  retired, suspended, injured or released cannot join, nor one already in
  another current tag team.
- stable: weighted size (wrestlers + tag teams * tag_team_size, managers do not
  count) of at least ``stable_min_members``; retired members cannot join, nor
  ones already in another current stable.
"""

import logging
import sqlite3
from typing import Any, Dict, Iterable, List, Optional, Sequence, Type

from lifecycle.engine import LifecycleEngine
from lifecycle.errors import CannotJoinStableError, CannotJoinTagTeamError, InvalidMembershipError, MembershipError
from lifecycle.status import MemberView, stable_weight
from lifecycle.types import STABLE, TAG_TEAM, WRESTLER, EntityRef, Status, Transition, get_entity_type
from roster_time import require_ts

from . import repo as membership_repo

logger = logging.getLogger(__name__)

_TAG_TEAM_BLOCKING = frozenset({Status.RETIRED, Status.SUSPENDED, Status.INJURED, Status.RELEASED})
_STABLE_BLOCKING = frozenset({Status.RETIRED})


def _distinct_ids(values: Iterable[Any], *, what: str) -> List[int]:
    ids = [int(v) for v in values]
    if len(set(ids)) != len(ids):
        raise InvalidMembershipError(f"duplicate {what} ids: {ids}", details={"ids": ids})
    return ids


def _resolve_at(at: Any, now: str) -> str:
    when = now if at is None else require_ts(at, field="at")
    if when > now:
        raise ValueError(f"membership changes cannot be scheduled in the future (at={when}, now={now})")
    return when


def _check_can_join(
    engine: LifecycleEngine,
    cur: sqlite3.Cursor,
    member: EntityRef,
    composite_type: str,
    *,
    now: str,
    blocking: frozenset,
    error_cls: Type[MembershipError],
) -> None:
    engine.repo.lock_entity(cur, member, now=now)
    status = engine.derive(cur, member, now)
    label = member.type.label(status)
    if status in blocking:
        raise error_cls(
            f"{member.entity_type} {member.entity_id} cannot join a {composite_type} (status: {label})",
            details={"member": str(member), "status": label},
        )
    existing = membership_repo.current_composite(cur, member, composite_type)
    if existing is not None:
        raise error_cls(
            f"{member.entity_type} {member.entity_id} already belongs to {existing}",
            details={"member": str(member), "status": label, "composite": str(existing)},
        )


def _require_not_retired(engine: LifecycleEngine, cur: sqlite3.Cursor, composite: EntityRef, *, now: str) -> None:
    engine.repo.lock_entity(cur, composite, now=now)
    if engine.derive(cur, composite, now) == Status.RETIRED:
        raise InvalidMembershipError(
            f"{composite} is retired; its members cannot change",
            details={"composite": str(composite), "status": Status.RETIRED.value},
        )


# ---------------------------------------------------------------------------
# Tag teams
# ---------------------------------------------------------------------------


def create_tag_team(
    engine: LifecycleEngine,
    *,
    name: str,
    wrestler_ids: Sequence[int],
    started_at: Any = None,
    signature_move: Optional[str] = None,
) -> Dict[str, Any]:
    """Create a tag team from its wrestlers; employ it when ``started_at`` is given."""
    ids = _distinct_ids(wrestler_ids, what="wrestler")
    size = int(engine.config.tag_team_size)
    if len(ids) != size:
        raise InvalidMembershipError(
            f"a tag team needs exactly {size} wrestlers (got {len(ids)})",
            details={"expected": size, "actual": len(ids)},
        )

    repo = engine.repo
    now = engine.now_ts()
    with repo.transaction() as cur:
        team_id = repo.insert_entity(
            cur, TAG_TEAM.name, name=name, fields={"signature_move": signature_move}, now=now
        )
        team = EntityRef(TAG_TEAM.name, team_id)
        for wid in ids:
            member = EntityRef(WRESTLER.name, wid)
            _check_can_join(
                engine, cur, member, TAG_TEAM.name,
                now=now, blocking=_TAG_TEAM_BLOCKING, error_cls=CannotJoinTagTeamError,
            )
            membership_repo.add_member(cur, team, member, joined_at=now, now=now)
        engine.refresh(cur, team, now=now)
        if started_at is not None:
            engine.employ(TAG_TEAM.name, team_id, at=started_at)

    logger.info("TAG_TEAM_CREATED id=%s wrestlers=%s employed=%s", team_id, ids, started_at is not None)
    return repo.get_entity(TAG_TEAM.name, team_id)


def replace_tag_team_partner(
    engine: LifecycleEngine,
    tag_team_id: int,
    *,
    old_wrestler_id: int,
    new_wrestler_id: int,
    at: Any = None,
) -> Dict[str, Any]:
    """Swap one wrestler for another. The newcomer is employed if the team is."""
    if int(old_wrestler_id) == int(new_wrestler_id):
        raise InvalidMembershipError("replacement wrestler must differ from the outgoing one")

    repo = engine.repo
    now = engine.now_ts()
    when = _resolve_at(at, now)
    team = EntityRef(TAG_TEAM.name, int(tag_team_id))
    old = EntityRef(WRESTLER.name, int(old_wrestler_id))
    new = EntityRef(WRESTLER.name, int(new_wrestler_id))

    with repo.transaction() as cur:
        _require_not_retired(engine, cur, team, now=now)
        _check_can_join(
            engine, cur, new, TAG_TEAM.name,
            now=now, blocking=_TAG_TEAM_BLOCKING, error_cls=CannotJoinTagTeamError,
        )
        membership_repo.remove_member(cur, team, old, left_at=when, now=now)
        membership_repo.add_member(cur, team, new, joined_at=when, now=now)

        team_employed = engine.derive(cur, team, now) not in (
            Status.UNEMPLOYED,
            Status.FUTURE_EMPLOYMENT,
            Status.RELEASED,
            Status.RETIRED,
        )
        if team_employed and engine.allowed(cur, new, Transition.EMPLOY, now=now):
            engine.employ(WRESTLER.name, new.entity_id, at=when)
        engine.refresh(cur, team, now=now)

    logger.info("TAG_TEAM_PARTNER_REPLACED id=%s old=%s new=%s at=%s", team.entity_id, old.entity_id, new.entity_id, when)
    return repo.get_entity(TAG_TEAM.name, team.entity_id)


# ---------------------------------------------------------------------------
# Stables
# ---------------------------------------------------------------------------


def create_stable(
    engine: LifecycleEngine,
    *,
    name: str,
    wrestler_ids: Sequence[int] = (),
    tag_team_ids: Sequence[int] = (),
    manager_ids: Sequence[int] = (),
    started_at: Any = None,
) -> Dict[str, Any]:
    """Create a stable; activate it when ``started_at`` is given."""
    members = (
        [EntityRef("wrestler", i) for i in _distinct_ids(wrestler_ids, what="wrestler")]
        + [EntityRef("tag_team", i) for i in _distinct_ids(tag_team_ids, what="tag team")]
        + [EntityRef("manager", i) for i in _distinct_ids(manager_ids, what="manager")]
    )
    views = [MemberView(m.entity_type, m.entity_id, Status.AVAILABLE) for m in members]
    weight = stable_weight(views, engine.config)
    minimum = int(engine.config.stable_min_members)
    if weight < minimum:
        raise InvalidMembershipError(
            f"a stable needs at least {minimum} members (got {weight})",
            details={"expected": minimum, "actual": weight},
        )

    repo = engine.repo
    now = engine.now_ts()
    with repo.transaction() as cur:
        stable_id = repo.insert_entity(cur, STABLE.name, name=name, now=now)
        stable = EntityRef(STABLE.name, stable_id)
        for member in members:
            _check_can_join(
                engine, cur, member, STABLE.name,
                now=now, blocking=_STABLE_BLOCKING, error_cls=CannotJoinStableError,
            )
            membership_repo.add_member(cur, stable, member, joined_at=now, now=now)
        engine.refresh(cur, stable, now=now)
        if started_at is not None:
            engine.activate(STABLE.name, stable_id, at=started_at)

    logger.info("STABLE_CREATED id=%s weight=%d activated=%s", stable_id, weight, started_at is not None)
    return repo.get_entity(STABLE.name, stable_id)


def _stable_member_ref(member_type: str, member_id: int) -> EntityRef:
    et = get_entity_type(member_type)
    if et.name not in STABLE.member_types:
        raise InvalidMembershipError(
            f"{et.name} cannot be a stable member",
            details={"member_type": et.name, "allowed": list(STABLE.member_types)},
        )
    return EntityRef(et.name, int(member_id))


def add_stable_member(
    engine: LifecycleEngine,
    stable_id: int,
    *,
    member_type: str,
    member_id: int,
    at: Any = None,
) -> Dict[str, Any]:
    repo = engine.repo
    now = engine.now_ts()
    when = _resolve_at(at, now)
    stable = EntityRef(STABLE.name, int(stable_id))
    member = _stable_member_ref(member_type, member_id)

    with repo.transaction() as cur:
        _require_not_retired(engine, cur, stable, now=now)
        _check_can_join(
            engine, cur, member, STABLE.name,
            now=now, blocking=_STABLE_BLOCKING, error_cls=CannotJoinStableError,
        )
        membership_repo.add_member(cur, stable, member, joined_at=when, now=now)
        engine.refresh(cur, stable, now=now)

    logger.info("STABLE_MEMBER_ADDED id=%s member=%s at=%s", stable.entity_id, member, when)
    return repo.get_entity(STABLE.name, stable.entity_id)


def remove_stable_member(
    engine: LifecycleEngine,
    stable_id: int,
    *,
    member_type: str,
    member_id: int,
    at: Any = None,
) -> Dict[str, Any]:
    """Remove a member. The stable stays, but may become unbookable."""
    repo = engine.repo
    now = engine.now_ts()
    when = _resolve_at(at, now)
    stable = EntityRef(STABLE.name, int(stable_id))
    member = _stable_member_ref(member_type, member_id)

    with repo.transaction() as cur:
        _require_not_retired(engine, cur, stable, now=now)
        membership_repo.remove_member(cur, stable, member, left_at=when, now=now)
        engine.refresh(cur, stable, now=now)

    logger.info("STABLE_MEMBER_REMOVED id=%s member=%s at=%s", stable.entity_id, member, when)
    return repo.get_entity(STABLE.name, stable.entity_id)


# ---------------------------------------------------------------------------
# Soft delete support
# ---------------------------------------------------------------------------


def detach(engine: LifecycleEngine, cur: sqlite3.Cursor, ref: EntityRef, *, now: str) -> List[EntityRef]:
    """End every current membership of ``ref`` (as member and as composite).

    Returns the composites whose member set changed; callers refresh them.
    """
    touched: List[EntityRef] = []
    for owner in membership_repo.current_composites(cur, ref):
        membership_repo.remove_member(cur, owner, ref, left_at=now, now=now)
        touched.append(owner)
    if ref.type.is_composite:
        for member in membership_repo.current_members(cur, ref):
            membership_repo.remove_member(cur, ref, member, left_at=now, now=now)
    for owner in touched:
        engine.refresh(cur, owner, now=now)
    return touched
