from __future__ import annotations

"""Roster entity records: create, read, soft delete and restore.

Lifecycle state is never written here directly. Creating an entity with
``started_at`` runs the normal ``employ`` / ``activate`` transition inside the
creating transaction, so the new row and its first interval commit together.
Tag teams and stables are created through ``membership.service`` because they
need members.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from lifecycle import repo as lifecycle_repo
from lifecycle.engine import LifecycleEngine
from lifecycle.types import BASIS_ACTIVATION, EntityRef, Transition, get_entity_type
from membership import repo as membership_repo
from membership import service as membership_service

logger = logging.getLogger(__name__)

# Types created directly (composites need members, see membership.service).
DIRECT_TYPES = ("wrestler", "manager", "referee", "title")


def create_entity(
    engine: LifecycleEngine,
    entity_type: str,
    *,
    name: str,
    fields: Optional[Mapping[str, Any]] = None,
    started_at: Any = None,
) -> Dict[str, Any]:
    et = get_entity_type(entity_type)
    if et.name not in DIRECT_TYPES:
        raise ValueError(f"{et.name} must be created with its members")

    repo = engine.repo
    now = engine.now_ts()
    with repo.transaction() as cur:
        entity_id = repo.insert_entity(cur, et.name, name=name, fields=fields, now=now)
        if started_at is not None:
            first = Transition.ACTIVATE if et.basis == BASIS_ACTIVATION else Transition.EMPLOY
            engine.transition(et.name, entity_id, first, at=started_at)

    logger.info("ROSTER_ENTITY_CREATED type=%s id=%s started=%s", et.name, entity_id, started_at is not None)
    return repo.get_entity(et.name, entity_id)


def get_entity_detail(engine: LifecycleEngine, entity_type: str, entity_id: int) -> Dict[str, Any]:
    """Entity row plus its interval history and current memberships."""
    et = get_entity_type(entity_type)
    repo = engine.repo
    record = repo.get_entity(et.name, entity_id)
    ref = EntityRef(et.name, int(entity_id))
    with repo.transaction() as cur:
        intervals = [iv.to_row() for iv in lifecycle_repo.list_intervals(cur, ref)]
        member_of = [
            {"entity_type": c.entity_type, "entity_id": c.entity_id}
            for c in membership_repo.current_composites(cur, ref)
        ]
        members = [
            {"entity_type": m.entity_type, "entity_id": m.entity_id}
            for m in membership_repo.current_members(cur, ref)
        ] if et.is_composite else []
    record["intervals"] = intervals
    record["member_of"] = member_of
    if et.is_composite:
        record["members"] = members
    return record


def delete_entity(engine: LifecycleEngine, entity_type: str, entity_id: int) -> None:
    """Soft delete. Current memberships end now and affected composites re-derive."""
    et = get_entity_type(entity_type)
    ref = EntityRef(et.name, int(entity_id))
    repo = engine.repo
    now = engine.now_ts()
    with repo.transaction() as cur:
        repo.lock_entity(cur, ref, now=now)
        touched = membership_service.detach(engine, cur, ref, now=now)
        repo.soft_delete(cur, ref, now=now)
    logger.info("ROSTER_ENTITY_DELETED type=%s id=%s composites_refreshed=%d", et.name, ref.entity_id, len(touched))


def restore_entity(engine: LifecycleEngine, entity_type: str, entity_id: int) -> Dict[str, Any]:
    """Undo a soft delete. Memberships ended by the delete are not restored."""
    et = get_entity_type(entity_type)
    ref = EntityRef(et.name, int(entity_id))
    repo = engine.repo
    now = engine.now_ts()
    with repo.transaction() as cur:
        repo.restore(cur, ref, now=now)
        engine.refresh(cur, ref, now=now)
    logger.info("ROSTER_ENTITY_RESTORED type=%s id=%s", et.name, ref.entity_id)
    return repo.get_entity(et.name, ref.entity_id)
