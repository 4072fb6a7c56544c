from __future__ import annotations

"""Composite cascades.

Two directions, both run inside the originating transaction:

- down: a transition on a composite is replayed, with the same timestamp, on
  each current member whose own guard passes (members that cannot take it are
  skipped and logged).
- up: after any transition, every composite that currently contains the
  entity re-derives and persists its own status.

Cascades are one level deep. A stable retiring a tag team is itself a normal
transition, so the tag team's wrestlers are reached through the tag team's own
downward cascade.
"""

import logging
import sqlite3
from typing import Callable, Dict, FrozenSet, List

from membership import repo as membership_repo

from .types import EntityRef, Transition

logger = logging.getLogger(__name__)

DOWNWARD: Dict[str, FrozenSet[Transition]] = {
    "tag_team": frozenset(
        {
            Transition.EMPLOY,
            Transition.RELEASE,
            Transition.SUSPEND,
            Transition.REINSTATE,
            Transition.RETIRE,
            Transition.UNRETIRE,
        }
    ),
    "stable": frozenset({Transition.RETIRE, Transition.UNRETIRE}),
}


def cascade_down(
    cur: sqlite3.Cursor,
    composite: EntityRef,
    transition: Transition,
    *,
    allows: Callable[[EntityRef], bool],
    apply: Callable[[EntityRef], None],
) -> List[EntityRef]:
    """Replay ``transition`` on the composite's current members. Returns the members touched."""
    if transition not in DOWNWARD.get(composite.entity_type, frozenset()):
        return []

    touched: List[EntityRef] = []
    for member in membership_repo.current_members(cur, composite):
        if transition not in member.type.transitions or not allows(member):
            logger.info(
                "LIFECYCLE_CASCADE_SKIPPED composite=%s member=%s transition=%s",
                composite,
                member,
                transition.value,
            )
            continue
        apply(member)
        touched.append(member)
    return touched


def cascade_up(
    cur: sqlite3.Cursor,
    member: EntityRef,
    *,
    refresh: Callable[[EntityRef], None],
) -> List[EntityRef]:
    """Re-derive every composite that currently contains ``member``."""
    owners = membership_repo.current_composites(cur, member)
    for owner in owners:
        refresh(owner)
    return owners
