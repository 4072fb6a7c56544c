from __future__ import annotations

"""Transition preconditions.

Each guard is a plain predicate over the entity's facts (at the engine's
``now``) and its derived status. Guards never raise; the engine turns a False
into the matching ``CannotBe...Error``.

"Already suspended" / "already injured" include a pending (future-dated)
open interval, so a guard pass always means the store can open a new one.
"""

from typing import Callable, Dict

from .status import LifecycleFacts
from .types import BASIS_ACTIVATION, EntityType, IntervalKind, Status, Transition

Guard = Callable[[EntityType, LifecycleFacts, Status], bool]


def can_employ(entity_type: EntityType, facts: LifecycleFacts, status: Status) -> bool:
    return not facts.employed and not facts.retired


def can_release(entity_type: EntityType, facts: LifecycleFacts, status: Status) -> bool:
    # Future, released, never-employed and retired entities are all "not employed".
    return facts.employed and not facts.retired


def can_suspend(entity_type: EntityType, facts: LifecycleFacts, status: Status) -> bool:
    if not facts.employed or facts.retired:
        return False
    if facts.pending_or_current(IntervalKind.SUSPENSION) or facts.pending_or_current(IntervalKind.INJURY):
        return False
    if entity_type.is_composite and status != Status.AVAILABLE:
        return False
    return True


def can_reinstate(entity_type: EntityType, facts: LifecycleFacts, status: Status) -> bool:
    return facts.suspended


def can_injure(entity_type: EntityType, facts: LifecycleFacts, status: Status) -> bool:
    if not facts.employed or facts.retired:
        return False
    if facts.pending_or_current(IntervalKind.INJURY) or facts.pending_or_current(IntervalKind.SUSPENSION):
        return False
    return True


def can_clear_injury(entity_type: EntityType, facts: LifecycleFacts, status: Status) -> bool:
    return facts.injured


def can_retire(entity_type: EntityType, facts: LifecycleFacts, status: Status) -> bool:
    if facts.pending_or_current(IntervalKind.RETIREMENT):
        return False
    if entity_type.basis == BASIS_ACTIVATION:
        return facts.active
    return facts.employed


def can_unretire(entity_type: EntityType, facts: LifecycleFacts, status: Status) -> bool:
    return facts.retired


def can_activate(entity_type: EntityType, facts: LifecycleFacts, status: Status) -> bool:
    return not facts.active and not facts.retired


def can_deactivate(entity_type: EntityType, facts: LifecycleFacts, status: Status) -> bool:
    return facts.active and not facts.retired


GUARDS: Dict[Transition, Guard] = {
    Transition.EMPLOY: can_employ,
    Transition.RELEASE: can_release,
    Transition.SUSPEND: can_suspend,
    Transition.REINSTATE: can_reinstate,
    Transition.INJURE: can_injure,
    Transition.CLEAR_INJURY: can_clear_injury,
    Transition.RETIRE: can_retire,
    Transition.UNRETIRE: can_unretire,
    Transition.ACTIVATE: can_activate,
    Transition.DEACTIVATE: can_deactivate,
}


def allows(entity_type: EntityType, transition: Transition, facts: LifecycleFacts, status: Status) -> bool:
    """True iff the type supports ``transition`` and its guard passes."""
    if transition not in entity_type.transitions:
        return False
    return GUARDS[transition](entity_type, facts, status)
