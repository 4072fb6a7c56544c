from __future__ import annotations

"""Public data types for the lifecycle subsystem.

Entity types are described by data (``EntityType``) rather than by subclasses:
one engine serves every roster entity, and each descriptor says which interval
kinds and transitions the type supports, how its "employed and clear" status is
labelled, and which member types it can contain.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Tuple


class IntervalKind(str, Enum):
    EMPLOYMENT = "employment"
    SUSPENSION = "suspension"
    INJURY = "injury"
    RETIREMENT = "retirement"
    ACTIVATION = "activation"


class Status(str, Enum):
    """Canonical lifecycle status (storage labels may differ per entity type)."""

    UNEMPLOYED = "unemployed"
    FUTURE_EMPLOYMENT = "future-employment"
    AVAILABLE = "available"
    SUSPENDED = "suspended"
    INJURED = "injured"
    RELEASED = "released"
    RETIRED = "retired"
    UNBOOKABLE = "unbookable"
    UNACTIVATED = "unactivated"
    FUTURE_ACTIVATION = "future-activation"
    ACTIVE = "active"
    INACTIVE = "inactive"


class Transition(str, Enum):
    EMPLOY = "employ"
    RELEASE = "release"
    SUSPEND = "suspend"
    REINSTATE = "reinstate"
    INJURE = "injure"
    CLEAR_INJURY = "clear-injury"
    RETIRE = "retire"
    UNRETIRE = "unretire"
    ACTIVATE = "activate"
    DEACTIVATE = "deactivate"


BASIS_EMPLOYMENT = "employment"
BASIS_ACTIVATION = "activation"

# Transitions that may be dated in the future (they create a pending interval).
SCHEDULABLE_TRANSITIONS = frozenset({Transition.EMPLOY, Transition.ACTIVATE})


@dataclass(frozen=True, slots=True)
class EntityType:
    name: str
    table: str
    basis: str
    transitions: FrozenSet[Transition]
    available_label: str = "bookable"
    member_types: Tuple[str, ...] = ()

    @property
    def is_composite(self) -> bool:
        return bool(self.member_types)

    @property
    def base_kind(self) -> IntervalKind:
        if self.basis == BASIS_ACTIVATION:
            return IntervalKind.ACTIVATION
        return IntervalKind.EMPLOYMENT

    @property
    def initial_status(self) -> Status:
        """Status of a freshly created entity with no intervals."""
        if self.basis == BASIS_ACTIVATION:
            return Status.UNACTIVATED
        return Status.UNEMPLOYED

    def label(self, status: Status) -> str:
        if status == Status.AVAILABLE:
            return self.available_label
        return status.value

    def status_from_label(self, label: str) -> Status:
        s = str(label or "").strip().lower()
        if s == self.available_label:
            return Status.AVAILABLE
        return Status(s)

    def labels(self) -> Tuple[str, ...]:
        return tuple(self.label(s) for s in self.statuses())

    def statuses(self) -> Tuple[Status, ...]:
        if self.basis == BASIS_ACTIVATION:
            out = [Status.UNACTIVATED, Status.FUTURE_ACTIVATION, Status.ACTIVE, Status.INACTIVE, Status.RETIRED]
            if self.is_composite:
                out.append(Status.UNBOOKABLE)
            return tuple(out)
        out = [
            Status.UNEMPLOYED,
            Status.FUTURE_EMPLOYMENT,
            Status.AVAILABLE,
            Status.SUSPENDED,
            Status.RELEASED,
            Status.RETIRED,
        ]
        if Transition.INJURE in self.transitions:
            out.append(Status.INJURED)
        if self.is_composite:
            out.append(Status.UNBOOKABLE)
        return tuple(out)


_PARTICIPANT_TRANSITIONS = frozenset(
    {
        Transition.EMPLOY,
        Transition.RELEASE,
        Transition.SUSPEND,
        Transition.REINSTATE,
        Transition.INJURE,
        Transition.CLEAR_INJURY,
        Transition.RETIRE,
        Transition.UNRETIRE,
    }
)

_ACTIVATION_TRANSITIONS = frozenset(
    {Transition.ACTIVATE, Transition.DEACTIVATE, Transition.RETIRE, Transition.UNRETIRE}
)

WRESTLER = EntityType("wrestler", "wrestlers", BASIS_EMPLOYMENT, _PARTICIPANT_TRANSITIONS)
MANAGER = EntityType("manager", "managers", BASIS_EMPLOYMENT, _PARTICIPANT_TRANSITIONS, available_label="available")
REFEREE = EntityType("referee", "referees", BASIS_EMPLOYMENT, _PARTICIPANT_TRANSITIONS)
TAG_TEAM = EntityType(
    "tag_team",
    "tag_teams",
    BASIS_EMPLOYMENT,
    _PARTICIPANT_TRANSITIONS - {Transition.INJURE, Transition.CLEAR_INJURY},
    member_types=("wrestler",),
)
STABLE = EntityType(
    "stable",
    "stables",
    BASIS_ACTIVATION,
    _ACTIVATION_TRANSITIONS,
    member_types=("wrestler", "tag_team", "manager"),
)
TITLE = EntityType("title", "titles", BASIS_ACTIVATION, _ACTIVATION_TRANSITIONS)

ENTITY_TYPES: Dict[str, EntityType] = {
    t.name: t for t in (WRESTLER, MANAGER, REFEREE, TAG_TEAM, STABLE, TITLE)
}

PARTICIPANT_TYPES = (WRESTLER.name, MANAGER.name, REFEREE.name)


def get_entity_type(name: str) -> EntityType:
    """Resolve ``wrestler`` / ``wrestlers`` / ``tag-team`` / ``tag_teams`` etc."""
    key = str(name or "").strip().lower().replace("-", "_")
    if key in ENTITY_TYPES:
        return ENTITY_TYPES[key]
    for t in ENTITY_TYPES.values():
        if key == t.table:
            return t
    raise KeyError(f"unknown entity type: {name!r}")


@dataclass(frozen=True, slots=True)
class EntityRef:
    entity_type: str
    entity_id: int

    @property
    def type(self) -> EntityType:
        return ENTITY_TYPES[self.entity_type]

    def __str__(self) -> str:
        return f"{self.entity_type}:{self.entity_id}"


@dataclass(frozen=True, slots=True)
class Interval:
    """One lifecycle span. ``ended_at`` is None while the interval is open."""

    interval_id: int
    owner_type: str
    owner_id: int
    kind: IntervalKind
    started_at: str
    ended_at: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.ended_at is None

    def is_current(self, as_of: str) -> bool:
        return self.started_at <= as_of and (self.ended_at is None or self.ended_at > as_of)

    def is_future(self, as_of: str) -> bool:
        return self.started_at > as_of

    def is_previous(self, as_of: str) -> bool:
        return self.ended_at is not None and self.ended_at <= as_of

    def to_row(self) -> Dict[str, Any]:
        return {
            "interval_id": int(self.interval_id),
            "owner_type": self.owner_type,
            "owner_id": int(self.owner_id),
            "kind": self.kind.value,
            "started_at": self.started_at,
            "ended_at": self.ended_at,
        }


@dataclass(frozen=True, slots=True)
class TransitionResult:
    entity_type: str
    entity_id: int
    transition: Transition
    at: str
    status: str
    cascaded: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entity_type": self.entity_type,
            "entity_id": int(self.entity_id),
            "transition": self.transition.value,
            "at": self.at,
            "status": self.status,
            "cascaded": list(self.cascaded),
        }
