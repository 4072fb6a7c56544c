from __future__ import annotations

"""Lifecycle status derivation.

This module turns an entity's intervals into a single status for a given
instant. It is pure: no DB access and no clock. The engine persists the result
on the entity row as a cached projection; the intervals stay authoritative.

Interval semantics at ``as_of``
-------------------------------
- current:  ``started_at <= as_of`` and (open or ``ended_at > as_of``)
- future:   ``started_at > as_of``
- previous: ``ended_at <= as_of``

Participant priority (first match wins)
---------------------------------------
1. current retirement                               -> RETIRED
2. current employment + current injury              -> INJURED
3. current employment + current suspension          -> SUSPENDED
4. current employment                               -> AVAILABLE
5. future employment                                -> FUTURE_EMPLOYMENT
6. previous employment                              -> RELEASED
7. otherwise                                        -> UNEMPLOYED

Injury and suspension only count while employed; retirement always wins.
A participant that was never employed is UNEMPLOYED, not RELEASED.

Composite and activation-based entities follow the same shape (see
``derive_status``).
"""

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional, Sequence, Tuple

from .config import DEFAULT_LIFECYCLE_CONFIG, LifecycleConfig
from .types import BASIS_ACTIVATION, TAG_TEAM, EntityType, Interval, IntervalKind, Status


@dataclass(frozen=True, slots=True)
class LifecycleFacts:
    """Which interval kinds are current / future / previous at ``as_of``."""

    as_of: str
    current: FrozenSet[IntervalKind]
    future: FrozenSet[IntervalKind]
    previous: FrozenSet[IntervalKind]

    @property
    def employed(self) -> bool:
        return IntervalKind.EMPLOYMENT in self.current

    @property
    def future_employed(self) -> bool:
        return IntervalKind.EMPLOYMENT in self.future

    @property
    def suspended(self) -> bool:
        return IntervalKind.SUSPENSION in self.current

    @property
    def injured(self) -> bool:
        return IntervalKind.INJURY in self.current

    @property
    def retired(self) -> bool:
        return IntervalKind.RETIREMENT in self.current

    @property
    def active(self) -> bool:
        return IntervalKind.ACTIVATION in self.current

    @property
    def future_active(self) -> bool:
        return IntervalKind.ACTIVATION in self.future

    def pending_or_current(self, kind: IntervalKind) -> bool:
        return kind in self.current or kind in self.future


def collect_facts(intervals: Iterable[Interval], *, as_of: str) -> LifecycleFacts:
    current: set[IntervalKind] = set()
    future: set[IntervalKind] = set()
    previous: set[IntervalKind] = set()
    for iv in intervals:
        if iv.is_current(as_of):
            current.add(iv.kind)
        elif iv.is_future(as_of):
            future.add(iv.kind)
        elif iv.is_previous(as_of):
            previous.add(iv.kind)
    return LifecycleFacts(
        as_of=as_of,
        current=frozenset(current),
        future=frozenset(future),
        previous=frozenset(previous),
    )


@dataclass(frozen=True, slots=True)
class MemberView:
    """A current member of a composite, as seen by the composite's deriver."""

    member_type: str
    member_id: int
    status: Status


def _participant_status(facts: LifecycleFacts) -> Status:
    if facts.retired:
        return Status.RETIRED
    if facts.employed:
        if facts.injured:
            return Status.INJURED
        if facts.suspended:
            return Status.SUSPENDED
        return Status.AVAILABLE
    if facts.future_employed:
        return Status.FUTURE_EMPLOYMENT
    if IntervalKind.EMPLOYMENT in facts.previous:
        return Status.RELEASED
    return Status.UNEMPLOYED


def _tag_team_status(facts: LifecycleFacts, members: Sequence[MemberView], config: LifecycleConfig) -> Status:
    if facts.retired:
        return Status.RETIRED
    if facts.employed:
        wrestlers = [m for m in members if m.member_type == "wrestler"]
        if facts.suspended or any(m.status == Status.SUSPENDED for m in wrestlers):
            return Status.SUSPENDED
        if len(wrestlers) < int(config.tag_team_size):
            return Status.UNBOOKABLE
        if any(m.status != Status.AVAILABLE for m in wrestlers):
            return Status.UNBOOKABLE
        return Status.AVAILABLE
    if facts.future_employed:
        return Status.FUTURE_EMPLOYMENT
    if IntervalKind.EMPLOYMENT in facts.previous:
        return Status.RELEASED
    return Status.UNEMPLOYED


def stable_weight(members: Sequence[MemberView], config: LifecycleConfig = DEFAULT_LIFECYCLE_CONFIG) -> int:
    """Weighted stable size: wrestlers count 1, tag teams count tag_team_size, managers 0."""
    weight = 0
    for m in members:
        if m.member_type == "wrestler":
            weight += 1
        elif m.member_type == "tag_team":
            weight += int(config.tag_team_size)
    return weight


def _activation_status(
    facts: LifecycleFacts,
    members: Optional[Sequence[MemberView]],
    config: LifecycleConfig,
) -> Status:
    if facts.retired:
        return Status.RETIRED
    if facts.active:
        if members is not None and stable_weight(members, config) < int(config.stable_min_members):
            return Status.UNBOOKABLE
        return Status.ACTIVE
    if facts.future_active:
        return Status.FUTURE_ACTIVATION
    if IntervalKind.ACTIVATION in facts.previous:
        return Status.INACTIVE
    return Status.UNACTIVATED


def derive_status(
    entity_type: EntityType,
    intervals: Iterable[Interval],
    as_of: str,
    member_statuses: Optional[Sequence[MemberView]] = None,
    *,
    config: LifecycleConfig = DEFAULT_LIFECYCLE_CONFIG,
) -> Status:
    """Return the single canonical status of an entity at ``as_of``.

    ``member_statuses`` is only consulted for composite types; callers pass the
    composite's current members with their own derived statuses.
    """
    facts = collect_facts(intervals, as_of=as_of)
    return derive_status_from_facts(entity_type, facts, member_statuses, config=config)


def derive_status_from_facts(
    entity_type: EntityType,
    facts: LifecycleFacts,
    member_statuses: Optional[Sequence[MemberView]] = None,
    *,
    config: LifecycleConfig = DEFAULT_LIFECYCLE_CONFIG,
) -> Status:
    members: Tuple[MemberView, ...] = tuple(member_statuses or ())
    if entity_type.basis == BASIS_ACTIVATION:
        return _activation_status(facts, members if entity_type.is_composite else None, config)
    if entity_type.name == TAG_TEAM.name:
        return _tag_team_status(facts, members, config)
    return _participant_status(facts)
