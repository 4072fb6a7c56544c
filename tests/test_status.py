import itertools

import pytest

from lifecycle.config import LifecycleConfig
from lifecycle.status import MemberView, collect_facts, derive_status, stable_weight
from lifecycle.types import MANAGER, STABLE, TAG_TEAM, TITLE, WRESTLER, Interval, IntervalKind, Status

AS_OF = "2024-03-15 12:00:00"
PAST = "2024-03-01 00:00:00"
RECENT = "2024-03-10 00:00:00"
FUTURE = "2024-04-01 00:00:00"

_SEQ = itertools.count(1)


def iv(kind, start, end=None, owner_type="wrestler"):
    return Interval(
        interval_id=next(_SEQ),
        owner_type=owner_type,
        owner_id=1,
        kind=IntervalKind(kind),
        started_at=start,
        ended_at=end,
    )


# Each participant interval kind can be absent, current, pending, or finished.
_SHAPES = {
    "none": lambda kind: [],
    "current": lambda kind: [iv(kind, PAST)],
    "future": lambda kind: [iv(kind, FUTURE)],
    "previous": lambda kind: [iv(kind, PAST, RECENT)],
}

_PARTICIPANT_STATUSES = set(WRESTLER.statuses())


@pytest.mark.parametrize(
    "employment,suspension,injury,retirement",
    list(itertools.product(_SHAPES, repeat=4)),
)
def test_participant_derivation_is_total_and_respects_priority(employment, suspension, injury, retirement):
    intervals = (
        _SHAPES[employment]("employment")
        + _SHAPES[suspension]("suspension")
        + _SHAPES[injury]("injury")
        + _SHAPES[retirement]("retirement")
    )
    status = derive_status(WRESTLER, intervals, AS_OF)

    assert status in _PARTICIPANT_STATUSES
    # deterministic regardless of interval order
    assert derive_status(WRESTLER, list(reversed(intervals)), AS_OF) == status

    if retirement == "current":
        assert status == Status.RETIRED
    elif employment == "current" and injury == "current":
        assert status == Status.INJURED
    elif employment == "current" and suspension == "current":
        assert status == Status.SUSPENDED
    elif employment == "current":
        assert status == Status.AVAILABLE
    elif employment == "future":
        assert status == Status.FUTURE_EMPLOYMENT
    elif employment == "previous":
        assert status == Status.RELEASED
    else:
        assert status == Status.UNEMPLOYED


def test_never_employed_is_unemployed_not_released():
    assert derive_status(WRESTLER, [], AS_OF) == Status.UNEMPLOYED
    assert derive_status(MANAGER, [], AS_OF) == Status.UNEMPLOYED


def test_suspension_without_employment_is_ignored():
    intervals = [iv("employment", PAST, RECENT), iv("suspension", PAST)]
    assert derive_status(WRESTLER, intervals, AS_OF) == Status.RELEASED


def test_interval_ending_exactly_at_as_of_is_previous():
    intervals = [iv("employment", PAST, AS_OF)]
    facts = collect_facts(intervals, as_of=AS_OF)
    assert not facts.employed
    assert IntervalKind.EMPLOYMENT in facts.previous
    assert derive_status(WRESTLER, intervals, AS_OF) == Status.RELEASED


def test_interval_starting_exactly_at_as_of_is_current():
    intervals = [iv("employment", AS_OF)]
    assert derive_status(WRESTLER, intervals, AS_OF) == Status.AVAILABLE


def test_labels_are_type_specific():
    assert WRESTLER.label(Status.AVAILABLE) == "bookable"
    assert MANAGER.label(Status.AVAILABLE) == "available"
    assert WRESTLER.status_from_label("bookable") == Status.AVAILABLE
    assert WRESTLER.label(Status.FUTURE_EMPLOYMENT) == "future-employment"


class TestTagTeamStatus:
    def members(self, *statuses):
        return [MemberView("wrestler", i + 1, s) for i, s in enumerate(statuses)]

    def test_bookable_when_employed_with_two_available_wrestlers(self):
        intervals = [iv("employment", PAST, owner_type="tag_team")]
        members = self.members(Status.AVAILABLE, Status.AVAILABLE)
        assert derive_status(TAG_TEAM, intervals, AS_OF, members) == Status.AVAILABLE

    def test_member_suspension_suspends_the_team(self):
        intervals = [iv("employment", PAST, owner_type="tag_team")]
        members = self.members(Status.AVAILABLE, Status.SUSPENDED)
        assert derive_status(TAG_TEAM, intervals, AS_OF, members) == Status.SUSPENDED

    def test_member_injury_makes_team_unbookable(self):
        intervals = [iv("employment", PAST, owner_type="tag_team")]
        members = self.members(Status.INJURED, Status.AVAILABLE)
        assert derive_status(TAG_TEAM, intervals, AS_OF, members) == Status.UNBOOKABLE

    def test_missing_partner_makes_team_unbookable(self):
        intervals = [iv("employment", PAST, owner_type="tag_team")]
        assert derive_status(TAG_TEAM, intervals, AS_OF, self.members(Status.AVAILABLE)) == Status.UNBOOKABLE

    def test_retirement_wins_over_members(self):
        intervals = [iv("employment", PAST, RECENT, owner_type="tag_team"), iv("retirement", RECENT, owner_type="tag_team")]
        members = self.members(Status.SUSPENDED, Status.AVAILABLE)
        assert derive_status(TAG_TEAM, intervals, AS_OF, members) == Status.RETIRED

    def test_unemployed_team_ignores_members(self):
        members = self.members(Status.AVAILABLE, Status.AVAILABLE)
        assert derive_status(TAG_TEAM, [], AS_OF, members) == Status.UNEMPLOYED


class TestActivationStatus:
    def test_title_statuses(self):
        assert derive_status(TITLE, [], AS_OF) == Status.UNACTIVATED
        assert derive_status(TITLE, [iv("activation", FUTURE, owner_type="title")], AS_OF) == Status.FUTURE_ACTIVATION
        assert derive_status(TITLE, [iv("activation", PAST, owner_type="title")], AS_OF) == Status.ACTIVE
        assert derive_status(TITLE, [iv("activation", PAST, RECENT, owner_type="title")], AS_OF) == Status.INACTIVE
        retired = [iv("activation", PAST, RECENT, owner_type="title"), iv("retirement", RECENT, owner_type="title")]
        assert derive_status(TITLE, retired, AS_OF) == Status.RETIRED

    def test_stable_weight_counts_tag_teams_double_and_ignores_managers(self):
        members = [
            MemberView("wrestler", 1, Status.AVAILABLE),
            MemberView("tag_team", 1, Status.AVAILABLE),
            MemberView("manager", 1, Status.AVAILABLE),
        ]
        assert stable_weight(members) == 3
        assert stable_weight(members, LifecycleConfig(tag_team_size=3)) == 4

    def test_active_stable_below_minimum_is_unbookable(self):
        intervals = [iv("activation", PAST, owner_type="stable")]
        two = [MemberView("wrestler", 1, Status.AVAILABLE), MemberView("wrestler", 2, Status.AVAILABLE)]
        assert derive_status(STABLE, intervals, AS_OF, two) == Status.UNBOOKABLE
        three = two + [MemberView("wrestler", 3, Status.RETIRED)]
        assert derive_status(STABLE, intervals, AS_OF, three) == Status.ACTIVE
