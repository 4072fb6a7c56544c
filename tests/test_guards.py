import pytest

from lifecycle.guards import allows, can_employ, can_release, can_retire, can_suspend
from lifecycle.status import LifecycleFacts
from lifecycle.types import STABLE, TAG_TEAM, TITLE, WRESTLER, IntervalKind as K, Status, Transition

AS_OF = "2024-03-15 12:00:00"


def facts(current=(), future=(), previous=()):
    return LifecycleFacts(as_of=AS_OF, current=frozenset(current), future=frozenset(future), previous=frozenset(previous))


@pytest.mark.parametrize(
    "f,expected",
    [
        (facts(), True),
        (facts(previous={K.EMPLOYMENT}), True),
        (facts(future={K.EMPLOYMENT}), True),
        (facts(current={K.EMPLOYMENT}), False),
        (facts(current={K.RETIREMENT}), False),
    ],
)
def test_can_employ(f, expected):
    assert can_employ(WRESTLER, f, Status.UNEMPLOYED) is expected


def test_release_requires_current_employment():
    assert can_release(WRESTLER, facts(current={K.EMPLOYMENT}), Status.AVAILABLE)
    assert not can_release(WRESTLER, facts(future={K.EMPLOYMENT}), Status.FUTURE_EMPLOYMENT)
    assert not can_release(WRESTLER, facts(previous={K.EMPLOYMENT}), Status.RELEASED)
    assert not can_release(WRESTLER, facts(), Status.UNEMPLOYED)


def test_suspend_blocks_on_pending_or_current_hold():
    assert can_suspend(WRESTLER, facts(current={K.EMPLOYMENT}), Status.AVAILABLE)
    assert not can_suspend(WRESTLER, facts(current={K.EMPLOYMENT, K.SUSPENSION}), Status.SUSPENDED)
    assert not can_suspend(WRESTLER, facts(current={K.EMPLOYMENT}, future={K.SUSPENSION}), Status.AVAILABLE)
    assert not can_suspend(WRESTLER, facts(current={K.EMPLOYMENT, K.INJURY}), Status.INJURED)
    assert not can_suspend(WRESTLER, facts(), Status.UNEMPLOYED)


def test_composite_suspend_requires_bookable_team():
    employed = facts(current={K.EMPLOYMENT})
    assert can_suspend(TAG_TEAM, employed, Status.AVAILABLE)
    assert not can_suspend(TAG_TEAM, employed, Status.UNBOOKABLE)


def test_retire_by_basis():
    assert can_retire(WRESTLER, facts(current={K.EMPLOYMENT, K.SUSPENSION}), Status.SUSPENDED)
    assert not can_retire(WRESTLER, facts(), Status.UNEMPLOYED)
    assert not can_retire(WRESTLER, facts(current={K.RETIREMENT}), Status.RETIRED)
    assert can_retire(TITLE, facts(current={K.ACTIVATION}), Status.ACTIVE)
    assert not can_retire(TITLE, facts(previous={K.ACTIVATION}), Status.INACTIVE)


def test_allows_rejects_transitions_the_type_does_not_have():
    employed = facts(current={K.EMPLOYMENT})
    assert allows(WRESTLER, Transition.INJURE, employed, Status.AVAILABLE)
    assert not allows(TAG_TEAM, Transition.INJURE, employed, Status.AVAILABLE)
    assert not allows(TITLE, Transition.EMPLOY, facts(), Status.UNACTIVATED)
    assert not allows(STABLE, Transition.SUSPEND, facts(current={K.ACTIVATION}), Status.ACTIVE)


def test_activation_guards():
    assert allows(TITLE, Transition.ACTIVATE, facts(), Status.UNACTIVATED)
    assert allows(TITLE, Transition.ACTIVATE, facts(future={K.ACTIVATION}), Status.FUTURE_ACTIVATION)
    assert not allows(TITLE, Transition.ACTIVATE, facts(current={K.ACTIVATION}), Status.ACTIVE)
    assert allows(TITLE, Transition.DEACTIVATE, facts(current={K.ACTIVATION}), Status.ACTIVE)
    assert not allows(TITLE, Transition.DEACTIVATE, facts(), Status.UNACTIVATED)
    assert allows(TITLE, Transition.UNRETIRE, facts(current={K.RETIREMENT}), Status.RETIRED)
