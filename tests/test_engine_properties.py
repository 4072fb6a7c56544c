"""Randomised transition sequences: the store and the cached statuses stay consistent."""

import random

import pytest

from lifecycle import repo as lifecycle_repo
from lifecycle.errors import LifecycleTransitionError
from lifecycle.types import ENTITY_TYPES, EntityRef
from membership import service as membership_service


@pytest.fixture
def roster(engine, make_entity, make_wrestler, make_tag_team):
    w = [make_wrestler() for _ in range(5)]
    team = make_tag_team([w[0], w[1]])
    other_team = make_tag_team([w[2], w[3]], started_at=None)
    manager = make_entity("manager", started_at="2024-03-01 00:00:00")
    stable = membership_service.create_stable(
        engine,
        name="Sequence Stable",
        wrestler_ids=[w[4]],
        tag_team_ids=[team],
        manager_ids=[manager],
        started_at="2024-03-01 00:00:00",
    )
    title = make_entity("title", started_at="2024-03-01 00:00:00")
    refs = [EntityRef("wrestler", i) for i in w]
    refs += [
        EntityRef("tag_team", team),
        EntityRef("tag_team", other_team),
        EntityRef("manager", manager),
        EntityRef("stable", int(stable["id"])),
        EntityRef("title", title),
    ]
    return refs


def _check_consistency(engine, refs):
    with engine.repo.transaction() as cur:
        assert lifecycle_repo.count_open_duplicates(cur) == 0
    for ref in refs:
        stored = engine.repo.get_entity(ref.entity_type, ref.entity_id)["status"]
        assert stored == engine.status_of(ref.entity_type, ref.entity_id), ref
        assert stored in ENTITY_TYPES[ref.entity_type].labels()


@pytest.mark.parametrize("seed", [7, 21, 1337])
def test_random_transition_sequences_keep_invariants(engine, clock, roster, seed):
    rng = random.Random(seed)
    applied = 0
    for _ in range(150):
        ref = rng.choice(roster)
        transition = rng.choice(sorted(ref.type.transitions, key=lambda t: t.value))
        try:
            engine.transition(ref.entity_type, ref.entity_id, transition)
            applied += 1
        except LifecycleTransitionError:
            pass
        _check_consistency(engine, roster)
        clock.advance(minutes=rng.randint(1, 240))
    assert applied > 0
