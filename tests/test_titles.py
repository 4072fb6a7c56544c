import pytest

from lifecycle.errors import CannotBeActivatedError, CannotBeDeactivatedError, CannotBeUnretiredError

from timeline import NEXT_WEEK, YESTERDAY


def status(engine, title_id):
    return engine.repo.get_entity("title", title_id)["status"]


def test_title_activation_cycle(engine, clock, make_entity):
    tid = make_entity("title", name="World Heavyweight Championship")
    assert status(engine, tid) == "unactivated"

    engine.activate("title", tid, at=YESTERDAY)
    assert status(engine, tid) == "active"
    with pytest.raises(CannotBeActivatedError):
        engine.activate("title", tid)

    engine.deactivate("title", tid)
    assert status(engine, tid) == "inactive"
    with pytest.raises(CannotBeDeactivatedError):
        engine.deactivate("title", tid)

    clock.advance(hours=1)
    engine.activate("title", tid)
    assert status(engine, tid) == "active"


def test_title_retirement(engine, clock, make_entity):
    tid = make_entity("title", started_at=YESTERDAY)
    with pytest.raises(CannotBeUnretiredError):
        engine.unretire("title", tid)

    engine.retire("title", tid)
    assert status(engine, tid) == "retired"

    clock.advance(days=1)
    engine.unretire("title", tid)
    assert status(engine, tid) == "active"


def test_pending_title_activation_can_be_moved(engine, make_entity):
    tid = make_entity("title", started_at=NEXT_WEEK)
    assert status(engine, tid) == "future-activation"

    engine.activate("title", tid)
    assert status(engine, tid) == "active"
    assert len(engine.history("title", tid)) == 1
