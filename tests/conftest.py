"""
Pytest fixtures for the roster lifecycle tests.

Provides:
- a temporary SQLite database with the schema applied
- a controllable clock (the engine never reads the host clock)
- a LifecycleEngine bound to both
- small factories for roster entities
"""

import pytest

import roster_service
from lifecycle import LifecycleEngine
from membership import service as membership_service
from roster_repo import RosterRepo
from timeline import NOW, YESTERDAY, FakeClock


# ============================================================================
# DATABASE FIXTURES
# ============================================================================

@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "roster.db")


@pytest.fixture
def clock():
    return FakeClock(NOW)


@pytest.fixture
def repo(db_path, clock):
    r = RosterRepo(db_path, now=clock)
    r.init_db()
    yield r
    r.close()


@pytest.fixture
def engine(repo, clock):
    return LifecycleEngine(repo, now=clock)


# ============================================================================
# ENTITY FACTORIES
# ============================================================================

@pytest.fixture
def make_entity(engine):
    counter = {"n": 0}

    def _make(entity_type: str = "wrestler", *, name: str | None = None, started_at=None) -> int:
        counter["n"] += 1
        row = roster_service.create_entity(
            engine,
            entity_type,
            name=name or f"{entity_type.title()} {counter['n']}",
            started_at=started_at,
        )
        return int(row["id"])

    return _make


@pytest.fixture
def make_wrestler(make_entity):
    def _make(*, started_at=YESTERDAY, name: str | None = None) -> int:
        return make_entity("wrestler", name=name, started_at=started_at)

    return _make


@pytest.fixture
def make_tag_team(engine, make_wrestler):
    counter = {"n": 0}

    def _make(wrestler_ids=None, *, started_at=YESTERDAY) -> int:
        counter["n"] += 1
        ids = list(wrestler_ids) if wrestler_ids is not None else [make_wrestler(), make_wrestler()]
        row = membership_service.create_tag_team(
            engine, name=f"Tag Team {counter['n']}", wrestler_ids=ids, started_at=started_at
        )
        return int(row["id"])

    return _make

