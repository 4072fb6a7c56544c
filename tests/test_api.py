import pytest
from fastapi.testclient import TestClient

import config
import state
from app.main import app

from timeline import NEXT_WEEK, YESTERDAY, FakeClock


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setenv(config.DB_PATH_ENV, str(tmp_path / "api.db"))
    monkeypatch.delenv(config.ADMIN_TOKEN_ENV, raising=False)
    state.set_clock(FakeClock())
    with TestClient(app) as c:
        yield c
    state.reset_clock()
    state.reset_db_path()


def create_wrestler(client, name, **extra):
    resp = client.post("/api/wrestlers", json={"name": name, "started_at": YESTERDAY, **extra})
    assert resp.status_code == 200, resp.text
    return resp.json()["entity"]["id"]


def test_create_and_read_wrestler(client):
    resp = client.post(
        "/api/wrestlers",
        json={"name": "Kai Storm", "height_in": 74, "hometown": "Tampa", "started_at": YESTERDAY},
    )
    assert resp.status_code == 200
    entity = resp.json()["entity"]
    assert entity["status"] == "bookable"
    assert entity["height_in"] == 74

    detail = client.get(f"/api/wrestlers/{entity['id']}").json()
    assert [iv["kind"] for iv in detail["intervals"]] == ["employment"]

    listing = client.get("/api/wrestlers", params={"status": "bookable"}).json()
    assert listing["count"] == 1


def test_transition_endpoint(client):
    wid = create_wrestler(client, "Lou Vance")

    resp = client.post(f"/api/wrestlers/{wid}/suspend")
    assert resp.status_code == 200
    assert resp.json()["result"]["status"] == "suspended"

    resp = client.post(f"/api/wrestlers/{wid}/suspend")
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "CANNOT_BE_SUSPENDED"

    resp = client.post(f"/api/wrestlers/{wid}/reinstate", json={})
    assert resp.json()["result"]["status"] == "bookable"


def test_transition_errors_map_to_http_status(client):
    wid = create_wrestler(client, "Rey Rivera")
    title = client.post("/api/titles", json={"name": "Tag Team Championship", "started_at": YESTERDAY}).json()

    assert client.post(f"/api/wrestlers/{wid}/promote").status_code == 400
    assert client.post(f"/api/wrestlers/{wid}/retire", json={"at": NEXT_WEEK}).status_code == 400
    resp = client.post(f"/api/titles/{title['entity']['id']}/injure")
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "UNSUPPORTED_TRANSITION"
    assert client.post("/api/wrestlers/999/employ").status_code == 404
    assert client.get("/api/promoters").status_code == 404
    assert client.get("/api/wrestlers", params={"status": "champion"}).status_code == 400


def test_future_employment_via_api(client):
    resp = client.post("/api/wrestlers", json={"name": "Rookie"})
    wid = resp.json()["entity"]["id"]
    assert resp.json()["entity"]["status"] == "unemployed"

    resp = client.post(f"/api/wrestlers/{wid}/employ", json={"at": NEXT_WEEK})
    assert resp.json()["result"]["status"] == "future-employment"


def test_tag_team_and_stable_endpoints(client):
    w = [create_wrestler(client, f"Wrestler {i}") for i in range(4)]

    resp = client.post("/api/tag-teams", json={"name": "The Duo", "wrestler_ids": w[:2], "started_at": YESTERDAY})
    assert resp.status_code == 200
    team_id = resp.json()["entity"]["id"]
    assert resp.json()["entity"]["status"] == "bookable"

    resp = client.post("/api/tag-teams", json={"name": "Copycats", "wrestler_ids": [w[1], w[2]]})
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "CANNOT_JOIN_TAG_TEAM"

    resp = client.post(
        f"/api/tag-teams/{team_id}/partners/replace", json={"old_wrestler_id": w[1], "new_wrestler_id": w[2]}
    )
    assert resp.status_code == 200

    resp = client.post("/api/stables", json={"name": "Crew", "wrestler_ids": [w[3]], "tag_team_ids": [team_id]})
    assert resp.status_code == 200
    stable_id = resp.json()["entity"]["id"]
    assert client.post(f"/api/stables/{stable_id}/activate").json()["result"]["status"] == "active"

    resp = client.delete(f"/api/stables/{stable_id}/members/wrestler/{w[3]}")
    assert resp.json()["entity"]["status"] == "unbookable"
    resp = client.post(f"/api/stables/{stable_id}/members", json={"member_type": "wrestler", "member_id": w[1]})
    assert resp.json()["entity"]["status"] == "active"

    resp = client.post(f"/api/tag-teams/{team_id}/retire")
    assert set(resp.json()["result"]["cascaded"]) == {f"wrestler:{w[0]}", f"wrestler:{w[2]}"}


def test_delete_and_restore(client):
    wid = create_wrestler(client, "Ghost")
    assert client.delete(f"/api/wrestlers/{wid}").json() == {"ok": True}
    assert client.get(f"/api/wrestlers/{wid}").status_code == 404
    assert client.post(f"/api/wrestlers/{wid}/suspend").status_code == 404

    resp = client.post(f"/api/wrestlers/{wid}/restore")
    assert resp.status_code == 200
    assert resp.json()["entity"]["status"] == "bookable"


class TestMatchEndpoints:
    def test_match_types(self, client):
        body = client.get("/api/match-types").json()
        assert body["count"] == 14

    def test_validate(self, client):
        a, b, c = (create_wrestler(client, n) for n in ("A", "B", "C"))
        ok = client.post(
            "/api/matches/validate",
            json={"match_type": "singles", "sides": [{"wrestlers": [a]}, {"wrestlers": [b]}]},
        )
        assert ok.status_code == 200
        assert ok.json()["valid"] is True

        bad = client.post(
            "/api/matches/validate",
            json={"match_type": "singles", "sides": [{"wrestlers": [a]}, {"wrestlers": [b]}, {"wrestlers": [c]}]},
        )
        assert bad.status_code == 422
        assert bad.json()["detail"]["code"] == "MATCH_SIDE_COUNT"
        assert bad.json()["detail"]["details"] == {"expected": 2, "actual": 3}

    def test_unknown_match_type(self, client):
        resp = client.post("/api/matches/validate", json={"match_type": "ladder", "sides": []})
        assert resp.status_code == 404


class TestAdminToken:
    def test_state_changing_calls_need_the_token(self, client, monkeypatch):
        monkeypatch.setenv(config.ADMIN_TOKEN_ENV, "s3cret")

        resp = client.post("/api/wrestlers", json={"name": "Blocked"})
        assert resp.status_code == 401
        assert resp.json() == {"detail": "Unauthorized: invalid X-Admin-Token"}

        resp = client.post("/api/wrestlers", json={"name": "Allowed"}, headers={"X-Admin-Token": "s3cret"})
        assert resp.status_code == 200

    def test_reads_and_match_validation_stay_open(self, client, monkeypatch):
        monkeypatch.setenv(config.ADMIN_TOKEN_ENV, "s3cret")
        assert client.get("/api/wrestlers").status_code == 200
        resp = client.post("/api/matches/validate", json={"match_type": "singles", "sides": []})
        assert resp.status_code == 200
