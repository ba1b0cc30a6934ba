"""Test API endpoints."""

import pytest
from fastapi.testclient import TestClient

from rov_draft.api import app


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def admin(client):
    response = client.post("/login", json={"password": "letmein"})
    assert response.status_code == 200
    return client


def test_health_endpoint(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_draft_sequence_endpoint(client):
    data = client.get("/api/draft/sequence").json()
    assert len(data["steps"]) == 18
    assert data["timers"] == {"BAN": 40, "PICK": 60}
    assert data["slots"]["blue_picks"] == [5, 8, 9, 16, 17]


class TestAuth:
    def test_admin_routes_require_cookie(self, client):
        response = client.get("/api/admin/versions")
        assert response.status_code == 401

    def test_wrong_password(self, client):
        response = client.post("/login", json={"password": "nope"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid Password"
        assert "admin_session" not in response.cookies

    def test_missing_configuration(self, client, monkeypatch):
        monkeypatch.delenv("ADMIN_PASSWORD")
        response = client.post("/login", json={"password": "letmein"})
        assert response.status_code == 500
        assert response.json()["detail"] == "System configuration error. Please contact admin."

    def test_login_sets_http_only_cookie(self, client):
        response = client.post("/login", json={"password": "letmein"})
        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Logged in"}
        set_cookie = response.headers["set-cookie"].lower()
        assert "admin_session=true" in set_cookie
        assert "httponly" in set_cookie
        assert "secure" not in set_cookie

    def test_logged_in_then_out(self, admin):
        assert admin.get("/api/admin/versions").status_code == 200
        admin.post("/logout")
        assert admin.get("/api/admin/versions").status_code == 401


class TestAdminFlow:
    def test_version_and_hero(self, admin):
        version = admin.post("/api/admin/versions", json={"name": "S1", "start_date": "2026-01-01"}).json()
        admin.post(f"/api/admin/versions/{version['id']}/activate")

        created = admin.post("/api/admin/heroes", json={
            "name": "Nakroth", "icon_url": "n.png", "version_id": version["id"], "main_position": ["Jungle"],
        })
        assert created.status_code == 200

        heroes = admin.get("/api/admin/heroes", params={"version_id": version["id"]}).json()
        assert [h["name"] for h in heroes] == ["Nakroth"]
        assert heroes[0]["hero_stats"]["win_rate"] == 50.0

    def test_validation_error_is_422(self, admin):
        response = admin.post("/api/admin/heroes", json={"name": "Nakroth", "icon_url": "n.png"})
        assert response.status_code == 422
        assert response.json()["detail"] == "Name, icon URL and version are required"

    def test_unknown_id_is_404(self, admin):
        response = admin.get("/api/admin/tournaments/does-not-exist")
        assert response.status_code == 404

    def test_draft_a_game(self, admin, version, heroes):
        match = admin.post("/api/admin/matches", json={
            "team_a_name": "Alpha", "team_b_name": "Bravo", "mode": "BO1", "version_id": version.id,
        }).json()
        game = admin.post(f"/api/admin/matches/{match['id']}/games", json={}).json()

        finished = admin.post(f"/api/admin/games/{game['id']}/finish", json={
            "winner": "Blue",
            "blue_picks": {"0": heroes["Nakroth"].id},
            "red_picks": {"0": heroes["Liliana"].id},
            "blue_bans": [heroes["Alice"].id],
            "red_bans": [],
            "assignments": {str(heroes["Nakroth"].id): "Jungle"},
        })
        assert finished.status_code == 200
        assert finished.json()["match_status"] == "finished"

        detail = admin.get(f"/api/admin/matches/{match['slug']}").json()
        picks = detail["games"][0]["picks"]
        assert [p["position_index"] for p in picks] == [1, 5, 6]

        analysis = admin.post("/api/admin/win-conditions/analyze", json={
            "allyConditions": [{"heroId": heroes["Nakroth"].id, "role": "Jungle"}],
            "enemyConditions": [],
        }).json()
        assert analysis["totalMatches"] == 1
        assert analysis["winCount"] == 1

        slot = admin.get("/api/debug/slot5").json()
        assert slot["roleCounts"] == {"Jungle": 1}
        assert slot["step"]["side"] == "BLUE"

    def test_repeated_hero_is_422(self, admin, version, heroes):
        match = admin.post("/api/admin/matches", json={
            "team_a_name": "Alpha", "team_b_name": "Bravo", "mode": "BO1", "version_id": version.id,
        }).json()
        game = admin.post(f"/api/admin/matches/{match['id']}/games", json={}).json()
        nak = heroes["Nakroth"].id

        response = admin.post(f"/api/admin/games/{game['id']}/finish", json={
            "winner": "Blue", "blue_picks": {"0": nak}, "blue_bans": [nak],
        })
        assert response.status_code == 422
        assert admin.get(f"/api/admin/games/{game['id']}").json()["picks"] == []

    def test_active_version(self, admin, version):
        assert admin.get("/api/admin/versions/active").json()["id"] == version.id

    def test_no_active_version(self, admin):
        assert admin.get("/api/admin/versions/active").status_code == 404

    def test_draft_replay(self, admin):
        snap = admin.post("/api/admin/draft/replay", json={"hero_ids": [1, 2, 3, 4, 5]}).json()
        assert snap["step_index"] == 5
        assert snap["current_step"]["side"] == "RED"
        assert snap["blue_picks"] == {"0": 5}

        response = admin.post("/api/admin/draft/replay", json={"hero_ids": [1, 1]})
        assert response.status_code == 422

    def test_saved_win_condition_caches_result(self, admin, heroes):
        created = admin.post("/api/admin/win-conditions", json={
            "name": "Jungle Nakroth",
            "ally_conditions": [{"id": "x", "heroId": heroes["Nakroth"].id, "role": "Jungle"}],
        }).json()

        result = admin.post(f"/api/admin/win-conditions/{created['id']}/analyze").json()
        stored = admin.get(f"/api/admin/win-conditions/{created['id']}").json()

        assert result["totalMatches"] == 0
        assert stored["last_result"] == result

    def test_matchups_save_endpoint(self, admin, version, heroes):
        response = admin.post("/api/admin/matchups", json={
            "version_id": version.id,
            "hero_id": heroes["Nakroth"].id,
            "position": "Jungle",
            "matchups": [{"enemy_hero_id": heroes["Tulen"].id, "enemy_position": "Jungle", "win_rate": 55}],
        })
        assert response.json()["success"] is True

        rows = admin.get("/api/admin/matchups", params={
            "version_id": version.id, "hero_id": heroes["Tulen"].id,
        }).json()
        assert rows[0]["win_rate"] == 45


class TestDebug:
    def test_slot_out_of_range(self, client):
        assert client.get("/api/debug/slot/19").status_code == 422

    def test_stats(self, client, version, heroes):
        data = client.get("/api/debug/stats").json()
        assert data["tables"]["heroes"] == len(heroes)
        assert data["heroStatsPerVersion"][0]["heroes"] == len(heroes)
        assert data["heroStatsPerVersion"][0]["is_active"] is True
