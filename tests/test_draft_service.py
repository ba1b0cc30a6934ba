"""Tests for draft matches, games and scrim entry."""

from datetime import date

import pytest

from rov_draft import draft_service
from rov_draft.models import DraftGame, DraftMatch, DraftPick


@pytest.fixture
def bo3(db, version, tournament):
    result = draft_service.create_match(db, "Alpha", "Bravo", "BO3", version.id, tournament.id, date(2026, 3, 1))
    return result["id"]


def _finish(db, game_id, winner, heroes, assignments=None):
    return draft_service.finish_game(
        db,
        game_id,
        winner=winner,
        blue_picks={0: heroes["Nakroth"].id, 1: heroes["Liliana"].id},
        red_picks={0: heroes["Florentino"].id},
        blue_bans=[heroes["Alice"].id],
        red_bans=[heroes["Valhein"].id],
        assignments=assignments or {heroes["Nakroth"].id: "Jungle"},
    )


class TestSlugs:
    def test_match_slug_sequence_per_day(self, db, version):
        first = draft_service.create_match(db, "A", "B", "BO1", version.id, match_date=date(2026, 3, 1))
        second = draft_service.create_match(db, "C", "D", "BO1", version.id, match_date=date(2026, 3, 1))
        other_day = draft_service.create_match(db, "E", "F", "BO1", version.id, match_date=date(2026, 3, 2))
        assert first["slug"] == "20260301-01"
        assert second["slug"] == "20260301-02"
        assert other_day["slug"] == "20260302-01"

    def test_scrim_slugs_and_types(self, db, version, tournament):
        full = draft_service.create_scrim(db, date(2026, 3, 1), version.id, tournament.id, mode="FULL")
        summary = draft_service.create_scrim(db, date(2026, 3, 1), version.id, tournament.id, mode="SUMMARY")
        assert full["slug"] == "SCRIM000001"
        assert full["match_type"] == "scrim_simulator"
        assert summary["slug"] == "SCRIM000002"
        assert summary["match_type"] == "scrim_summary"

    def test_scrim_requires_fields(self, db, version):
        with pytest.raises(ValueError, match="Missing required fields"):
            draft_service.create_scrim(db, date(2026, 3, 1), version.id, None)

    def test_scrim_default_team_names(self, db, version, tournament):
        result = draft_service.create_scrim(db, date(2026, 3, 1), version.id, tournament.id)
        match = db.get(DraftMatch, result["id"])
        assert (match.team_a_name, match.team_b_name) == ("Team A", "Team B")


class TestMatches:
    def test_unknown_mode(self, db, version):
        with pytest.raises(ValueError):
            draft_service.create_match(db, "A", "B", "BO9", version.id)

    def test_filter_by_match_type(self, db, bo3, version, tournament):
        draft_service.create_scrim(db, date(2026, 3, 1), version.id, tournament.id, mode="SUMMARY")
        assert [m["id"] for m in draft_service.get_matches(db, "scrim_simulator")] == [bo3]
        with pytest.raises(ValueError):
            draft_service.get_matches(db, "ranked")

    def test_get_match_by_id_or_slug(self, db, bo3):
        by_id = draft_service.get_match(db, bo3)
        by_slug = draft_service.get_match(db, by_id["slug"])
        assert by_slug["id"] == bo3
        assert by_id["version_name"] == "S1 2026"

    def test_games_are_numbered(self, db, bo3):
        draft_service.create_game(db, bo3)
        draft_service.create_game(db, bo3, blue_team_name="Bravo", red_team_name="Alpha")
        games = draft_service.get_match(db, bo3)["games"]
        assert [g["game_number"] for g in games] == [1, 2]
        assert games[1]["blue_team_name"] == "Bravo"

    def test_cannot_exceed_best_of(self, db, version):
        match_id = draft_service.create_match(db, "A", "B", "BO1", version.id)["id"]
        draft_service.create_game(db, match_id)
        with pytest.raises(ValueError):
            draft_service.create_game(db, match_id)

    def test_delete_match_cascades(self, db, bo3, heroes):
        game = draft_service.create_game(db, bo3)
        _finish(db, game["id"], "Blue", heroes)

        draft_service.delete_match(db, bo3)

        assert db.query(DraftGame).count() == 0
        assert db.query(DraftPick).count() == 0


class TestFinishGame:
    def test_stores_picks_on_absolute_slots(self, db, bo3, heroes):
        game = draft_service.create_game(db, bo3)
        result = _finish(db, game["id"], "blue", heroes)

        assert result["match_status"] == "ongoing"
        stored = draft_service.get_game(db, game["id"])
        assert stored["winner"] == "Blue"
        assert stored["status"] == "finished"
        slots = {p["position_index"]: p for p in stored["picks"]}
        assert set(slots) == {1, 2, 5, 6, 8}
        assert slots[5]["assigned_role"] == "Jungle"
        # Liliana only plays Mid, so her role is filled in
        assert slots[8]["assigned_role"] == "Mid"
        assert slots[1]["type"] == "BAN"

    def test_multi_position_hero_stays_flex(self, db, bo3, heroes):
        game = draft_service.create_game(db, bo3)
        draft_service.finish_game(
            db, game["id"], "Blue",
            blue_picks={0: heroes["Tulen"].id}, red_picks={}, blue_bans=[], red_bans=[], assignments={},
        )
        assert draft_service.get_game(db, game["id"])["picks"][0]["assigned_role"] == "Flex"

    def test_rejects_hero_picked_twice(self, db, bo3, heroes):
        game = draft_service.create_game(db, bo3)
        nak, tulen = heroes["Nakroth"].id, heroes["Tulen"].id
        with pytest.raises(ValueError, match="more than once"):
            draft_service.finish_game(
                db, game["id"], "Blue",
                blue_picks={0: nak, 1: tulen, 2: nak}, red_picks={},
                blue_bans=[], red_bans=[], assignments={nak: "Jungle"},
            )
        assert db.query(DraftPick).count() == 0
        assert db.get(DraftGame, game["id"]).winner is None

    def test_rejects_hero_banned_and_picked(self, db, bo3, heroes):
        game = draft_service.create_game(db, bo3)
        nak = heroes["Nakroth"].id
        with pytest.raises(ValueError):
            draft_service.finish_game(
                db, game["id"], "Blue",
                blue_picks={}, red_picks={0: nak}, blue_bans=[nak], red_bans=[], assignments={},
            )

    def test_reports_duplicate_roles(self, db, bo3, heroes):
        game = draft_service.create_game(db, bo3)
        nak, tulen = heroes["Nakroth"].id, heroes["Tulen"].id
        result = draft_service.finish_game(
            db, game["id"], "Blue",
            blue_picks={0: nak, 1: tulen}, red_picks={0: heroes["Florentino"].id},
            blue_bans=[], red_bans=[], assignments={nak: "Jungle", tulen: "Jungle"},
        )
        assert result["success"] is True
        assert result["duplicate_roles"] == {"Blue": ["Jungle"], "Red": []}

    def test_refinishing_replaces_picks(self, db, bo3, heroes):
        game = draft_service.create_game(db, bo3)
        _finish(db, game["id"], "Blue", heroes)
        _finish(db, game["id"], "Red", heroes)
        assert db.query(DraftPick).filter(DraftPick.game_id == game["id"]).count() == 5

    def test_invalid_winner(self, db, bo3, heroes):
        game = draft_service.create_game(db, bo3)
        with pytest.raises(ValueError):
            _finish(db, game["id"], "Green", heroes)

    def test_match_finishes_on_majority(self, db, bo3, heroes):
        g1 = draft_service.create_game(db, bo3)
        _finish(db, g1["id"], "Blue", heroes)
        g2 = draft_service.create_game(db, bo3, blue_team_name="Bravo", red_team_name="Alpha")
        result = _finish(db, g2["id"], "Red", heroes)
        assert result["match_status"] == "finished"


class TestSeriesDecided:
    def _game(self, winner, blue="Alpha", red="Bravo"):
        return DraftGame(winner=winner, blue_team_name=blue, red_team_name=red)

    def test_even_best_of_needs_every_game(self):
        games = [self._game("Blue"), self._game("Blue")]
        assert draft_service.series_is_decided("BO2", games)
        assert not draft_service.series_is_decided("BO4", games)

    def test_odd_best_of_majority(self):
        assert not draft_service.series_is_decided("BO5", [self._game("Blue"), self._game("Red")])
        swapped = [self._game("Blue"), self._game("Red", blue="Bravo", red="Alpha")]
        assert draft_service.series_is_decided("BO3", swapped)


class TestScrimSummary:
    def test_save_summary_finishes_match(self, db, version, tournament, heroes):
        match_id = draft_service.create_scrim(
            db, date(2026, 3, 1), version.id, tournament.id, mode="SUMMARY",
            team_a_name="Alpha", team_b_name="Bravo", best_of="BO2",
        )["id"]
        games = [
            {
                "game_number": 1,
                "winner": "blue",
                "blue_picks": [{"hero_id": heroes["Nakroth"].id, "role": "Jungle"}],
                "red_picks": [{"hero_id": heroes["Liliana"].id, "role": "Mid"}, {"hero_id": None}],
            },
            {
                "game_number": 2,
                "blue_team_name": "Bravo",
                "red_team_name": "Alpha",
                "winner": "red",
                "blue_picks": [],
                "red_picks": [{"hero_id": heroes["Nakroth"].id, "role": "Jungle"}],
            },
        ]

        result = draft_service.save_scrim_summary(db, match_id, games)

        assert result["match_status"] == "finished"
        match = draft_service.get_match(db, match_id)
        assert [g["winner"] for g in match["games"]] == ["Blue", "Red"]
        first = match["games"][0]["picks"]
        assert {(p["side"], p["position_index"]) for p in first} == {("BLUE", 1), ("RED", 1)}

    def test_resaving_updates_game(self, db, version, tournament, heroes):
        match_id = draft_service.create_scrim(db, date(2026, 3, 1), version.id, tournament.id, mode="SUMMARY", best_of="BO3")["id"]
        entry = {"game_number": 1, "winner": "blue", "blue_picks": [{"hero_id": heroes["Alice"].id}]}
        draft_service.save_scrim_summary(db, match_id, [entry])
        result = draft_service.save_scrim_summary(db, match_id, [{**entry, "winner": "red"}])

        assert result["match_status"] == "ongoing"
        assert db.query(DraftGame).count() == 1
        assert db.query(DraftGame).one().winner == "Red"

    def test_game_number_outside_best_of(self, db, version, tournament):
        match_id = draft_service.create_scrim(db, date(2026, 3, 1), version.id, tournament.id, mode="SUMMARY")["id"]
        with pytest.raises(ValueError):
            draft_service.save_scrim_summary(db, match_id, [{"game_number": 2, "winner": "blue"}])


def test_load_finished_games_filters_status(db, bo3, heroes):
    g1 = draft_service.create_game(db, bo3)
    _finish(db, g1["id"], "Blue", heroes)
    draft_service.create_game(db, bo3)

    games = draft_service.load_finished_games(db)

    assert [g["id"] for g in games] == [g1["id"]]
    assert games[0]["match_type"] == "scrim_simulator"
    assert games[0]["match_date"] == "2026-03-01"
