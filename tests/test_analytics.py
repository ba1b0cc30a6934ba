"""Tests for the pure aggregation functions (no database)."""

import pytest

from rov_draft.analytics import (
    analyze_win_condition,
    build_team_pools,
    clean_team_name,
    compute_meta_stats,
    duo_synergy,
    exact_team_match,
    finalize_pool,
    lane_matchups,
    normalize_role,
    round_to_step,
    slot_report,
    team_matches_conditions,
    team_name_matches,
    tournament_meta,
    win_rate,
)

HEROES = {
    1: {"id": 1, "name": "Florentino", "icon_url": "f.png", "main_position": ["Dark Slayer"]},
    2: {"id": 2, "name": "Nakroth", "icon_url": "n.png", "main_position": ["Jungle"]},
    3: {"id": 3, "name": "Liliana", "icon_url": "l.png", "main_position": ["Mid"]},
    4: {"id": 4, "name": "Valhein", "icon_url": "v.png", "main_position": ["Abyssal Dragon"]},
    5: {"id": 5, "name": "Alice", "icon_url": "a.png", "main_position": ["Roam"]},
    6: {"id": 6, "name": "Tulen", "icon_url": "t.png", "main_position": []},
}


def pick(hero_id, side, role=None, position=None, type_="PICK"):
    return {"hero_id": hero_id, "type": type_, "side": side, "position_index": position, "assigned_role": role}


def game(game_id, winner, blue_picks, red_picks, blue="Alpha", red="Bravo", bans=()):
    return {
        "id": game_id,
        "match_id": 100 + game_id,
        "match_date": "2026-03-01",
        "winner": winner,
        "blue_team_name": blue,
        "red_team_name": red,
        "picks": [*(pick(*p[:2], *p[2:]) for p in blue_picks), *(pick(*p[:2], *p[2:]) for p in red_picks), *bans],
    }


class TestHelpers:
    def test_win_rate(self):
        assert win_rate(3, 4) == 75.0
        assert win_rate(0, 0) == 0.0

    def test_round_to_step(self):
        assert round_to_step(62.4, 5) == 60
        assert round_to_step(63.0, 5) == 65
        assert round_to_step(62.5, 5) == 65
        assert round_to_step(12.5, 5) == 15
        assert round_to_step(2.5, 5) == 5

    @pytest.mark.parametrize("raw,expected", [
        ("DSL", "Dark Slayer"),
        ("slayer", "Dark Slayer"),
        ("JUG", "Jungle"),
        ("Middle", "Mid"),
        ("ADL", "Abyssal Dragon"),
        ("Abyssal", "Abyssal Dragon"),
        ("Support", "Roam"),
        ("Flex", None),
        (None, None),
    ])
    def test_normalize_role(self, raw, expected):
        assert normalize_role(raw) == expected

    def test_clean_team_name(self):
        assert clean_team_name("Bravo (BOT)") == "Bravo"
        assert clean_team_name("  Alpha ") == "Alpha"
        assert clean_team_name(None) == ""

    def test_team_name_matches_is_two_way_containment(self):
        assert team_name_matches("Alpha Esports", "alpha")
        assert team_name_matches("Alpha", "Alpha Esports")
        assert team_name_matches("Bravo (BOT)", "bravo")
        assert not team_name_matches("Alpha", "Bravo")

    def test_empty_names_never_match(self):
        assert not team_name_matches("", "Alpha")
        assert not team_name_matches(None, "Alpha")

    def test_exact_team_match(self):
        assert exact_team_match("Alpha", "Alpha")
        assert not exact_team_match("Alpha Esports", "Alpha")


class TestWinConditions:
    GAMES = [
        # Alpha (blue) drafts Nakroth jungle + Liliana, beats Bravo
        game(1, "Blue", [(2, "BLUE", "Jungle"), (3, "BLUE", "Mid")], [(1, "RED", "Dark Slayer"), (5, "RED", "Roam")]),
        # Bravo (red) drafts Nakroth jungle + Liliana, loses
        game(2, "Blue", [(4, "BLUE", "Abyssal Dragon")], [(2, "RED", "jungle"), (3, "RED", "Mid")]),
        # Alpha drafts Nakroth but as Roam
        game(3, "Red", [(2, "BLUE", "Roam"), (3, "BLUE", "Mid")], [(4, "RED", "Abyssal Dragon")]),
        # Alpha drafts the pair but enemy has Florentino... and Alpha loses
        game(4, "Red", [(2, "BLUE", "Jungle"), (3, "BLUE", "Mid")], [(1, "RED", "Dark Slayer")]),
    ]

    def test_ally_conditions_must_all_match(self):
        picks = [pick(2, "BLUE", "Jungle"), pick(3, "BLUE", "Mid")]
        conditions = [{"heroId": 2, "role": "Jungle"}, {"heroId": 3, "role": "ANY"}]
        assert team_matches_conditions(picks, conditions, must_have=True)
        assert not team_matches_conditions(picks[:1], conditions, must_have=True)

    def test_enemy_conditions_must_not_match(self):
        picks = [pick(1, "RED", "Dark Slayer")]
        assert not team_matches_conditions(picks, [{"heroId": 1, "role": "ANY"}], must_have=False)
        assert team_matches_conditions(picks, [{"heroId": 5, "role": "ANY"}], must_have=False)

    def test_empty_conditions_always_match(self):
        assert team_matches_conditions([], [], must_have=True)
        assert team_matches_conditions([], [], must_have=False)

    def test_empty_hero_means_any_hero_in_role(self):
        picks = [pick(4, "BLUE", "abyssal dragon")]
        assert team_matches_conditions(picks, [{"heroId": "", "role": "Abyssal Dragon"}], must_have=True)

    def test_string_hero_id_compares_with_int(self):
        assert team_matches_conditions([pick(2, "BLUE")], [{"heroId": "2", "role": "ANY"}], must_have=True)

    def test_analyze(self):
        ally = [{"heroId": 2, "role": "Jungle"}, {"heroId": 3, "role": "ANY"}]
        result = analyze_win_condition(self.GAMES, ally, [])

        assert result["totalMatches"] == 3
        assert result["winCount"] == 1
        assert result["lossCount"] == 2
        assert result["winRate"] == 33.33
        assert [m["side"] for m in result["matches"]] == ["BLUE", "RED", "BLUE"]
        assert [m["result"] for m in result["matches"]] == ["WIN", "LOSS", "LOSS"]
        assert result["teamStats"][0] == {"name": "Alpha", "matches": 2, "wins": 1, "winRate": 50.0}

    def test_analyze_with_enemy_exclusion(self):
        ally = [{"heroId": 2, "role": "Jungle"}]
        enemy = [{"heroId": 1, "role": "ANY"}]
        result = analyze_win_condition(self.GAMES, ally, enemy)
        assert [m["gameId"] for m in result["matches"]] == [2]

    def test_blue_perspective_checked_first(self):
        both = game(9, "Red", [(2, "BLUE", "Jungle")], [(2, "RED", "Jungle")])
        result = analyze_win_condition([both], [{"heroId": 2, "role": "ANY"}], [])
        assert result["matches"][0]["side"] == "BLUE"
        assert result["matches"][0]["result"] == "LOSS"

    def test_no_games(self):
        result = analyze_win_condition([], [{"heroId": 1, "role": "ANY"}], [])
        assert result == {
            "totalMatches": 0,
            "winCount": 0,
            "lossCount": 0,
            "winRate": 0,
            "teamStats": [],
            "matches": [],
        }


class TestTeamPools:
    def test_pools_with_fuzzy_names(self):
        games = [
            game(1, "Blue", [(2, "BLUE", "Jungle"), (3, "BLUE", None)], [(1, "RED", "Dark Slayer")], blue="Alpha Esports", red="Bravo (BOT)"),
            game(2, "Red", [(1, "BLUE", None)], [(2, "RED", "Roam")], blue="Bravo", red="Alpha"),
        ]
        pools = build_team_pools(games, ["Alpha", "Bravo"], HEROES)

        alpha = pools["Alpha"]
        assert alpha["totalGames"] == 2
        assert alpha["totalWins"] == 2
        entries = finalize_pool(alpha)
        assert entries[0]["hero"]["name"] == "Nakroth"
        assert entries[0]["picks"] == 2
        assert entries[0]["winRate"] == 100.0
        assert entries[0]["roles"] == ["Jungle", "Roam"]
        # no assigned role: falls back to the hero's main position
        liliana = next(e for e in entries if e["hero"]["id"] == 3)
        assert liliana["roles"] == ["Mid"]

        bravo = pools["Bravo"]
        assert bravo["totalGames"] == 2
        assert bravo["totalWins"] == 0

    def test_unknown_role_fallback(self):
        games = [game(1, "Blue", [(6, "BLUE", None)], [])]
        entries = finalize_pool(build_team_pools(games, ["Alpha"], HEROES)["Alpha"])
        assert entries[0]["roles"] == ["Unknown"]

    def test_games_without_picks_are_skipped(self):
        games = [game(1, "Blue", [], [])]
        assert build_team_pools(games, ["Alpha"], HEROES)["Alpha"]["totalGames"] == 0

    def test_exact_matching(self):
        games = [game(1, "Blue", [(2, "BLUE")], [], blue="Alpha Esports")]
        pools = build_team_pools(games, ["Alpha"], HEROES, match_fn=exact_team_match)
        assert pools["Alpha"]["totalGames"] == 0


class TestSynergyAndLanes:
    def test_duo_synergy(self):
        games = [
            game(1, "Blue", [(2, "BLUE", "Jungle"), (3, "BLUE", "Mid")], [(1, "RED"), (4, "RED")]),
            game(2, "Red", [(1, "BLUE")], [(3, "RED", "Mid"), (2, "RED", "JUG")]),
        ]
        pairs = {(p["heroA"], p["heroB"]): p for p in duo_synergy(games)}
        assert pairs[(2, 3)]["games"] == 2
        assert pairs[(2, 3)]["wins"] == 2
        assert pairs[(2, 3)]["winRate"] == 100.0
        assert pairs[(2, 3)]["posA"] == "Jungle"
        assert pairs[(2, 3)]["posB"] == "Mid"
        assert pairs[(1, 4)]["wins"] == 0
        assert pairs[(1, 4)]["posA"] is None

    def test_lane_matchups_both_perspectives(self):
        games = [
            game(1, "Blue", [(1, "BLUE", "DSL")], [(6, "RED", "Dark Slayer")]),
            game(2, "Red", [(1, "BLUE", "Dark Slayer")], [(6, "RED", "Slayer")]),
            game(3, None, [(1, "BLUE", "Dark Slayer")], [(6, "RED", "Dark Slayer")]),
        ]
        stats = {(s["heroId"], s["enemyId"]): s for s in lane_matchups(games)}
        assert stats[(1, 6)]["games"] == 2
        assert stats[(1, 6)]["wins"] == 1
        assert stats[(6, 1)]["wins"] == 1
        assert stats[(1, 6)]["role"] == "Dark Slayer"


class TestMetaStats:
    def _matches(self):
        simulator_game = game(
            1, "Blue",
            [(2, "BLUE", "Jungle", 5), (3, "BLUE", "Mid", 8)],
            [(1, "RED", "Dark Slayer", 6), (4, "RED", "Abyssal Dragon", 7)],
            blue="Alpha", red="Bravo (BOT)",
            bans=[pick(5, None, None, 1, "BAN"), pick(6, "RED", None, 11, "BAN")],
        )
        summary_game = game(
            2, "Red",
            [(1, "BLUE", "Dark Slayer", 1)],
            [(2, "RED", "Jungle", 1)],
            blue="Bravo", red="Alpha",
        )
        return [
            {"match_type": "scrim_simulator", "version_name": "S1", "games": [simulator_game]},
            {"match_type": "scrim_summary", "version_name": "S2", "games": [summary_game]},
        ]

    def test_global_stats(self):
        stats = compute_meta_stats(self._matches(), HEROES)

        assert stats["totalMatches"] == 2
        assert stats["totalGames"] == 2
        assert stats["blueWins"] == 1
        assert stats["redWins"] == 1
        assert stats["firstPickWinRate"] == {"wins": 1, "total": 2}

        nakroth = stats["heroStats"][2]
        assert nakroth["picks"] == 2
        assert nakroth["wins"] == 2
        assert nakroth["roleStats"]["Jungle"] == {"picks": 2, "wins": 2}

        alice = stats["heroStats"][5]
        assert alice["bans"] == 1
        assert alice["bansPhase1"] == 1
        assert stats["heroStats"][6]["bansPhase2"] == 1

        # slot-level stats only for simulator drafts
        assert stats["simulatorGames"] == 1
        assert stats["pickOrderStats"][5] == {"Jungle": 1}
        assert stats["heroPickOrderStats"][5] == {2: 1}
        assert stats["pickOrderStats"][1] == {}
        assert stats["banOrderStats"][1] == {5: 1}
        assert stats["sideStats"]["BLUE"]["heroBans"] == {5: 1}
        assert stats["sideStats"]["RED"]["banOrderStats"][11] == {6: 1}

        assert stats["teamStats"]["Alpha"] == {"name": "Alpha", "games": 2, "wins": 2}
        assert stats["combos"]["2|3"]["count"] == 1
        assert stats["combos"]["2|3"]["winRate"] == 100.0

    def test_team_focus(self):
        stats = compute_meta_stats(self._matches(), HEROES, team_name="Alpha")

        assert stats["gamesOnBlue"] == 1
        assert stats["gamesOnRed"] == 1
        assert stats["winsOnBlue"] == 1
        assert stats["winsOnRed"] == 1
        assert stats["simulatorGamesOnBlue"] == 1

        # only Alpha's own picks and bans are counted
        assert 1 not in stats["heroStats"]
        assert stats["heroStats"][2]["picks"] == 2
        assert 6 not in stats["heroStats"]
        assert stats["matchupStats"][2][1] == {"games": 2, "wins": 2}
        # no lane is contested by both sides in these games
        assert stats["laneMatchups"] == {}

    def test_team_focus_lane_matchups(self):
        matches = [{"match_type": "scrim_summary", "games": [
            game(1, "Blue", [(3, "BLUE", "Mid")], [(6, "RED", "Middle")], blue="Alpha", red="Charlie"),
            game(2, "Blue", [(6, "BLUE", "Mid")], [(3, "RED", "MID")], blue="Charlie", red="Alpha"),
        ]}]
        stats = compute_meta_stats(matches, HEROES, team_name="alpha")
        assert stats["laneMatchups"]["Mid"][6][3] == {"games": 2, "wins": 1}

    def test_tournament_meta(self):
        result = tournament_meta(self._matches(), HEROES)
        assert result["versions"] == ["S1", "S2"]
        assert result["simulator"]["totalGames"] == 1
        assert result["quickEntry"]["totalGames"] == 1
        assert result["simulator"]["heroes"][5]["bans"] == 1
        assert result["quickEntry"]["heroes"][2]["wins"] == 1


def test_slot_report():
    picks = [
        {"hero_id": 2, "assigned_role": "Jungle"},
        {"hero_id": 2, "assigned_role": "Jungle"},
        {"hero_id": 3, "assigned_role": None},
    ]
    report = slot_report(picks, {2: "Nakroth", 3: "Liliana"})
    assert report["total"] == 3
    assert report["roleCounts"] == {"Jungle": 2, "No Role": 1}
    assert report["topHeroes"][0] == ["Nakroth", 2]
