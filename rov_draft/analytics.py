"""
analytics.py — In-memory aggregations over finished draft games.

Every function here is pure: it receives games already loaded by the
service layer (see draft_service.game_to_dict) and returns plain dicts, so
the maths can be tested without a database.

Game dict shape:
    {
      "id": 1, "match_id": 1, "match_type": "scrim_simulator", "match_date": ...,
      "winner": "Blue" | "Red" | None,
      "blue_team_name": "...", "red_team_name": "...",
      "picks": [{"hero_id", "type", "side", "position_index", "assigned_role"}, ...]
    }

Win rates are percentages (0-100).
"""

from __future__ import annotations

import logging
import math
import re
from collections import Counter
from typing import Callable, Optional

from rov_draft.config import ROLE_ALIASES, SIMULATOR_MATCH_TYPES
from rov_draft.draft_sequence import BAN, BLUE, PICK, RED, ban_phase, pick_side

logger = logging.getLogger(__name__)

_BOT_SUFFIX = re.compile(r"\s*\(BOT\)\s*$", re.IGNORECASE)

# alias (lower-case) → canonical position
_ROLE_LOOKUP: dict[str, str] = {
    alias.lower(): canonical
    for canonical, aliases in ROLE_ALIASES.items()
    for alias in aliases
}


# ---------------------------------------------------------------------------
# Small helpers
# ---------------------------------------------------------------------------

def win_rate(wins: int, total: int) -> float:
    """wins / total * 100, or 0 when there is nothing to divide by."""
    if total <= 0:
        return 0.0
    return wins / total * 100


def round_to_step(value: float, step: int) -> int:
    """Nearest multiple of step, halves rounded up (62.5 -> 65)."""
    return int(math.floor(value / step + 0.5) * step)


def normalize_role(role: Optional[str]) -> Optional[str]:
    """'DSL' → 'Dark Slayer', 'Support' → 'Roam'. Unknown roles (e.g. 'Flex') → None."""
    if not role:
        return None
    return _ROLE_LOOKUP.get(role.strip().lower())


def clean_team_name(name: Optional[str]) -> str:
    """Strips the '(BOT)' suffix the simulator appends to AI-controlled teams."""
    return _BOT_SUFFIX.sub("", name or "").strip()


def team_name_matches(game_team: Optional[str], target: str) -> bool:
    """Loose match: either name contains the other, case-insensitively."""
    a = clean_team_name(game_team).lower()
    b = clean_team_name(target).lower()
    if not a or not b:
        return False
    return a in b or b in a


def side_won(game: dict, side: Optional[str]) -> bool:
    winner = (game.get("winner") or "").upper()
    return side is not None and winner == side


def side_picks(game: dict, side: str, pick_type: Optional[str] = PICK) -> list[dict]:
    return [
        p for p in game.get("picks") or []
        if pick_side(p) == side and (pick_type is None or p.get("type") == pick_type)
    ]


# ---------------------------------------------------------------------------
# Win conditions
# ---------------------------------------------------------------------------

def _pick_satisfies(pick: dict, condition: dict) -> bool:
    hero_id = condition.get("heroId")
    hero_ok = hero_id in (None, "") or str(pick.get("hero_id")) == str(hero_id)

    role = condition.get("role") or "ANY"
    assigned = pick.get("assigned_role")
    role_ok = role == "ANY" or (bool(assigned) and assigned.lower() == role.lower())
    return hero_ok and role_ok


def team_matches_conditions(team_picks: list[dict], conditions: list[dict], must_have: bool) -> bool:
    """must_have: every condition is met by some pick. Otherwise: no condition is met."""
    if not conditions:
        return True
    if must_have:
        return all(any(_pick_satisfies(p, c) for p in team_picks) for c in conditions)
    return not any(any(_pick_satisfies(p, c) for p in team_picks) for c in conditions)


def analyze_win_condition(
    games: list[dict],
    ally_conditions: list[dict],
    enemy_conditions: list[dict],
) -> dict:
    """Historical record of teams that drafted the ally conditions against an enemy
    that drafted none of the enemy conditions.  Blue is tried as 'us' first."""
    matches: list[dict] = []
    team_stats: dict[str, dict] = {}
    wins = 0

    for game in games:
        blue = side_picks(game, BLUE)
        red = side_picks(game, RED)

        perspective = None
        if team_matches_conditions(blue, ally_conditions, True) and team_matches_conditions(red, enemy_conditions, False):
            perspective = BLUE
        elif team_matches_conditions(red, ally_conditions, True) and team_matches_conditions(blue, enemy_conditions, False):
            perspective = RED
        if perspective is None:
            continue

        is_win = side_won(game, perspective)
        team = game.get("blue_team_name") if perspective == BLUE else game.get("red_team_name")
        enemy = game.get("red_team_name") if perspective == BLUE else game.get("blue_team_name")

        matches.append({
            "gameId": game.get("id"),
            "matchId": game.get("match_id"),
            "date": game.get("match_date"),
            "team": team,
            "enemy": enemy,
            "result": "WIN" if is_win else "LOSS",
            "side": perspective,
        })
        if is_win:
            wins += 1
        if team:
            entry = team_stats.setdefault(team, {"wins": 0, "matches": 0})
            entry["matches"] += 1
            entry["wins"] += int(is_win)

    total = len(matches)
    teams = sorted(
        (
            {"name": name, "matches": s["matches"], "wins": s["wins"], "winRate": win_rate(s["wins"], s["matches"])}
            for name, s in team_stats.items()
        ),
        key=lambda t: t["matches"],
        reverse=True,
    )

    logger.info("[win_condition] scanned=%d matched=%d wins=%d", len(games), total, wins)
    return {
        "totalMatches": total,
        "winCount": wins,
        "lossCount": total - wins,
        "winRate": round(win_rate(wins, total), 2),
        "teamStats": teams,
        "matches": matches,
    }


# ---------------------------------------------------------------------------
# Team hero pools
# ---------------------------------------------------------------------------

def new_team_pool(team_name: str, **extra) -> dict:
    return {"teamName": team_name, "totalGames": 0, "totalWins": 0, "pool": {}, **extra}


def add_game_to_pool(pool: dict, game: dict, side: str, heroes: dict[int, dict]) -> None:
    """Counts one game for the team that played `side`."""
    is_win = side_won(game, side)
    pool["totalGames"] += 1
    pool["totalWins"] += int(is_win)

    for pick in side_picks(game, side):
        hero = heroes.get(pick.get("hero_id"))
        if hero is None:
            continue
        stat = pool["pool"].setdefault(hero["id"], {
            "hero": hero,
            "picks": 0,
            "wins": 0,
            "winRate": 0.0,
            "roles": [],
        })
        stat["picks"] += 1
        stat["wins"] += int(is_win)

        positions = hero.get("main_position") or []
        role = pick.get("assigned_role") or (positions[0] if positions else "Unknown")
        if role not in stat["roles"]:
            stat["roles"].append(role)


def finalize_pool(pool: dict) -> list[dict]:
    """Fills win rates, returns the pool entries sorted by picks (most first)."""
    stats = list(pool["pool"].values())
    for stat in stats:
        stat["winRate"] = win_rate(stat["wins"], stat["picks"])
    return sorted(stats, key=lambda s: s["picks"], reverse=True)


def build_team_pools(
    games: list[dict],
    team_names: list[str],
    heroes: dict[int, dict],
    match_fn: Callable[[Optional[str], str], bool] = team_name_matches,
) -> dict[str, dict]:
    """Hero pools keyed by the requested team name. A team on both sides of a
    game (can only happen with loose matching) is counted on blue."""
    pools = {name: new_team_pool(name) for name in team_names}
    for game in games:
        if not game.get("picks"):
            continue
        for name in pools:
            if match_fn(game.get("blue_team_name"), name):
                add_game_to_pool(pools[name], game, BLUE, heroes)
            elif match_fn(game.get("red_team_name"), name):
                add_game_to_pool(pools[name], game, RED, heroes)
    return pools


def exact_team_match(game_team: Optional[str], target: str) -> bool:
    return bool(game_team) and game_team == target


# ---------------------------------------------------------------------------
# Duo synergy & lane matchups (feed the combo / matchup suggestions)
# ---------------------------------------------------------------------------

def duo_synergy(games: list[dict]) -> list[dict]:
    """Same-side hero pairs: games together, wins together and the role each
    hero most often played in the pair."""
    pairs: dict[tuple[int, int], dict] = {}

    for game in games:
        for side in (BLUE, RED):
            picks = side_picks(game, side)
            is_win = side_won(game, side)
            for i in range(len(picks)):
                for j in range(i + 1, len(picks)):
                    first, second = sorted((picks[i], picks[j]), key=lambda p: p["hero_id"])
                    if first["hero_id"] == second["hero_id"]:
                        continue
                    key = (first["hero_id"], second["hero_id"])
                    entry = pairs.setdefault(key, {
                        "games": 0,
                        "wins": 0,
                        "rolesA": Counter(),
                        "rolesB": Counter(),
                    })
                    entry["games"] += 1
                    entry["wins"] += int(is_win)
                    role_a = normalize_role(first.get("assigned_role"))
                    role_b = normalize_role(second.get("assigned_role"))
                    if role_a:
                        entry["rolesA"][role_a] += 1
                    if role_b:
                        entry["rolesB"][role_b] += 1

    result = []
    for (hero_a, hero_b), entry in pairs.items():
        result.append({
            "heroA": hero_a,
            "heroB": hero_b,
            "posA": entry["rolesA"].most_common(1)[0][0] if entry["rolesA"] else None,
            "posB": entry["rolesB"].most_common(1)[0][0] if entry["rolesB"] else None,
            "games": entry["games"],
            "wins": entry["wins"],
            "winRate": win_rate(entry["wins"], entry["games"]),
        })
    return sorted(result, key=lambda r: (r["winRate"], r["games"]), reverse=True)


def _roles_by_side(game: dict, side: str) -> dict[str, int]:
    roles: dict[str, int] = {}
    for pick in side_picks(game, side):
        role = normalize_role(pick.get("assigned_role"))
        if role and role not in roles:
            roles[role] = pick["hero_id"]
    return roles


def lane_matchups(games: list[dict]) -> list[dict]:
    """Hero vs the enemy hero assigned to the same lane, from both perspectives."""
    stats: dict[tuple, dict] = {}

    for game in games:
        if not game.get("winner"):
            continue
        blue_roles = _roles_by_side(game, BLUE)
        red_roles = _roles_by_side(game, RED)
        blue_won = side_won(game, BLUE)

        for role, blue_hero in blue_roles.items():
            red_hero = red_roles.get(role)
            if red_hero is None or red_hero == blue_hero:
                continue
            for hero, enemy, won in ((blue_hero, red_hero, blue_won), (red_hero, blue_hero, not blue_won)):
                entry = stats.setdefault((hero, role, enemy), {"games": 0, "wins": 0})
                entry["games"] += 1
                entry["wins"] += int(won)

    result = [
        {
            "heroId": hero,
            "role": role,
            "enemyId": enemy,
            "enemyRole": role,
            "games": s["games"],
            "wins": s["wins"],
            "winRate": win_rate(s["wins"], s["games"]),
        }
        for (hero, role, enemy), s in stats.items()
    ]
    return sorted(result, key=lambda r: (r["games"], r["winRate"]), reverse=True)


# ---------------------------------------------------------------------------
# Meta statistics ("cerebro" dashboard)
# ---------------------------------------------------------------------------

def _order_table(max_slot: int = 20) -> dict[int, dict]:
    return {slot: {} for slot in range(1, max_slot + 1)}


def _bump(table: dict, key, amount: int = 1) -> None:
    table[key] = table.get(key, 0) + amount


def _new_side_stats() -> dict:
    return {
        "pickOrderStats": _order_table(),
        "heroPickOrderStats": _order_table(),
        "banOrderStats": _order_table(),
        "heroBans": {},
    }


def compute_meta_stats(
    matches: list[dict],
    heroes: dict[int, dict],
    team_name: Optional[str] = None,
) -> dict:
    """Aggregates hero/team/draft-order statistics over finished matches.

    matches: [{"match_type": ..., "games": [game dict, ...]}, ...]
    team_name: when given, only that team's picks/bans are counted and
    side splits, hero-vs-hero and lane matchups are computed for it.
    """
    focus = clean_team_name(team_name) if team_name else None

    stats: dict = {
        "totalMatches": len(matches),
        "totalGames": 0,
        "blueWins": 0,
        "redWins": 0,
        "gamesOnBlue": 0,
        "gamesOnRed": 0,
        "winsOnBlue": 0,
        "winsOnRed": 0,
        "simulatorGames": 0,
        "simulatorGamesOnBlue": 0,
        "simulatorGamesOnRed": 0,
        "heroStats": {},
        "matchupStats": {},
        "teamStats": {},
        "combos": {},
        "firstPickWinRate": {"wins": 0, "total": 0},
        "pickOrderStats": _order_table(),
        "heroPickOrderStats": _order_table(),
        "banOrderStats": _order_table(),
        "sideStats": {BLUE: _new_side_stats(), RED: _new_side_stats()},
        "laneMatchups": {},
    }

    for match in matches:
        is_simulator = match.get("match_type") in SIMULATOR_MATCH_TYPES
        for game in match.get("games") or []:
            _accumulate_game(stats, game, heroes, focus, is_simulator)

    stats["combos"] = {
        key: {**c, "winRate": win_rate(c["wins"], c["count"])}
        for key, c in stats["combos"].items()
    }
    logger.info(
        "[meta] matches=%d games=%d heroes=%d team=%s",
        stats["totalMatches"], stats["totalGames"], len(stats["heroStats"]), focus,
    )
    return stats


def _accumulate_game(stats: dict, game: dict, heroes: dict[int, dict], focus: Optional[str], is_simulator: bool) -> None:
    stats["totalGames"] += 1
    winner = (game.get("winner") or "").upper()
    if winner == BLUE:
        stats["blueWins"] += 1
    elif winner == RED:
        stats["redWins"] += 1
    if is_simulator:
        stats["simulatorGames"] += 1

    for name, side in ((game.get("blue_team_name"), BLUE), (game.get("red_team_name"), RED)):
        if name:
            clean = name.strip()
            entry = stats["teamStats"].setdefault(clean, {"name": clean, "games": 0, "wins": 0})
            entry["games"] += 1
            entry["wins"] += int(winner == side)

    if winner:
        stats["firstPickWinRate"]["total"] += 1
        stats["firstPickWinRate"]["wins"] += int(winner == BLUE)

    target = None
    if focus:
        if team_name_matches(game.get("blue_team_name"), focus):
            target = BLUE
        elif team_name_matches(game.get("red_team_name"), focus):
            target = RED
        if target:
            key = "Blue" if target == BLUE else "Red"
            stats[f"gamesOn{key}"] += 1
            stats[f"winsOn{key}"] += int(winner == target)
            if is_simulator:
                stats[f"simulatorGamesOn{key}"] += 1

    side_heroes: dict[str, list[int]] = {BLUE: [], RED: []}

    for pick in game.get("picks") or []:
        side = pick_side(pick)
        hero_id = pick.get("hero_id")
        if pick.get("type") == PICK and hero_id and side:
            side_heroes[side].append(hero_id)

        if focus and side != target:
            continue
        hero = heroes.get(hero_id)
        if hero is None:
            continue

        hs = stats["heroStats"].setdefault(hero_id, {
            "id": hero_id,
            "name": hero.get("name"),
            "icon": hero.get("icon_url"),
            "picks": 0,
            "bans": 0,
            "bansPhase1": 0,
            "bansPhase2": 0,
            "wins": 0,
            "roleStats": {},
        })
        slot = pick.get("position_index")

        if pick.get("type") == BAN:
            hs["bans"] += 1
            phase = ban_phase(slot)
            if phase == 1:
                hs["bansPhase1"] += 1
            elif phase == 2:
                hs["bansPhase2"] += 1
            if side:
                _bump(stats["sideStats"][side]["heroBans"], hero_id)
            if is_simulator and slot and 1 <= slot <= 14:
                _bump(stats["banOrderStats"][slot], hero_id)
                if side:
                    _bump(stats["sideStats"][side]["banOrderStats"][slot], hero_id)

        elif pick.get("type") == PICK:
            hs["picks"] += 1
            is_win = side is not None and winner == side
            hs["wins"] += int(is_win)

            role = pick.get("assigned_role")
            if role:
                rs = hs["roleStats"].setdefault(role, {"picks": 0, "wins": 0})
                rs["picks"] += 1
                rs["wins"] += int(is_win)
                if is_simulator and slot and 1 <= slot <= 20:
                    _bump(stats["pickOrderStats"][slot], role)
                    _bump(stats["heroPickOrderStats"][slot], hero_id)
                    if side:
                        _bump(stats["sideStats"][side]["pickOrderStats"][slot], role)
                        _bump(stats["sideStats"][side]["heroPickOrderStats"][slot], hero_id)

    if target:
        enemy = RED if target == BLUE else BLUE
        is_win = winner == target
        for mine in side_heroes[target]:
            row = stats["matchupStats"].setdefault(mine, {})
            for theirs in side_heroes[enemy]:
                cell = row.setdefault(theirs, {"games": 0, "wins": 0})
                cell["games"] += 1
                cell["wins"] += int(is_win)

        my_roles = _roles_by_side(game, target)
        enemy_roles = _roles_by_side(game, enemy)
        for role, my_hero in my_roles.items():
            enemy_hero = enemy_roles.get(role)
            if enemy_hero is None:
                continue
            cell = (
                stats["laneMatchups"]
                .setdefault(role, {})
                .setdefault(enemy_hero, {})
                .setdefault(my_hero, {"games": 0, "wins": 0})
            )
            cell["games"] += 1
            cell["wins"] += int(is_win)

    for side in (BLUE, RED):
        ids = sorted(side_heroes[side])
        won = winner == side
        for i in range(len(ids)):
            for j in range(i + 1, len(ids)):
                key = f"{ids[i]}|{ids[j]}"
                combo = stats["combos"].setdefault(key, {"count": 0, "wins": 0, "heroes": [ids[i], ids[j]]})
                combo["count"] += 1
                combo["wins"] += int(won)


def tournament_meta(matches: list[dict], heroes: dict[int, dict]) -> dict:
    """Hero picks/bans/wins split into simulator games and quick-entry (summary) games."""
    def container() -> dict:
        return {"totalGames": 0, "heroes": {}}

    result = {"versions": [], "simulator": container(), "quickEntry": container()}
    versions: set[str] = set()

    for match in matches:
        if match.get("version_name"):
            versions.add(match["version_name"])
        target = result["quickEntry"] if match.get("match_type") == "scrim_summary" else result["simulator"]

        for game in match.get("games") or []:
            target["totalGames"] += 1
            for pick in game.get("picks") or []:
                hero = heroes.get(pick.get("hero_id"))
                if hero is None:
                    continue
                entry = target["heroes"].setdefault(hero["id"], {
                    "id": hero["id"],
                    "name": hero.get("name"),
                    "icon": hero.get("icon_url"),
                    "picks": 0,
                    "bans": 0,
                    "wins": 0,
                })
                if pick.get("type") == BAN:
                    entry["bans"] += 1
                elif pick.get("type") == PICK:
                    entry["picks"] += 1
                    entry["wins"] += int(side_won(game, pick_side(pick)))

    result["versions"] = sorted(versions)
    return result


def slot_report(picks: list[dict], hero_names: dict[int, str], top: int = 10) -> dict:
    """Role and hero distribution of the picks made at one draft slot."""
    roles: Counter = Counter()
    heroes: Counter = Counter()
    for pick in picks:
        roles[pick.get("assigned_role") or "No Role"] += 1
        heroes[hero_names.get(pick.get("hero_id"), str(pick.get("hero_id")))] += 1
    return {
        "total": len(picks),
        "roleCounts": dict(roles),
        "topHeroes": [[name, count] for name, count in heroes.most_common(top)],
    }
