"""
team_pool_service.py — Which heroes a team drafts, and how it does with them.
"""

import logging

from sqlalchemy.orm import Session

from rov_draft.analytics import build_team_pools, clean_team_name, exact_team_match, finalize_pool
from rov_draft.config import MATCH_STATUS_FINISHED, MATCH_STATUS_ONGOING, TEAM_POOL_MATCH_TYPES
from rov_draft.draft_service import load_matches
from rov_draft.heroes_service import hero_lookup
from rov_draft.models import Team, Tournament

logger = logging.getLogger(__name__)


def _games_of(matches: list[dict]) -> list[dict]:
    return [game for match in matches for game in match["games"]]


def _result(pool: dict) -> dict:
    return {
        "teamName": pool["teamName"],
        "totalGames": pool["totalGames"],
        "totalWins": pool["totalWins"],
        "winRate": pool["totalWins"] / pool["totalGames"] * 100 if pool["totalGames"] else 0.0,
        "pool": finalize_pool(pool),
    }


def get_match_team_pools(db: Session, team_a_name: str, team_b_name: str) -> dict:
    """Pools of both teams of a match, over every non-ongoing match that involved them."""
    team_a = clean_team_name(team_a_name)
    team_b = clean_team_name(team_b_name)

    matches = load_matches(
        db,
        match_types=TEAM_POOL_MATCH_TYPES,
        status=None,
        exclude_status=MATCH_STATUS_ONGOING,
    )
    pools = build_team_pools(_games_of(matches), [team_a, team_b], hero_lookup(db))

    logger.info(
        "[team_pools] %s=%d games, %s=%d games",
        team_a, pools[team_a]["totalGames"], team_b, pools[team_b]["totalGames"],
    )
    return {"teamA": _result(pools[team_a]), "teamB": _result(pools[team_b])}


def get_tournament_team_pools(db: Session, tournament_id: int) -> list[dict]:
    """Pools of every registered team of a tournament (exact team-name match)."""
    if db.get(Tournament, tournament_id) is None:
        raise LookupError(f"Tournament {tournament_id} not found")

    teams = db.query(Team).filter(Team.tournament_id == tournament_id).order_by(Team.name).all()
    if not teams:
        return []

    matches = load_matches(db, tournament_id=tournament_id, status=MATCH_STATUS_FINISHED)
    names = [t.name for t in teams]
    pools = build_team_pools(_games_of(matches), names, hero_lookup(db), match_fn=exact_team_match)

    result = []
    for team in teams:
        entry = _result(pools[team.name])
        entry["teamId"] = team.id
        entry["logoUrl"] = team.logo_url
        result.append(entry)
    return result
