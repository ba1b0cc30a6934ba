"""
draft_service.py — Draft matches (series), their games and the recorded picks.

Two ways a match gets its picks:
  - simulator: each game is drafted through DRAFT_SEQUENCE, then finish_game()
    stores the 18 slots (absolute position_index 1..18)
  - scrim summary: save_scrim_summary() stores only the five picks per side,
    position_index 1..5 relative to the side

Also provides the game loaders the analytics services run on.
"""

import logging
from datetime import date
from typing import Iterable, Optional

from sqlalchemy.orm import Session, selectinload

from rov_draft.config import (
    DRAFT_MODES,
    MATCH_STATUS_FINISHED,
    MATCH_STATUS_ONGOING,
    MATCH_TYPE_SIMULATOR,
    MATCH_TYPE_SUMMARY,
    MATCH_TYPES,
)
from rov_draft.draft_sequence import (
    BLUE,
    PICK,
    RED,
    autofill_roles,
    build_pick_records,
    find_duplicate_roles,
    find_repeated_heroes,
    normalize_side,
)
from rov_draft.models import DraftGame, DraftMatch, DraftPick, Hero, Version

logger = logging.getLogger(__name__)

SCRIM_SLUG_PREFIX = "SCRIM"


# ---------------------------------------------------------------------------
# Serialisation
# ---------------------------------------------------------------------------

def pick_to_dict(pick: DraftPick) -> dict:
    return {
        "id": pick.id,
        "hero_id": pick.hero_id,
        "type": pick.type,
        "side": pick.side,
        "position_index": pick.position_index,
        "assigned_role": pick.assigned_role,
    }


def game_to_dict(game: DraftGame, match: Optional[DraftMatch] = None) -> dict:
    match = match or game.match
    return {
        "id": game.id,
        "match_id": game.match_id,
        "game_number": game.game_number,
        "blue_team_name": game.blue_team_name,
        "red_team_name": game.red_team_name,
        "winner": game.winner,
        "status": game.status,
        "mvp_hero_id": game.mvp_hero_id,
        "notes": game.notes,
        "match_type": match.match_type if match else None,
        "match_date": match.match_date.isoformat() if match and match.match_date else None,
        "picks": [pick_to_dict(p) for p in game.picks],
    }


def match_to_dict(match: DraftMatch, with_games: bool = False) -> dict:
    data = {
        "id": match.id,
        "slug": match.slug,
        "team_a_name": match.team_a_name,
        "team_b_name": match.team_b_name,
        "mode": match.mode,
        "status": match.status,
        "match_type": match.match_type,
        "match_date": match.match_date.isoformat() if match.match_date else None,
        "version_id": match.version_id,
        "version_name": match.version.name if match.version else None,
        "tournament_id": match.tournament_id,
    }
    if with_games:
        data["games"] = [game_to_dict(g, match) for g in match.games]
    return data


def _normalize_winner(winner: Optional[str]) -> Optional[str]:
    side = normalize_side(winner)
    if side == BLUE:
        return "Blue"
    if side == RED:
        return "Red"
    return None


def _get_match(db: Session, key) -> DraftMatch:
    key = str(key)
    match = None
    if key.isdigit():
        match = db.get(DraftMatch, int(key))
    if match is None:
        match = db.query(DraftMatch).filter(DraftMatch.slug == key).first()
    if match is None:
        raise LookupError(f"Match {key} not found")
    return match


def _get_game(db: Session, game_id: int) -> DraftGame:
    game = db.get(DraftGame, game_id)
    if game is None:
        raise LookupError(f"Game {game_id} not found")
    return game


# ---------------------------------------------------------------------------
# Slugs
# ---------------------------------------------------------------------------

def next_match_slug(db: Session, match_date: date) -> str:
    """YYYYMMDD-NN, NN counting the matches already created for that day."""
    prefix = match_date.strftime("%Y%m%d")
    existing = [
        s for (s,) in db.query(DraftMatch.slug).filter(DraftMatch.slug.like(f"{prefix}-%")).all()
    ]
    numbers = [int(s.split("-", 1)[1]) for s in existing if s.split("-", 1)[1].isdigit()]
    return f"{prefix}-{max(numbers, default=0) + 1:02d}"


def next_scrim_slug(db: Session) -> str:
    """SCRIM000001, SCRIM000002, ..."""
    latest = (
        db.query(DraftMatch.slug)
        .filter(DraftMatch.slug.like(f"{SCRIM_SLUG_PREFIX}%"))
        .order_by(DraftMatch.slug.desc())
        .first()
    )
    next_num = 1
    if latest is not None:
        number = latest[0][len(SCRIM_SLUG_PREFIX):]
        if number.isdigit():
            next_num = int(number) + 1
    return f"{SCRIM_SLUG_PREFIX}{next_num:06d}"


# ---------------------------------------------------------------------------
# Matches
# ---------------------------------------------------------------------------

def _check_mode(mode: str) -> str:
    mode = (mode or "BO1").upper()
    if mode not in DRAFT_MODES:
        raise ValueError(f"Unknown mode {mode}, expected one of {', '.join(DRAFT_MODES)}")
    return mode


def create_match(
    db: Session,
    team_a_name: str,
    team_b_name: str,
    mode: str,
    version_id: int,
    tournament_id: Optional[int] = None,
    match_date: Optional[date] = None,
) -> dict:
    if not team_a_name or not team_b_name:
        raise ValueError("Both team names are required")
    if db.get(Version, version_id) is None:
        raise LookupError(f"Version {version_id} not found")

    match_date = match_date or date.today()
    match = DraftMatch(
        team_a_name=team_a_name.strip(),
        team_b_name=team_b_name.strip(),
        mode=_check_mode(mode),
        version_id=version_id,
        tournament_id=tournament_id,
        status=MATCH_STATUS_ONGOING,
        match_type=MATCH_TYPE_SIMULATOR,
        match_date=match_date,
        slug=next_match_slug(db, match_date),
    )
    db.add(match)
    db.commit()
    logger.info("[matches] created id=%s slug=%s %s vs %s", match.id, match.slug, match.team_a_name, match.team_b_name)
    return {"success": True, "message": "Match created", "id": match.id, "slug": match.slug}


def create_scrim(
    db: Session,
    match_date: Optional[date],
    version_id: Optional[int],
    tournament_id: Optional[int],
    mode: str = "FULL",
    team_a_name: Optional[str] = None,
    team_b_name: Optional[str] = None,
    best_of: str = "BO1",
) -> dict:
    """mode FULL → drafted in the simulator, anything else → summary entry."""
    if not match_date or not version_id or not tournament_id:
        raise ValueError("Missing required fields")

    match = DraftMatch(
        team_a_name=(team_a_name or "Team A").strip(),
        team_b_name=(team_b_name or "Team B").strip(),
        mode=_check_mode(best_of),
        version_id=version_id,
        tournament_id=tournament_id,
        status=MATCH_STATUS_ONGOING,
        match_type=MATCH_TYPE_SIMULATOR if mode == "FULL" else MATCH_TYPE_SUMMARY,
        match_date=match_date,
        slug=next_scrim_slug(db),
    )
    db.add(match)
    db.commit()
    logger.info("[scrims] created id=%s slug=%s type=%s", match.id, match.slug, match.match_type)
    return {"success": True, "message": "Scrim created", "id": match.id, "slug": match.slug, "match_type": match.match_type}


def get_matches(
    db: Session,
    match_type: Optional[str] = None,
    tournament_id: Optional[int] = None,
) -> list[dict]:
    if match_type and match_type not in MATCH_TYPES:
        raise ValueError(f"Unknown match type: {match_type}")
    query = db.query(DraftMatch)
    if match_type:
        query = query.filter(DraftMatch.match_type == match_type)
    if tournament_id is not None:
        query = query.filter(DraftMatch.tournament_id == tournament_id)
    rows = query.order_by(DraftMatch.match_date.desc(), DraftMatch.id.desc()).all()
    return [match_to_dict(m) for m in rows]


def get_match(db: Session, key) -> dict:
    return match_to_dict(_get_match(db, key), with_games=True)


def delete_match(db: Session, match_id: int) -> dict:
    match = _get_match(db, match_id)
    db.delete(match)
    db.commit()
    logger.info("[matches] deleted id=%s", match_id)
    return {"success": True, "message": "Match deleted"}


# ---------------------------------------------------------------------------
# Games
# ---------------------------------------------------------------------------

def create_game(
    db: Session,
    match_id: int,
    blue_team_name: Optional[str] = None,
    red_team_name: Optional[str] = None,
) -> dict:
    match = _get_match(db, match_id)
    total = DRAFT_MODES[match.mode]
    if len(match.games) >= total:
        raise ValueError(f"Match already has all {total} games")

    game = DraftGame(
        match_id=match.id,
        game_number=len(match.games) + 1,
        blue_team_name=blue_team_name or match.team_a_name,
        red_team_name=red_team_name or match.team_b_name,
        status=MATCH_STATUS_ONGOING,
    )
    db.add(game)
    db.commit()
    logger.info("[games] created id=%s match=%s game_number=%s", game.id, match.id, game.game_number)
    return game_to_dict(game, match)


def get_game(db: Session, game_id: int) -> dict:
    return game_to_dict(_get_game(db, game_id))


def series_is_decided(mode: str, games: list[DraftGame]) -> bool:
    """Odd best-of: a team reached the majority. Even best-of: every game played."""
    total = DRAFT_MODES.get(mode, 1)
    decided = [g for g in games if g.winner]
    if total % 2 == 0:
        return len(decided) >= total

    wins: dict[str, int] = {}
    for game in decided:
        team = game.blue_team_name if game.winner == "Blue" else game.red_team_name
        wins[team] = wins.get(team, 0) + 1
    return len(decided) >= total or max(wins.values(), default=0) >= total // 2 + 1


def _replace_picks(db: Session, game: DraftGame, records: Iterable[dict]) -> int:
    game.picks.clear()
    db.flush()
    count = 0
    for record in records:
        game.picks.append(DraftPick(**record))
        count += 1
    return count


def finish_game(
    db: Session,
    game_id: int,
    winner: str,
    blue_picks: dict[int, int],
    red_picks: dict[int, int],
    blue_bans: list[int],
    red_bans: list[int],
    assignments: dict[int, str],
    mvp_hero_id: Optional[int] = None,
    notes: Optional[str] = None,
) -> dict:
    """Stores the result of a simulator game and its 18 draft slots.

    Picks left without a role get the hero's only main position, if it has
    exactly one.  Two heroes of one team sharing a role is allowed but
    reported back in duplicate_roles.
    """
    game = _get_game(db, game_id)
    normalized = _normalize_winner(winner)
    if normalized is None:
        raise ValueError("Winner must be Blue or Red")

    repeated = find_repeated_heroes(blue_picks, red_picks, blue_bans, red_bans)
    if repeated:
        raise ValueError(f"Heroes picked or banned more than once: {', '.join(map(str, repeated))}")

    assignments = {int(k): v for k, v in assignments.items() if v}
    pick_ids = [*blue_picks.values(), *red_picks.values()]
    unassigned = [h for h in pick_ids if h not in assignments]
    if unassigned:
        rows = db.query(Hero).filter(Hero.id.in_(unassigned)).all()
        assignments.update(autofill_roles([{"id": h.id, "main_position": h.main_position} for h in rows]))

    duplicate_roles = {
        "Blue": find_duplicate_roles(list(blue_picks.values()), assignments),
        "Red": find_duplicate_roles(list(red_picks.values()), assignments),
    }

    game.winner = normalized
    game.mvp_hero_id = mvp_hero_id
    game.notes = notes
    game.status = MATCH_STATUS_FINISHED

    records = build_pick_records(blue_picks, red_picks, blue_bans, red_bans, assignments)
    saved = _replace_picks(db, game, records)

    match = game.match
    if series_is_decided(match.mode, match.games):
        match.status = MATCH_STATUS_FINISHED

    db.commit()
    if duplicate_roles["Blue"] or duplicate_roles["Red"]:
        logger.warning("[games] id=%s saved with duplicate roles %s", game.id, duplicate_roles)
    logger.info("[games] finished id=%s winner=%s picks=%d match_status=%s", game.id, normalized, saved, match.status)
    return {
        "success": True,
        "message": "Game saved",
        "match_status": match.status,
        "duplicate_roles": duplicate_roles,
    }


def save_scrim_summary(db: Session, match_id: int, games: list[dict]) -> dict:
    """Quick entry of whole games: teams, winner and five picks per side.

    games: [{"game_number", "blue_team_name", "red_team_name", "winner",
             "blue_picks": [{"hero_id", "role"}], "red_picks": [...]}]
    """
    match = _get_match(db, match_id)
    total = DRAFT_MODES[match.mode]
    by_number = {g.game_number: g for g in match.games}

    for entry in games:
        number = int(entry.get("game_number") or 1)
        if number < 1 or number > total:
            raise ValueError(f"Game number {number} is outside {match.mode}")

        game = by_number.get(number)
        if game is None:
            game = DraftGame(match_id=match.id, game_number=number)
            match.games.append(game)
            by_number[number] = game

        game.blue_team_name = entry.get("blue_team_name") or match.team_a_name
        game.red_team_name = entry.get("red_team_name") or match.team_b_name
        game.winner = _normalize_winner(entry.get("winner"))
        game.status = MATCH_STATUS_FINISHED if game.winner else MATCH_STATUS_ONGOING

        records = []
        for side, key in ((BLUE, "blue_picks"), (RED, "red_picks")):
            for i, pick in enumerate((entry.get(key) or [])[:5]):
                if not pick.get("hero_id"):
                    continue
                records.append({
                    "hero_id": int(pick["hero_id"]),
                    "type": PICK,
                    "side": side,
                    "position_index": i + 1,
                    "assigned_role": pick.get("role") or None,
                })
        _replace_picks(db, game, records)

    if len([g for g in match.games if g.winner]) >= total:
        match.status = MATCH_STATUS_FINISHED

    db.commit()
    logger.info("[scrims] summary saved match=%s games=%d status=%s", match.id, len(games), match.status)
    return {"success": True, "message": "Scrim summary saved", "match_status": match.status}


# ---------------------------------------------------------------------------
# Loaders for analytics
# ---------------------------------------------------------------------------

def load_matches(
    db: Session,
    tournament_id: Optional[int] = None,
    version_id: Optional[int] = None,
    match_types: Optional[Iterable] = None,
    status: Optional[str] = MATCH_STATUS_FINISHED,
    exclude_status: Optional[str] = None,
) -> list[dict]:
    """Matches (with games and picks) as plain dicts. None in match_types means untyped rows."""
    query = db.query(DraftMatch).options(
        selectinload(DraftMatch.games).selectinload(DraftGame.picks),
        selectinload(DraftMatch.version),
    )
    if tournament_id is not None:
        query = query.filter(DraftMatch.tournament_id == tournament_id)
    if version_id is not None:
        query = query.filter(DraftMatch.version_id == version_id)
    if status is not None:
        query = query.filter(DraftMatch.status == status)
    if exclude_status is not None:
        query = query.filter(DraftMatch.status != exclude_status)
    if match_types is not None:
        types = list(match_types)
        named = [t for t in types if t is not None]
        condition = DraftMatch.match_type.in_(named)
        if None in types:
            condition = condition | DraftMatch.match_type.is_(None)
        query = query.filter(condition)

    rows = query.order_by(DraftMatch.match_date.desc(), DraftMatch.id.desc()).all()
    return [match_to_dict(m, with_games=True) for m in rows]


def load_finished_games(db: Session, tournament_id: Optional[int] = None, version_id: Optional[int] = None) -> list[dict]:
    """Every game with a status of finished, newest match first."""
    query = (
        db.query(DraftGame)
        .join(DraftMatch, DraftMatch.id == DraftGame.match_id)
        .options(selectinload(DraftGame.picks), selectinload(DraftGame.match))
        .filter(DraftGame.status == MATCH_STATUS_FINISHED)
    )
    if tournament_id is not None:
        query = query.filter(DraftMatch.tournament_id == tournament_id)
    if version_id is not None:
        query = query.filter(DraftMatch.version_id == version_id)
    rows = query.order_by(DraftMatch.match_date.desc(), DraftGame.id.desc()).all()
    return [game_to_dict(g) for g in rows]
