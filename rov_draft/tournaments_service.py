"""
tournaments_service.py — Tournaments, their teams, and the player registry.

Tournaments, teams and players are addressable by numeric id or by slug.
Rows created before slugs existed get one the first time they are listed.
"""

import logging
import re
from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from rov_draft.config import TOURNAMENT_STATUSES
from rov_draft.models import Player, Team, Tournament

logger = logging.getLogger(__name__)


def slugify(text: str) -> str:
    """'RoV Pro League 2024' → 'rov_pro_league_2024'."""
    slug = (text or "").strip().lower()
    slug = re.sub(r"\s+", "_", slug)
    slug = re.sub(r"[^\w-]+", "", slug)
    slug = re.sub(r"__+", "_", slug)
    return slug.strip("-")


def _by_id_or_slug(db: Session, model, key: str):
    key = str(key)
    if key.isdigit():
        row = db.get(model, int(key))
        if row is not None:
            return row
    return db.query(model).filter(model.slug == key).first()


def _fix_missing_slugs(db: Session, rows: list) -> None:
    fixed = 0
    for row in rows:
        if not row.slug:
            row.slug = slugify(row.name)
            fixed += 1
    if fixed:
        db.commit()
        logger.info("[slugs] generated %d missing slugs", fixed)


def tournament_to_dict(t: Tournament) -> dict:
    return {
        "id": t.id,
        "name": t.name,
        "slug": t.slug,
        "start_date": t.start_date.isoformat() if t.start_date else None,
        "end_date": t.end_date.isoformat() if t.end_date else None,
        "status": t.status,
    }


def team_to_dict(team: Team) -> dict:
    return {
        "id": team.id,
        "tournament_id": team.tournament_id,
        "name": team.name,
        "slug": team.slug,
        "short_name": team.short_name,
        "logo_url": team.logo_url,
    }


def player_to_dict(player: Player) -> dict:
    return {
        "id": player.id,
        "name": player.name,
        "slug": player.slug,
        "positions": list(player.positions or []),
        "team_id": player.team_id,
        "team_name": player.team.name if player.team else None,
        "roster_role": player.roster_role,
    }


# ---------------------------------------------------------------------------
# Tournaments
# ---------------------------------------------------------------------------

def get_tournaments(db: Session) -> list[dict]:
    rows = db.query(Tournament).order_by(Tournament.start_date.desc(), Tournament.id.desc()).all()
    _fix_missing_slugs(db, rows)
    return [tournament_to_dict(t) for t in rows]


def get_tournament(db: Session, key: str) -> dict:
    tournament = _by_id_or_slug(db, Tournament, key)
    if tournament is None:
        raise LookupError(f"Tournament {key} not found")
    data = tournament_to_dict(tournament)
    data["teams"] = [team_to_dict(t) for t in sorted(tournament.teams, key=lambda t: t.name)]
    return data


def resolve_tournament_id(db: Session, key: Optional[str]) -> Optional[int]:
    if key in (None, "", "ALL"):
        return None
    tournament = _by_id_or_slug(db, Tournament, key)
    if tournament is None:
        raise LookupError(f"Tournament {key} not found")
    return tournament.id


def create_tournament(
    db: Session,
    name: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    status: Optional[str] = None,
) -> dict:
    if not name or not name.strip():
        raise ValueError("Tournament name is required")
    status = status or "upcoming"
    if status not in TOURNAMENT_STATUSES:
        raise ValueError(f"Unknown tournament status: {status}")

    slug = slugify(name)
    if db.query(Tournament).filter(Tournament.slug == slug).first() is not None:
        raise ValueError("Tournament with this name already exists")

    tournament = Tournament(name=name.strip(), slug=slug, start_date=start_date, end_date=end_date, status=status)
    db.add(tournament)
    db.commit()
    logger.info("[tournaments] created id=%s slug=%s", tournament.id, slug)
    return {"success": True, "message": "Tournament created", "id": tournament.id, "slug": slug}


def delete_tournament(db: Session, tournament_id: int) -> dict:
    tournament = db.get(Tournament, tournament_id)
    if tournament is None:
        raise LookupError(f"Tournament {tournament_id} not found")
    db.delete(tournament)
    db.commit()
    logger.info("[tournaments] deleted id=%s", tournament_id)
    return {"success": True, "message": "Tournament deleted"}


# ---------------------------------------------------------------------------
# Teams
# ---------------------------------------------------------------------------

def get_teams(db: Session, tournament_id: Optional[int] = None) -> list[dict]:
    query = db.query(Team)
    if tournament_id is not None:
        query = query.filter(Team.tournament_id == tournament_id)
    rows = query.order_by(Team.name).all()
    _fix_missing_slugs(db, rows)
    return [team_to_dict(t) for t in rows]


def get_team(db: Session, key: str) -> dict:
    team = _by_id_or_slug(db, Team, key)
    if team is None:
        raise LookupError(f"Team {key} not found")
    data = team_to_dict(team)
    data["players"] = [player_to_dict(p) for p in sorted(team.players, key=lambda p: p.name)]
    return data


def create_team(
    db: Session,
    tournament_id: int,
    name: str,
    short_name: Optional[str] = None,
    logo_url: Optional[str] = None,
) -> dict:
    if not name or not name.strip():
        raise ValueError("Team name is required")
    if db.get(Tournament, tournament_id) is None:
        raise LookupError(f"Tournament {tournament_id} not found")

    team = Team(
        tournament_id=tournament_id,
        name=name.strip(),
        slug=slugify(name),
        short_name=short_name,
        logo_url=logo_url,
    )
    db.add(team)
    db.commit()
    logger.info("[teams] created id=%s tournament=%s", team.id, tournament_id)
    return {"success": True, "message": "Team created", "id": team.id}


def delete_team(db: Session, team_id: int) -> dict:
    team = db.get(Team, team_id)
    if team is None:
        raise LookupError(f"Team {team_id} not found")
    for player in team.players:
        player.team_id = None
        player.roster_role = None
    db.delete(team)
    db.commit()
    logger.info("[teams] deleted id=%s", team_id)
    return {"success": True, "message": "Team deleted"}


# ---------------------------------------------------------------------------
# Players
# ---------------------------------------------------------------------------

def _name_taken(db: Session, name: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(Player).filter(func.lower(Player.name) == name.strip().lower())
    if exclude_id is not None:
        query = query.filter(Player.id != exclude_id)
    return query.first() is not None


def get_players(db: Session) -> list[dict]:
    rows = db.query(Player).order_by(Player.name).all()
    _fix_missing_slugs(db, rows)
    return [player_to_dict(p) for p in rows]


def get_player(db: Session, key: str) -> dict:
    player = _by_id_or_slug(db, Player, key)
    if player is None:
        raise LookupError(f"Player {key} not found")
    return player_to_dict(player)


def create_player(db: Session, name: str, positions: Optional[list[str]] = None) -> dict:
    if not name or not name.strip():
        raise ValueError("Player name is required")
    if _name_taken(db, name):
        raise ValueError("Player name already exists!")

    player = Player(name=name.strip(), slug=slugify(name), positions=list(positions or []))
    db.add(player)
    db.commit()
    logger.info("[players] created id=%s name=%s", player.id, player.name)
    return {"success": True, "message": "Player created", "id": player.id}


def update_player(db: Session, player_id: int, name: str, positions: list[str]) -> dict:
    player = db.get(Player, player_id)
    if player is None:
        raise LookupError(f"Player {player_id} not found")
    if not name or not name.strip():
        raise ValueError("Player name is required")
    if _name_taken(db, name, exclude_id=player_id):
        raise ValueError("Player name already exists!")

    player.name = name.strip()
    player.slug = slugify(name)
    player.positions = list(positions)
    db.commit()
    return {"success": True, "message": "Player updated"}


def delete_player(db: Session, player_id: int) -> dict:
    player = db.get(Player, player_id)
    if player is None:
        raise LookupError(f"Player {player_id} not found")
    db.delete(player)
    db.commit()
    return {"success": True, "message": "Player deleted"}


def assign_player_to_roster(db: Session, player_id: int, team_id: int, roster_role: Optional[str]) -> dict:
    player = db.get(Player, player_id)
    if player is None:
        raise LookupError(f"Player {player_id} not found")
    if db.get(Team, team_id) is None:
        raise LookupError(f"Team {team_id} not found")

    player.team_id = team_id
    player.roster_role = roster_role
    db.commit()
    logger.info("[roster] player=%s → team=%s role=%s", player_id, team_id, roster_role)
    return {"success": True, "message": "Player assigned to roster"}


def remove_player_from_roster(db: Session, player_id: int) -> dict:
    player = db.get(Player, player_id)
    if player is None:
        raise LookupError(f"Player {player_id} not found")
    player.team_id = None
    player.roster_role = None
    db.commit()
    logger.info("[roster] player=%s removed from team", player_id)
    return {"success": True, "message": "Player removed from roster"}
