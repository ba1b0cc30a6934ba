"""
win_conditions_service.py — Saved "win condition" filters and their analysis.

A win condition is a set of ally conditions (heroes/roles our team must draft)
and enemy conditions (heroes/roles the opponent must NOT draft).  Analysing
it scans finished games and reports how teams fared with that draft.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from rov_draft.analytics import analyze_win_condition
from rov_draft.draft_service import load_finished_games
from rov_draft.models import WinCondition

logger = logging.getLogger(__name__)


def win_condition_to_dict(wc: WinCondition) -> dict:
    return {
        "id": wc.id,
        "name": wc.name,
        "version": wc.version,
        "tournament_id": wc.tournament_id,
        "ally_conditions": list(wc.ally_conditions or []),
        "enemy_conditions": list(wc.enemy_conditions or []),
        "last_result": wc.last_result,
        "created_at": wc.created_at.isoformat() if wc.created_at else None,
    }


def _get(db: Session, wc_id: int) -> WinCondition:
    wc = db.get(WinCondition, wc_id)
    if wc is None:
        raise LookupError(f"Win condition {wc_id} not found")
    return wc


def analyze(
    db: Session,
    ally_conditions: list[dict],
    enemy_conditions: list[dict],
    tournament_id: Optional[int] = None,
) -> dict:
    games = load_finished_games(db, tournament_id=tournament_id)
    if not games:
        logger.info("[win_condition] no finished games (tournament=%s)", tournament_id)
    return analyze_win_condition(games, ally_conditions or [], enemy_conditions or [])


def get_win_conditions(db: Session) -> list[dict]:
    rows = db.query(WinCondition).order_by(WinCondition.created_at.desc(), WinCondition.id.desc()).all()
    return [win_condition_to_dict(wc) for wc in rows]


def get_win_condition(db: Session, wc_id: int) -> dict:
    return win_condition_to_dict(_get(db, wc_id))


def create_win_condition(
    db: Session,
    name: str,
    ally_conditions: list[dict],
    enemy_conditions: list[dict],
    version: Optional[str] = None,
    tournament_id: Optional[int] = None,
) -> dict:
    if not name or not name.strip():
        raise ValueError("Name is required")

    wc = WinCondition(
        name=name.strip(),
        version=version,
        tournament_id=tournament_id,
        ally_conditions=list(ally_conditions or []),
        enemy_conditions=list(enemy_conditions or []),
    )
    db.add(wc)
    db.commit()
    logger.info("[win_condition] created id=%s name=%s", wc.id, wc.name)
    return {"success": True, "message": "Win condition saved", "id": wc.id}


def update_win_condition(
    db: Session,
    wc_id: int,
    name: str,
    ally_conditions: list[dict],
    enemy_conditions: list[dict],
    version: Optional[str] = None,
    tournament_id: Optional[int] = None,
) -> dict:
    wc = _get(db, wc_id)
    if not name or not name.strip():
        raise ValueError("Name is required")

    wc.name = name.strip()
    wc.version = version
    wc.tournament_id = tournament_id
    wc.ally_conditions = list(ally_conditions or [])
    wc.enemy_conditions = list(enemy_conditions or [])
    # filters changed, the cached analysis no longer applies
    wc.last_result = None
    db.commit()
    return {"success": True, "message": "Win condition updated"}


def update_win_condition_result(db: Session, wc_id: int, result: dict) -> dict:
    wc = _get(db, wc_id)
    wc.last_result = result
    db.commit()
    return {"success": True, "message": "Result saved"}


def delete_win_condition(db: Session, wc_id: int) -> dict:
    wc = _get(db, wc_id)
    db.delete(wc)
    db.commit()
    logger.info("[win_condition] deleted id=%s", wc_id)
    return {"success": True, "message": "Win condition deleted"}
