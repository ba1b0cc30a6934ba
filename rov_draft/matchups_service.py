"""
matchups_service.py — Analyst-curated lane matchups.

A matchup row says "hero in position vs enemy_hero in enemy_position wins
win_rate % of the time".  Rows are always stored in pairs: saving A vs B at
60 also writes B vs A at 40.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from rov_draft.analytics import lane_matchups, round_to_step
from rov_draft.config import MAX_SUGGESTIONS, SUGGESTION_MIN_GAMES, SUGGESTION_ROUND_STEP
from rov_draft.draft_service import load_finished_games
from rov_draft.heroes_service import hero_lookup
from rov_draft.models import Matchup

logger = logging.getLogger(__name__)


def _upsert(
    db: Session,
    version_id: int,
    hero_id: int,
    position: str,
    enemy_hero_id: int,
    enemy_position: str,
    win_rate: float,
    note: Optional[str],
) -> None:
    row = (
        db.query(Matchup)
        .filter(
            Matchup.version_id == version_id,
            Matchup.hero_id == hero_id,
            Matchup.position == position,
            Matchup.enemy_hero_id == enemy_hero_id,
            Matchup.enemy_position == enemy_position,
        )
        .first()
    )
    if row is None:
        row = Matchup(
            version_id=version_id,
            hero_id=hero_id,
            position=position,
            enemy_hero_id=enemy_hero_id,
            enemy_position=enemy_position,
        )
        db.add(row)
    row.win_rate = win_rate
    row.note = note
    # pending rows must be visible to the next lookup in the same batch
    db.flush()


def save_matchups(
    db: Session,
    version_id: Optional[int],
    hero_id: Optional[int],
    my_position: Optional[str],
    matchups: list[dict],
) -> dict:
    """matchups: [{"enemy_hero_id", "enemy_position", "win_rate", "note"?}, ...]"""
    if not version_id or not hero_id or not my_position or not matchups:
        return {"success": False, "message": "Missing required data"}

    for entry in matchups:
        if entry.get("enemy_hero_id") in (None, "") or not entry.get("enemy_position"):
            raise ValueError("Every matchup needs an enemy hero and position")
        win_rate = float(entry["win_rate"])
        if not 0 <= win_rate <= 100:
            raise ValueError("Win rate must be between 0 and 100")
        enemy_id = int(entry["enemy_hero_id"])
        if enemy_id == hero_id and entry["enemy_position"] == my_position:
            raise ValueError("Cannot set a matchup of a hero against themselves in the same position.")
        note = entry.get("note")

        _upsert(db, version_id, hero_id, my_position, enemy_id, entry["enemy_position"], win_rate, note)
        _upsert(db, version_id, enemy_id, entry["enemy_position"], hero_id, my_position, 100 - win_rate, note)

    db.commit()
    logger.info("[matchups] saved %d pairs hero_id=%s position=%s version=%s", len(matchups), hero_id, my_position, version_id)
    return {"success": True, "message": "Matchups saved successfully (Bidirectional Sync)"}


def get_matchups(db: Session, version_id: int, hero_id: int, position: Optional[str] = None) -> list[dict]:
    query = db.query(Matchup).filter(Matchup.version_id == version_id, Matchup.hero_id == hero_id)
    if position:
        query = query.filter(Matchup.position == position)

    result = []
    for row in query.order_by(Matchup.win_rate.desc()).all():
        result.append({
            "id": row.id,
            "hero_id": row.hero_id,
            "position": row.position,
            "enemy_hero_id": row.enemy_hero_id,
            "enemy_position": row.enemy_position,
            "win_rate": row.win_rate,
            "note": row.note,
            "opponent": {
                "id": row.opponent.id,
                "name": row.opponent.name,
                "icon_url": row.opponent.icon_url,
            } if row.opponent else None,
        })
    return result


def delete_matchup(db: Session, matchup_id: int) -> dict:
    """Deletes a matchup together with its mirrored row."""
    row = db.get(Matchup, matchup_id)
    if row is None:
        raise LookupError(f"Matchup {matchup_id} not found")
    db.query(Matchup).filter(
        Matchup.version_id == row.version_id,
        Matchup.hero_id == row.enemy_hero_id,
        Matchup.position == row.enemy_position,
        Matchup.enemy_hero_id == row.hero_id,
        Matchup.enemy_position == row.position,
    ).delete(synchronize_session=False)
    db.delete(row)
    db.commit()
    return {"success": True, "message": "Matchup deleted"}


def suggest_matchups(db: Session, version_id: int, hero_id: Optional[int] = None) -> list[dict]:
    """Same-lane results from finished games that are not recorded as matchups yet."""
    games = load_finished_games(db, version_id=version_id)
    heroes = hero_lookup(db)

    existing = {
        (m.hero_id, m.position, m.enemy_hero_id, m.enemy_position)
        for m in db.query(Matchup).filter(Matchup.version_id == version_id).all()
    }

    suggestions = []
    for stat in lane_matchups(games):
        if stat["games"] < SUGGESTION_MIN_GAMES:
            continue
        if hero_id is not None and stat["heroId"] != hero_id:
            continue
        key = (stat["heroId"], stat["role"], stat["enemyId"], stat["enemyRole"])
        if key in existing:
            continue
        hero = heroes.get(stat["heroId"])
        enemy = heroes.get(stat["enemyId"])
        if hero is None or enemy is None:
            continue
        suggestions.append({
            "hero_id": stat["heroId"],
            "hero_name": hero["name"],
            "position": stat["role"],
            "enemy_hero_id": stat["enemyId"],
            "enemy_hero_name": enemy["name"],
            "enemy_position": stat["enemyRole"],
            "games": stat["games"],
            "win_rate": round_to_step(stat["winRate"], SUGGESTION_ROUND_STEP),
        })
        if len(suggestions) >= MAX_SUGGESTIONS:
            break

    logger.info("[matchups] version=%s suggestions=%d from %d games", version_id, len(suggestions), len(games))
    return suggestions
