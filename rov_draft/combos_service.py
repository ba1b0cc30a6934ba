"""
combos_service.py — Hero pairs that work well together (synergy score 0-100).
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from rov_draft.analytics import duo_synergy, round_to_step
from rov_draft.config import MAX_SUGGESTIONS, SUGGESTION_MIN_GAMES, SUGGESTION_ROUND_STEP
from rov_draft.draft_service import load_finished_games
from rov_draft.heroes_service import hero_lookup
from rov_draft.models import HeroCombo

logger = logging.getLogger(__name__)


def _hero_brief(hero) -> Optional[dict]:
    if hero is None:
        return None
    return {"id": hero.id, "name": hero.name, "icon_url": hero.icon_url}


def combo_to_dict(combo: HeroCombo) -> dict:
    return {
        "id": combo.id,
        "version_id": combo.version_id,
        "hero_a_id": combo.hero_a_id,
        "hero_a_position": combo.hero_a_position,
        "hero_b_id": combo.hero_b_id,
        "hero_b_position": combo.hero_b_position,
        "synergy_score": combo.synergy_score,
        "description": combo.description,
        "hero_a": _hero_brief(combo.hero_a),
        "hero_b": _hero_brief(combo.hero_b),
    }


def _check_score(score) -> int:
    score = int(score)
    if not 0 <= score <= 100:
        raise ValueError("Synergy score must be between 0 and 100")
    return score


def get_combos(db: Session, version_id: int) -> list[dict]:
    rows = (
        db.query(HeroCombo)
        .filter(HeroCombo.version_id == version_id)
        .order_by(HeroCombo.synergy_score.desc(), HeroCombo.id)
        .all()
    )
    return [combo_to_dict(c) for c in rows]


def save_combo(
    db: Session,
    version_id: int,
    hero_a_id: int,
    hero_b_id: int,
    synergy_score: int,
    hero_a_position: Optional[str] = None,
    hero_b_position: Optional[str] = None,
    description: Optional[str] = None,
) -> dict:
    if hero_a_id == hero_b_id:
        raise ValueError("Cannot pair a hero with themselves.")

    combo = HeroCombo(
        version_id=version_id,
        hero_a_id=hero_a_id,
        hero_a_position=hero_a_position,
        hero_b_id=hero_b_id,
        hero_b_position=hero_b_position,
        synergy_score=_check_score(synergy_score),
        description=description,
    )
    db.add(combo)
    db.commit()
    logger.info("[combos] saved id=%s %s+%s score=%s", combo.id, hero_a_id, hero_b_id, combo.synergy_score)
    return {"success": True, "message": "Combo saved", "id": combo.id}


def update_combo(
    db: Session,
    combo_id: int,
    synergy_score: Optional[int] = None,
    description: Optional[str] = None,
    hero_a_position: Optional[str] = None,
    hero_b_position: Optional[str] = None,
) -> dict:
    combo = db.get(HeroCombo, combo_id)
    if combo is None:
        raise LookupError(f"Combo {combo_id} not found")

    if synergy_score is not None:
        combo.synergy_score = _check_score(synergy_score)
    combo.description = description
    if hero_a_position is not None:
        combo.hero_a_position = hero_a_position
    if hero_b_position is not None:
        combo.hero_b_position = hero_b_position
    db.commit()
    return {"success": True, "message": "Combo updated"}


def delete_combo(db: Session, combo_id: int) -> dict:
    combo = db.get(HeroCombo, combo_id)
    if combo is None:
        raise LookupError(f"Combo {combo_id} not found")
    db.delete(combo)
    db.commit()
    logger.info("[combos] deleted id=%s", combo_id)
    return {"success": True, "message": "Combo deleted"}


def suggest_combos(db: Session, version_id: int) -> list[dict]:
    """Duos that won together in finished games and are not saved as combos yet."""
    games = load_finished_games(db, version_id=version_id)
    heroes = hero_lookup(db)

    existing = {
        frozenset((c.hero_a_id, c.hero_b_id))
        for c in db.query(HeroCombo).filter(HeroCombo.version_id == version_id).all()
    }

    suggestions = []
    for pair in duo_synergy(games):
        if pair["games"] < SUGGESTION_MIN_GAMES:
            continue
        if frozenset((pair["heroA"], pair["heroB"])) in existing:
            continue
        hero_a = heroes.get(pair["heroA"])
        hero_b = heroes.get(pair["heroB"])
        if hero_a is None or hero_b is None:
            continue
        suggestions.append({
            "hero_a_id": hero_a["id"],
            "hero_a_name": hero_a["name"],
            "hero_a_position": pair["posA"],
            "hero_b_id": hero_b["id"],
            "hero_b_name": hero_b["name"],
            "hero_b_position": pair["posB"],
            "games": pair["games"],
            "synergy_score": round_to_step(pair["winRate"], SUGGESTION_ROUND_STEP),
        })
        if len(suggestions) >= MAX_SUGGESTIONS:
            break

    logger.info("[combos] version=%s suggestions=%d from %d games", version_id, len(suggestions), len(games))
    return suggestions
