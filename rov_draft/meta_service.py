"""
meta_service.py — Meta dashboard: what gets picked and banned, by whom, and when.

Modes:
  ALL             every finished match
  SCRIM_SUMMARY   quick-entry scrims only (no draft order)
  FULL_SIMULATOR  simulator drafts only (pick/ban order available)
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from rov_draft.analytics import compute_meta_stats, slot_report, tournament_meta
from rov_draft.config import MATCH_TYPE_SUMMARY, SIMULATOR_MATCH_TYPES
from rov_draft.draft_service import load_matches
from rov_draft.draft_sequence import PICK, step_for_position
from rov_draft.heroes_service import hero_lookup
from rov_draft.models import DraftPick, Hero

logger = logging.getLogger(__name__)

META_MODES: dict[str, Optional[frozenset]] = {
    "ALL": None,
    "SCRIM_SUMMARY": frozenset({MATCH_TYPE_SUMMARY}),
    "FULL_SIMULATOR": SIMULATOR_MATCH_TYPES,
}


def get_meta_stats(
    db: Session,
    version_id: Optional[int] = None,
    mode: str = "ALL",
    tournament_id: Optional[int] = None,
    team_name: Optional[str] = None,
) -> dict:
    mode = (mode or "ALL").upper()
    if mode not in META_MODES:
        raise ValueError(f"Unknown mode {mode}, expected one of {', '.join(META_MODES)}")

    matches = load_matches(
        db,
        tournament_id=tournament_id,
        version_id=version_id,
        match_types=META_MODES[mode],
    )
    logger.info("[meta] mode=%s version=%s tournament=%s team=%s matches=%d", mode, version_id, tournament_id, team_name, len(matches))

    stats = compute_meta_stats(matches, hero_lookup(db), team_name=team_name or None)
    stats["mode"] = mode
    return stats


def get_tournament_meta(db: Session, tournament_id: int) -> dict:
    matches = load_matches(db, tournament_id=tournament_id)
    return tournament_meta(matches, hero_lookup(db))


def get_slot_report(db: Session, position_index: int = 5) -> dict:
    """Who gets picked at one absolute draft slot (5 = Blue's first pick)."""
    picks = [
        {"hero_id": hero_id, "assigned_role": role}
        for hero_id, role in (
            db.query(DraftPick.hero_id, DraftPick.assigned_role)
            .filter(DraftPick.position_index == position_index, DraftPick.type == PICK)
            .all()
        )
    ]
    names = {hero_id: name for hero_id, name in db.query(Hero.id, Hero.name).all()}
    report = slot_report(picks, names)
    report["positionIndex"] = position_index
    step = step_for_position(position_index)
    report["step"] = step._asdict() if step else None
    return report
